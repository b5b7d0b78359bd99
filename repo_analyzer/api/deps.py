from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.core.database import get_db
from repo_analyzer.core.exceptions import ResourceNotFoundError
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.models.project import Project
from repo_analyzer.repositories.project_repository import ProjectRepository


async def get_project_or_404(project_id: int, db: AsyncSession = Depends(get_db)) -> Project:
    project = await ProjectRepository(db).get_by_id(project_id)
    if project is None:
        raise ResourceNotFoundError("project", project_id)
    return project


async def get_gitlab_client() -> AsyncGenerator[GitLabClient, None]:
    async with GitLabClient.from_settings() as client:
        yield client
