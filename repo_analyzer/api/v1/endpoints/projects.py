import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.api.deps import get_gitlab_client, get_project_or_404
from repo_analyzer.core.database import get_db
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.models.project import Project
from repo_analyzer.repositories.project_repository import ProjectRepository
from repo_analyzer.schemas.stats import ProjectCreate, ProjectRead
from repo_analyzer.services.project_registry import ProjectRegistry

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[ProjectRead])
async def list_projects(db: AsyncSession = Depends(get_db)):
    """All projects registered for synchronization, ordered by name."""
    return await ProjectRepository(db).find_all()


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def register_project(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    gitlab_client: GitLabClient = Depends(get_gitlab_client),
):
    """Register a GitLab project by id or path.

    409 when it is already registered, 502 when GitLab cannot return it.
    """
    logger.info(f"Project registration requested for {payload.project}")
    project = await ProjectRegistry(gitlab_client, db).register(payload.project)
    await db.commit()
    return project


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(project: Project = Depends(get_project_or_404)):
    return project
