"""
Repository for GitLab projects registered for synchronization.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.core.exceptions import DatabaseError, DuplicateResourceError
from repo_analyzer.core.timeutils import to_naive_utc
from repo_analyzer.models.project import Project

logger = logging.getLogger(__name__)


class ProjectRepository:
    """Repository for Project model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> List[Project]:
        """All projects ordered by name."""
        try:
            result = await self.session.execute(select(Project).order_by(Project.name, Project.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing projects: {e}", exc_info=True)
            raise DatabaseError(f"Failed to list projects: {str(e)}")

    async def get_by_id(self, project_id: int) -> Optional[Project]:
        try:
            return await self.session.get(Project, project_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to get project: {str(e)}")

    async def get_by_gitlab_id(self, gitlab_id: int) -> Optional[Project]:
        try:
            result = await self.session.execute(select(Project).where(Project.gitlab_id == gitlab_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting project by GitLab id {gitlab_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to get project: {str(e)}")

    async def create(
        self,
        gitlab_id: int,
        name: str,
        web_url: str,
        default_branch: str,
        gitlab_created_at: datetime,
        visibility: str = "private",
        description: Optional[str] = None,
    ) -> Project:
        """Insert a project row and flush it so the primary key is available."""
        project = Project(
            gitlab_id=gitlab_id,
            name=name,
            description=description,
            web_url=web_url,
            default_branch=default_branch,
            visibility=visibility,
            gitlab_created_at=to_naive_utc(gitlab_created_at),
        )
        try:
            self.session.add(project)
            await self.session.flush()
            logger.info(f"Registered project {name} (gitlab:{gitlab_id}) as {project.id}")
            return project
        except IntegrityError as e:
            raise DuplicateResourceError("project", str(gitlab_id)) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating project {name}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to create project: {str(e)}")

    async def count(self) -> int:
        try:
            result = await self.session.execute(select(func.count()).select_from(Project))
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting projects: {e}", exc_info=True)
            raise DatabaseError(f"Failed to count projects: {str(e)}")
