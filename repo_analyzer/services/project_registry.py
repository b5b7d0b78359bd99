"""
Registration of GitLab projects for commit synchronization.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.core.exceptions import DuplicateResourceError
from repo_analyzer.integrations.gitlab_client import GitLabClient, ProjectRef
from repo_analyzer.models.project import Project
from repo_analyzer.repositories.project_repository import ProjectRepository

logger = logging.getLogger(__name__)


class ProjectRegistry:
    """Looks a project up on GitLab and stores it as a local project row."""

    def __init__(self, gitlab_client: GitLabClient, session: AsyncSession):
        self.gitlab_client = gitlab_client
        self.projects = ProjectRepository(session)

    async def register(self, project_ref: ProjectRef) -> Project:
        """Register the GitLab project `project_ref` (numeric id or "group/project" path).

        Raises GitLabApiError when GitLab cannot return the project and
        DuplicateResourceError when it is already registered. The caller owns
        the transaction.
        """
        remote = await self.gitlab_client.get_project(project_ref)

        existing = await self.projects.get_by_gitlab_id(remote.id)
        if existing is not None:
            logger.info(f"Project {remote.name} (gitlab:{remote.id}) is already registered as {existing.id}")
            raise DuplicateResourceError("project", f"gitlab:{remote.id}")

        return await self.projects.create(
            gitlab_id=remote.id,
            name=remote.name,
            description=remote.description,
            web_url=remote.web_url,
            default_branch=remote.default_branch or "main",
            visibility=remote.visibility,
            gitlab_created_at=remote.created_at,
        )
