"""
Tests for registering GitLab projects.
"""

from datetime import datetime

import httpx
import pytest
import pytest_asyncio

from repo_analyzer.core.exceptions import DuplicateResourceError, GitLabApiError
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.repositories.project_repository import ProjectRepository
from repo_analyzer.services.project_registry import ProjectRegistry
from tests.conftest import GITLAB_TOKEN, GITLAB_URL

PROJECT = {
    "id": 278964,
    "name": "gitlab",
    "description": "GitLab Community Edition",
    "web_url": f"{GITLAB_URL}/gitlab-org/gitlab",
    "default_branch": "master",
    "visibility": "public",
    "created_at": "2015-05-20T10:12:14.000+02:00",
}


def gitlab_handler(request: httpx.Request) -> httpx.Response:
    if request.url.raw_path in (b"/api/v4/projects/278964", b"/api/v4/projects/gitlab-org%2Fgitlab"):
        return httpx.Response(200, json=PROJECT)
    return httpx.Response(404, json={"message": "404 Project Not Found"})


@pytest_asyncio.fixture
async def registry_client():
    client = GitLabClient(GITLAB_URL, GITLAB_TOKEN, transport=httpx.MockTransport(gitlab_handler))
    yield client
    await client.aclose()


class TestProjectRegistry:
    @pytest.mark.asyncio
    async def test_registers_project_by_path(self, registry_client, session_factory):
        # Act
        async with session_factory() as session:
            async with session.begin():
                project = await ProjectRegistry(registry_client, session).register("gitlab-org/gitlab")

        # Assert
        async with session_factory() as session:
            stored = await ProjectRepository(session).get_by_gitlab_id(278964)
        assert stored.id == project.id
        assert stored.name == "gitlab"
        assert stored.default_branch == "master"
        assert stored.visibility == "public"
        assert stored.gitlab_created_at == datetime(2015, 5, 20, 8, 12, 14)

    @pytest.mark.asyncio
    async def test_second_registration_is_a_duplicate(self, registry_client, session_factory):
        # Arrange
        async with session_factory() as session:
            async with session.begin():
                await ProjectRegistry(registry_client, session).register(278964)

        # Act & Assert
        async with session_factory() as session:
            with pytest.raises(DuplicateResourceError) as exc_info:
                await ProjectRegistry(registry_client, session).register("gitlab-org/gitlab")
            assert await ProjectRepository(session).count() == 1
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_project_raises_gitlab_error(self, registry_client, session_factory):
        async with session_factory() as session:
            with pytest.raises(GitLabApiError) as exc_info:
                await ProjectRegistry(registry_client, session).register("nobody/nothing")
            assert await ProjectRepository(session).count() == 0

        assert exc_info.value.http_status == 404
        assert exc_info.value.code == "GITLAB_API_ERROR"
