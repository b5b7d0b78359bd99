import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Union
from urllib.parse import quote, urlparse

import httpx
from pydantic import ValidationError as PydanticValidationError

from repo_analyzer.config.settings import settings
from repo_analyzer.core.exceptions import CommitTranslationError, ConfigurationError, GitLabApiError
from repo_analyzer.schemas.gitlab import GitLabCommit, GitLabCommitsQuery, GitLabProject

logger = logging.getLogger(__name__)

ProjectRef = Union[int, str]


class GitLabClient:
    """Async client for the subset of the GitLab REST API used by the commit sync.

    The client owns an `httpx.AsyncClient` unless one is injected. Requests are
    never retried here; every transport or HTTP failure surfaces as GitLabApiError.
    """

    API_PREFIX = "/api/v4"
    USER_AGENT = "gitlab-repo-analyzer/0.1.0"

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._validate_config(base_url, token)
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "User-Agent": self.USER_AGENT,
            },
            transport=transport,
        )

    @classmethod
    def from_settings(cls) -> "GitLabClient":
        return cls(base_url=settings.gitlab_url, token=settings.gitlab_token, timeout=settings.GITLAB_TIMEOUT)

    @staticmethod
    def _validate_config(base_url: str, token: Optional[str]) -> None:
        if not base_url:
            raise ConfigurationError("GitLab base URL is not configured")
        if not token:
            raise ConfigurationError("GITLAB_TOKEN is not configured")
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"GitLab base URL is not a valid http(s) URL: {base_url}")

    async def __aenter__(self) -> "GitLabClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _encode_project(project_id: ProjectRef) -> str:
        # Numeric ids and "group/project" paths are both accepted by the API
        return quote(str(project_id), safe="")

    @staticmethod
    def _extract_error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200] or "GitLab API error"
        if isinstance(data, dict):
            for key in ("message", "error_description", "error"):
                value = data.get(key)
                if isinstance(value, str):
                    return value
                if value:
                    return str(value)
        return "GitLab API error"

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = f"{self.API_PREFIX}{path}"
        logger.debug(f"GitLab API Request: GET {url} params={params}")
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GitLabApiError(self._extract_error_message(e.response), http_status=e.response.status_code) from e
        except httpx.RequestError as e:
            raise GitLabApiError(f"Network error on GET {url}: {e}") from e
        return response

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise GitLabApiError(f"Malformed JSON response from {response.request.url.path}") from e

    @staticmethod
    def _parse_commit(item: Any) -> GitLabCommit:
        try:
            return GitLabCommit.model_validate(item)
        except PydanticValidationError as e:
            sha = item.get("id") if isinstance(item, dict) else None
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise CommitTranslationError(f"Commit record is missing or has invalid fields: {fields}", sha=sha) from e

    async def iter_commit_pages(
        self, project_id: ProjectRef, query: Optional[GitLabCommitsQuery] = None
    ) -> AsyncIterator[List[GitLabCommit]]:
        """Yield commit pages for a project, newest first, one request per page.

        GET /projects/:id/repository/commits

        Iteration stops on an empty page or when the response carries no
        `x-next-page` header. Stopping early (breaking out of the loop) issues no
        further requests.
        """
        query = query or GitLabCommitsQuery()
        path = f"/projects/{self._encode_project(project_id)}/repository/commits"
        page = query.page

        while True:
            response = await self._get(path, query.model_copy(update={"page": page}).to_params())
            payload = self._json_body(response)
            if not isinstance(payload, list):
                raise GitLabApiError(f"Expected a JSON array of commits from {path}, got {type(payload).__name__}")
            if not payload:
                return

            commits = [self._parse_commit(item) for item in payload]
            logger.debug(f"Fetched page {page} of commits for project {project_id}: {len(commits)} commits")
            yield commits

            next_page = response.headers.get("x-next-page", "").strip()
            if not next_page:
                return
            try:
                page = int(next_page)
            except ValueError as e:
                raise GitLabApiError(f"Invalid x-next-page header: {next_page!r}") from e

    async def get_commit(self, project_id: ProjectRef, sha: str) -> GitLabCommit:
        """GET /projects/:id/repository/commits/:sha"""
        path = f"/projects/{self._encode_project(project_id)}/repository/commits/{quote(sha, safe='')}"
        response = await self._get(path)
        return self._parse_commit(self._json_body(response))

    async def get_project(self, project_id: ProjectRef) -> GitLabProject:
        """GET /projects/:id"""
        response = await self._get(f"/projects/{self._encode_project(project_id)}")
        try:
            return GitLabProject.model_validate(self._json_body(response))
        except PydanticValidationError as e:
            raise GitLabApiError(f"Malformed project response for {project_id}: {e}") from e

    async def test_connection(self) -> bool:
        """Return True when the token can read the current user (GET /user)."""
        try:
            await self._get("/user")
            return True
        except GitLabApiError as e:
            logger.warning(f"GitLab connection check failed: {e.message}")
            return False
