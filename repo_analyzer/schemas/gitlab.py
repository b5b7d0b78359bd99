"""
Pydantic models for the GitLab REST API payloads consumed by the sync.

Reference: https://docs.gitlab.com/ee/api/commits.html#list-repository-commits
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from repo_analyzer.core.timeutils import to_iso_utc


class GitLabCommitStats(BaseModel):
    """Line statistics included when commits are listed with `with_stats=true`."""

    additions: int = 0
    deletions: int = 0
    total: int = 0


class GitLabCommit(BaseModel):
    """One item of GET /projects/:id/repository/commits."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Full commit SHA")
    short_id: Optional[str] = None
    title: Optional[str] = None
    message: str = ""
    author_name: str
    author_email: str
    authored_date: datetime
    committer_name: Optional[str] = None
    committer_email: Optional[str] = None
    committed_date: Optional[datetime] = None
    web_url: Optional[str] = None
    parent_ids: List[str] = Field(default_factory=list)
    stats: Optional[GitLabCommitStats] = None


class GitLabCommitsQuery(BaseModel):
    """Query parameters for listing repository commits."""

    ref_name: Optional[str] = None
    # Naive values are taken as UTC
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1, le=100)
    with_stats: bool = False

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": self.page, "per_page": self.per_page}
        if self.ref_name:
            params["ref_name"] = self.ref_name
        if self.since is not None:
            params["since"] = to_iso_utc(self.since)
        if self.until is not None:
            params["until"] = to_iso_utc(self.until)
        if self.with_stats:
            params["with_stats"] = "true"
        return params


class GitLabProject(BaseModel):
    """Subset of GET /projects/:id used to register projects."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    description: Optional[str] = None
    web_url: str
    default_branch: Optional[str] = None
    visibility: str = "private"
    created_at: datetime
