from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from repo_analyzer.models.sync_log import SyncType


class RankingPeriod(str, Enum):
    """Trailing windows for the committer ranking."""

    ALL = "all"
    YEAR = "year"
    HALF_YEAR = "halfYear"
    MONTH = "month"


class CommitPeriodStat(BaseModel):
    """Commit count and line totals for one calendar bucket; line totals serialize as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    period: str = Field(..., description="YYYY-MM for monthly buckets, YYYY-Www (ISO week) for weekly buckets")
    count: int
    type: Literal["monthly", "weekly"]
    total_additions: int = 0
    total_deletions: int = 0


class CommitterRanking(BaseModel):
    """One ranked author; serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rank: int
    author_name: str
    author_email: str
    commit_count: int


class AuthorStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    author_name: str
    author_email: str
    commit_count: int
    total_additions: int = 0
    total_deletions: int = 0


class SyncLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    sync_type: SyncType
    last_item_date: datetime
    records_processed: Optional[int] = None
    records_added: Optional[int] = None
    created_at: datetime


class ProjectSyncResultRead(BaseModel):
    project_id: int
    project_name: str
    state: str
    batches: int
    pages_processed: int
    commits_inserted: int
    error: Optional[str] = None


class SyncRunSummaryRead(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    full_resync: bool
    succeeded: int
    failed: int
    commits_inserted: int
    projects: List[ProjectSyncResultRead]


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    gitlab_id: int
    name: str
    description: Optional[str] = None
    web_url: str
    default_branch: str
    visibility: str
    gitlab_created_at: datetime


class ProjectCreate(BaseModel):
    project: Union[int, str] = Field(..., description="GitLab project id or full path (group/project)")
