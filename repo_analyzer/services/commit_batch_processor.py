"""
Batch persistence for commit synchronization.

One call to `CommitBatchProcessor.process_batch` is one unit of work: it reads up
to `batch_pages` pages of commits from GitLab, stores the ones not seen before
and appends a `commits` checkpoint, all inside a single database transaction.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from repo_analyzer.core.exceptions import CommitTranslationError
from repo_analyzer.core.timeutils import to_naive_utc
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.models.commit import Commit
from repo_analyzer.models.project import Project
from repo_analyzer.models.sync_log import SyncLog, SyncType
from repo_analyzer.repositories.commit_repository import CommitRepository
from repo_analyzer.repositories.sync_log_repository import SyncLogRepository
from repo_analyzer.schemas.gitlab import GitLabCommit, GitLabCommitsQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncCursor:
    """Where a batch starts reading.

    `since` is the lower authored-date bound sent to GitLab. `next_page` lets a
    run continue through the listing it already started without re-reading the
    pages a previous batch consumed. `max_seen` is the newest authored date the
    run has checkpointed so far; GitLab lists newest first, so later batches of
    a run see older commits and must not move the checkpoint back.
    """

    since: Optional[datetime] = None
    next_page: int = 1
    max_seen: Optional[datetime] = None

    @classmethod
    def from_checkpoint(cls, checkpoint: Optional[SyncLog]) -> "SyncCursor":
        if checkpoint is None:
            return cls()
        return cls(since=checkpoint.last_item_date, max_seen=checkpoint.last_item_date)


@dataclass
class BatchResult:
    """Outcome of one batch invocation."""

    project_id: int
    cursor: SyncCursor
    pages_processed: int = 0
    commits_seen: int = 0
    commits_inserted: int = 0
    last_item_date: Optional[datetime] = None
    checkpoint_date: Optional[datetime] = None
    checkpoint_id: Optional[int] = None

    @property
    def exhausted(self) -> bool:
        """True when GitLab had nothing left to read for this cursor."""
        return self.pages_processed == 0

    @property
    def next_cursor(self) -> SyncCursor:
        return replace(
            self.cursor,
            next_page=self.cursor.next_page + self.pages_processed,
            max_seen=self.checkpoint_date or self.cursor.max_seen,
        )


def to_commit(project_id: int, record: GitLabCommit) -> Commit:
    """Translate a GitLab commit record into a Commit row for `project_id`."""
    if not record.id:
        raise CommitTranslationError("Commit record has no id")
    if record.authored_date is None:
        raise CommitTranslationError("Commit record has no authored_date", sha=record.id)

    stats = record.stats
    return Commit(
        project_id=project_id,
        sha=record.id,
        message=record.message,
        author_name=record.author_name,
        author_email=record.author_email,
        authored_date=to_naive_utc(record.authored_date),
        additions=stats.additions if stats is not None else None,
        deletions=stats.deletions if stats is not None else None,
    )


class CommitBatchProcessor:
    """Fetches, de-duplicates and stores one checkpoint-bounded batch of commits."""

    def __init__(
        self,
        gitlab_client: GitLabClient,
        session_factory: async_sessionmaker,
        batch_pages: int = 10,
        page_size: int = 100,
        page_delay: float = 0.2,
        with_stats: bool = True,
    ):
        if batch_pages < 1:
            raise ValueError("batch_pages must be at least 1")
        self.gitlab_client = gitlab_client
        self.session_factory = session_factory
        self.batch_pages = batch_pages
        self.page_size = page_size
        self.page_delay = page_delay
        self.with_stats = with_stats

    def _build_query(self, project: Project, cursor: SyncCursor) -> GitLabCommitsQuery:
        return GitLabCommitsQuery(
            ref_name=project.default_branch or None,
            since=cursor.since,
            page=cursor.next_page,
            per_page=self.page_size,
            with_stats=self.with_stats,
        )

    async def _store_page(self, commits: CommitRepository, project_id: int, page: List[GitLabCommit]) -> int:
        """Store the commits of one page that are not yet known; return how many were inserted."""
        translated: Dict[str, Commit] = {}
        for record in page:
            commit = to_commit(project_id, record)
            # The first occurrence of a sha within a page wins
            translated.setdefault(commit.sha, commit)

        # The lookup is not scoped to a project; keep only this project's rows
        existing = await commits.find_by_shas(list(translated))
        known = {c.sha for c in existing if c.project_id == project_id}

        new_commits = [c for sha, c in translated.items() if sha not in known]
        await commits.bulk_insert(new_commits)
        return len(new_commits)

    async def process_batch(self, project: Project, cursor: Optional[SyncCursor] = None) -> BatchResult:
        """Run one batch for `project` starting at `cursor`.

        Reads at most `batch_pages` pages. When at least one page was read a
        checkpoint is appended holding the newest authored date of the batch or
        the cursor's `max_seen`, whichever is later.
        Any error rolls back every row written by this call and propagates.
        """
        cursor = cursor or SyncCursor()
        result = BatchResult(project_id=project.id, cursor=cursor)
        query = self._build_query(project, cursor)

        async with self.session_factory() as session:
            async with session.begin():
                commits = CommitRepository(session)
                sync_logs = SyncLogRepository(session)

                pages = self.gitlab_client.iter_commit_pages(project.gitlab_id, query)
                try:
                    async for page in pages:
                        inserted = await self._store_page(commits, project.id, page)

                        result.pages_processed += 1
                        result.commits_seen += len(page)
                        result.commits_inserted += inserted
                        page_max = max(to_naive_utc(record.authored_date) for record in page)
                        if result.last_item_date is None or page_max > result.last_item_date:
                            result.last_item_date = page_max

                        logger.debug(
                            f"Project {project.id}: page {cursor.next_page + result.pages_processed - 1} "
                            f"stored {inserted}/{len(page)} commits"
                        )

                        if result.pages_processed >= self.batch_pages:
                            break
                        await asyncio.sleep(self.page_delay)
                finally:
                    await pages.aclose()

                if result.exhausted:
                    return result

                result.checkpoint_date = result.last_item_date
                if cursor.max_seen is not None and cursor.max_seen > result.checkpoint_date:
                    result.checkpoint_date = cursor.max_seen

                checkpoint = await sync_logs.append(
                    project.id,
                    SyncType.COMMITS,
                    result.checkpoint_date,
                    records_processed=result.commits_seen,
                    records_added=result.commits_inserted,
                )
                result.checkpoint_id = checkpoint.id

        logger.info(
            f"Project {project.id} ({project.name}): batch of {result.pages_processed} pages, "
            f"{result.commits_inserted} new of {result.commits_seen} commits, checkpoint at {result.checkpoint_date}"
        )
        return result
