"""
Commit synchronization across all registered projects.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from repo_analyzer.config.settings import settings
from repo_analyzer.core.database import get_session_factory
from repo_analyzer.core.timeutils import utcnow
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.models.project import Project
from repo_analyzer.models.sync_log import SyncType
from repo_analyzer.repositories.project_repository import ProjectRepository
from repo_analyzer.repositories.sync_log_repository import SyncLogRepository
from repo_analyzer.services.commit_batch_processor import CommitBatchProcessor, SyncCursor

logger = logging.getLogger(__name__)

STATE_EXHAUSTED = "exhausted"
STATE_FAILED = "failed"


@dataclass
class ProjectSyncResult:
    """Outcome of synchronizing one project."""

    project_id: int
    project_name: str
    state: str = STATE_EXHAUSTED
    batches: int = 0
    pages_processed: int = 0
    commits_inserted: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.state == STATE_FAILED


@dataclass
class SyncRunSummary:
    """Outcome of one run over every project."""

    started_at: datetime
    full_resync: bool = False
    finished_at: Optional[datetime] = None
    projects: List[ProjectSyncResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for p in self.projects if not p.failed)

    @property
    def failed(self) -> int:
        return sum(1 for p in self.projects if p.failed)

    @property
    def commits_inserted(self) -> int:
        return sum(p.commits_inserted for p in self.projects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "full_resync": self.full_resync,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "commits_inserted": self.commits_inserted,
            "projects": [asdict(p) for p in self.projects],
        }


class SyncCommitsService:
    """Drives commit batches for every project, isolating per-project failures."""

    def __init__(
        self,
        gitlab_client: GitLabClient,
        session_factory: async_sessionmaker,
        processor: Optional[CommitBatchProcessor] = None,
    ):
        self.gitlab_client = gitlab_client
        self.session_factory = session_factory
        self.processor = processor or CommitBatchProcessor(
            gitlab_client,
            session_factory,
            batch_pages=settings.SYNC_BATCH_PAGES,
            page_size=settings.SYNC_PAGE_SIZE,
            page_delay=settings.SYNC_PAGE_DELAY_SECONDS,
            with_stats=settings.SYNC_WITH_STATS,
        )

    async def _starting_cursor(self, project: Project, full_resync: bool) -> SyncCursor:
        if full_resync:
            return SyncCursor()
        async with self.session_factory() as session:
            latest = await SyncLogRepository(session).find_latest(project.id, SyncType.COMMITS)
        return SyncCursor.from_checkpoint(latest)

    async def sync_project(self, project: Project, full_resync: bool = False) -> ProjectSyncResult:
        """Run batches for one project until GitLab has nothing more to return.

        Errors are logged with the project's identity and recorded on the result;
        they are never raised to the caller.
        """
        result = ProjectSyncResult(project_id=project.id, project_name=project.name)
        try:
            cursor = await self._starting_cursor(project, full_resync)
            logger.info(f"Syncing commits for project {project.id} ({project.name}) since {cursor.since or 'the beginning'}")

            while True:
                batch = await self.processor.process_batch(project, cursor)
                if batch.exhausted:
                    break
                result.batches += 1
                result.pages_processed += batch.pages_processed
                result.commits_inserted += batch.commits_inserted
                cursor = batch.next_cursor

            result.state = STATE_EXHAUSTED
        except Exception as e:
            logger.error(
                f"Commit sync failed for project {project.id} (gitlab:{project.gitlab_id}, {project.name}) "
                f"after {result.batches} committed batches: {e}",
                exc_info=True,
            )
            result.state = STATE_FAILED
            result.error = str(e)
        return result

    async def sync_commits(self, full_resync: bool = False) -> SyncRunSummary:
        """Synchronize every registered project, one after another.

        Projects are visited in the enumeration order of
        `ProjectRepository.find_all`, which is by name.

        Always returns normally once the project list is loaded; per-project
        failures are reported on the summary and in the log.
        """
        summary = SyncRunSummary(started_at=utcnow(), full_resync=full_resync)

        async with self.session_factory() as session:
            projects = await ProjectRepository(session).find_all()
        logger.info(f"Starting {'full' if full_resync else 'incremental'} commit sync of {len(projects)} projects")

        for project in projects:
            summary.projects.append(await self.sync_project(project, full_resync=full_resync))

        summary.finished_at = utcnow()
        logger.info(
            f"Commit sync finished: {summary.succeeded} succeeded, {summary.failed} failed, "
            f"{summary.commits_inserted} commits inserted"
        )
        return summary


async def run_full_sync(full_resync: bool = False) -> SyncRunSummary:
    """Synchronize all projects using the configured GitLab instance and database."""
    async with GitLabClient.from_settings() as client:
        service = SyncCommitsService(client, get_session_factory())
        return await service.sync_commits(full_resync=full_resync)
