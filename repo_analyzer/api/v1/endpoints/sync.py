import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, Query

from repo_analyzer.schemas.stats import SyncRunSummaryRead
from repo_analyzer.services.sync_commits_service import SyncRunSummary, run_full_sync

logger = logging.getLogger(__name__)
router = APIRouter()


def get_sync_runner() -> Callable[..., Awaitable[SyncRunSummary]]:
    return run_full_sync


@router.post("/commits", response_model=SyncRunSummaryRead)
async def trigger_commit_sync(
    full: bool = Query(False, description="Ignore checkpoints and re-read every project's full history"),
    runner: Callable[..., Awaitable[SyncRunSummary]] = Depends(get_sync_runner),
):
    """Run a commit sync over all projects and report per-project outcomes.

    Project failures do not fail the request; they are listed in the summary.
    """
    logger.info(f"Commit sync requested via API (full={full})")
    summary = await runner(full_resync=full)
    return summary.to_dict()
