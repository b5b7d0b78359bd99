import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from repo_analyzer.config.settings import settings
from repo_analyzer.services.sync_commits_service import SyncRunSummary, run_full_sync

logger = logging.getLogger(__name__)

SyncRunner = Callable[[], Awaitable[SyncRunSummary]]


class ScheduledSyncService:
    """Runs the commit sync periodically in the background of the API process"""

    def __init__(self, interval_minutes: Optional[float] = None, runner: Optional[SyncRunner] = None):
        self.interval_seconds = (interval_minutes or settings.SYNC_INTERVAL_MINUTES) * 60
        self.runner = runner or run_full_sync
        self.running_tasks: Set[asyncio.Task] = set()

    async def start(self):
        """Start the periodic sync task"""
        if self.running_tasks:
            logger.warning("Scheduled commit sync already running")
            return
        task = asyncio.create_task(self._run_periodic_sync())
        self.running_tasks.add(task)
        task.add_done_callback(self.running_tasks.discard)
        logger.info(f"Scheduled commit sync every {self.interval_seconds / 60:.0f} minutes")

    async def stop(self):
        """Stop the periodic sync task"""
        for task in self.running_tasks:
            task.cancel()

        # Wait for cancellation to complete
        await asyncio.gather(*self.running_tasks, return_exceptions=True)
        logger.info("Scheduled commit sync stopped")

    async def run_once(self) -> Optional[SyncRunSummary]:
        """Run one sync, logging instead of raising on failure."""
        logger.info("Starting scheduled commit sync...")
        try:
            summary = await self.runner()
            logger.info(
                f"Scheduled commit sync completed: {summary.succeeded} succeeded, "
                f"{summary.failed} failed, {summary.commits_inserted} commits inserted"
            )
            return summary
        except Exception as e:
            logger.error(f"Error in scheduled commit sync: {e}", exc_info=True)
            return None

    async def _run_periodic_sync(self):
        while True:
            try:
                await self.run_once()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Scheduled commit sync task cancelled")
                break


# Global instance for easy access
scheduled_sync = ScheduledSyncService()


async def start_scheduled_sync():
    """Start the periodic sync - call this on app startup"""
    if settings.ENABLE_SCHEDULED_SYNC:
        await scheduled_sync.start()


async def stop_scheduled_sync():
    """Stop the periodic sync - call this on app shutdown"""
    await scheduled_sync.stop()
