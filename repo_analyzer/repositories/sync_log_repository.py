"""
Repository for the append-only sync checkpoint log.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.core.exceptions import DatabaseError
from repo_analyzer.core.timeutils import to_naive_utc
from repo_analyzer.models.sync_log import SyncLog, SyncType

logger = logging.getLogger(__name__)


class SyncLogRepository:
    """Reads and appends sync checkpoints. Rows are never updated or deleted."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_latest(self, project_id: int, sync_type: SyncType) -> Optional[SyncLog]:
        """The most recently written checkpoint (greatest id) for the pair."""
        try:
            result = await self.session.execute(
                select(SyncLog)
                .where(SyncLog.project_id == project_id, SyncLog.sync_type == sync_type)
                .order_by(SyncLog.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error reading latest {sync_type.value} checkpoint for project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to read sync checkpoint: {str(e)}")

    async def append(
        self,
        project_id: int,
        sync_type: SyncType,
        last_item_date: datetime,
        records_processed: Optional[int] = None,
        records_added: Optional[int] = None,
    ) -> SyncLog:
        """Insert a new checkpoint row; earlier rows are left untouched."""
        entry = SyncLog(
            project_id=project_id,
            sync_type=sync_type,
            last_item_date=to_naive_utc(last_item_date),
            records_processed=records_processed,
            records_added=records_added,
        )
        try:
            self.session.add(entry)
            await self.session.flush()
            logger.debug(f"Appended {sync_type.value} checkpoint {entry.id} for project {project_id} at {entry.last_item_date}")
            return entry
        except IntegrityError as e:
            logger.error(f"Rejected checkpoint for project {project_id}: {e.orig}")
            raise DatabaseError(f"Failed to append sync checkpoint for project {project_id}: {str(e.orig)}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error appending checkpoint for project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to append sync checkpoint: {str(e)}")

    def _filtered(self, stmt, project_id: Optional[int], sync_type: Optional[SyncType]):
        if project_id is not None:
            stmt = stmt.where(SyncLog.project_id == project_id)
        if sync_type is not None:
            stmt = stmt.where(SyncLog.sync_type == sync_type)
        return stmt

    async def find(
        self,
        project_id: Optional[int] = None,
        sync_type: Optional[SyncType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[SyncLog]:
        """Checkpoints newest first, optionally filtered by project and type."""
        stmt = self._filtered(select(SyncLog), project_id, sync_type)
        try:
            result = await self.session.execute(stmt.order_by(SyncLog.id.desc()).limit(limit).offset(offset))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing sync logs: {e}", exc_info=True)
            raise DatabaseError(f"Failed to list sync logs: {str(e)}")

    async def count(self, project_id: Optional[int] = None, sync_type: Optional[SyncType] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(SyncLog), project_id, sync_type)
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting sync logs: {e}", exc_info=True)
            raise DatabaseError(f"Failed to count sync logs: {str(e)}")

    async def find_by_project(self, project_id: int, limit: int = 100, offset: int = 0) -> List[SyncLog]:
        return await self.find(project_id=project_id, limit=limit, offset=offset)

    async def get_by_id(self, log_id: int) -> Optional[SyncLog]:
        try:
            return await self.session.get(SyncLog, log_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting sync log {log_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to get sync log: {str(e)}")
