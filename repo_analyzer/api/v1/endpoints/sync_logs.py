import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.api.deps import get_project_or_404
from repo_analyzer.core.database import get_db
from repo_analyzer.models.project import Project
from repo_analyzer.models.sync_log import SyncType
from repo_analyzer.repositories.sync_log_repository import SyncLogRepository
from repo_analyzer.schemas.stats import SyncLogRead

logger = logging.getLogger(__name__)
router = APIRouter()


def get_sync_log_repository(db: AsyncSession = Depends(get_db)) -> SyncLogRepository:
    return SyncLogRepository(db)


@router.get("/{project_id}/sync-logs", response_model=List[SyncLogRead])
async def list_sync_logs(
    sync_type: Optional[SyncType] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    project: Project = Depends(get_project_or_404),
    sync_logs: SyncLogRepository = Depends(get_sync_log_repository),
):
    """Checkpoints written for a project, newest first."""
    return await sync_logs.find(project_id=project.id, sync_type=sync_type, limit=limit, offset=offset)
