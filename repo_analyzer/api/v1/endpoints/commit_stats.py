import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.api.deps import get_project_or_404
from repo_analyzer.core.database import get_db
from repo_analyzer.models.project import Project
from repo_analyzer.schemas.stats import AuthorStats, CommitPeriodStat, CommitterRanking, RankingPeriod
from repo_analyzer.services.commit_stats_service import DEFAULT_RANKING_LIMIT, CommitStatsService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_commit_stats_service(db: AsyncSession = Depends(get_db)) -> CommitStatsService:
    return CommitStatsService(db)


@router.get("/{project_id}/commits/stats/monthly", response_model=List[CommitPeriodStat], response_model_by_alias=True)
async def get_monthly_commit_stats(
    project: Project = Depends(get_project_or_404),
    stats_service: CommitStatsService = Depends(get_commit_stats_service),
):
    """Commit counts and line totals per month, oldest first."""
    return await stats_service.get_monthly_stats(project.id)


@router.get("/{project_id}/commits/stats/weekly", response_model=List[CommitPeriodStat], response_model_by_alias=True)
async def get_weekly_commit_stats(
    project: Project = Depends(get_project_or_404),
    stats_service: CommitStatsService = Depends(get_commit_stats_service),
):
    """Commit counts per ISO week over the last two years, oldest first."""
    return await stats_service.get_weekly_stats(project.id)


@router.get("/{project_id}/commits/ranking", response_model=List[CommitterRanking], response_model_by_alias=True)
async def get_committer_ranking(
    period: RankingPeriod = Query(RankingPeriod.ALL, description="Trailing window: all, year, halfYear or month"),
    limit: int = Query(DEFAULT_RANKING_LIMIT, ge=1, le=100),
    project: Project = Depends(get_project_or_404),
    stats_service: CommitStatsService = Depends(get_commit_stats_service),
):
    return await stats_service.get_committer_ranking(project.id, period=period, limit=limit)


@router.get("/{project_id}/commits/authors", response_model=List[AuthorStats], response_model_by_alias=True)
async def get_author_stats(
    project: Project = Depends(get_project_or_404),
    stats_service: CommitStatsService = Depends(get_commit_stats_service),
):
    return await stats_service.get_author_stats(project.id)
