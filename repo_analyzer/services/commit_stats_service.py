"""
Commit statistics computed on demand from stored commits.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import Date, extract, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.core.exceptions import DatabaseError
from repo_analyzer.core.timeutils import months_before, to_naive_utc, utcnow, years_before
from repo_analyzer.models.commit import Commit
from repo_analyzer.schemas.stats import AuthorStats, CommitPeriodStat, CommitterRanking, RankingPeriod

logger = logging.getLogger(__name__)

DEFAULT_RANKING_LIMIT = 10
WEEKLY_WINDOW_YEARS = 2


def ranking_window_start(period: RankingPeriod, now: datetime) -> Optional[datetime]:
    """Lower authored-date bound for a ranking period; None means unbounded."""
    if period == RankingPeriod.YEAR:
        return years_before(now, 1)
    if period == RankingPeriod.HALF_YEAR:
        return months_before(now, 6)
    if period == RankingPeriod.MONTH:
        return months_before(now, 1)
    return None


def month_label(year, month) -> str:
    return f"{int(year):04d}-{int(month):02d}"


def iso_week_label(value: date) -> str:
    year, week, _ = value.isocalendar()
    return f"{year}-W{week:02d}"


class CommitStatsService:
    """Read-only aggregations over the commits of one project."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _rows(self, stmt, failure: str, project_id: int):
        try:
            return (await self.session.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error(f"{failure} for project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"{failure}: {str(e)}")

    async def get_monthly_stats(self, project_id: int) -> List[CommitPeriodStat]:
        """Commit counts and line totals per calendar month (UTC), oldest first.

        Empty months are omitted.
        """
        year = extract("year", Commit.authored_date)
        month = extract("month", Commit.authored_date)
        stmt = (
            select(
                year.label("year"),
                month.label("month"),
                func.count(Commit.id).label("commit_count"),
                func.coalesce(func.sum(Commit.additions), 0).label("total_additions"),
                func.coalesce(func.sum(Commit.deletions), 0).label("total_deletions"),
            )
            .where(Commit.project_id == project_id)
            .group_by(year, month)
            .order_by(year, month)
        )
        rows = await self._rows(stmt, "Failed to compute monthly stats", project_id)
        return [
            CommitPeriodStat(
                period=month_label(row.year, row.month),
                count=row.commit_count,
                type="monthly",
                total_additions=row.total_additions,
                total_deletions=row.total_deletions,
            )
            for row in rows
        ]

    async def get_weekly_stats(self, project_id: int, now: Optional[datetime] = None) -> List[CommitPeriodStat]:
        """Commit counts and line totals per ISO week over the last two years, oldest first.

        The database groups by calendar day; ISO week numbering has no portable
        SQL form, so the daily rows are folded into weeks here.
        """
        now = to_naive_utc(now) if now else utcnow()
        day = func.date(Commit.authored_date, type_=Date)
        stmt = (
            select(
                day.label("day"),
                func.count(Commit.id).label("commit_count"),
                func.coalesce(func.sum(Commit.additions), 0).label("total_additions"),
                func.coalesce(func.sum(Commit.deletions), 0).label("total_deletions"),
            )
            .where(Commit.project_id == project_id, Commit.authored_date >= years_before(now, WEEKLY_WINDOW_YEARS))
            .group_by(day)
            .order_by(day)
        )
        rows = await self._rows(stmt, "Failed to compute weekly stats", project_id)

        weeks: Dict[str, CommitPeriodStat] = {}
        for row in rows:
            label = iso_week_label(row.day)
            bucket = weeks.setdefault(label, CommitPeriodStat(period=label, count=0, type="weekly"))
            bucket.count += row.commit_count
            bucket.total_additions += row.total_additions
            bucket.total_deletions += row.total_deletions
        return [weeks[label] for label in sorted(weeks)]

    async def get_committer_ranking(
        self,
        project_id: int,
        period: RankingPeriod = RankingPeriod.ALL,
        limit: int = DEFAULT_RANKING_LIMIT,
        now: Optional[datetime] = None,
    ) -> List[CommitterRanking]:
        """Authors ranked by commit count within the period, most active first.

        Authors with equal counts keep the order in which their first commit was stored.
        """
        now = to_naive_utc(now) if now else utcnow()
        commit_count = func.count(Commit.id).label("commit_count")
        stmt = (
            select(Commit.author_name, Commit.author_email, commit_count)
            .where(Commit.project_id == project_id)
            .group_by(Commit.author_email, Commit.author_name)
            .order_by(commit_count.desc(), func.min(Commit.id))
            .limit(limit)
        )
        start = ranking_window_start(period, now)
        if start is not None:
            stmt = stmt.where(Commit.authored_date >= start)

        rows = await self._rows(stmt, "Failed to rank committers", project_id)

        return [
            CommitterRanking(rank=index, author_name=row.author_name, author_email=row.author_email, commit_count=row.commit_count)
            for index, row in enumerate(rows, start=1)
        ]

    async def get_author_stats(self, project_id: int) -> List[AuthorStats]:
        """Per-author commit counts and line totals, most active first."""
        commit_count = func.count(Commit.id).label("commit_count")
        stmt = (
            select(
                Commit.author_name,
                Commit.author_email,
                commit_count,
                func.coalesce(func.sum(Commit.additions), 0).label("total_additions"),
                func.coalesce(func.sum(Commit.deletions), 0).label("total_deletions"),
            )
            .where(Commit.project_id == project_id)
            .group_by(Commit.author_email, Commit.author_name)
            .order_by(commit_count.desc(), func.min(Commit.id))
        )
        rows = await self._rows(stmt, "Failed to compute author stats", project_id)

        return [
            AuthorStats(
                author_name=row.author_name,
                author_email=row.author_email,
                commit_count=row.commit_count,
                total_additions=row.total_additions,
                total_deletions=row.total_deletions,
            )
            for row in rows
        ]
