"""
Repository for synchronized commits.

Only reads and inserts are offered: commit rows are immutable once stored.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer.core.exceptions import DatabaseError, DuplicateResourceError
from repo_analyzer.models.commit import Commit

logger = logging.getLogger(__name__)

# Keeps IN (...) lists well below driver parameter limits
SHA_CHUNK_SIZE = 100


class CommitRepository:
    """Repository for Commit model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_shas(self, shas: Iterable[str], project_id: Optional[int] = None) -> List[Commit]:
        """Return stored commits whose sha is in `shas`.

        Without `project_id` the lookup spans all projects, so callers interested
        in a single project must filter the result themselves.
        """
        unique_shas = list(dict.fromkeys(shas))
        if not unique_shas:
            return []

        found: List[Commit] = []
        try:
            for start in range(0, len(unique_shas), SHA_CHUNK_SIZE):
                chunk = unique_shas[start : start + SHA_CHUNK_SIZE]
                stmt = select(Commit).where(Commit.sha.in_(chunk))
                if project_id is not None:
                    stmt = stmt.where(Commit.project_id == project_id)
                result = await self.session.execute(stmt)
                found.extend(result.scalars().all())
            return found
        except SQLAlchemyError as e:
            logger.error(f"Error looking up {len(unique_shas)} commit hashes: {e}", exc_info=True)
            raise DatabaseError(f"Failed to look up commits: {str(e)}")

    async def bulk_insert(self, commits: List[Commit]) -> List[Commit]:
        """Insert all commits in one flush.

        Either every row is written or none is: a duplicate (project_id, sha)
        anywhere in the input fails the whole call with DuplicateResourceError.
        The caller owns the transaction and must roll it back on error.
        """
        if not commits:
            return []

        try:
            self.session.add_all(commits)
            await self.session.flush()
            logger.debug(f"Inserted {len(commits)} commits")
            return commits
        except IntegrityError as e:
            logger.error(f"Duplicate commit in bulk insert of {len(commits)} rows: {e.orig}")
            raise DuplicateResourceError("commit", ", ".join(c.sha for c in commits[:3])) from e
        except SQLAlchemyError as e:
            logger.error(f"Error bulk inserting {len(commits)} commits: {e}", exc_info=True)
            raise DatabaseError(f"Failed to insert commits: {str(e)}")

    async def count_by_project(self, project_id: int) -> int:
        try:
            result = await self.session.execute(
                select(func.count()).select_from(Commit).where(Commit.project_id == project_id)
            )
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting commits for project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to count commits: {str(e)}")

    async def find_by_project(self, project_id: int, limit: int = 100, offset: int = 0) -> List[Commit]:
        """Commits of a project, newest authored first."""
        try:
            result = await self.session.execute(
                select(Commit)
                .where(Commit.project_id == project_id)
                .order_by(Commit.authored_date.desc(), Commit.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing commits for project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to list commits: {str(e)}")

    async def get_by_project_and_sha(self, project_id: int, sha: str) -> Optional[Commit]:
        try:
            result = await self.session.execute(
                select(Commit).where(Commit.project_id == project_id, Commit.sha == sha)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting commit {sha} for project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to get commit: {str(e)}")

    async def find_by_author(
        self, project_id: int, author_email: str, limit: int = 100, offset: int = 0
    ) -> List[Commit]:
        try:
            result = await self.session.execute(
                select(Commit)
                .where(Commit.project_id == project_id, Commit.author_email == author_email)
                .order_by(Commit.authored_date.desc(), Commit.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing commits by {author_email} in project {project_id}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to list commits by author: {str(e)}")

    async def get_latest(self, project_id: int) -> Optional[Commit]:
        """The most recently authored commit of a project, if any."""
        commits = await self.find_by_project(project_id, limit=1)
        return commits[0] if commits else None
