"""
Model for commits synchronized from GitLab.
"""


from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint

from repo_analyzer.core.database import Base
from repo_analyzer.core.timeutils import utcnow


class Commit(Base):
    """One GitLab commit within one project.

    Rows are written only by the commit sync and never updated; (project_id, sha)
    is unique so that re-running a sync cannot duplicate a commit.
    """

    __tablename__ = "commits"
    __table_args__ = (
        UniqueConstraint("project_id", "sha", name="commits_project_sha_unique"),
        Index("commits_author_email_idx", "author_email"),
        Index("commits_authored_date_idx", "authored_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    sha = Column(String(40), nullable=False)

    message = Column(Text, nullable=False)
    author_name = Column(String(255), nullable=False)
    author_email = Column(String(255), nullable=False)
    authored_date = Column(DateTime, nullable=False)  # Naive UTC

    # Only present when the commit was fetched with_stats
    additions = Column(Integer)
    deletions = Column(Integer)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Commit {self.id} - project:{self.project_id}@{(self.sha or '')[:8]}>"
