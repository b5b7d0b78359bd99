"""
Model for the append-only sync checkpoint log.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer

from repo_analyzer.core.database import Base
from repo_analyzer.core.timeutils import utcnow


class SyncType(str, enum.Enum):
    PROJECTS = "projects"
    COMMITS = "commits"


class SyncLog(Base):
    """A checkpoint written after each committed sync batch.

    Rows are never updated. The row with the greatest id for a (project, sync_type)
    pair is the resume point; older rows are kept as history.
    """

    __tablename__ = "sync_logs"
    __table_args__ = (Index("sync_logs_project_type_idx", "project_id", "sync_type", "id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    sync_type = Column(
        Enum(SyncType, name="sync_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    # Max authored date among the items of the batch that wrote this row
    last_item_date = Column(DateTime, nullable=False)

    # Batch audit counters
    records_processed = Column(Integer)
    records_added = Column(Integer)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<SyncLog {self.id} - project:{self.project_id} {self.sync_type} @ {self.last_item_date}>"
