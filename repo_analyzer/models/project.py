"""
Model for GitLab projects registered for synchronization.
"""


from sqlalchemy import Column, DateTime, Integer, String, Text

from repo_analyzer.core.database import Base
from repo_analyzer.core.timeutils import utcnow


class Project(Base):
    """A GitLab project; the unit of commit synchronization."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    gitlab_id = Column(Integer, nullable=False, unique=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    web_url = Column(String(500), nullable=False)
    default_branch = Column(String(255), nullable=False)  # Ref fetched by the commit sync
    visibility = Column(String(50), nullable=False)  # public, internal, private

    created_at = Column(DateTime, default=utcnow, nullable=False)
    gitlab_created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Project {self.id} - {self.name} (gitlab:{self.gitlab_id})>"
