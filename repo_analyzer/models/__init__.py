from repo_analyzer.models.commit import Commit
from repo_analyzer.models.project import Project
from repo_analyzer.models.sync_log import SyncLog, SyncType

__all__ = [
    "Project",
    "Commit",
    "SyncLog",
    "SyncType",
]
