from repo_analyzer.repositories.commit_repository import CommitRepository
from repo_analyzer.repositories.project_repository import ProjectRepository
from repo_analyzer.repositories.sync_log_repository import SyncLogRepository

__all__ = [
    "CommitRepository",
    "ProjectRepository",
    "SyncLogRepository",
]
