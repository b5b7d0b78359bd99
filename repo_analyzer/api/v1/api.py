from fastapi import APIRouter

from repo_analyzer.api.v1.endpoints import commit_stats, projects, sync, sync_logs

api_v1_router = APIRouter()

# Include project routes
api_v1_router.include_router(projects.router, prefix="/projects", tags=["Projects"])

# Include commit statistics routes
api_v1_router.include_router(commit_stats.router, prefix="/projects", tags=["Commit Stats"])

# Include sync checkpoint routes
api_v1_router.include_router(sync_logs.router, prefix="/projects", tags=["Sync Logs"])

# Include sync trigger routes
api_v1_router.include_router(sync.router, prefix="/sync", tags=["Sync"])
