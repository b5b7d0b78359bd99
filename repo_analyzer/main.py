import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from repo_analyzer import __version__
from repo_analyzer.api.health import router as health_router
from repo_analyzer.api.v1.api import api_v1_router
from repo_analyzer.config.settings import settings
from repo_analyzer.core.database import dispose_engine
from repo_analyzer.core.error_handlers import add_exception_handlers
from repo_analyzer.core.log_sanitizer import configure_logging
from repo_analyzer.services.scheduled_sync import start_scheduled_sync, stop_scheduled_sync

# Configure logging with sensitive data filtering
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await start_scheduled_sync()
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise
    yield
    await stop_scheduled_sync()
    await dispose_engine()


# Create app instance
app = FastAPI(
    title="GitLab Repo Analyzer API",
    description="Commit synchronization and statistics for GitLab projects",
    version=__version__,
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(api_v1_router, prefix="/api/v1")

# Register custom exception handlers
add_exception_handlers(app)


# Main entry point
if __name__ == "__main__":
    uvicorn.run(
        "repo_analyzer.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENVIRONMENT == "development",
    )
