"""
Health check endpoint for load balancers and the scheduler's supervisor.
"""

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from repo_analyzer import __version__
from repo_analyzer.config.settings import settings
from repo_analyzer.core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


async def check_database(db: AsyncSession) -> Dict[str, Any]:
    """Check database connectivity with a trivial query."""
    start_time = time.time()
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "response_time_ms": round((time.time() - start_time) * 1000, 2),
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "response_time_ms": round((time.time() - start_time) * 1000, 2),
            "details": f"Database connection failed: {str(e)}",
        }


@router.get("")
async def health(db: AsyncSession = Depends(get_db)):
    database = await check_database(db)
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "checks": {"database": database},
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
