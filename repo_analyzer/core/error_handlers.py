import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import AppExceptionBase, GitLabApiError

logger = logging.getLogger(__name__)


def error_response(status_code: int, code: str, message: str, details: Optional[Any] = None) -> JSONResponse:
    """Every error leaves the API as {"error": {"code", "message"[, "details"]}}."""
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


async def app_exception_handler(request: Request, exc: AppExceptionBase):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=True)
    else:
        # Not found, duplicate registration and the like are client outcomes
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return error_response(exc.status_code, exc.code, exc.message)


async def gitlab_api_exception_handler(request: Request, exc: GitLabApiError):
    logger.error(f"{request.method} {request.url.path}: GitLab request failed: {exc.message}")
    return error_response(
        status.HTTP_502_BAD_GATEWAY,
        exc.code,
        exc.message,
        details={"http_status": exc.http_status},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [f"Field '{'.'.join(str(loc) for loc in error['loc'])}': {error['msg']}" for error in exc.errors()]
    logger.info(f"{request.method} {request.url.path} rejected: {details}")
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Input validation failed.", details)


async def generic_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected internal server error occurred.",
    )


def add_exception_handlers(app: FastAPI):
    # Starlette resolves handlers along the exception's MRO, so the GitLab handler wins over the base one
    app.add_exception_handler(GitLabApiError, gitlab_api_exception_handler)
    app.add_exception_handler(AppExceptionBase, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
