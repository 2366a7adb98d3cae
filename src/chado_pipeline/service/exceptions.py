"""
Exception hierarchy and handlers for the query service.

Every AppException carries an HTTP status code and a machine-readable
error code. Missing resources always answer with the same body:

    {"status": "error", "reason": "Resource was not found."}
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

NOT_FOUND_BODY = {"status": "error", "reason": "Resource was not found."}


class AppException(Exception):
    """Base exception for all service errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message_template: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.details = details
        if message:
            self.message = message
        else:
            try:
                self.message = self.message_template.format(**details)
            except KeyError:
                self.message = self.message_template
        super().__init__(self.message)


class EntityNotFoundError(AppException):
    status_code = 404
    error_code = "NOT_FOUND"
    message_template = "{entity_type} {entity_id} not found"


class SnapshotLoadError(AppException):
    """The exported data could not be read; the previous snapshot stays live."""

    status_code = 503
    error_code = "SNAPSHOT_UNAVAILABLE"
    message_template = "Failed to load data from {path}"


class SearchError(AppException):
    """The search collaborator is unreachable or returned a malformed payload."""

    status_code = 502
    error_code = "SEARCH_FAILED"
    message_template = "Search request failed"


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        logger.info(f"Not found: {request.url.path}")
        return JSONResponse(status_code=exc.status_code, content=NOT_FOUND_BODY)

    if exc.status_code < 500:
        logger.warning(f"Client error: {exc.error_code} - {exc.message}")
    else:
        logger.error(f"Server error: {exc.error_code} - {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "code": exc.error_code, "reason": exc.message},
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(status_code=exc.status_code, content=NOT_FOUND_BODY)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "reason": str(exc.detail)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
