"""
HTTP exception utilities and centralized error handling.

Every error leaves the API in the same envelope:

    {"status": "error", "message": "...", "errors": [...]}

"errors" is only present for validation failures, and a "stack" field is
added outside production for unhandled server faults.
"""

import logging
import sqlite3
import traceback
from typing import TypeVar

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


def require_resource(resource: T | None, detail: str = "Resource not found") -> T:
    """
    Raise 404 if resource is None, otherwise return the resource.

    Usage:
        post = require_resource(db.posts.get(post_id), "Blog post not found")
    """
    if resource is None:
        raise HTTPException(status_code=404, detail=detail)
    return resource


def require_project(project: T | None) -> T:
    """Raise 404 if project is None."""
    return require_resource(project, "Project not found")


def require_message(message: T | None) -> T:
    """Raise 404 if contact message is None."""
    return require_resource(message, "Contact message not found")


def require_post(post: T | None) -> T:
    """Raise 404 if blog post is None."""
    return require_resource(post, "Blog post not found")


def parse_id(raw: str, detail: str = "Resource not found") -> int:
    """
    Parse a path identifier, treating malformed ids as missing resources.

    Raises:
        HTTPException: 404 if raw is not a positive integer
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=404, detail=detail)
    if value <= 0:
        raise HTTPException(status_code=404, detail=detail)
    return value


def error_response(
    status_code: int,
    message: str,
    errors: list | None = None,
    headers: dict | None = None,
    **extra,
) -> JSONResponse:
    """Build a response in the standard error envelope."""
    content: dict = {"status": "error", "message": message}
    if errors is not None:
        content["errors"] = errors
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _format_validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({
            "field": ".".join(location),
            "message": error.get("msg", "Invalid value"),
        })
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPExceptions (including unknown routes) in the error envelope."""
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Can't find {request.url.path} on this server!"
    else:
        message = str(exc.detail)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query validation failures are client errors (400)."""
    return error_response(400, "Validation failed", errors=_format_validation_errors(exc))


async def integrity_error_handler(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    """Unique constraint violations surface as 400 duplicate-value errors."""
    text = str(exc)
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {text}")
    if "UNIQUE" in text:
        field = text.rsplit(".", 1)[-1]
        return error_response(400, f"Duplicate field value for {field}. Please use another value.")
    return error_response(400, "Invalid data")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for server faults. Stack traces only outside production."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    if config.is_production():
        return error_response(500, "Server Error")
    return error_response(
        500,
        str(exc) or "Server Error",
        stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )


def setup_error_handlers(app: FastAPI):
    """
    Register the centralized error handlers on an app.

    Call this once when building the application.
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(sqlite3.IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
