"""Conversion of errors into ``application/problem+json`` responses.

This module owns the single mapping from an error to an HTTP response:
- DomainError → problem document with the error's own status
- Framework errors (unknown route, wrong method, malformed request) →
  ``system/*`` problem documents, registered as FastAPI exception handlers
- Anything else → ``system/unexpected`` (500), cause logged server-side only

Every response carries the correlation id header.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.error_registry import to_problem
from app.core.errors import DomainError, is_domain_error
from app.core.logging import get_correlation_id
from app.core.system_errors import system_errors

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


def wrap_unexpected(exc: BaseException) -> DomainError:
    """Wrap a non-domain failure as ``system/unexpected``.

    The original exception is kept as ``cause`` for server-side logs; the
    public detail is generic so nothing internal leaks to clients.
    """
    return system_errors.Unexpected(
        detail="An unexpected error occurred. Please try again later.",
        cause=exc,
    )


def problem_response(error: DomainError, instance: str | None = None) -> JSONResponse:
    """Serialize a DomainError as a problem+json response.

    Args:
        error: Domain error to render.
        instance: Request path reported in the document.

    Returns:
        JSONResponse with the error's status and the correlation id header.
    """
    problem = to_problem(error, instance)
    headers: dict[str, str] = {}
    correlation_id = get_correlation_id()
    if correlation_id:
        headers[settings.log.request_id_header] = correlation_id

    return JSONResponse(
        status_code=problem.status,
        content=problem.to_payload(),
        headers=headers,
        media_type=PROBLEM_MEDIA_TYPE,
    )


def render_failure(exc: Exception, request: Request) -> JSONResponse:
    """Log a failure and convert it into a problem response.

    Used by the boundary middleware for any exception raised by a handler.
    """
    path = request.url.path

    if is_domain_error(exc):
        log = logger.error if exc.status >= 500 else logger.warning
        log(
            "problem.domain_error",
            extra={
                "error_code": exc.code,
                "status_code": exc.status,
                "has_meta": bool(exc.meta),
                "cause_type": type(exc.cause).__name__ if exc.cause else None,
                "request_path": path,
                "request_method": request.method,
            },
        )
        return problem_response(exc, path)

    logger.error(
        "problem.unexpected_error",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": path,
            "request_method": request.method,
        },
        exc_info=exc,
    )
    return problem_response(wrap_unexpected(exc), path)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Map routing-level HTTP errors onto the ``system`` domain."""
    if exc.status_code == 404:
        error = system_errors.NotFound(detail="Resource not found")
    elif exc.status_code == 405:
        error = system_errors.MethodNotAllowed(detail="Method not allowed")
    elif exc.status_code < 500:
        error = system_errors.InvalidRequest(
            detail=str(exc.detail), meta={"status": exc.status_code}
        )
    else:
        error = wrap_unexpected(exc)

    logger.info(
        "problem.http_error",
        extra={
            "error_code": error.code,
            "status_code": exc.status_code,
            "request_path": request.url.path,
        },
    )
    response = problem_response(error, request.url.path)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map FastAPI parameter validation failures to ``system/invalid-request``."""
    issues: list[dict[str, Any]] = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())) or "unknown",
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    error = system_errors.InvalidRequest(
        detail="Request validation failed",
        meta={"issues": issues},
    )
    logger.info(
        "problem.request_validation",
        extra={"issue_count": len(issues), "request_path": request.url.path},
    )
    return problem_response(error, request.url.path)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register framework-level exception handlers with the FastAPI app.

    Domain errors and unhandled exceptions propagate to the boundary
    middleware (``app.core.middleware.problem_response_middleware``).

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
