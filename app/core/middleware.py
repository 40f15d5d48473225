"""HTTP boundary middleware: correlation ids and problem responses.

Every request passes through ``problem_response_middleware``:

    Received → Handling → Success | DomainFailure | UnexpectedFailure → ResponseEmitted

- Accepts the incoming X-Request-ID header (configurable) or generates a UUID
- Stores the correlation id in contextvars for log correlation
- Passes successful responses through unchanged
- Converts a raised DomainError into its problem document and status
- Wraps any other exception as ``system/unexpected`` (500)
- Always sets the correlation id and duration headers on the response

Usage:
    app.middleware("http")(problem_response_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.exception_handlers import render_failure
from app.core.logging import clear_correlation_id, set_correlation_id


def resolve_correlation_id(request: Request) -> str:
    """Reuse the inbound correlation id or generate a fresh one."""
    return request.headers.get(settings.log.request_id_header) or str(uuid.uuid4())


async def problem_response_middleware(request: Request, call_next) -> Response:
    """Run the handler and emit exactly one response, success or problem.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The handler's response, or a problem+json response when the
            handler raised. Both carry the correlation id header.

    Example:
        >>> # Request arrives with {"X-Request-ID": "req-abc-123"}
        >>> # Response includes:
        >>> # {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "45.67"}
    """

    header_name = settings.log.request_id_header
    correlation_id = resolve_correlation_id(request)
    set_correlation_id(correlation_id)
    start = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            response = render_failure(exc, request)
    finally:
        clear_correlation_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = correlation_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
