"""Map raw provider failures onto ``ai`` domain errors."""

from __future__ import annotations

from typing import Any

from app.adapters.llm.base import ProviderFailure
from app.core.errors import DomainError, is_domain_error
from app.services.ai.errors import ai_errors

TIMEOUT_CODES = {"timeout", "etimedout"}
RATE_LIMIT_CODES = {"rate_limit_exceeded"}
UNAVAILABLE_CODES = {"model_unavailable", "service_unavailable"}


def _signals(exc: BaseException) -> tuple[int | None, str | None, str]:
    """Extract (status, code, message) from a provider failure."""
    if isinstance(exc, ProviderFailure):
        return exc.status, exc.code, exc.message

    # SDK errors raised by clients that bypass the adapter layer
    status = getattr(exc, "status_code", None)
    code = getattr(exc, "code", None)
    return (
        status if isinstance(status, int) else None,
        str(code) if code is not None else None,
        str(exc),
    )


def classify_failure(
    exc: BaseException,
    *,
    model: str | None = None,
    timeout_ms: int | None = None,
) -> DomainError | None:
    """Classify a failure of one provider attempt.

    Domain errors are returned unchanged. Returns ``None`` when the failure is
    not recognised; the caller re-raises the original exception in that case.
    """
    if is_domain_error(exc):
        return exc

    if isinstance(exc, TimeoutError):
        return ai_errors.Timeout(
            detail="Provider call timed out",
            meta={"timeoutMs": timeout_ms, "model": model},
            cause=exc,
        )

    status, code, message = _signals(exc)
    if status is None and code is None:
        return None

    normalized = code.lower() if code else None
    meta: dict[str, Any] = {"model": model}
    if status is not None:
        meta["status"] = status
    if code is not None:
        meta["providerCode"] = code

    if normalized in TIMEOUT_CODES:
        return ai_errors.Timeout(
            detail=message,
            meta={"timeoutMs": timeout_ms, "model": model},
            cause=exc,
        )
    if status == 429 or normalized in RATE_LIMIT_CODES:
        return ai_errors.RateLimited(detail=message, meta=meta, cause=exc)
    if status == 503 or (
        normalized in UNAVAILABLE_CODES and (status is None or status >= 500)
    ):
        return ai_errors.ServiceUnavailable(detail=message, meta=meta, cause=exc)
    if status is not None and status >= 500:
        return ai_errors.ProviderError(detail=message, meta=meta, cause=exc)
    if status == 401 or normalized == "unauthorized":
        return ai_errors.Unauthorized(detail=message, meta=meta, cause=exc)
    if status == 403 or normalized == "forbidden":
        return ai_errors.Forbidden(detail=message, meta=meta, cause=exc)
    if (status is not None and 400 <= status < 500) or normalized == "bad_request":
        return ai_errors.BadRequest(detail=message, meta=meta, cause=exc)
    return None
