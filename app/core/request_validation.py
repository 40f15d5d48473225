"""Request body validation raising domain errors.

Routes read their JSON body through ``validate_body`` instead of FastAPI's
implicit body parsing so that malformed input surfaces as a registered
domain error (and thus a problem document) rather than a framework 422.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from app.core.errors import DomainError
from app.core.error_registry import ErrorFactory

ModelT = TypeVar("ModelT", bound=BaseModel)


def flatten_issues(exc: ValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into ``{field, message}`` pairs (no input values)."""
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "unknown",
            "message": err["msg"],
        }
        for err in exc.errors(include_url=False, include_input=False)
    ]


async def validate_body(
    request: Request,
    model: type[ModelT],
    error_factory: ErrorFactory,
) -> ModelT:
    """Parse and validate the JSON body of a request.

    Args:
        request: Incoming request.
        model: Pydantic model describing the body.
        error_factory: Domain factory used for any failure (e.g.
            ``generation_errors.ValidationFailed``).

    Returns:
        The validated model instance.

    Raises:
        DomainError: If the body is not JSON or does not match the model.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise error_factory(
            detail="Invalid JSON",
            meta={"issues": [{"field": "body", "message": "Invalid JSON"}]},
            cause=exc,
        ) from exc

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        error: DomainError = error_factory(
            detail="Request body validation failed",
            meta={"issues": flatten_issues(exc)},
            cause=exc,
        )
        raise error from exc
