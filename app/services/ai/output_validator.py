"""Validation of model output against the caller's schema."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.services.ai.errors import ai_errors

ModelT = TypeVar("ModelT", bound=BaseModel)

# Issues beyond this count are only reflected in issueCount
MAX_REPORTED_ISSUES = 20


def validate_output(schema: type[ModelT], payload: Any) -> ModelT:
    """Validate provider output, raising ``ai/validation-failed`` on mismatch.

    ``meta.issues`` lists ``{path, reason, type}`` entries. Input values are
    never included, since they may contain user content.
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        issues = [
            {
                "path": ".".join(str(part) for part in err["loc"]) or "$",
                "reason": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors(include_url=False, include_input=False)
        ]
        raise ai_errors.ValidationFailed(
            detail="Model output does not match the expected schema",
            meta={
                "issues": issues[:MAX_REPORTED_ISSUES],
                "issueCount": exc.error_count(),
            },
            cause=exc,
        ) from exc
