"""Domain error types shared by services, adapters and the HTTP boundary.

Two shapes exist on purpose:

- ``DomainError`` is the server-side exception. It carries the original
  failure as ``cause`` for logs and debugging.
- ``ProblemDocument`` is the wire type (RFC 7807 style problem details). It
  has no ``cause`` field and rejects unknown fields, so internal causes can
  never reach a response body.

``DomainError`` instances are only created through the factories of a
registered error domain (see ``app.core.error_registry``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeGuard

from pydantic import BaseModel, ConfigDict, Field


@dataclass(eq=False)
class DomainError(Exception):
    """Structured failure tagged with a domain and a machine-readable kind.

    Attributes:
        domain: Subsystem name (e.g. "ai", "system").
        kind: Registered kind name (e.g. "RateLimited").
        code: Stable machine-readable code, ``"<domain>/<kebab-kind>"``.
        status: HTTP status used when the error reaches the boundary.
        title: i18n key translated by clients.
        message: Optional technical detail, exposed as ``detail``.
        meta: Optional structured context. No secrets, no PII.
        cause: Original failure. Server-side only, never serialized.
    """

    domain: str
    kind: str
    code: str
    status: int
    title: str
    message: str | None = None
    meta: dict[str, Any] | None = None
    cause: BaseException | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message or self.code)

    def __str__(self) -> str:
        if self.message:
            return f"{self.code}: {self.message}"
        return self.code


class ProblemDocument(BaseModel):
    """External error body returned as ``application/problem+json``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: str = Field(..., description="URI identifying the problem type.")
    title: str = Field(..., description="i18n key for the problem title.")
    status: int = Field(..., description="HTTP status code.")
    detail: str | None = Field(None, description="Human-readable explanation.")
    instance: str | None = Field(None, description="Request path (no query string).")
    code: str = Field(..., description="Machine-readable code, <domain>/<kind>.")
    meta: dict[str, Any] | None = Field(None, description="Structured context.")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready body, omitting absent optional members."""
        return self.model_dump(mode="json", exclude_none=True)


def is_domain_error(value: object) -> TypeGuard[DomainError]:
    """Canonical check used at every boundary to recognise domain errors."""
    return isinstance(value, DomainError)
