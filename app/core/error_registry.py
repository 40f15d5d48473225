"""Registry and factories for domain errors.

Every error code the API can emit is declared here, once, at import time:

    ai_errors = define_domain("ai", {
        "Timeout": ErrorDefinition(status=408, title="errors.ai.timeout"),
    })
    raise ai_errors.Timeout(detail="...", meta={"timeoutMs": 500})

Codes are derived from the kind name (``"ai/timeout"``), so nothing outside
the registry can invent a code at runtime and the error surface stays closed
and enumerable (``registered_codes()``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

from app.core.config import settings
from app.core.errors import DomainError, ProblemDocument

_KEBAB_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass(frozen=True)
class ErrorDefinition:
    """Static description of one error kind."""

    status: int
    title: str


ErrorFactory = Callable[..., DomainError]

_REGISTRY: dict[str, Mapping[str, ErrorDefinition]] = {}


def kebab_case(kind: str) -> str:
    """Convert a kind name to its code slug.

    Examples:
        >>> kebab_case("RetryExhausted")
        'retry-exhausted'
        >>> kebab_case("Timeout")
        'timeout'
    """
    return _KEBAB_BOUNDARY.sub("-", kind).lower()


def to_problem(error: DomainError, instance: str | None = None) -> ProblemDocument:
    """Map a DomainError to its external problem document.

    The mapping copies public fields only; ``cause`` is dropped here and the
    wire type has no field that could hold it.

    Args:
        error: Error raised somewhere in the request.
        instance: Request path the error relates to.

    Returns:
        ProblemDocument ready to be serialized.
    """
    domain, _, slug = error.code.partition("/")
    base_uri = settings.app.problem_type_base_uri.rstrip("/")
    return ProblemDocument(
        type=f"{base_uri}/{domain}/{slug}",
        title=error.title,
        status=error.status,
        detail=error.message,
        instance=instance,
        code=error.code,
        meta=dict(error.meta) if error.meta else None,
    )


class ErrorDomain:
    """Factories and problem mapping for one registered error domain."""

    def __init__(self, name: str, definitions: Mapping[str, ErrorDefinition]) -> None:
        self.name = name
        self._definitions = MappingProxyType(dict(definitions))
        self._factories: dict[str, ErrorFactory] = {
            kind: self._make_factory(kind, definition)
            for kind, definition in self._definitions.items()
        }

    def _make_factory(self, kind: str, definition: ErrorDefinition) -> ErrorFactory:
        code = f"{self.name}/{kebab_case(kind)}"

        def factory(
            *,
            detail: str | None = None,
            meta: dict[str, Any] | None = None,
            cause: BaseException | None = None,
        ) -> DomainError:
            return DomainError(
                domain=self.name,
                kind=kind,
                code=code,
                status=definition.status,
                title=definition.title,
                message=detail,
                meta=meta,
                cause=cause,
            )

        factory.__name__ = kind
        factory.__qualname__ = f"{self.name}.{kind}"
        return factory

    def __getattr__(self, kind: str) -> ErrorFactory:
        # Only called when normal lookup fails, i.e. for kind names.
        factories = self.__dict__.get("_factories", {})
        try:
            return factories[kind]
        except KeyError:
            raise AttributeError(
                f"Error domain '{self.name}' has no kind '{kind}'"
            ) from None

    def __repr__(self) -> str:
        return f"ErrorDomain(name={self.name!r}, kinds={list(self._definitions)!r})"

    @property
    def codes(self) -> dict[str, str]:
        """Map of kind name to code."""
        return {kind: f"{self.name}/{kebab_case(kind)}" for kind in self._definitions}

    def owns(self, error: DomainError) -> bool:
        """Whether the error was produced by this domain."""
        return error.domain == self.name and error.kind in self._definitions

    def to_problem(self, error: DomainError, instance: str | None = None) -> ProblemDocument:
        """Map an error of this domain to a problem document.

        Raises:
            ValueError: If the error belongs to another domain.
        """
        if not self.owns(error):
            raise ValueError(f"{error.code} is not an error of domain '{self.name}'")
        return to_problem(error, instance)


def define_domain(name: str, kinds: Mapping[str, ErrorDefinition]) -> ErrorDomain:
    """Register an error domain and return its factories.

    Domains are registered at import time. Defining the same domain twice is
    only allowed with identical kinds (module reloads in tests).

    Args:
        name: Domain name used as the code prefix.
        kinds: Kind name -> definition.

    Returns:
        ErrorDomain exposing one factory per kind.

    Raises:
        ValueError: If the name or a kind is invalid, or the domain is already
            registered with different kinds.
    """
    if not name or "/" in name:
        raise ValueError(f"Invalid error domain name: {name!r}")
    if not kinds:
        raise ValueError(f"Error domain '{name}' must declare at least one kind")
    for kind in kinds:
        if not kind.isidentifier() or not kind[0].isupper():
            raise ValueError(f"Invalid error kind name: {kind!r}")

    existing = _REGISTRY.get(name)
    if existing is not None and dict(existing) != dict(kinds):
        raise ValueError(f"Error domain '{name}' is already registered")

    _REGISTRY[name] = MappingProxyType(dict(kinds))
    return ErrorDomain(name, kinds)


def registered_codes() -> dict[str, ErrorDefinition]:
    """Enumerate every code the application can emit."""
    return {
        f"{domain}/{kebab_case(kind)}": definition
        for domain, kinds in _REGISTRY.items()
        for kind, definition in kinds.items()
    }
