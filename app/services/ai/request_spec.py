"""Request specification and its builder."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from app.services.ai.config import ModelParams, ServiceConfiguration
from app.services.ai.errors import ai_errors

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_SYSTEM_PROMPT_CHARS = 5000
MAX_USER_PROMPT_CHARS = 20000

DEFAULT_SYSTEM_PROMPT = (
    "You are a precise assistant that answers with JSON only. "
    "Respond with a single JSON object matching the provided schema, "
    "without markdown or commentary."
)


def check_prompt(text: Any, *, name: str, max_chars: int) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ai_errors.InvalidInput(
            detail=f"{name} prompt must be a non-empty string",
            meta={"field": name},
        )
    if len(text) > max_chars:
        raise ai_errors.InvalidInput(
            detail=f"{name} prompt exceeds {max_chars} characters",
            meta={"field": name, "maxChars": max_chars, "length": len(text)},
        )
    return text


def check_schema(schema: Any) -> type[BaseModel]:
    if not (inspect.isclass(schema) and issubclass(schema, BaseModel)):
        raise ai_errors.SchemaError(
            detail="Schema must be a pydantic model class",
            meta={"received": type(schema).__name__},
        )
    return schema


@dataclass(frozen=True)
class RequestSpec(Generic[ModelT]):
    """Everything needed for one structured-generation call."""

    system: str
    user: str
    schema: type[ModelT]
    model: str
    params: ModelParams
    timeout_ms: int

    def json_schema(self) -> dict[str, Any]:
        return self.schema.model_json_schema()


@dataclass
class RequestSpecBuilder:
    """Accumulates the parts of a request; ``build`` checks completeness.

    Prompts and schema are checked as they are set. Whether the request is
    complete (a user prompt and a schema) is only known at ``build`` time.
    """

    system: str | None = None
    user: str | None = None
    schema: type[BaseModel] | None = None
    model: str | None = None
    params: ModelParams | None = None
    timeout_ms: int | None = None

    def with_system(self, prompt: str) -> RequestSpecBuilder:
        self.system = check_prompt(
            prompt, name="system", max_chars=MAX_SYSTEM_PROMPT_CHARS
        )
        return self

    def with_user(self, prompt: str) -> RequestSpecBuilder:
        self.user = check_prompt(prompt, name="user", max_chars=MAX_USER_PROMPT_CHARS)
        return self

    def with_schema(self, schema: type[BaseModel]) -> RequestSpecBuilder:
        self.schema = check_schema(schema)
        return self

    def overridden(self, **overrides: Any) -> RequestSpecBuilder:
        """Return a new builder with per-call overrides applied on top."""
        builder = RequestSpecBuilder(
            system=self.system,
            user=self.user,
            schema=self.schema,
            model=self.model,
            params=self.params,
            timeout_ms=self.timeout_ms,
        )
        if overrides.get("system") is not None:
            builder.with_system(overrides["system"])
        if overrides.get("user") is not None:
            builder.with_user(overrides["user"])
        if overrides.get("schema") is not None:
            builder.with_schema(overrides["schema"])
        for name in ("model", "params", "timeout_ms"):
            if overrides.get(name) is not None:
                setattr(builder, name, overrides[name])
        return builder

    def build(self, config: ServiceConfiguration) -> RequestSpec[Any]:
        """Resolve defaults from ``config`` and return a complete spec.

        Raises:
            DomainError: ``ai/invalid-input`` if the user prompt or the
                schema is missing.
        """
        missing = [
            name
            for name, value in (("user", self.user), ("schema", self.schema))
            if value is None
        ]
        if missing:
            raise ai_errors.InvalidInput(
                detail=f"Request is missing: {', '.join(missing)}",
                meta={"missing": missing},
            )

        return RequestSpec(
            system=self.system or DEFAULT_SYSTEM_PROMPT,
            user=self.user,
            schema=self.schema,
            model=self.model or config.default_model,
            params=config.default_params.merged(self.params),
            timeout_ms=self.timeout_ms or config.timeout_ms,
        )
