"""Configuration models of the structured-generation client.

All models are frozen: a configuration change produces a new, fully
validated instance, so a half-applied update can never be observed.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from app.core.config import AISettings, settings
from app.core.errors import DomainError
from app.core.request_validation import flatten_issues
from app.services.ai.errors import ai_errors

MIN_API_KEY_LENGTH = 10


class ModelParams(BaseModel):
    """Sampling parameters. ``None`` means "use the provider default"."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    temperature: float | None = Field(None, ge=0, le=2)
    max_tokens: int | None = Field(None, gt=0, le=4000)
    top_p: float | None = Field(None, ge=0, le=1)
    seed: int | None = Field(None, ge=0)

    def merged(self, overrides: ModelParams | None) -> ModelParams:
        """Return a copy where every value set in ``overrides`` wins."""
        if overrides is None:
            return self
        return self.model_copy(update=overrides.model_dump(exclude_none=True))


class RetryPolicy(BaseModel):
    """Retry policy for transient provider failures.

    ``max_retries`` counts retries after the first attempt, so a call makes at
    most ``max_retries + 1`` attempts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: int = Field(2, ge=0, le=5)
    base_delay_ms: int = Field(300, ge=10, le=10_000)
    max_delay_ms: int = Field(3000, ge=50, le=60_000)
    jitter: bool = True

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> RetryPolicy:
        if self.base_delay_ms > self.max_delay_ms:
            raise ValueError("base_delay_ms must not exceed max_delay_ms")
        return self


class ServiceConfiguration(BaseModel):
    """Complete configuration of one ``AIService`` instance."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    api_key: SecretStr | None = None
    base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = Field("openai/gpt-4o-mini", min_length=1)
    default_params: ModelParams = Field(
        default_factory=lambda: ModelParams(temperature=0.2, top_p=0.9)
    )
    request_headers: dict[str, str] = Field(default_factory=dict)
    timeout_ms: int = Field(15_000, ge=500, le=60_000)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    logger: logging.Logger | None = Field(None, exclude=True)

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: SecretStr | None) -> SecretStr | None:
        if value is not None and len(value.get_secret_value()) < MIN_API_KEY_LENGTH:
            raise ValueError(
                f"api_key must be at least {MIN_API_KEY_LENGTH} characters"
            )
        return value

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("default_model")
    @classmethod
    def _check_model(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_model must not be blank")
        return value

    def field_values(self) -> dict[str, Any]:
        """Field values as-is (secrets stay wrapped, nested models intact)."""
        return {name: getattr(self, name) for name in type(self).model_fields}


def invalid_config(exc: ValidationError, detail: str) -> DomainError:
    """Translate a pydantic failure into ``ai/invalid-config``."""
    return ai_errors.InvalidConfig(
        detail=detail,
        meta={"issues": flatten_issues(exc)},
        cause=exc,
    )


def build_configuration(
    values: ServiceConfiguration | Mapping[str, Any] | None = None,
) -> ServiceConfiguration:
    """Validate a configuration, filling gaps from the environment settings.

    Raises:
        DomainError: ``ai/invalid-config`` if any value is out of range.
    """
    if isinstance(values, ServiceConfiguration):
        return values

    merged = configuration_from_settings(settings.ai)
    merged.update(values or {})
    try:
        return ServiceConfiguration.model_validate(merged)
    except ValidationError as exc:
        raise invalid_config(exc, "Invalid AI service configuration") from exc


_PARAM_SETTINGS = ("temperature", "top_p", "max_tokens")
_RETRY_SETTINGS = ("max_retries", "base_delay_ms", "max_delay_ms", "jitter")


def explicit_settings(ai_settings: AISettings) -> dict[str, Any]:
    """Tuning values set explicitly through ``AI_*`` variables.

    Only fields present in ``model_fields_set`` are returned, so class
    defaults never shadow the values chosen by a preset.
    """
    chosen = ai_settings.model_fields_set
    values: dict[str, Any] = {}

    params = {name: getattr(ai_settings, name) for name in _PARAM_SETTINGS if name in chosen}
    if params:
        values["default_params"] = params
    policy = {name: getattr(ai_settings, name) for name in _RETRY_SETTINGS if name in chosen}
    if policy:
        values["retry_policy"] = policy
    if "timeout_ms" in chosen:
        values["timeout_ms"] = ai_settings.timeout_ms
    return values


def configuration_from_settings(ai_settings: AISettings) -> dict[str, Any]:
    """Raw configuration values derived from ``AI_*`` environment settings."""
    values: dict[str, Any] = {
        "base_url": ai_settings.base_url,
        "default_model": ai_settings.default_model,
        "default_params": {
            "temperature": ai_settings.temperature,
            "top_p": ai_settings.top_p,
            "max_tokens": ai_settings.max_tokens,
        },
        "timeout_ms": ai_settings.timeout_ms,
        "retry_policy": {
            "max_retries": ai_settings.max_retries,
            "base_delay_ms": ai_settings.base_delay_ms,
            "max_delay_ms": ai_settings.max_delay_ms,
            "jitter": ai_settings.jitter,
        },
    }
    if ai_settings.api_key:
        values["api_key"] = ai_settings.api_key
    return values
