"""Resilient structured-generation client.

``AIService`` is the single entry point used by feature services. One
``generate`` call goes through:

1. ``RequestSpecBuilder.build`` - completeness check, defaults resolved.
2. ``RetryExecutor.run`` - attempts under a per-attempt timeout, transient
   failures retried with exponential backoff.
3. ``validate_output`` - the provider payload is re-validated against the
   caller's schema before anything is returned.

Every failure surfaces as a ``DomainError`` of the ``ai`` domain, except
unrecognised exceptions which propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Literal, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client
from app.core.config import settings
from app.core.errors import is_domain_error
from app.core.logging import mask_text
from app.services.ai.config import (
    ModelParams,
    RetryPolicy,
    ServiceConfiguration,
    build_configuration,
    invalid_config,
)
from app.services.ai.errors import ai_errors
from app.services.ai.output_validator import validate_output
from app.services.ai.request_spec import RequestSpecBuilder
from app.services.ai.retry import RetryExecutor
from app.services.ai.timeout_guard import run_with_timeout

ModelT = TypeVar("ModelT", bound=BaseModel)

ALLOWED_HEADERS = {"http-referer", "x-title", "authorization"}
HEALTH_CHECK_TIMEOUT_MS = 3000

# Fields that identify the provider connection and cannot change after construction
_FIXED_FIELDS = {"api_key", "base_url"}

_default_logger = logging.getLogger(__name__)


class _HealthProbe(BaseModel):
    status: Literal["ok"]


def filter_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Keep only headers that may be forwarded to the provider."""
    return {
        name: value
        for name, value in headers.items()
        if name.lower() in ALLOWED_HEADERS or name.lower().startswith("x-")
    }


class AIService:
    """Structured-generation client with timeouts, retries and output validation.

    Setters validate immediately and return the service, so configuration
    reads as a chain::

        service = AIService().set_model("openai/gpt-4o-mini").set_timeout(10_000)
        result = await service.generate(user="...", schema=Flashcards)

    An instance is not meant to be reconfigured while calls are in flight.
    """

    def __init__(
        self,
        config: ServiceConfiguration | Mapping[str, Any] | None = None,
        *,
        client: AbstractLLMClient | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Build the service.

        Args:
            config: Configuration values; missing ones come from ``AI_*``
                settings.
            client: LLM client override (tests, alternative providers).
            sleep: Backoff sleep, injectable for tests.

        Raises:
            DomainError: ``ai/invalid-config`` for out-of-range values,
                ``ai/unauthorized`` when no API key is available.
        """
        configuration = build_configuration(config)
        if configuration.api_key is None:
            raise ai_errors.Unauthorized(
                detail="Provider API key is missing",
                meta={"field": "api_key"},
            )

        default_headers = {
            "HTTP-Referer": settings.ai.app_referer,
            "X-Title": settings.ai.app_title,
        }
        self._config = configuration.model_copy(
            update={
                "request_headers": filter_headers(
                    {**default_headers, **configuration.request_headers}
                )
            }
        )
        self._client = client or create_llm_client(
            api_key=configuration.api_key.get_secret_value(),
            base_url=configuration.base_url,
        )
        self._request = RequestSpecBuilder()
        self._sleep = sleep

    @property
    def config(self) -> ServiceConfiguration:
        return self._config

    @property
    def logger(self) -> logging.Logger:
        return self._config.logger or _default_logger

    def _replace_config(self, **updates: Any) -> AIService:
        values = {**self._config.field_values(), **updates}
        try:
            self._config = ServiceConfiguration.model_validate(values)
        except ValidationError as exc:
            raise invalid_config(exc, "Invalid AI service configuration") from exc
        return self

    @staticmethod
    def _params(params: ModelParams | Mapping[str, Any] | None) -> ModelParams | None:
        if params is None or isinstance(params, ModelParams):
            return params
        try:
            return ModelParams.model_validate(dict(params))
        except ValidationError as exc:
            raise invalid_config(exc, "Invalid model parameters") from exc

    # Fluent setters

    def set_model(self, model: str) -> AIService:
        return self._replace_config(default_model=model)

    def set_parameters(
        self, params: ModelParams | Mapping[str, Any] | None = None, **values: Any
    ) -> AIService:
        """Merge sampling parameters into the defaults (set values win)."""
        raw = (
            params.model_dump(exclude_none=True)
            if isinstance(params, ModelParams)
            else dict(params or {})
        )
        overrides = self._params({**raw, **values})
        return self._replace_config(
            default_params=self._config.default_params.merged(overrides)
        )

    def set_system_prompt(self, prompt: str) -> AIService:
        self._request.with_system(prompt)
        return self

    def set_user_prompt(self, prompt: str) -> AIService:
        self._request.with_user(prompt)
        return self

    def set_schema(self, schema: type[BaseModel]) -> AIService:
        self._request.with_schema(schema)
        return self

    def set_timeout(self, timeout_ms: int) -> AIService:
        return self._replace_config(timeout_ms=timeout_ms)

    def set_retry_policy(
        self, policy: RetryPolicy | Mapping[str, Any]
    ) -> AIService:
        """Replace the retry policy; a mapping is merged into the current one."""
        if isinstance(policy, RetryPolicy):
            return self._replace_config(retry_policy=policy)
        try:
            merged = RetryPolicy.model_validate(
                {**self._config.retry_policy.model_dump(), **dict(policy)}
            )
        except ValidationError as exc:
            raise invalid_config(exc, "Invalid retry policy") from exc
        return self._replace_config(retry_policy=merged)

    def set_headers(self, headers: Mapping[str, str]) -> AIService:
        """Add outbound headers. Headers outside the whitelist are dropped."""
        return self._replace_config(
            request_headers={**self._config.request_headers, **filter_headers(headers)}
        )

    def set_logger(self, logger: logging.Logger) -> AIService:
        return self._replace_config(logger=logger)

    def configure(self, **partial: Any) -> AIService:
        """Apply several configuration fields at once.

        ``default_params``, ``retry_policy`` and ``request_headers`` are merged
        into the current values; other fields are replaced.

        Raises:
            DomainError: ``ai/invalid-config`` for unknown fields, values out of
                range, or an attempt to change ``api_key``/``base_url``.
        """
        fixed = sorted(_FIXED_FIELDS.intersection(partial))
        if fixed:
            raise ai_errors.InvalidConfig(
                detail=f"{', '.join(fixed)} can only be set at construction",
                meta={"fields": fixed},
            )

        updates = dict(partial)
        if "default_params" in updates:
            overrides = self._params(updates["default_params"])
            updates["default_params"] = self._config.default_params.merged(overrides)
        if "retry_policy" in updates and not isinstance(updates["retry_policy"], RetryPolicy):
            updates["retry_policy"] = {
                **self._config.retry_policy.model_dump(),
                **dict(updates["retry_policy"]),
            }
        if "request_headers" in updates:
            updates["request_headers"] = {
                **self._config.request_headers,
                **filter_headers(updates["request_headers"]),
            }
        return self._replace_config(**updates)

    # Calls

    async def generate(
        self,
        *,
        user: str | None = None,
        schema: type[ModelT] | None = None,
        system: str | None = None,
        model: str | None = None,
        params: ModelParams | Mapping[str, Any] | None = None,
        timeout_ms: int | None = None,
    ) -> ModelT:
        """Generate an object matching ``schema``.

        Per-call arguments override values set through the setters, which
        override the configuration defaults.

        Raises:
            DomainError: ``ai/invalid-input`` (before any network activity)
                when the user prompt or schema is missing; otherwise the
                classified provider failure, ``ai/retry-exhausted``,
                ``ai/parse-error`` or ``ai/validation-failed``.
        """
        if model is not None and (not isinstance(model, str) or not model.strip()):
            raise ai_errors.InvalidConfig(
                detail="model must be a non-empty string", meta={"field": "model"}
            )
        if timeout_ms is not None:
            self._check_timeout(timeout_ms)

        spec = self._request.overridden(
            user=user,
            schema=schema,
            system=system,
            model=model,
            params=self._params(params),
            timeout_ms=timeout_ms,
        ).build(self._config)

        executor = RetryExecutor(
            self._config.retry_policy, logger=self.logger, sleep=self._sleep
        )
        headers = dict(self._config.request_headers)
        json_schema = spec.json_schema()

        async def attempt() -> dict[str, Any]:
            return await self._client.generate_json(
                model=spec.model,
                system=spec.system,
                user=spec.user,
                schema=json_schema,
                params=spec.params,
                headers=headers,
            )

        start = time.perf_counter()
        try:
            payload = await executor.run(
                attempt, model=spec.model, timeout_ms=spec.timeout_ms
            )
            result = validate_output(spec.schema, payload)
        except Exception as exc:
            if is_domain_error(exc):
                self.logger.warning(
                    "ai.generate_failed",
                    extra={
                        "model": spec.model,
                        "error_code": exc.code,
                        "duration_ms": round((time.perf_counter() - start) * 1000),
                        "prompt_preview": mask_text(spec.user),
                    },
                )
            raise

        self.logger.info(
            "ai.generate_succeeded",
            extra={
                "model": spec.model,
                "duration_ms": round((time.perf_counter() - start) * 1000),
            },
        )
        return result

    def _check_timeout(self, timeout_ms: int) -> None:
        try:
            ServiceConfiguration.model_validate(
                {**self._config.field_values(), "timeout_ms": timeout_ms}
            )
        except ValidationError as exc:
            raise invalid_config(exc, "Invalid timeout") from exc

    async def is_healthy(self) -> bool:
        """Probe the provider with one tiny structured call (no retries).

        Returns:
            bool: True if the provider answered with a valid object in time.
        """
        timeout_ms = min(HEALTH_CHECK_TIMEOUT_MS, self._config.timeout_ms)
        model = self._config.default_model

        async def probe() -> dict[str, Any]:
            return await self._client.generate_json(
                model=model,
                system='Reply with the JSON object {"status": "ok"}.',
                user="Health check.",
                schema=_HealthProbe.model_json_schema(),
                params=ModelParams(temperature=0, max_tokens=20),
                headers=dict(self._config.request_headers),
            )

        try:
            payload = await run_with_timeout(probe, timeout_ms=timeout_ms, model=model)
            validate_output(_HealthProbe, payload)
        except Exception as exc:
            self.logger.warning(
                "ai.health_check_failed",
                extra={"model": model, "error_type": type(exc).__name__},
            )
            return False
        return True
