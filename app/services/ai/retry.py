"""Retry executor with exponential backoff for provider calls."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from app.services.ai.config import RetryPolicy
from app.services.ai.error_classifier import classify_failure
from app.services.ai.errors import RETRYABLE_KINDS, ai_errors
from app.services.ai.timeout_guard import run_with_timeout

T = TypeVar("T")

# Jitter adds at most this fraction of the computed delay
JITTER_RATIO = 0.1

_default_logger = logging.getLogger(__name__)


class RetryExecutor:
    """Runs a provider call under the timeout guard, retrying transient failures.

    Only ``RateLimited``, ``Timeout``, ``ProviderError`` and
    ``ServiceUnavailable`` are retried. Anything else fails on the first
    attempt. Cancellation is never caught: cancelling the awaiting task stops
    the in-flight attempt or the pending backoff sleep immediately.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.policy = policy
        self._logger = logger or _default_logger
        self._sleep = sleep
        self._rng = rng

    def compute_delay_ms(self, attempt: int) -> float:
        """Backoff before retry number ``attempt + 1`` (``attempt`` is 0-based)."""
        delay = min(
            self.policy.base_delay_ms * (2**attempt),
            self.policy.max_delay_ms,
        )
        if self.policy.jitter:
            delay += self._rng() * JITTER_RATIO * delay
        return float(delay)

    async def run(
        self,
        call: Callable[[], Awaitable[T]],
        *,
        model: str,
        timeout_ms: int,
    ) -> T:
        """Execute ``call`` with at most ``max_retries + 1`` attempts.

        Raises:
            DomainError: The classified error of a non-retryable failure, or
                ``ai/retry-exhausted`` (with the last error as cause) once all
                attempts failed.
            Exception: Unrecognised failures are re-raised unchanged.
        """
        max_retries = self.policy.max_retries

        for attempt in range(max_retries + 1):
            try:
                return await run_with_timeout(call, timeout_ms=timeout_ms, model=model)
            except Exception as exc:
                error = classify_failure(exc, model=model, timeout_ms=timeout_ms)
                if error is None:
                    raise
                if error.domain != ai_errors.name or error.kind not in RETRYABLE_KINDS:
                    if error is exc:
                        raise
                    raise error from exc

                if attempt >= max_retries:
                    self._logger.error(
                        "ai.retry_exhausted",
                        extra={
                            "model": model,
                            "attempts": attempt + 1,
                            "error_code": error.code,
                        },
                    )
                    raise ai_errors.RetryExhausted(
                        detail=f"Request failed after {attempt + 1} attempt(s)",
                        meta={
                            "maxRetries": max_retries,
                            "lastError": error.message or error.code,
                        },
                        cause=error,
                    ) from error

                delay_ms = self.compute_delay_ms(attempt)
                self._logger.warning(
                    "ai.retry_scheduled",
                    extra={
                        "model": model,
                        "attempt": attempt + 1,
                        "max_retries": max_retries,
                        "delay_ms": round(delay_ms),
                        "error_code": error.code,
                    },
                )

            await self._sleep(delay_ms / 1000)

        # Unreachable: the last iteration either returns or raises.
        raise AssertionError("retry loop exited without a result")
