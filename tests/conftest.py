"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It seeds the environment before settings are imported so no real provider
key or .env file is needed.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("AI_API_KEY", "test_key_1234567890")
os.environ.setdefault("AI_PROVIDER", "openrouter")
os.environ.setdefault("AI_BASE_URL", "https://openrouter.ai/api/v1")
os.environ.setdefault("AI_DEFAULT_MODEL", "openai/gpt-4o-mini")
os.environ.setdefault("APP_SUPPORTED_MODELS", '["openai/gpt-4o-mini","openai/gpt-4o"]')

import asyncio  # noqa: E402
from typing import Any, Mapping  # noqa: E402

import pytest  # noqa: E402

from app.services.ai.config import ModelParams  # noqa: E402


TEST_API_KEY = "test_key_1234567890"


class FakeLLMClient:
    """In-memory LLM client replaying scripted results.

    Each item of ``results`` is either a dict (returned) or an exception
    (raised). The last item repeats once the script runs out.
    """

    def __init__(self, *results: Any, delay: float = 0.0) -> None:
        self.results = list(results)
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def generate_json(
        self,
        *,
        model: str,
        system: str,
        user: str,
        schema: dict[str, Any],
        params: ModelParams,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        self.calls.append(
            {
                "model": model,
                "system": system,
                "user": user,
                "schema": schema,
                "params": params,
                "headers": dict(headers or {}),
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        index = min(len(self.calls) - 1, len(self.results) - 1)
        result = self.results[index]
        if isinstance(result, BaseException):
            raise result
        return result


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def service_config() -> dict[str, Any]:
    """Minimal valid service configuration with fast retries."""
    return {
        "api_key": TEST_API_KEY,
        "retry_policy": {
            "max_retries": 2,
            "base_delay_ms": 100,
            "max_delay_ms": 1000,
            "jitter": False,
        },
    }
