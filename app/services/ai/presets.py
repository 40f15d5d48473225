"""Ready-made configurations and task-specific services."""

from __future__ import annotations

import logging
from typing import Any, Callable

from app.core.config import settings
from app.services.ai.config import configuration_from_settings, explicit_settings
from app.services.ai.service import AIService


def _base(logger: logging.Logger | None = None, **preset: Any) -> dict[str, Any]:
    values = configuration_from_settings(settings.ai)
    values.update(preset)
    # AI_* variables set in the environment win over preset values
    for key, value in explicit_settings(settings.ai).items():
        if isinstance(value, dict):
            values[key] = {**values.get(key, {}), **value}
        else:
            values[key] = value
    if logger is not None:
        values["logger"] = logger
    return values


def dev_config(logger: logging.Logger | None = None) -> dict[str, Any]:
    """Development: short timeout and quick retries for fast feedback."""
    return _base(
        logger,
        default_params={"temperature": 0.2, "top_p": 0.9},
        timeout_ms=10_000,
        retry_policy={"max_retries": 2, "base_delay_ms": 100, "max_delay_ms": 1000, "jitter": True},
    )


def prod_config(logger: logging.Logger | None = None) -> dict[str, Any]:
    return _base(
        logger,
        default_params={"temperature": 0.2, "top_p": 0.9},
        timeout_ms=20_000,
        retry_policy={"max_retries": 3, "base_delay_ms": 300, "max_delay_ms": 5000, "jitter": True},
    )


def testing_config(logger: logging.Logger | None = None) -> dict[str, Any]:
    """Short timeout and a single fast retry without jitter."""
    return _base(
        logger,
        default_params={"temperature": 0.5, "top_p": 0.9},
        timeout_ms=5000,
        retry_policy={"max_retries": 1, "base_delay_ms": 10, "max_delay_ms": 100, "jitter": False},
    )


def high_perf_config(logger: logging.Logger | None = None) -> dict[str, Any]:
    return _base(
        logger,
        default_params={"temperature": 0.1, "top_p": 0.9},
        timeout_ms=15_000,
        retry_policy={"max_retries": 1, "base_delay_ms": 200, "max_delay_ms": 2000, "jitter": False},
    )


def creative_config(logger: logging.Logger | None = None) -> dict[str, Any]:
    return _base(
        logger,
        default_params={"temperature": 0.7, "top_p": 0.95},
        timeout_ms=20_000,
        retry_policy={"max_retries": 3, "base_delay_ms": 300, "max_delay_ms": 5000, "jitter": True},
    )


def reliable_config(logger: logging.Logger | None = None) -> dict[str, Any]:
    """Maximum retries with long backoff for calls that must succeed."""
    return _base(
        logger,
        default_params={"temperature": 0.2, "top_p": 0.9},
        timeout_ms=30_000,
        retry_policy={"max_retries": 5, "base_delay_ms": 500, "max_delay_ms": 10_000, "jitter": True},
    )


CONFIG_PRESETS: dict[str, Callable[..., dict[str, Any]]] = {
    "dev": dev_config,
    "prod": prod_config,
    "test": testing_config,
    "high_perf": high_perf_config,
    "creative": creative_config,
    "reliable": reliable_config,
}


def preset_for_environment(environment: str | None) -> str:
    """Pick dev, prod or test for an environment name."""
    name = (environment or "").strip().lower()
    if name in {"production", "prod"}:
        return "prod"
    if name in {"test", "testing"}:
        return "test"
    return "dev"


def create_ai_service(
    environment: str | None = None,
    logger: logging.Logger | None = None,
) -> AIService:
    """Create a service configured for the given (or current) environment."""
    env = environment or settings.ai.environment_preset or settings.app_env
    return AIService(CONFIG_PRESETS[preset_for_environment(env)](logger))


# Task presets


def flashcards_service(logger: logging.Logger | None = None) -> AIService:
    return AIService(prod_config(logger)).set_parameters(
        temperature=0.2, max_tokens=2000
    ).set_system_prompt(
        "You create study flashcards. Each card has a concise question on the "
        "front and an accurate, self-contained answer on the back. Use only "
        "facts stated in the source text and answer with JSON only."
    )


def analysis_service(logger: logging.Logger | None = None) -> AIService:
    return AIService(high_perf_config(logger)).set_parameters(temperature=0.1).set_system_prompt(
        "You are an analytical assistant. Be precise and factual and answer "
        "with JSON only."
    )


def creative_service(logger: logging.Logger | None = None) -> AIService:
    return AIService(creative_config(logger)).set_parameters(
        temperature=0.7
    ).set_system_prompt(
        "You are a creative writing assistant. Answer with JSON only."
    )


def mission_critical_service(logger: logging.Logger | None = None) -> AIService:
    return AIService(reliable_config(logger)).set_retry_policy(
        {"max_retries": 5, "base_delay_ms": 500, "max_delay_ms": 10_000, "jitter": True}
    ).set_parameters(temperature=0.2)


SERVICE_PRESETS: dict[str, Callable[..., AIService]] = {
    "flashcards": flashcards_service,
    "analysis": analysis_service,
    "creative": creative_service,
    "mission_critical": mission_critical_service,
}
