"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_ai_settings() -> "AISettings":
    """Build AI provider settings from environment."""

    return AISettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


class AISettings(BaseSettings):
    """Structured-generation provider configuration.

    These values seed the default ``ServiceConfiguration`` of the AI client.
    Range validation of the retry/timeout values happens when the client
    configuration is built, so a bad value fails with ``ai/invalid-config``.
    """

    provider: str = Field(
        "openrouter",
        description="Provider name (openrouter or openai; both speak the OpenAI chat API)",
    )
    api_key: str | None = Field(
        None,
        description="Provider API key (OpenRouter or OpenAI)",
    )
    base_url: str = Field(
        "https://openrouter.ai/api/v1",
        description="OpenAI-compatible API endpoint",
    )
    default_model: str = Field(
        "openai/gpt-4o-mini",
        description="Model id used when a request does not override it",
    )
    temperature: float = Field(0.2, description="Default sampling temperature")
    top_p: float = Field(0.9, description="Default nucleus sampling value")
    max_tokens: int | None = Field(None, description="Default completion token cap")
    timeout_ms: int = Field(15000, description="Per-attempt timeout in milliseconds")
    max_retries: int = Field(2, description="Retries after the first attempt")
    base_delay_ms: int = Field(300, description="Initial backoff delay in milliseconds")
    max_delay_ms: int = Field(3000, description="Backoff delay cap in milliseconds")
    jitter: bool = Field(True, description="Add up to 10% random delay on backoff")
    app_referer: str = Field(
        "https://10xcards.dev",
        description="HTTP-Referer header sent to OpenRouter for attribution",
    )
    app_title: str = Field(
        "10xCards",
        description="X-Title header sent to OpenRouter for attribution",
    )
    environment_preset: str | None = Field(
        None,
        description="Preset used by create_ai_service (defaults to APP_ENV)",
    )

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the correlation id in and out",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    problem_type_base_uri: str = Field(
        "https://docs.app.dev/problems",
        description="Base URI for the `type` member of problem documents",
    )
    min_source_chars: int = Field(
        1000,
        description="Minimum source text length accepted for flashcard generation",
    )
    max_source_chars: int = Field(
        50000,
        description="Maximum source text length accepted for flashcard generation",
    )
    supported_models: list[str] = Field(
        default_factory=lambda: ["openai/gpt-4o-mini"],
        description="Models a client may request for flashcard generation",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    ai: AISettings = Field(default_factory=_build_ai_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
