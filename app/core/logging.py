"""Structured logging for the generation API.

Every record carries the request's correlation id (held in a ``ContextVar``
set by the boundary middleware). Credentials attached as ``extra=`` fields are
redacted, and prompt or source texts are replaced by their length so that
user content never reaches the log sink. ``mask_text`` builds the short
previews the AI service attaches to failure events instead.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

SECRET_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "ai_api_key",
        "openrouter_api_key",
        "authorization",
        "x-api-key",
        "token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
    }
)

# Free text supplied by users or returned by the model
TEXT_KEYS: frozenset[str] = frozenset(
    {
        "prompt",
        "system",
        "user",
        "system_prompt",
        "user_prompt",
        "source_text",
        "completion",
    }
)

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


def mask_text(text: str, *, max_chars: int = 100) -> str:
    """Mask e-mail addresses and shorten long text for log previews.

    Args:
        text: Free text such as a prompt.
        max_chars: Length above which the middle of the text is elided.

    Returns:
        A preview safe to attach to a log record.

    Examples:
        >>> mask_text("contact me at jane@example.com")
        'contact me at [EMAIL]'
    """
    if not text:
        return text

    masked = _EMAIL_RE.sub("[EMAIL]", text)
    if len(masked) > max_chars:
        return f"{masked[:50]}...[MASKED]...{masked[-20:]}"
    return masked


class Redactor:
    """Replaces secrets and free text found under known keys."""

    def __init__(
        self,
        secret_keys: Iterable[str] | None = None,
        text_keys: Iterable[str] | None = None,
    ) -> None:
        self.secret_keys = {key.lower() for key in (secret_keys or SECRET_KEYS)}
        self.text_keys = {key.lower() for key in (text_keys or TEXT_KEYS)}

    def field(self, key: str, value: Any) -> Any:
        name = key.lower()
        if name in self.secret_keys:
            return "[REDACTED]"
        if name in self.text_keys:
            if not isinstance(value, str):
                return "[REDACTED]"
            if value.startswith("[REDACTED"):
                return value
            return f"[REDACTED {len(value)} chars]"
        return self.value(value)

    def value(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: self.field(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.value(v) for v in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Redacted copy of the ``extra=`` fields of a record."""
        return {
            key: self.field(key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class CorrelationIdFilter(logging.Filter):
    """Attach correlation_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact extras in place, for handlers with a plain text formatter."""

    def __init__(self, redactor: Redactor | None = None) -> None:
        super().__init__()
        self.redactor = redactor or Redactor()

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, extras."""

    def __init__(self, redactor: Redactor | None = None) -> None:
        super().__init__()
        self.redactor = redactor or Redactor()

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = self.redactor.extras(record)
        if extras.get("correlation_id") is None:
            extras.pop("correlation_id", None)
            correlation_id = get_correlation_id()
            if correlation_id:
                payload["correlation_id"] = correlation_id
        payload.update(extras)
        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__

        return json.dumps(payload, default=str)


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.
    """
    cfg = log_settings or settings.log

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    if cfg.format.lower() == "plain":
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))
