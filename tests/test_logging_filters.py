"""Tests for sensitive data filtering and correlation in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from app.core.config import LogSettings
from app.core.logging import (
    CorrelationIdFilter,
    JsonFormatter,
    Redactor,
    SensitiveDataFilter,
    clear_correlation_id,
    configure_logging,
    mask_text,
    set_correlation_id,
)


def _make_logger(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(CorrelationIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_api_keys():
    """Ensure SensitiveDataFilter redacts API key fields."""

    logger, stream = _make_logger("test_redaction")

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-or-secret-123",
            "authorization": "Bearer another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "sk-or-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_prompts_and_source_text():
    """Ensure prompts and source texts never reach the log output."""

    logger, stream = _make_logger("test_prompt_redaction")

    logger.info(
        "generation_event",
        extra={
            "source_text": "Photosynthesis converts light, email@example.com",
            "system_prompt": "You are an expert educator",
            "user_prompt": "Create flashcards from the source text",
            "source_text_length": 1500,
        },
    )

    output = stream.getvalue()
    record = json.loads(output.strip())

    assert "Photosynthesis" not in output
    assert "email@example.com" not in output
    assert "expert educator" not in output
    assert "Create flashcards" not in output
    assert record["source_text"] == "[REDACTED 48 chars]"
    assert record["system_prompt"] == "[REDACTED 26 chars]"
    assert record["source_text_length"] == 1500


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""

    logger, stream = _make_logger("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "model": "openai/gpt-4o-mini",
            "route": "/v1/generations",
            "status_code": 201,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "openai/gpt-4o-mini" in output
    assert "/v1/generations" in output
    assert "201" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _make_logger("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-key",
                "X-Title": "10xCards",
            },
            "safe_data": {"count": 5, "type": "test"},
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "[REDACTED]" in output
    assert "10xCards" in output


def test_json_formatter_includes_correlation_id():
    logger, stream = _make_logger("test_correlation")

    set_correlation_id("req-abc-123")
    try:
        logger.warning("ai.retry_scheduled", extra={"attempt": 1})
    finally:
        clear_correlation_id()

    record = json.loads(stream.getvalue().strip())
    assert record["correlation_id"] == "req-abc-123"
    assert record["level"] == "warning"
    assert record["message"] == "ai.retry_scheduled"
    assert record["attempt"] == 1


def test_mask_text_masks_emails_and_long_text():
    assert mask_text("write to jane@example.com") == "write to [EMAIL]"

    long_text = "a" * 60 + "b" * 60
    masked = mask_text(long_text)
    assert masked.startswith("a" * 50)
    assert "...[MASKED]..." in masked
    assert masked.endswith("b" * 20)

    assert mask_text("") == ""


def test_json_formatter_redacts_without_filters():
    """The formatter alone never emits secrets or prompt text."""

    logger = logging.getLogger("test_formatter_only")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    logger.info("ai.request", extra={"api_key": "sk-live-1", "user": "What is ATP?"})

    record = json.loads(stream.getvalue().strip())
    assert record["api_key"] == "[REDACTED]"
    assert record["user"] == "[REDACTED 12 chars]"
    assert "correlation_id" not in record


def test_redactor_handles_non_string_text_fields():
    redactor = Redactor()

    assert redactor.field("completion", {"flashcards": []}) == "[REDACTED]"
    assert redactor.field("prompt_preview", "short preview") == "short preview"
    assert redactor.value([{"Authorization": "Bearer x"}]) == [{"Authorization": "[REDACTED]"}]


def test_configure_logging_plain_format(capsys):
    root = logging.getLogger()
    previous_level = root.level
    configure_logging(LogSettings(format="plain", level="DEBUG"))
    try:
        set_correlation_id("req-plain-1")
        logging.getLogger("app.test").info("plain.event", extra={"api_key": "sk-1"})
    finally:
        clear_correlation_id()
        configured_level = root.level
        root.handlers.clear()
        root.setLevel(previous_level)

    line = capsys.readouterr().out.strip()
    assert "INFO app.test [req-plain-1] plain.event" in line
    assert configured_level == logging.DEBUG
