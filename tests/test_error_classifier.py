"""Tests for mapping provider failures onto ai domain errors."""

import pytest

from app.adapters.llm.base import ProviderFailure
from app.services.ai.error_classifier import classify_failure
from app.services.ai.errors import ai_errors


@pytest.mark.parametrize(
    "failure,expected_code",
    [
        (ProviderFailure("slow down", status=429), "ai/rate-limited"),
        (ProviderFailure("slow down", code="rate_limit_exceeded"), "ai/rate-limited"),
        (ProviderFailure("down", status=503), "ai/service-unavailable"),
        (ProviderFailure("down", code="model_unavailable"), "ai/service-unavailable"),
        (ProviderFailure("down", code="service_unavailable"), "ai/service-unavailable"),
        (ProviderFailure("oops", status=500), "ai/provider-error"),
        (ProviderFailure("gateway", status=502), "ai/provider-error"),
        (ProviderFailure("who are you", status=401), "ai/unauthorized"),
        (ProviderFailure("who are you", code="unauthorized"), "ai/unauthorized"),
        (ProviderFailure("not allowed", status=403), "ai/forbidden"),
        (ProviderFailure("bad", status=400), "ai/bad-request"),
        (ProviderFailure("gone", status=404), "ai/bad-request"),
        (ProviderFailure("bad", code="bad_request"), "ai/bad-request"),
        (ProviderFailure("slow", code="timeout"), "ai/timeout"),
        (ProviderFailure("slow", code="ETIMEDOUT"), "ai/timeout"),
        (TimeoutError(), "ai/timeout"),
    ],
)
def test_classifies_provider_failures(failure: BaseException, expected_code: str):
    error = classify_failure(failure, model="openai/gpt-4o-mini", timeout_ms=1000)

    assert error is not None
    assert error.code == expected_code
    assert error.cause is failure


def test_rate_limit_takes_precedence_over_status_family():
    error = classify_failure(ProviderFailure("x", status=429, code="bad_request"))
    assert error is not None
    assert error.kind == "RateLimited"


def test_timeout_meta():
    error = classify_failure(TimeoutError(), model="m", timeout_ms=750)
    assert error is not None
    assert error.meta == {"timeoutMs": 750, "model": "m"}


def test_status_is_reported_in_meta():
    error = classify_failure(ProviderFailure("oops", status=500), model="m")
    assert error is not None
    assert error.meta["status"] == 500


def test_domain_errors_are_kept_as_is():
    original = ai_errors.ParseError(detail="not JSON")
    assert classify_failure(original) is original


@pytest.mark.parametrize(
    "status,code,expected_code",
    [
        (400, "model_unavailable", "ai/bad-request"),
        (404, "service_unavailable", "ai/bad-request"),
        (403, "model_unavailable", "ai/forbidden"),
        (502, "model_unavailable", "ai/service-unavailable"),
        (None, "model_unavailable", "ai/service-unavailable"),
    ],
)
def test_client_status_wins_over_unavailable_code(status, code, expected_code):
    error = classify_failure(ProviderFailure("unavailable", status=status, code=code))

    assert error is not None
    assert error.code == expected_code


@pytest.mark.parametrize(
    "failure",
    [
        ValueError("something else"),
        KeyError("missing"),
        ProviderFailure("no signals"),
        ProviderFailure("odd", status=302),
    ],
)
def test_unrecognized_failures_are_not_classified(failure: BaseException):
    assert classify_failure(failure) is None


def test_sdk_style_status_code_is_recognized():
    class FakeStatusError(Exception):
        status_code = 429
        code = None

    error = classify_failure(FakeStatusError("Too many requests"))
    assert error is not None
    assert error.code == "ai/rate-limited"
