"""Tests for validating model output against the caller's schema."""

import pytest

from app.core.errors import DomainError
from app.schemas.generation import FlashcardsOutput
from app.services.ai.output_validator import MAX_REPORTED_ISSUES, validate_output


def test_valid_payload_returns_model():
    payload = {"flashcards": [{"front": "What is ATP?", "back": "The energy currency of the cell."}]}

    result = validate_output(FlashcardsOutput, payload)

    assert isinstance(result, FlashcardsOutput)
    assert result.flashcards[0].front == "What is ATP?"


def test_front_over_200_chars_fails():
    payload = {"flashcards": [{"front": "x" * 201, "back": "answer"}]}

    with pytest.raises(DomainError) as exc_info:
        validate_output(FlashcardsOutput, payload)

    error = exc_info.value
    assert error.code == "ai/validation-failed"
    assert error.status == 422
    assert error.meta["issueCount"] == 1
    issue = error.meta["issues"][0]
    assert issue["path"] == "flashcards.0.front"
    assert issue["type"] == "string_too_long"
    assert issue["reason"]


def test_issues_never_contain_input_values():
    payload = {"flashcards": [{"front": "SECRET-" + "x" * 300, "back": "answer"}]}

    with pytest.raises(DomainError) as exc_info:
        validate_output(FlashcardsOutput, payload)

    assert "SECRET-" not in str(exc_info.value.meta)


def test_missing_root_field_reports_path():
    with pytest.raises(DomainError) as exc_info:
        validate_output(FlashcardsOutput, {"cards": []})

    issues = exc_info.value.meta["issues"]
    assert issues[0]["path"] == "flashcards"
    assert issues[0]["type"] == "missing"


def test_non_object_payload_reports_root_path():
    with pytest.raises(DomainError) as exc_info:
        validate_output(FlashcardsOutput, ["not", "an", "object"])

    assert exc_info.value.meta["issues"][0]["path"] == "$"


def test_issue_list_is_capped():
    payload = {"flashcards": [{"front": "", "back": ""} for _ in range(30)]}

    with pytest.raises(DomainError) as exc_info:
        validate_output(FlashcardsOutput, payload)

    meta = exc_info.value.meta
    assert meta["issueCount"] == 60
    assert len(meta["issues"]) == MAX_REPORTED_ISSUES
