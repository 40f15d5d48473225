"""Tests for source text normalization."""

import pytest

from app.utils.text_normalizer import normalize_text


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  plain text  ", "plain text"),
        ("line one\r\nline two\rline three", "line one\nline two\nline three"),
        ("a\n\n\n\n\nb", "a\n\nb"),
        ("tabs\t\tand   spaces", "tabs and spaces"),
        ("non\u00a0breaking\u202fspace", "non breaking space"),
        ("zero\u200bwidth\ufeff", "zerowidth"),
        ("Cafe\u0301", "Caf\u00e9"),
    ],
)
def test_normalize_text(raw: str, expected: str):
    assert normalize_text(raw) == expected


def test_normalize_text_is_idempotent():
    text = "Mitochondria\u00a0are\r\n\r\n\r\nthe powerhouse\u200b of the cell. "
    once = normalize_text(text)
    assert normalize_text(once) == once
