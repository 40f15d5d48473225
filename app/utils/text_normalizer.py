import re
import unicodedata

# Zero-width characters and BOM left behind by copy/paste from web pages and PDFs
_INVISIBLE_RE = re.compile(r"[\u200b\u200c\u200d\u2060\ufeff]")
_HORIZONTAL_SPACE_RE = re.compile(r"[ \t\u00a0\u2007\u202f]+")
_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """Normalize pasted source text before length checks and hashing.

    Applies Unicode NFC, unifies line breaks, drops invisible characters,
    collapses runs of horizontal whitespace (including non-breaking spaces)
    and limits blank lines to one.

    Args:
        text: Raw text as submitted by the client.

    Returns:
        str: Normalized and trimmed text.

    Examples:
        >>> normalize_text("Cell\\u00a0 wall\\r\\n\\r\\n\\r\\nends\\u200b")
        'Cell wall\\n\\nends'
    """
    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _INVISIBLE_RE.sub("", text)
    text = _HORIZONTAL_SPACE_RE.sub(" ", text)
    text = _EXCESS_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()
