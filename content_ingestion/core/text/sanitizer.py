"""
Text sanitization for ingested content.

Normalizes Unicode, strips invisible and control characters, and collapses
whitespace so every downstream stage sees the same canonical text.

Dependencies: re, unicodedata (stdlib)
System role: Shared cleaning step for every source kind
"""

import re
import unicodedata

from pydantic import BaseModel, Field

# C0 and C1 control characters, keeping tab, LF and CR
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")
# Zero-width space/joiners, BOM and soft hyphen
ZERO_WIDTH_CHARS = re.compile(r"[\u200B-\u200D\uFEFF\u00AD]")
# Bidirectional embedding, override and isolate controls
BIDI_CONTROL_CHARS = re.compile(r"[\u202A-\u202E\u2066-\u2069]")
LINE_ENDINGS = re.compile(r"\r\n?")
SPACE_RUNS = re.compile(r" {2,}")
BLANK_LINE_RUNS = re.compile(r"\n{3,}")

DEFAULT_MIN_LENGTH = 100


class SanitizedText(BaseModel):
    """Sanitized text together with its measured length."""

    text: str = Field(description="Sanitized text")
    length: int = Field(description="Character length after sanitization")
    valid: bool = Field(description="Whether the text meets the minimum length")


def sanitize(raw: str) -> str:
    """
    Clean raw text into canonical form.

    The steps run in a fixed order and the function is idempotent:
    sanitize(sanitize(x)) == sanitize(x).

    Args:
        raw: Untrusted input text

    Returns:
        str: Sanitized text (possibly empty)
    """
    if not raw:
        return ""

    text = unicodedata.normalize("NFC", raw)
    text = CONTROL_CHARS.sub("", text)
    text = ZERO_WIDTH_CHARS.sub("", text)
    text = BIDI_CONTROL_CHARS.sub("", text)
    text = LINE_ENDINGS.sub("\n", text)
    text = SPACE_RUNS.sub(" ", text)
    text = BLANK_LINE_RUNS.sub("\n\n", text)
    text = text.strip()
    # Removals can leave combining marks next to a new base character
    return unicodedata.normalize("NFC", text)


def is_empty(text: str | None) -> bool:
    """Return True when nothing survives sanitization."""
    return not sanitize(text or "")


def sanitize_and_validate(text: str, min_length: int = DEFAULT_MIN_LENGTH) -> SanitizedText:
    """
    Sanitize text and check it against a minimum length.

    Length is measured after sanitization so invisible padding cannot
    satisfy the minimum.

    Args:
        text: Untrusted input text
        min_length: Minimum number of characters required

    Returns:
        SanitizedText: Cleaned text, its length and the validity flag
    """
    cleaned = sanitize(text)
    return SanitizedText(text=cleaned, length=len(cleaned), valid=len(cleaned) >= min_length)
