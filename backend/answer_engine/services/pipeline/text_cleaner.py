"""Text cleaning and truncation for extracted source content."""

import re
from typing import Optional

MAX_CONTENT_CHARS = 20000

_EXCESS_NEWLINES = re.compile(r"\n{4,}")
_WIDE_SPACES = re.compile(r" {3,}")
# A newline plus any whitespace-only lines after it, up to the last newline
_NEWLINE_RUN = re.compile(r"\n(?:\s*\n)?")


def _clean_once(text: str, max_chars: int) -> str:
    text = text.strip()
    text = _EXCESS_NEWLINES.sub("\n\n\n", text)
    text = text.replace("\n\n", " ")
    text = _WIDE_SPACES.sub("  ", text)
    text = text.replace("\t", "")
    text = _NEWLINE_RUN.sub("\n", text)
    return text[:max_chars]


def clean_text(text: Optional[str], max_chars: int = MAX_CONTENT_CHARS) -> str:
    """Clean extracted page text and cap its length.

    Steps, in order:
    1. Strip leading/trailing whitespace
    2. Collapse 4+ newlines to 3
    3. Turn each remaining double newline into a single space
    4. Collapse 3+ spaces to 2
    5. Drop tab characters
    6. Collapse newline runs (including whitespace-only lines) to one newline
    7. Truncate to `max_chars`

    Dropping tabs or truncating can expose new runs for an earlier step, so the
    steps are repeated until the text stops changing. Every pass that changes
    the text makes it shorter, which bounds the loop and makes the function
    idempotent.

    Args:
        text: The text to clean. Can be None.
        max_chars: Length cap applied after cleaning

    Returns:
        Cleaned text, at most `max_chars` characters long.

    Examples:
        >>> clean_text("  Hello\\t world  ")
        'Hello world'
        >>> clean_text("One\\n\\nTwo")
        'One Two'
    """
    if not text:
        return ""

    while True:
        cleaned = _clean_once(text, max_chars)
        if cleaned == text:
            return cleaned
        text = cleaned
