"""Main-text extraction from HTML using Trafilatura."""

from typing import Callable, Optional

import trafilatura
from trafilatura.settings import use_config

from answer_engine.services.pipeline.text_cleaner import MAX_CONTENT_CHARS, clean_text

# Shown in the prompt when a page has no extractable article text
CONTENT_UNAVAILABLE = "Content unavailable"

# 0 disables trafilatura's own extraction timeout
config = use_config()
config.set("DEFAULT", "EXTRACTION_TIMEOUT", "0")

MainTextExtractor = Callable[[str], Optional[str]]


def extract_main_text(html: str) -> Optional[str]:
    """Return the main article text of an HTML document, or None if there is none."""
    if not html or not html.strip():
        return None
    return trafilatura.extract(
        html,
        include_comments=False,
        include_tables=True,
        no_fallback=False,
        config=config,
    )


def extract_content(
    html: str,
    extractor: MainTextExtractor = extract_main_text,
    max_chars: int = MAX_CONTENT_CHARS,
) -> str:
    """
    Turn raw HTML into cleaned, length-bounded plain text.

    Args:
        html: Raw HTML body
        extractor: Main-text extraction capability
        max_chars: Length cap for the cleaned text

    Returns:
        Cleaned text, or CONTENT_UNAVAILABLE if the extractor found nothing
    """
    text = extractor(html)
    if not text:
        return CONTENT_UNAVAILABLE
    return clean_text(text, max_chars=max_chars) or CONTENT_UNAVAILABLE
