"""Best-effort plain text extraction from fetched web pages."""

import re

from bs4 import BeautifulSoup

CHARS_PER_TOKEN = 4
_WHITESPACE_RE = re.compile(r"\s+")


def html_to_text(html: str) -> str:
    """
    Reduce an HTML document to a single line of readable text.

    Args:
        html: Raw HTML payload.
    Returns:
        Text with script/style removed, tags stripped, entities decoded and
        whitespace collapsed.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def char_budget(max_tokens: int) -> int:
    """Convert a token budget into an approximate character budget."""
    return max(0, max_tokens) * CHARS_PER_TOKEN


def truncate_text(text: str, max_chars: int) -> tuple[str, bool]:
    """Return `(text, truncated)` with text cut to at most `max_chars`."""
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars], True
