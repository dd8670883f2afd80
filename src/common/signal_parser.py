"""Explicit preference signal detection from user feedback comments."""

import re
from typing import Any

from src.memory.types import MemoryUpdate

# Each category is checked in order; within a category the first pattern wins.
ANTI_PATTERN_RES = [
    re.compile(r"\bnever\s+(.+)"),
    re.compile(r"\bdon['’]t\s+ever\s+(.+)"),
    re.compile(r"\bavoid\s+(.+)"),
    re.compile(r"\bstop\s+(.+)"),
]
PREFERENCE_RES = [
    re.compile(r"\balways\s+(.+)"),
    re.compile(r"\bfrom\s+now\s+on\s+(.+)"),
    re.compile(r"\bremember\s+to\s+(.+)"),
    re.compile(r"\bdefault\s+to\s+(.+)"),
]
PREFER_OVER_RE = re.compile(r"\bprefer\s+(.+?)\s+over\s+(.+)")


def _first_capture(patterns: list[re.Pattern[str]], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def extract_memory_signal(comment: str) -> MemoryUpdate | None:
    """
    Turn a feedback comment into at most one memory update.

    Matching is case-insensitive: the comment is lower-cased before matching,
    so captured values are lower-case too. Captures run to the end of the line.

    Args:
        comment: Raw comment body.
    Returns:
        MemoryUpdate for the first matching category, else None.
    """
    lower = (comment or "").lower()

    anti_pattern = _first_capture(ANTI_PATTERN_RES, lower)
    if anti_pattern:
        return MemoryUpdate(type="anti-pattern", value=anti_pattern)

    preference = _first_capture(PREFERENCE_RES, lower)
    if preference:
        return MemoryUpdate(type="preference", value=preference)

    prefer_match = PREFER_OVER_RE.search(lower)
    if prefer_match:
        return MemoryUpdate(
            type="preference",
            value=prefer_match.group(1).strip(),
            avoid=prefer_match.group(2).strip(),
        )
    return None


def parse_special_keywords(value: str) -> dict[str, Any]:
    """
    Map a free-text preference onto known style keys.

    Args:
        value: Preference text, e.g. "use a casual tone".
    Returns:
        Dict with any of `tone` / `emojiUsage`; empty when nothing is recognised.
    """
    lower = value.lower()
    style: dict[str, Any] = {}

    if "casual" in lower or "informal" in lower:
        style["tone"] = "casual"
    elif "formal" in lower or "professional" in lower:
        style["tone"] = "formal"
    elif "playful" in lower or re.search(r"\bfun\b", lower):
        style["tone"] = "playful"

    if "no emoji" in lower or "without emoji" in lower:
        style["emojiUsage"] = "none"
    elif "use emoji" in lower or "with emoji" in lower:
        style["emojiUsage"] = "moderate"

    return style
