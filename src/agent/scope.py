"""Deterministic scope gate: decline engineering work that asks for no copy."""

import re

OUT_OF_SCOPE_MESSAGE = (
    "I only handle content and copywriting tasks. If you need specific copy for this task "
    "(like documentation, comments, or text), let me know in a comment and I'll help with that!"
)

TECHNICAL_KEYWORDS = (
    "fix bug",
    "refactor",
    "implement",
    "deploy",
    "migrate",
    "optimize performance",
    "database",
    "schema",
    "authentication flow",
    "build feature",
    "add endpoint",
    "unit test",
)
COPYWRITING_RE = re.compile(r"\b(copy|write|draft|content|text|documentation|docs)\b")


def is_out_of_scope(title: str, description: str) -> bool:
    """Return True when the issue reads as engineering work with no copywriting ask."""
    combined = f"{title or ''} {description or ''}".lower()
    has_technical = any(keyword in combined for keyword in TECHNICAL_KEYWORDS)
    return has_technical and not COPYWRITING_RE.search(combined)
