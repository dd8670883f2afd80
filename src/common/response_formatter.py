"""Deterministic clean-up of generated drafts before they are posted to Linear."""

import re

# Anchored at the very start of the text only.
META_PREFIX_RES = [
    re.compile(r"^Here's (?:what I (?:created|generated|wrote)|the (?:content|draft|result))[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^Here is (?:the (?:content|draft|result)|what I (?:created|generated|wrote))[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^I've (?:created|generated|written) (?:the following|this)[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^Below is (?:the (?:content|draft|result)|what I (?:created|generated|wrote))[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^This is (?:the (?:content|draft|result)|what I (?:created|generated|wrote))[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^Let me (?:create|generate|write|provide) (?:the|this)[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^I'll (?:create|generate|write|provide) (?:the|this)[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^Based on (?:your|the) (?:requirements|request|issue),?\s*", re.IGNORECASE),
    re.compile(r"^Following (?:your|the) (?:requirements|request|issue),?\s*", re.IGNORECASE),
    re.compile(r"^As (?:requested|per your request),?\s*", re.IGNORECASE),
    re.compile(r"^Here you go[^\S\n]*:?\s*", re.IGNORECASE),
    re.compile(r"^Here it is[^\S\n]*:?\s*", re.IGNORECASE),
]
NOTE_LINE_RE = re.compile(r"^(?:Note:|Note that|Keep in mind that|Remember that)[ \t]+.*$", re.IGNORECASE | re.MULTILINE)
CLOSING_REMARK_RE = re.compile(
    r"\n+(?:I hope this helps|Let me know if|Feel free to|If you need)[^\n]*\s*\Z",
    re.IGNORECASE,
)
TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
BLANK_RUN_RE = re.compile(r"\n{3,}")
HEADER_RE = re.compile(r"^#{1,6}[ \t]+\S", re.MULTILINE)
HEADER_SPACING_RE = re.compile(r"(?:^|\n+)(#{1,6}[ \t]+[^\n]+)\n+")
LIST_ITEM_RE = re.compile(r"^[ \t]*(?:[-*+]|\d+\.)[ \t]+\S")
EMPTY_LIST_ITEM_RE = re.compile(r"^[ \t]*[-*+][ \t]*$", re.MULTILINE)
BLANK_BEFORE_ITEM_RE = re.compile(r"\n{2,}(?=[ \t]*(?:[-*+]|\d+\.)[ \t]+\S)")
LEADING_STRAY_RE = re.compile(r"^[:—–][ \t]*")
MAX_TITLE_CHARS = 100


def _strip_meta_prefixes(text: str) -> str:
    for pattern in META_PREFIX_RES:
        text = pattern.sub("", text, count=1)
    return text


def _strip_closing_remarks(text: str) -> str:
    while True:
        stripped = CLOSING_REMARK_RE.sub("", text)
        if stripped == text:
            return text
        text = stripped.rstrip()


def _space_list_blocks(text: str) -> str:
    """Keep list items tight and separate list blocks from surrounding prose by one blank line."""
    text = BLANK_BEFORE_ITEM_RE.sub("\n", text)
    out: list[str] = []
    for line in text.split("\n"):
        if out and out[-1].strip() and line.strip():
            prev_is_item = bool(LIST_ITEM_RE.match(out[-1]))
            is_item = bool(LIST_ITEM_RE.match(line))
            is_continuation = line.startswith((" ", "\t"))
            if is_item and not prev_is_item:
                out.append("")
            elif prev_is_item and not is_item and not is_continuation:
                out.append("")
        out.append(line)
    return "\n".join(out)


def _promote_title(text: str) -> str:
    """Turn a short, period-free first line into a `##` header for multi-paragraph drafts."""
    if HEADER_RE.search(text):
        return text
    lines = text.split("\n")
    if len(lines) <= 3 or "\n\n" not in text:
        return text
    first = lines[0].strip()
    if not first or len(first) >= MAX_TITLE_CHARS or "." in first or LIST_ITEM_RE.match(first):
        return text
    rest = "\n".join(lines[1:]).lstrip("\n")
    return f"## {first}\n\n{rest}"


def format_response(content: str) -> str:
    """
    Clean an LLM draft for display as a Linear markdown activity.

    Pure and deterministic. Removes leading meta-commentary, standalone note
    lines and trailing closing remarks; normalizes blank lines, header and
    list spacing; promotes a title line when the draft has no headers.

    Args:
        content: Raw LLM output.
    Returns:
        Formatted markdown.
    """
    text = (content or "").replace("\r\n", "\n").strip()
    text = _strip_meta_prefixes(text)
    text = NOTE_LINE_RE.sub("", text)

    text = TRAILING_SPACE_RE.sub("", text)
    text = BLANK_RUN_RE.sub("\n\n", text)
    text = HEADER_SPACING_RE.sub(r"\n\n\1\n\n", text)
    text = EMPTY_LIST_ITEM_RE.sub("", text)
    text = _space_list_blocks(text)
    text = BLANK_RUN_RE.sub("\n\n", text).strip()

    text = _promote_title(text)
    text = _strip_closing_remarks(text)
    text = LEADING_STRAY_RE.sub("", text.strip())
    return BLANK_RUN_RE.sub("\n\n", text).strip()
