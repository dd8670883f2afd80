"""Layered best-effort JSON extraction from free-form LLM output."""

from dataclasses import dataclass
import json
import re
from typing import Any, Union

FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?(.*?)(?:```|\Z)", re.DOTALL)


@dataclass(frozen=True)
class Parsed:
    """Text (after fence stripping) decoded directly as a JSON object."""

    data: dict[str, Any]
    raw: str


@dataclass(frozen=True)
class Recovered:
    """A JSON object found by slicing between the first `{` and last `}`."""

    data: dict[str, Any]
    raw: str


@dataclass(frozen=True)
class Failed:
    """No JSON object could be extracted; `raw` is the untouched response."""

    raw: str


ParseResult = Union[Parsed, Recovered, Failed]


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or the trimmed text when unfenced."""
    stripped = (text or "").strip()
    if "```" not in stripped:
        return stripped
    match = FENCE_RE.search(stripped)
    if not match:
        return stripped
    return match.group(1).strip()


def parse_direct(text: str) -> dict[str, Any] | None:
    """Decode `text` as a JSON object; None when it is not one."""
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def parse_brace_slice(text: str) -> dict[str, Any] | None:
    """Decode the span between the first `{` and the last `}`; None on failure."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return parse_direct(text[start : end + 1])


def parse_llm_json(text: str) -> ParseResult:
    """
    Apply fence-strip, direct parse, then brace-slice, in that order.

    Args:
        text: Raw LLM response.
    Returns:
        Parsed, Recovered, or Failed carrying the raw response.
    """
    raw = text or ""
    candidate = strip_code_fence(raw)
    data = parse_direct(candidate)
    if data is not None:
        return Parsed(data=data, raw=raw)
    for source in (candidate, raw):
        data = parse_brace_slice(source)
        if data is not None:
            return Recovered(data=data, raw=raw)
    return Failed(raw=raw)


def coerce_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value.strip() or default
    if value is None:
        return default
    return str(value).strip() or default


def coerce_str_list(value: Any) -> list[str]:
    """Normalize a JSON value into a list of non-empty strings."""
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        line = str(item).strip() if item is not None else ""
        if line:
            items.append(line)
    return items
