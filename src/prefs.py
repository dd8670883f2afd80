"""
src/prefs.py
Workspace preference memory: load, update, clear and display.
Exports: load_memory, update_memory, clear_memory, format_memory_for_display, memory_key
"""

import json
import logging
from datetime import datetime, timezone

from src.common.signal_parser import parse_special_keywords
from src.memory.kv import KeyValueStore
from src.memory.types import MemoryUpdate, WorkspaceMemory
from src.shared import utc_now, utc_now_iso

logger = logging.getLogger(__name__)

NO_PREFERENCES_MESSAGE = "No preferences stored yet. I'll learn from your feedback as we work together!"
_SECONDS_PER_DAY = 60 * 60 * 24


def memory_key(workspace_id: str) -> str:
    return f"memory:{workspace_id}"


def _append_unique(items: list[str], value: str | None) -> None:
    if value and value not in items:
        items.append(value)


async def load_memory(store: KeyValueStore, workspace_id: str) -> WorkspaceMemory:
    """
    Read workspace memory, falling back to empty defaults.

    Args:
        store: Key-value store.
        workspace_id: Linear organization id.
    Returns:
        Stored WorkspaceMemory, or a fresh default when absent or unreadable.
    """
    raw = await store.get(memory_key(workspace_id))
    if not raw:
        return WorkspaceMemory()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored memory for workspace '%s' is not valid JSON; using defaults.", workspace_id)
        return WorkspaceMemory()
    if not isinstance(data, dict):
        logger.warning("Stored memory for workspace '%s' is not an object; using defaults.", workspace_id)
        return WorkspaceMemory()
    return WorkspaceMemory.from_json_dict(data)


async def save_memory(store: KeyValueStore, workspace_id: str, memory: WorkspaceMemory) -> None:
    await store.put(memory_key(workspace_id), json.dumps(memory.to_json_dict(), ensure_ascii=False))


def apply_memory_update(memory: WorkspaceMemory, update: MemoryUpdate) -> WorkspaceMemory:
    """
    Merge one update into `memory` in place and stamp `last_updated`.

    Anti-pattern updates append `value` and `avoid`. Preference updates merge
    recognised style keys, or record the raw value as a voice note.
    """
    if update.type == "anti-pattern":
        _append_unique(memory.anti_patterns, update.value)
        _append_unique(memory.anti_patterns, update.avoid)
    else:
        style = parse_special_keywords(update.value)
        if style:
            memory.style_preferences.update(style)
        else:
            notes = memory.voice_notes
            _append_unique(notes, update.value)
            memory.style_preferences["voiceNotes"] = notes
        _append_unique(memory.anti_patterns, update.avoid)
    memory.last_updated = utc_now_iso()
    return memory


async def update_memory(store: KeyValueStore, workspace_id: str, update: MemoryUpdate) -> WorkspaceMemory:
    """
    Read-merge-write one update. Concurrent writers race; the last write wins.

    Side effects:
        Writes the merged document back to the store.
    """
    memory = await load_memory(store, workspace_id)
    apply_memory_update(memory, update)
    await save_memory(store, workspace_id, memory)
    logger.info("Applied %s memory update for workspace '%s'.", update.type, workspace_id)
    return memory


async def clear_memory(store: KeyValueStore, workspace_id: str) -> None:
    await store.delete(memory_key(workspace_id))


def _days_since(timestamp: str, now: datetime) -> int:
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return max(0, int((now - moment).total_seconds() // _SECONDS_PER_DAY))


def format_memory_for_display(memory: WorkspaceMemory, now: datetime | None = None) -> str:
    """
    Render memory as a markdown summary for an issue comment.

    Args:
        memory: Workspace memory snapshot.
        now: Reference time for the recency line (defaults to current UTC time).
    Returns:
        Markdown text, or NO_PREFERENCES_MESSAGE when nothing is stored.
    """
    if memory.is_empty():
        return NO_PREFERENCES_MESSAGE

    style = memory.style_preferences
    lines = ["**Current preferences:**"]
    if style.get("tone"):
        lines.append(f"✓ Tone: {style['tone']}")
    if style.get("emojiUsage"):
        lines.append(f"✓ Emoji usage: {style['emojiUsage']}")
    if style.get("formality"):
        lines.append(f"✓ Formality: {style['formality']}")
    if memory.voice_notes:
        lines.append("✓ Voice notes:")
        lines.extend(f"  - {note}" for note in memory.voice_notes)
    if memory.anti_patterns:
        lines.append("✓ Anti-patterns:")
        lines.extend(f"  - {pattern}" for pattern in memory.anti_patterns)

    days = _days_since(memory.last_updated, now or utc_now())
    if days == 0:
        lines.append("✓ Last updated: Today")
    elif days == 1:
        lines.append("✓ Last updated: 1 day ago")
    else:
        lines.append(f"✓ Last updated: {days} days ago")
    return "\n".join(lines)
