"""`@agent` command parsing for preference management."""

from src.agent.types import Command

FORGET_CONFIRMATION_MESSAGE = "All preferences forgotten! I'll start learning fresh from your feedback."

_SHOW_PHRASES = ("show current preferences", "show preferences")
_FORGET_PHRASES = ("forget all preferences", "forget preferences")


def is_agent_mentioned(comment: str) -> bool:
    lower = (comment or "").lower()
    return "@agent" in lower or "@ agent" in lower


def parse_command(comment: str, agent_mentioned: bool) -> Command | None:
    """
    Detect a preference command in a comment.

    Args:
        comment: Comment body.
        agent_mentioned: Whether the comment mentions the agent.
    Returns:
        Command, or None when the agent is not addressed or no command matches.
    """
    if not agent_mentioned:
        return None
    lower = comment.lower()
    if any(phrase in lower for phrase in _SHOW_PHRASES):
        return Command.SHOW_PREFERENCES
    if any(phrase in lower for phrase in _FORGET_PHRASES):
        return Command.FORGET_PREFERENCES
    return None
