"""
src/tracker/webhook.py
Inbound Linear webhook parsing and signature verification.
Exports: verify_webhook_signature, parse_agent_session_event, AgentSessionEvent, AGENT_SESSION_EVENT_TYPE
"""

import base64
import binascii
from dataclasses import dataclass
import hashlib
import hmac
import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

AGENT_SESSION_EVENT_TYPE = "AgentSessionEvent"
HEX_DIGEST_RE = re.compile(r"[0-9a-fA-F]{64}")


class WebhookComment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    body: str = ""


class WebhookIssue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    title: str = ""


class WebhookAgentSession(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: str = ""
    issue: WebhookIssue | None = None
    comment: WebhookComment | None = None
    issue_id: str | None = Field(default=None, alias="issueId")
    comment_id: str | None = Field(default=None, alias="commentId")


class WebhookActivityContent(BaseModel):
    type: str = ""
    body: str = ""


class WebhookAgentActivity(BaseModel):
    content: WebhookActivityContent | None = None


class AgentSessionWebhook(BaseModel):
    """Inbound AgentSessionEvent payload (signature already verified)."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = ""
    type: str
    organization_id: str = Field(alias="organizationId")
    agent_session: WebhookAgentSession = Field(alias="agentSession")
    agent_activity: WebhookAgentActivity | None = Field(default=None, alias="agentActivity")


@dataclass
class AgentSessionEvent:
    """Normalized session event consumed by the orchestrator."""

    action: str
    session_id: str
    workspace_id: str
    issue_id: str
    comment_body: str | None = None


def _decode_signature(signature: str) -> bytes | None:
    value = signature.strip()
    # `scheme=digest`; base64 padding alone is not a prefix separator.
    _scheme, sep, rest = value.partition("=")
    if sep and rest.strip("="):
        value = rest.strip()
    if HEX_DIGEST_RE.fullmatch(value):
        return bytes.fromhex(value)
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None


def verify_webhook_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """
    Check an HMAC-SHA256 webhook signature in constant time.

    Accepts hex or base64 digests, with or without a `scheme=` prefix.

    Args:
        body: Raw request body bytes.
        signature: Header value; None or empty fails.
        secret: Shared webhook secret.
    Returns:
        True when the digest matches.
    """
    if not signature:
        return False
    provided = _decode_signature(signature)
    if provided is None:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return hmac.compare_digest(provided, expected)


def parse_agent_session_event(payload: dict[str, Any]) -> AgentSessionEvent | None:
    """
    Normalize an AgentSessionEvent webhook payload.

    Args:
        payload: Decoded webhook JSON.
    Returns:
        AgentSessionEvent, or None for any other event type.
    Raises:
        ValueError: When an AgentSessionEvent payload is malformed.
    """
    if payload.get("type") != AGENT_SESSION_EVENT_TYPE:
        logger.debug("Ignoring webhook of type '%s'.", payload.get("type"))
        return None
    try:
        webhook = AgentSessionWebhook.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Malformed AgentSessionEvent payload: {exc.error_count()} error(s).") from exc

    session = webhook.agent_session
    issue_id = session.issue_id or (session.issue.id if session.issue else "")
    if not issue_id:
        raise ValueError("AgentSessionEvent payload has no issue id.")

    comment_body = session.comment.body if session.comment and session.comment.body else None
    if comment_body is None and webhook.action == "prompted" and webhook.agent_activity:
        content = webhook.agent_activity.content
        comment_body = content.body if content and content.body else None

    return AgentSessionEvent(
        action=webhook.action,
        session_id=session.id,
        workspace_id=webhook.organization_id,
        issue_id=issue_id,
        comment_body=comment_body,
    )
