"""
tests/test_webhook.py
Unit tests for src/tracker/webhook.py — signature checks and event parsing.
"""

import base64
import hashlib
import hmac

import pytest

SECRET = "whsec-test"
BODY = b'{"type":"AgentSessionEvent"}'


def _digest() -> bytes:
    return hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()


def _payload(**overrides):
    payload = {
        "action": "created",
        "type": "AgentSessionEvent",
        "organizationId": "org-1",
        "agentSession": {
            "id": "session-1",
            "status": "pending",
            "issue": {"id": "issue-1", "title": "Create LinkedIn post"},
            "comment": None,
            "issueId": "issue-1",
            "commentId": None,
        },
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    "signature",
    [
        _digest().hex(),
        _digest().hex().upper(),
        "sha256=" + _digest().hex(),
        base64.b64encode(_digest()).decode(),
        "sha256=" + base64.b64encode(_digest()).decode(),
    ],
)
def test_verify_signature_accepts_hex_and_base64(signature):
    from src.tracker.webhook import verify_webhook_signature

    assert verify_webhook_signature(BODY, signature, SECRET) is True


@pytest.mark.parametrize("signature", [None, "", "not-a-signature", "sha256=" + "0" * 64])
def test_verify_signature_rejects_bad_values(signature):
    from src.tracker.webhook import verify_webhook_signature

    assert verify_webhook_signature(BODY, signature, SECRET) is False


def test_verify_signature_rejects_tampered_body():
    from src.tracker.webhook import verify_webhook_signature

    assert verify_webhook_signature(BODY + b" ", _digest().hex(), SECRET) is False


def test_parse_created_event():
    from src.tracker.webhook import parse_agent_session_event

    event = parse_agent_session_event(_payload())

    assert event.action == "created"
    assert event.session_id == "session-1"
    assert event.workspace_id == "org-1"
    assert event.issue_id == "issue-1"
    assert event.comment_body is None


def test_parse_event_takes_comment_body():
    from src.tracker.webhook import parse_agent_session_event

    payload = _payload()
    payload["agentSession"]["comment"] = {"id": "c1", "body": "@agent show preferences"}

    assert parse_agent_session_event(payload).comment_body == "@agent show preferences"


def test_parse_prompted_event_reads_activity_body():
    from src.tracker.webhook import parse_agent_session_event

    payload = _payload(action="prompted", agentActivity={"content": {"type": "prompt", "body": "never use emoji"}})

    assert parse_agent_session_event(payload).comment_body == "never use emoji"


def test_parse_falls_back_to_nested_issue_id():
    from src.tracker.webhook import parse_agent_session_event

    payload = _payload()
    payload["agentSession"]["issueId"] = None

    assert parse_agent_session_event(payload).issue_id == "issue-1"


def test_non_session_events_are_ignored():
    from src.tracker.webhook import parse_agent_session_event

    assert parse_agent_session_event({"type": "Issue", "action": "update"}) is None


def test_malformed_session_event_raises_value_error():
    from src.tracker.webhook import parse_agent_session_event

    with pytest.raises(ValueError, match="Malformed"):
        parse_agent_session_event({"type": "AgentSessionEvent", "organizationId": "org-1"})
