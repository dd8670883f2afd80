"""
tests/test_main.py
Unit tests for src/main.py — FastAPI endpoints.
"""

import hashlib
import hmac
import json

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

SESSION_PAYLOAD = {
    "action": "created",
    "type": "AgentSessionEvent",
    "organizationId": "org-1",
    "agentSession": {"id": "session-1", "issue": {"id": "issue-1"}, "issueId": "issue-1"},
}


@pytest.fixture
def client():
    from src.main import app
    return TestClient(app)


@pytest.fixture
def oauth_env(monkeypatch):
    monkeypatch.setenv("LINEAR_CLIENT_ID", "cid")
    monkeypatch.setenv("LINEAR_CLIENT_SECRET", "secret")
    monkeypatch.setenv("FIRSTDRAFT_PUBLIC_URL", "https://agent.test")


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_landing_page_is_plain_text(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "FirstDraft" in response.text


@patch("src.main.init_store_db")
def test_initialize_store_calls_db_init(mock_init_db, tmp_path, monkeypatch):
    from src.main import initialize_store

    monkeypatch.setenv("FIRSTDRAFT_STORE_DB_PATH", str(tmp_path / "kv.db"))
    initialize_store()
    mock_init_db.assert_called_once_with(str(tmp_path / "kv.db"))


@patch("src.main.init_store_db", side_effect=OSError("read-only filesystem"))
def test_initialize_store_is_best_effort_on_error(mock_init_db):
    from src.main import initialize_store

    initialize_store()
    mock_init_db.assert_called_once()


def test_authorize_redirects_to_linear(client, oauth_env):
    response = client.get("/oauth/authorize", follow_redirects=False)
    assert response.status_code == 302
    location = response.headers["location"]
    assert location.startswith("https://linear.app/oauth/authorize?")
    assert "actor=app" in location


def test_authorize_without_config_returns_500(client, monkeypatch):
    monkeypatch.delenv("LINEAR_CLIENT_ID", raising=False)
    response = client.get("/oauth/authorize", follow_redirects=False)
    assert response.status_code == 500
    assert "LINEAR_CLIENT_ID" in response.json()["detail"]


def test_callback_reports_linear_error(client):
    response = client.get("/oauth/callback", params={"error": "access_denied"})
    assert response.status_code == 400
    assert "access_denied" in response.json()["detail"]


def test_callback_requires_code(client):
    response = client.get("/oauth/callback")
    assert response.status_code == 400


@patch("src.main.exchange_code", new_callable=AsyncMock, return_value="org-1")
def test_callback_success(mock_exchange, client, oauth_env):
    response = client.get("/oauth/callback", params={"code": "auth-code"})
    assert response.status_code == 200
    assert "workspace org-1" in response.text
    assert mock_exchange.await_args.kwargs["code"] == "auth-code"


@patch("src.main.exchange_code", new_callable=AsyncMock, side_effect=RuntimeError("invalid_grant"))
def test_callback_exchange_failure_returns_500(mock_exchange, client, oauth_env):
    response = client.get("/oauth/callback", params={"code": "bad"})
    assert response.status_code == 500
    assert "invalid_grant" in response.json()["detail"]


@patch("src.main.handle_agent_session", new_callable=AsyncMock, return_value=None)
def test_webhook_accepts_session_event(mock_handle, client):
    response = client.post("/webhooks/linear", json=SESSION_PAYLOAD)
    assert response.status_code == 200
    assert response.json() == {"status": "accepted"}
    event = mock_handle.await_args.args[0]
    assert event.session_id == "session-1"
    assert event.workspace_id == "org-1"


@patch("src.main.handle_agent_session", new_callable=AsyncMock)
def test_webhook_ignores_other_event_types(mock_handle, client):
    response = client.post("/webhooks/linear", json={"type": "Issue", "action": "update"})
    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}
    mock_handle.assert_not_awaited()


def test_webhook_rejects_invalid_json(client):
    response = client.post("/webhooks/linear", content=b"{not json", headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_webhook_rejects_non_object_body(client):
    response = client.post("/webhooks/linear", json=["a", "b"])
    assert response.status_code == 400


def test_webhook_rejects_malformed_session_event(client):
    response = client.post("/webhooks/linear", json={"type": "AgentSessionEvent", "organizationId": "org-1"})
    assert response.status_code == 400
    assert "Malformed" in response.json()["detail"]


def test_webhook_rejects_bad_signature_when_secret_set(client, monkeypatch):
    monkeypatch.setenv("LINEAR_WEBHOOK_SECRET", "whsec")
    response = client.post(
        "/webhooks/linear",
        json=SESSION_PAYLOAD,
        headers={"linear-signature": "0" * 64},
    )
    assert response.status_code == 401


@patch("src.main.handle_agent_session", new_callable=AsyncMock, return_value=None)
def test_webhook_accepts_valid_signature(mock_handle, client, monkeypatch):
    monkeypatch.setenv("LINEAR_WEBHOOK_SECRET", "whsec")
    body = json.dumps(SESSION_PAYLOAD).encode()
    signature = hmac.new(b"whsec", body, hashlib.sha256).hexdigest()

    response = client.post(
        "/webhooks/linear",
        content=body,
        headers={"content-type": "application/json", "linear-signature": signature},
    )

    assert response.status_code == 200
    assert response.json() == {"status": "accepted"}
    mock_handle.assert_awaited_once()
