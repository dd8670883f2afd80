"""
src/tracker/oauth.py
Linear OAuth2 authorization-code flow with the app actor, plus token persistence.
Exports: build_authorize_url, exchange_code, save_token, load_token, get_access_token
"""

import json
import logging
from urllib.parse import urlencode

import httpx

from src.memory.kv import KeyValueStore
from src.memory.types import OAuthToken
from src.shared import epoch_millis, safe_dict
from src.tracker.client import LinearClient, TrackerAPIError

logger = logging.getLogger(__name__)

LINEAR_AUTHORIZE_URL = "https://linear.app/oauth/authorize"
LINEAR_TOKEN_URL = "https://api.linear.app/oauth/token"
CALLBACK_PATH = "/oauth/callback"


def token_key(workspace_id: str) -> str:
    return f"token:{workspace_id}"


def build_redirect_uri(public_url: str) -> str:
    return f"{public_url.rstrip('/')}{CALLBACK_PATH}"


def build_authorize_url(*, client_id: str, public_url: str, scopes: str) -> str:
    """Return the Linear consent URL; `actor=app` installs a workspace-level bot identity."""
    params = {
        "client_id": client_id,
        "redirect_uri": build_redirect_uri(public_url),
        "scope": scopes,
        "response_type": "code",
        "actor": "app",
    }
    return f"{LINEAR_AUTHORIZE_URL}?{urlencode(params)}"


async def save_token(store: KeyValueStore, workspace_id: str, token: OAuthToken) -> None:
    await store.put(token_key(workspace_id), json.dumps(token.to_json_dict()))


async def load_token(store: KeyValueStore, workspace_id: str) -> OAuthToken | None:
    raw = await store.get(token_key(workspace_id))
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored token for workspace '%s' is not valid JSON.", workspace_id)
        return None
    if not isinstance(data, dict):
        return None
    return OAuthToken.from_json_dict(data)


async def get_access_token(store: KeyValueStore, workspace_id: str, now_ms: int | None = None) -> str | None:
    """
    Return a usable access token for the workspace.

    Returns:
        Access token string, or None when absent or expired (treated as not installed).
    """
    token = await load_token(store, workspace_id)
    if token is None or not token.access_token:
        return None
    if token.is_expired(now_ms if now_ms is not None else epoch_millis()):
        logger.warning("Access token for workspace '%s' has expired.", workspace_id)
        return None
    return token.access_token


async def exchange_code(
    *,
    code: str,
    client_id: str,
    client_secret: str,
    public_url: str,
    http_client: httpx.AsyncClient,
    store: KeyValueStore,
) -> str:
    """
    Exchange an authorization code and persist the token under the organization id.

    Args:
        code: Authorization code from the callback query string.
        client_id: Linear OAuth application id.
        client_secret: Linear OAuth application secret.
        public_url: Public base URL of this service (for redirect_uri).
        http_client: Shared async HTTP client.
        store: Key-value store for the token document.
    Returns:
        The workspace (organization) id the token was stored for.
    Raises:
        TrackerAPIError: When the token exchange or the viewer lookup fails.
    """
    response = await http_client.post(
        LINEAR_TOKEN_URL,
        data={
            "grant_type": "authorization_code",
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": build_redirect_uri(public_url),
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    if response.status_code < 200 or response.status_code >= 300:
        raise TrackerAPIError(f"Token exchange failed: {response.status_code} {response.text[:300]}")
    token_data = safe_dict(response.json())
    access_token = str(token_data.get("access_token") or "")
    if not access_token:
        raise TrackerAPIError("Token exchange response did not include an access token.")

    workspace_id = await LinearClient(access_token, http_client).get_viewer_organization_id()
    created_at = epoch_millis()
    expires_in = token_data.get("expires_in")
    scope = token_data.get("scope") or ""
    token = OAuthToken(
        access_token=access_token,
        token_type=str(token_data.get("token_type") or "Bearer"),
        scope=",".join(str(item) for item in scope) if isinstance(scope, list) else str(scope),
        created_at=created_at,
        expires_at=created_at + int(expires_in) * 1000 if isinstance(expires_in, (int, float)) else None,
    )
    await save_token(store, workspace_id, token)
    logger.info("Stored Linear access token for workspace '%s'.", workspace_id)
    return workspace_id
