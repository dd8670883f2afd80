"""
src/main.py
FastAPI application — all endpoints for FirstDraft.
Endpoints: GET /health, GET /, GET /oauth/authorize, GET /oauth/callback, POST /webhooks/linear
"""

from contextlib import asynccontextmanager
import json
import logging

from dotenv import load_dotenv
from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
import httpx

from src.agent.session import describe_result, handle_agent_session
from src.config import Config
from src.memory_store import build_store, init_store_db
from src.tracker.oauth import build_authorize_url, exchange_code
from src.tracker.webhook import AgentSessionEvent, parse_agent_session_event, verify_webhook_signature

logger = logging.getLogger(__name__)
load_dotenv()

SIGNATURE_HEADER = "linear-signature"
LANDING_TEXT = (
    "FirstDraft: a Linear agent that writes first drafts of content.\n"
    "Install: GET /oauth/authorize\n"
    "Webhook: POST /webhooks/linear\n"
)


def initialize_store() -> None:
    """Initialize the SQLite key-value schema at app startup (best-effort)."""
    try:
        init_store_db(Config.get_store_db_path())
    except Exception:
        logger.exception("Failed to initialize FirstDraft store.")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """FastAPI lifespan hook for startup/shutdown side effects."""
    initialize_store()
    yield


app = FastAPI(title="FirstDraft", lifespan=lifespan)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Return service health status."""
    return {"status": "ok"}


@app.get("/", response_class=PlainTextResponse)
def landing() -> str:
    return LANDING_TEXT


@app.get("/oauth/authorize")
def oauth_authorize() -> RedirectResponse:
    """
    Redirect the installer to Linear's consent screen.

    Raises:
        HTTPException 500: Missing OAuth configuration.
    """
    try:
        url = build_authorize_url(
            client_id=Config.require_env("LINEAR_CLIENT_ID"),
            public_url=Config.get_public_url(),
            scopes=Config.get_linear_scopes(),
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return RedirectResponse(url=url, status_code=302)


@app.get("/oauth/callback", response_class=PlainTextResponse)
async def oauth_callback(code: str | None = None, error: str | None = None) -> str:
    """
    Exchange the authorization code and persist the workspace token.

    Raises:
        HTTPException 400: Linear reported an error or no code was sent.
        HTTPException 500: Token exchange or persistence failed.
    """
    if error:
        raise HTTPException(status_code=400, detail=f"OAuth error: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code.")
    try:
        async with httpx.AsyncClient() as http_client:
            workspace_id = await exchange_code(
                code=code,
                client_id=Config.require_env("LINEAR_CLIENT_ID"),
                client_secret=Config.require_env("LINEAR_CLIENT_SECRET"),
                public_url=Config.get_public_url(),
                http_client=http_client,
                store=build_store(),
            )
    except Exception as exc:
        logger.exception("OAuth callback failed.")
        raise HTTPException(status_code=500, detail=f"OAuth exchange failed: {exc}") from exc
    return f"FirstDraft installed for workspace {workspace_id}. You can close this tab."


@app.post("/webhooks/linear")
async def linear_webhook(request: Request, background_tasks: BackgroundTasks) -> dict[str, str]:
    """
    Accept Linear webhooks and schedule agent-session handling.

    Returns:
        `accepted` for agent-session events, `ignored` for every other type.
    Raises:
        HTTPException 401: Signature missing or invalid while a secret is configured.
        HTTPException 400: Body is not a valid JSON object or a malformed session event.
    """
    body = await request.body()
    secret = Config.get_webhook_secret()
    if secret and not verify_webhook_signature(body, request.headers.get(SIGNATURE_HEADER), secret):
        raise HTTPException(status_code=401, detail="Invalid webhook signature.")
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body.") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook body must be a JSON object.")

    try:
        event = parse_agent_session_event(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if event is None:
        return {"status": "ignored"}

    background_tasks.add_task(_run_session, event)
    return {"status": "accepted"}


async def _run_session(event: AgentSessionEvent) -> None:
    try:
        result = await handle_agent_session(event, store=build_store())
    except Exception:
        logger.exception("Agent session %s crashed before completion.", event.session_id)
        return
    logger.info("Agent session %s finished: %s", event.session_id, describe_result(result))