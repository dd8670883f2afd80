"""
src/agent/session.py
Session orchestrator: one inbound agent-session event handled to completion.
Exports: run_agent_session, handle_agent_session, SessionRuntime, SessionResult, SessionState
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Protocol

import httpx

from src.agent.collector import collect_context, extract_urls
from src.agent.commands import FORGET_CONFIRMATION_MESSAGE, is_agent_mentioned, parse_command
from src.agent.generation import generate_content
from src.agent.planning import plan_and_research
from src.agent.prompts import build_assumptions_note
from src.agent.scope import OUT_OF_SCOPE_MESSAGE, is_out_of_scope
from src.agent.sufficiency import analyze_context_sufficiency, build_elicitation_question
from src.agent.types import AgentContext, Command
from src.common.signal_parser import extract_memory_signal
from src.config import AgentSettings, Config
from src.llm.client import TextGenerator, build_llm_client
from src.memory.kv import KeyValueStore, build_store
from src.prefs import clear_memory, format_memory_for_display, load_memory, update_memory
from src.tracker.client import LinearClient, pick_started_state
from src.tracker.oauth import get_access_token
from src.tracker.types import IssueDetail, WorkflowState
from src.tracker.webhook import AgentSessionEvent

logger = logging.getLogger(__name__)

ACK_MESSAGE = "Analyzing context..."
PLANNING_MESSAGE = "Planning content structure and researching context..."
DRAFTING_MESSAGE = "Drafting content..."
FAILURE_MESSAGE = "I ran into an issue generating the draft. Please re-assign me to try again."
SETTLED_STATE_TYPES = ("started", "completed", "canceled")


class SessionState(str, Enum):
    RECEIVED = "received"
    COMMAND_HANDLED = "command-handled"
    OUT_OF_SCOPE = "out-of-scope"
    INSUFFICIENT_CONTEXT = "insufficient-context"
    GENERATING = "generating"
    CLOSED = "closed"


class Tracker(Protocol):
    async def get_issue(self, issue_id: str) -> IssueDetail: ...

    async def get_team_states(self, team_id: str) -> list[WorkflowState]: ...

    async def create_agent_activity(self, session_id: str, kind: str, body: str) -> None: ...

    async def update_issue_state(self, issue_id: str, state_id: str) -> None: ...

    async def create_comment(self, issue_id: str, body: str) -> None: ...


@dataclass
class SessionRuntime:
    """Injected dependencies for one session run."""

    store: KeyValueStore
    tracker: Tracker
    llm: TextGenerator
    http_client: httpx.AsyncClient
    settings: AgentSettings
    access_token: str | None = None


@dataclass
class SessionResult:
    """Outcome of one run: the state trail plus every activity posted, in order."""

    session_id: str
    states: list[SessionState] = field(default_factory=list)
    activities: list[tuple[str, str]] = field(default_factory=list)
    failed: bool = False

    @property
    def state(self) -> SessionState | None:
        return self.states[-1] if self.states else None

    @property
    def outcome(self) -> SessionState | None:
        """Terminal branch taken before closing (command, decline, elicitation or generation)."""
        branches = [item for item in self.states if item not in (SessionState.RECEIVED, SessionState.CLOSED)]
        return branches[-1] if branches else None


async def _emit(runtime: SessionRuntime, result: SessionResult, kind: str, body: str) -> None:
    await runtime.tracker.create_agent_activity(result.session_id, kind, body)
    result.activities.append((kind, body))


async def _handle_command(command: Command, event: AgentSessionEvent, runtime: SessionRuntime) -> None:
    if command is Command.SHOW_PREFERENCES:
        memory = await load_memory(runtime.store, event.workspace_id)
        await runtime.tracker.create_comment(event.issue_id, format_memory_for_display(memory))
    elif command is Command.FORGET_PREFERENCES:
        await clear_memory(runtime.store, event.workspace_id)
        await runtime.tracker.create_comment(event.issue_id, FORGET_CONFIRMATION_MESSAGE)
    logger.info("Handled command '%s' for workspace '%s'.", command.value, event.workspace_id)


async def _learn_from_feedback(comment: str, event: AgentSessionEvent, runtime: SessionRuntime) -> None:
    update = extract_memory_signal(comment)
    if update is None:
        return
    try:
        await update_memory(runtime.store, event.workspace_id, update)
        logger.info("Stored %s signal for workspace '%s'.", update.type, event.workspace_id)
    except Exception:
        logger.exception("Failed to store feedback signal for workspace '%s'.", event.workspace_id)


async def _move_to_started(issue: IssueDetail, runtime: SessionRuntime) -> None:
    """Best-effort transition to the team's first `started` state."""
    if issue.state.type in SETTLED_STATE_TYPES or not issue.team_id:
        return
    try:
        started = pick_started_state(await runtime.tracker.get_team_states(issue.team_id))
        if started is None:
            logger.info("Team '%s' has no started state; leaving issue state unchanged.", issue.team_id)
            return
        await runtime.tracker.update_issue_state(issue.id, started.id)
        logger.info("Moved issue '%s' to state '%s'.", issue.id, started.name)
    except Exception:
        logger.exception("Failed to move issue '%s' to a started state.", issue.id)


async def _run_steps(event: AgentSessionEvent, runtime: SessionRuntime, result: SessionResult) -> None:
    if event.comment_body:
        command = parse_command(event.comment_body, is_agent_mentioned(event.comment_body))
        if command is not None:
            await _handle_command(command, event, runtime)
            result.states.append(SessionState.COMMAND_HANDLED)
            return
        await _learn_from_feedback(event.comment_body, event, runtime)

    issue = await runtime.tracker.get_issue(event.issue_id)

    if is_out_of_scope(issue.title, issue.description):
        result.states.append(SessionState.OUT_OF_SCOPE)
        await _emit(runtime, result, "error", OUT_OF_SCOPE_MESSAGE)
        return

    analysis = await analyze_context_sufficiency(
        runtime.llm,
        issue,
        link_count=len(extract_urls(issue.description)),
    )
    if not analysis.is_sufficient:
        result.states.append(SessionState.INSUFFICIENT_CONTEXT)
        await _emit(runtime, result, "elicitation", build_elicitation_question(analysis))
        return

    result.states.append(SessionState.GENERATING)
    await _move_to_started(issue, runtime)

    memory = await load_memory(runtime.store, event.workspace_id)
    settings = runtime.settings
    images, external = await collect_context(
        runtime.http_client,
        description=issue.description,
        attachments=issue.attachments,
        max_link_tokens=settings.max_link_fetch_tokens,
        max_image_bytes=settings.max_image_bytes,
        link_timeout=settings.link_fetch_timeout_seconds,
        auth_token=runtime.access_token,
    )
    context = AgentContext(
        issue=issue,
        memory=memory,
        session_id=event.session_id,
        workspace_id=event.workspace_id,
        external_content=external,
        images=images,
    )

    await _emit(runtime, result, "thought", PLANNING_MESSAGE)
    planned = await plan_and_research(runtime.llm, context)

    await _emit(runtime, result, "thought", DRAFTING_MESSAGE)
    draft = await generate_content(runtime.llm, context, planned.plan, planned.research)

    note = build_assumptions_note(
        project_name=issue.project_name,
        content_type=planned.plan.content_type,
        memory=memory,
        sections=planned.plan.proposed_structure.sections,
        failed_urls=[item.url for item in external if item.error],
    )
    await _emit(runtime, result, "thought", note)
    await _emit(runtime, result, "response", draft)


async def run_agent_session(event: AgentSessionEvent, runtime: SessionRuntime) -> SessionResult:
    """
    Handle one agent-session event end-to-end.

    Args:
        event: Normalized webhook event.
        runtime: Injected store, tracker, LLM, HTTP client and settings.
    Returns:
        SessionResult whose trail always ends in CLOSED.
    Side effects:
        Posts session activities (acknowledgment first), may post an issue
        comment, update workspace memory and move the issue to a started state.
    """
    result = SessionResult(session_id=event.session_id, states=[SessionState.RECEIVED])
    logger.info(
        "Session %s received: action=%s issue=%s workspace=%s",
        event.session_id,
        event.action,
        event.issue_id,
        event.workspace_id,
    )
    try:
        await _emit(runtime, result, "thought", ACK_MESSAGE)
    except Exception:
        logger.exception("Could not acknowledge session %s; dropping event.", event.session_id)
        result.failed = True
        result.states.append(SessionState.CLOSED)
        return result

    try:
        await _run_steps(event, runtime, result)
    except Exception:
        logger.exception("Session %s failed.", event.session_id)
        result.failed = True
        try:
            await _emit(runtime, result, "error", FAILURE_MESSAGE)
        except Exception:
            logger.exception("Could not post failure activity for session %s.", event.session_id)

    result.states.append(SessionState.CLOSED)
    logger.info("Session %s closed: outcome=%s failed=%s", event.session_id, result.outcome, result.failed)
    return result


async def handle_agent_session(event: AgentSessionEvent, store: KeyValueStore | None = None) -> SessionResult | None:
    """
    Resolve credentials, build the runtime and run the session.

    Args:
        event: Normalized webhook event.
        store: Key-value store; the configured SQLite store when omitted.
    Returns:
        SessionResult, or None when the event was dropped before acknowledgment.
    """
    store = store or build_store()
    access_token = await get_access_token(store, event.workspace_id)
    if not access_token:
        logger.error("No access token for workspace '%s'; dropping session %s.", event.workspace_id, event.session_id)
        return None
    try:
        settings = Config.load_agent_settings()
        llm = build_llm_client(settings)
    except RuntimeError:
        logger.exception("Agent configuration invalid; dropping session %s.", event.session_id)
        return None

    async with httpx.AsyncClient() as http_client:
        runtime = SessionRuntime(
            store=store,
            tracker=LinearClient(access_token, http_client),
            llm=llm,
            http_client=http_client,
            settings=settings,
            access_token=access_token,
        )
        return await run_agent_session(event, runtime)


def describe_result(result: SessionResult | None) -> dict[str, Any]:
    """Summarize a result for logs and debugging endpoints."""
    if result is None:
        return {"status": "dropped"}
    return {
        "status": "failed" if result.failed else "closed",
        "outcome": result.outcome.value if result.outcome else None,
        "activities": [kind for kind, _body in result.activities],
    }
