"""Shared pytest fixtures for FirstDraft test suite."""

from typing import Any

import pytest

from src.config import AgentSettings
from src.memory.kv import InMemoryKeyValueStore
from src.tracker.types import Attachment, IssueComment, IssueDetail, WorkflowState


class FakeTracker:
    """Records every tracker call; `fail_on` maps a method name to the exception it raises."""

    def __init__(self, issue: IssueDetail, states: list[WorkflowState] | None = None) -> None:
        self.issue = issue
        self.states = states or []
        self.activities: list[tuple[str, str]] = []
        self.comments: list[tuple[str, str]] = []
        self.state_updates: list[tuple[str, str]] = []
        self.fail_on: dict[str, Exception] = {}

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise self.fail_on[name]

    async def get_issue(self, issue_id: str) -> IssueDetail:
        self._maybe_fail("get_issue")
        return self.issue

    async def get_team_states(self, team_id: str) -> list[WorkflowState]:
        self._maybe_fail("get_team_states")
        return self.states

    async def create_agent_activity(self, session_id: str, kind: str, body: str) -> None:
        self._maybe_fail("create_agent_activity")
        self.activities.append((kind, body))

    async def update_issue_state(self, issue_id: str, state_id: str) -> None:
        self._maybe_fail("update_issue_state")
        self.state_updates.append((issue_id, state_id))

    async def create_comment(self, issue_id: str, body: str) -> None:
        self._maybe_fail("create_comment")
        self.comments.append((issue_id, body))

    @property
    def kinds(self) -> list[str]:
        return [kind for kind, _body in self.activities]


class ScriptedLLM:
    """Returns queued responses in order; queued exceptions are raised instead."""

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def generate(self, system_prompt: str, user_prompt: str, images=None) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "images": images})
        if not self.responses:
            raise AssertionError("ScriptedLLM ran out of responses.")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_issue(
    *,
    title: str = "Create LinkedIn post about our launch",
    description: str = "Announce the new analytics dashboard to our customers with a friendly tone.",
    state_type: str = "unstarted",
    attachments: list[Attachment] | None = None,
    comments: list[IssueComment] | None = None,
    project_name: str = "Launch",
) -> IssueDetail:
    return IssueDetail(
        id="issue-1",
        title=title,
        description=description,
        state=WorkflowState(id="state-todo", name="Todo", type=state_type, position=1.0),
        team_id="team-1",
        team_key="ENG",
        project_name=project_name,
        project_description="Q3 product launch",
        attachments=attachments or [],
        comments=comments or [],
    )


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def settings():
    return AgentSettings(
        llm_model="gemini/gemini-2.5-flash",
        llm_temperature=0.7,
        llm_max_tokens=4000,
        max_link_fetch_tokens=2000,
        max_image_bytes=1024,
        link_fetch_timeout_seconds=1.0,
    )


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep tests deterministic regardless of developer shell env vars."""
    for name in (
        "LINEAR_WEBHOOK_SECRET",
        "FIRSTDRAFT_LLM_MODEL",
        "FIRSTDRAFT_LLM_TEMPERATURE",
        "FIRSTDRAFT_LLM_MAX_TOKENS",
        "FIRSTDRAFT_MAX_LINK_FETCH_TOKENS",
        "FIRSTDRAFT_MAX_IMAGE_BYTES",
        "FIRSTDRAFT_LINK_FETCH_TIMEOUT_SECONDS",
        "LINEAR_SCOPES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FIRSTDRAFT_STORE_DB_PATH", str(tmp_path / "firstdraft.db"))


@pytest.fixture
def issue_factory():
    return make_issue


@pytest.fixture
def llm_factory():
    return ScriptedLLM


@pytest.fixture
def tracker_factory():
    return FakeTracker
