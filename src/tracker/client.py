"""
src/tracker/client.py
Minimal Linear GraphQL client for agent sessions.
Exports: LinearClient, TrackerAPIError, pick_started_state, LINEAR_API_URL
"""

import json
import logging
from typing import Any

import httpx

from src.shared import safe_dict, safe_list
from src.tracker.types import ACTIVITY_KINDS, IssueDetail, WorkflowState, parse_issue, parse_workflow_state

logger = logging.getLogger(__name__)

LINEAR_API_URL = "https://api.linear.app/graphql"
REQUEST_TIMEOUT_SECONDS = 15.0

GET_ISSUE_QUERY = """
query GetIssue($id: String!) {
  issue(id: $id) {
    id
    title
    description
    state { id name type }
    team { id key }
    project { id name description }
    attachments { nodes { id url title metadata } }
    comments { nodes { id body createdAt user { id name isMe } } }
  }
}
"""

GET_TEAM_STATES_QUERY = """
query GetTeamStates($teamId: String!) {
  team(id: $teamId) {
    states { nodes { id name type position } }
  }
}
"""

CREATE_ACTIVITY_MUTATION = """
mutation CreateAgentActivity($input: AgentActivityCreateInput!) {
  agentActivityCreate(input: $input) {
    success
    agentActivity { id }
  }
}
"""

UPDATE_ISSUE_STATE_MUTATION = """
mutation UpdateIssueState($id: String!, $stateId: String!) {
  issueUpdate(id: $id, input: { stateId: $stateId }) {
    success
  }
}
"""

CREATE_COMMENT_MUTATION = """
mutation CreateComment($issueId: String!, $body: String!) {
  commentCreate(input: { issueId: $issueId, body: $body }) {
    success
  }
}
"""

VIEWER_ORGANIZATION_QUERY = """
query ViewerOrganization {
  viewer {
    id
    organization { id }
  }
}
"""


class TrackerAPIError(RuntimeError):
    """Linear returned a non-2xx status or GraphQL errors."""


def pick_started_state(states: list[WorkflowState]) -> WorkflowState | None:
    """Return the lowest-position workflow state of type `started`, if any."""
    started = [state for state in states if state.type == "started"]
    if not started:
        return None
    return min(started, key=lambda state: state.position)


class LinearClient:
    """Authenticated GraphQL calls made on behalf of one workspace."""

    def __init__(self, access_token: str, http_client: httpx.AsyncClient, api_url: str = LINEAR_API_URL) -> None:
        self.access_token = access_token
        self.http_client = http_client
        self.api_url = api_url

    async def _query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self.http_client.post(
            self.api_url,
            json={"query": query, "variables": variables or {}},
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.access_token}",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if response.status_code < 200 or response.status_code >= 300:
            raise TrackerAPIError(f"Linear API error: {response.status_code} {response.reason_phrase}")
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise TrackerAPIError("Linear API returned a non-JSON body.") from exc
        payload = safe_dict(payload)
        if payload.get("errors"):
            raise TrackerAPIError(f"Linear GraphQL error: {json.dumps(payload['errors'])[:500]}")
        return safe_dict(payload.get("data"))

    async def get_issue(self, issue_id: str) -> IssueDetail:
        data = await self._query(GET_ISSUE_QUERY, {"id": issue_id})
        node = safe_dict(data.get("issue"))
        if not node:
            raise TrackerAPIError(f"Issue not found: {issue_id}")
        return parse_issue(node)

    async def get_team_states(self, team_id: str) -> list[WorkflowState]:
        data = await self._query(GET_TEAM_STATES_QUERY, {"teamId": team_id})
        states = safe_dict(safe_dict(data.get("team")).get("states"))
        return [parse_workflow_state(node) for node in safe_list(states.get("nodes")) if isinstance(node, dict)]

    async def create_agent_activity(self, session_id: str, kind: str, body: str) -> None:
        """
        Post one activity to an agent session.

        Args:
            session_id: Linear agent session id.
            kind: One of thought, response, elicitation, error.
            body: Markdown body.
        Raises:
            ValueError: For an unknown activity kind.
            TrackerAPIError: On API failure.
        """
        if kind not in ACTIVITY_KINDS:
            raise ValueError(f"Unknown agent activity kind: {kind}")
        await self._query(
            CREATE_ACTIVITY_MUTATION,
            {"input": {"agentSessionId": session_id, "content": {"type": kind, "body": body}}},
        )
        logger.info("Posted '%s' activity to session %s (%d chars).", kind, session_id, len(body))

    async def update_issue_state(self, issue_id: str, state_id: str) -> None:
        await self._query(UPDATE_ISSUE_STATE_MUTATION, {"id": issue_id, "stateId": state_id})

    async def create_comment(self, issue_id: str, body: str) -> None:
        await self._query(CREATE_COMMENT_MUTATION, {"issueId": issue_id, "body": body})

    async def get_viewer_organization_id(self) -> str:
        data = await self._query(VIEWER_ORGANIZATION_QUERY)
        organization = safe_dict(safe_dict(data.get("viewer")).get("organization"))
        organization_id = str(organization.get("id") or "")
        if not organization_id:
            raise TrackerAPIError("Linear viewer query returned no organization id.")
        return organization_id
