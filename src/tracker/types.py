"""Normalized Linear issue payloads returned by the GraphQL client."""

from dataclasses import dataclass, field
from typing import Any

from src.shared import safe_dict, safe_list

ACTIVITY_KINDS = ("thought", "response", "elicitation", "error")


@dataclass
class Attachment:
    id: str
    url: str
    title: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class CommentUser:
    id: str
    name: str
    is_me: bool = False


@dataclass
class IssueComment:
    id: str
    body: str
    user: CommentUser | None
    created_at: str = ""


@dataclass
class WorkflowState:
    id: str
    name: str
    type: str
    position: float = 0.0


@dataclass
class IssueDetail:
    """Issue fields the agent needs, flattened from the GraphQL shape."""

    id: str
    title: str
    description: str
    state: WorkflowState
    team_id: str
    team_key: str = ""
    project_name: str = ""
    project_description: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    comments: list[IssueComment] = field(default_factory=list)


def _nodes(value: Any) -> list[dict[str, Any]]:
    container = safe_dict(value)
    return [node for node in safe_list(container.get("nodes")) if isinstance(node, dict)]


def parse_comment(node: dict[str, Any]) -> IssueComment:
    user_data = safe_dict(node.get("user"))
    user = None
    if user_data:
        user = CommentUser(
            id=str(user_data.get("id", "")),
            name=str(user_data.get("name") or ""),
            is_me=bool(user_data.get("isMe", False)),
        )
    return IssueComment(
        id=str(node.get("id", "")),
        body=str(node.get("body") or ""),
        user=user,
        created_at=str(node.get("createdAt") or ""),
    )


def parse_workflow_state(node: dict[str, Any]) -> WorkflowState:
    position = node.get("position")
    return WorkflowState(
        id=str(node.get("id", "")),
        name=str(node.get("name") or ""),
        type=str(node.get("type") or ""),
        position=float(position) if isinstance(position, (int, float)) else 0.0,
    )


def parse_issue(node: dict[str, Any]) -> IssueDetail:
    """Normalize the `issue` object of the GetIssue query."""
    team = safe_dict(node.get("team"))
    project = safe_dict(node.get("project"))
    attachments = [
        Attachment(
            id=str(item.get("id", "")),
            url=str(item.get("url") or ""),
            title=str(item.get("title") or ""),
            metadata=safe_dict(item.get("metadata")),
        )
        for item in _nodes(node.get("attachments"))
    ]
    return IssueDetail(
        id=str(node.get("id", "")),
        title=str(node.get("title") or ""),
        description=str(node.get("description") or ""),
        state=parse_workflow_state(safe_dict(node.get("state"))),
        team_id=str(team.get("id", "")),
        team_key=str(team.get("key") or ""),
        project_name=str(project.get("name") or ""),
        project_description=str(project.get("description") or ""),
        attachments=attachments,
        comments=[parse_comment(item) for item in _nodes(node.get("comments"))],
    )
