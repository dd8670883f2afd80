"""Transient data passed between the agent pipeline phases."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from src.memory.types import WorkspaceMemory
from src.tracker.types import Attachment, IssueComment, IssueDetail

ContextQuality = Literal["high", "medium", "low"]


class Command(str, Enum):
    SHOW_PREFERENCES = "show_preferences"
    FORGET_PREFERENCES = "forget_preferences"


@dataclass
class FetchedContent:
    """Outcome of fetching one linked URL."""

    url: str
    content: str = ""
    truncated: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.content)


@dataclass
class ProcessedImage:
    url: str
    base64: str
    mime_type: str
    size: int

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


@dataclass
class ProposedStructure:
    sections: list[str] = field(default_factory=lambda: ["Content"])
    format: str = "markdown"
    organization: str = "single section"


@dataclass
class ContentPlan:
    content_type: str
    reasoning: str
    proposed_structure: ProposedStructure
    key_requirements: list[str] = field(default_factory=list)
    approach: str = "Generate content based on issue description"
    considerations: list[str] = field(default_factory=list)


@dataclass
class ResearchSummary:
    key_facts: list[str] = field(default_factory=list)
    tone_indicators: list[str] = field(default_factory=list)
    audience_context: str = ""
    content_requirements: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)
    synthesized_info: str = ""


@dataclass
class PlanAndResearch:
    plan: ContentPlan
    research: ResearchSummary
    used_fallback: bool = False


@dataclass
class ContextAnalysis:
    is_sufficient: bool
    quality: ContextQuality
    missing_information: list[str] = field(default_factory=list)
    elicitation_question: str | None = None
    reasoning: str = ""


@dataclass
class AgentContext:
    """Everything gathered for one session invocation. Never persisted."""

    issue: IssueDetail
    memory: WorkspaceMemory
    session_id: str
    workspace_id: str
    external_content: list[FetchedContent] = field(default_factory=list)
    images: list[ProcessedImage] = field(default_factory=list)

    @property
    def attachments(self) -> list[Attachment]:
        return self.issue.attachments

    @property
    def comments(self) -> list[IssueComment]:
        return self.issue.comments
