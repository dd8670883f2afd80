"""Prompt builders for the sufficiency, planning+research and generation calls."""

import json

from src.agent.types import AgentContext, ContentPlan, FetchedContent, ResearchSummary
from src.memory.types import WorkspaceMemory
from src.tracker.types import IssueComment

EXTERNAL_EXCERPT_CHARS = 2000
SOURCE_SEPARATOR = "\n\n---\n\n"
THREAD_HEADER_PREFIX = "This thread is for an agent session"


def filter_user_comments(comments: list[IssueComment]) -> list[IssueComment]:
    """Drop the agent's own comments, anonymous comments and session thread headers."""
    return [
        comment
        for comment in comments
        if comment.user is not None
        and comment.user.name
        and not comment.user.is_me
        and not comment.body.strip().startswith(THREAD_HEADER_PREFIX)
    ]


def _successful(external: list[FetchedContent]) -> list[FetchedContent]:
    return [item for item in external if item.ok]


def memory_block(memory: WorkspaceMemory) -> str:
    if memory.is_empty():
        return ""
    return (
        "\n\nMEMORY CONTEXT:\n"
        f"Style Preferences: {json.dumps(memory.style_preferences, indent=2)}\n"
        f"Anti-patterns to avoid: {', '.join(memory.anti_patterns)}"
    )


def project_block(project_name: str, project_description: str) -> str:
    if not project_name and not project_description:
        return ""
    return (
        "\n\nPROJECT CONTEXT:\n"
        f"Project: {project_name or 'N/A'}\n"
        f"Description: {project_description or 'N/A'}"
    )


SUFFICIENCY_SYSTEM_PROMPT = (
    "You are an expert at analyzing whether an issue has sufficient context for content generation.\n\n"
    "Your task is to evaluate:\n"
    "1. Does the issue have enough information to generate useful content?\n"
    "2. What is the quality of the provided context?\n"
    "3. What information might be missing?\n"
    "4. If insufficient, what question would help clarify?\n\n"
    "Think about:\n"
    "- Is the intent clear?\n"
    "- Are there enough details to create meaningful content?\n"
    "- Could you generate something useful with what's provided?\n"
    "- What would make this better?\n\n"
    "Respond with JSON:\n"
    "{\n"
    '  "isSufficient": true/false,\n'
    '  "quality": "high" | "medium" | "low",\n'
    '  "missingInformation": ["item1", "item2"],\n'
    '  "elicitationQuestion": "question to ask if insufficient",\n'
    '  "reasoning": "why you made this assessment"\n'
    "}"
)


def sufficiency_user_prompt(
    *,
    title: str,
    description: str,
    project_name: str,
    attachment_count: int,
    link_count: int,
    comment_count: int,
) -> str:
    lines = [
        "Analyze this issue:",
        "",
        f"Title: {title}",
        f"Description: {description or '(No description)'}",
        f"Project: {project_name or 'N/A'}",
    ]
    if attachment_count:
        lines.append(f"Attachments: {attachment_count} attached")
    if link_count:
        lines.append(f"External links: {link_count} provided")
    if comment_count:
        lines.append(f"Comments: {comment_count} available")
    lines.extend(["", "Is there sufficient context to generate useful content?"])
    return "\n".join(lines)


PLAN_RESEARCH_OUTPUT_FORMAT = (
    "OUTPUT FORMAT:\n"
    "You must respond with a valid JSON object combining both planning and research:\n"
    "{\n"
    '  "contentType": "description of content type",\n'
    '  "reasoning": "why this content type and structure makes sense",\n'
    '  "proposedStructure": {\n'
    '    "sections": ["section1", "section2"],\n'
    '    "format": "description of format",\n'
    '    "organization": "how content should be organized"\n'
    "  },\n"
    '  "keyRequirements": ["requirement1", "requirement2"],\n'
    '  "approach": "generation strategy",\n'
    '  "considerations": ["note1", "note2"],\n'
    '  "keyFacts": ["fact1", "fact2"],\n'
    '  "toneIndicators": ["indicator1", "indicator2"],\n'
    '  "audienceContext": "description of target audience",\n'
    '  "contentRequirements": ["requirement1", "requirement2"],\n'
    '  "constraints": ["constraint1", "constraint2"],\n'
    '  "synthesizedInfo": "overall synthesis of all information"\n'
    "}"
)


def plan_research_system_prompt(context: AgentContext) -> str:
    """Build the combined planning+research instruction with every gathered source."""
    issue = context.issue
    comments = filter_user_comments(context.comments)
    fetched = _successful(context.external_content)

    sources: list[str] = []
    if issue.description:
        sources.append(f"ISSUE DESCRIPTION:\n{issue.description}")
    if fetched:
        excerpts = "\n\n".join(
            f"From {item.url}{' (truncated)' if item.truncated else ''}:\n{item.content[:EXTERNAL_EXCERPT_CHARS]}"
            for item in fetched
        )
        sources.append(f"EXTERNAL CONTENT:\n{excerpts}")
    if comments:
        comment_text = "\n\n".join(f"{comment.user.name}: {comment.body}" for comment in comments if comment.user)
        sources.append(f"COMMENTS:\n{comment_text}")

    resources: list[str] = []
    if context.images:
        resources.append(f"{len(context.images)} image(s) attached")
    if fetched:
        resources.append(f"{len(fetched)} external link(s) provided")
    if comments:
        resources.append(f"{len(comments)} user comment(s) with additional context")
    resources_block = "\n\nAVAILABLE RESOURCES:\n" + "\n".join(resources) if resources else ""

    return (
        "You are an expert content strategist analyzing a Linear issue to determine the optimal content "
        "structure AND synthesize all relevant information in a single pass.\n\n"
        "Your role is to:\n"
        "1. Analyze the issue requirements and determine what content structure makes the most sense\n"
        "2. Synthesize all available information from the context sources\n"
        "3. Provide both a content plan AND a research summary\n\n"
        f"CONTEXT:{memory_block(context.memory)}"
        f"{project_block(issue.project_name, issue.project_description)}{resources_block}\n\n"
        "AVAILABLE INFORMATION SOURCES:\n"
        f"{SOURCE_SEPARATOR.join(sources) or '(none)'}\n\n"
        "TASK - PART 1: PLANNING\n"
        "1. Analyze the issue requirements and understand what the user needs\n"
        "2. Determine what type of content would best serve this need "
        '(e.g., "social media post", "documentation", "email campaign", "UI copy")\n'
        "3. Reason about the optimal structure and organization for this content\n"
        "4. Identify what sections/components would be most helpful\n"
        "5. Plan the generation approach\n"
        "6. Note any special considerations\n\n"
        "TASK - PART 2: RESEARCH\n"
        "1. Extract key facts and details from all available sources\n"
        "2. Identify tone and style indicators (formal, casual, technical, etc.)\n"
        "3. Determine audience context (who is this for, what do they need to know)\n"
        "4. Identify content requirements (what the content needs to accomplish)\n"
        "5. Note constraints and preferences (what to avoid, what to emphasize)\n\n"
        f"{PLAN_RESEARCH_OUTPUT_FORMAT}\n\n"
        "Be specific, thoughtful, and efficient. Combine planning and research insights in one response."
    )


def plan_research_user_prompt(context: AgentContext) -> str:
    issue = context.issue
    return (
        "Analyze this issue and provide both a content plan and research summary:\n\n"
        f"Issue Title: {issue.title}\n\n"
        "Issue Description:\n"
        f"{issue.description or '(No description provided)'}\n\n"
        "Think step by step about:\n"
        "1. What the user actually needs\n"
        "2. What type of content would best serve this need\n"
        "3. What structure and organization would be most helpful\n"
        "4. What information from the context sources is relevant\n"
        "5. What tone and style would be appropriate\n"
        "6. Who is the audience and what do they need\n\n"
        "Respond with the combined JSON object as specified in the system prompt."
    )


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else "- (none)"


def generation_system_prompt(context: AgentContext, plan: ContentPlan, research: ResearchSummary) -> str:
    """Build the drafting instruction embedding the full plan, research and memory."""
    memory = context.memory
    structure = plan.proposed_structure
    anti_pattern_rule = (
        f"- Avoid these anti-patterns: {', '.join(memory.anti_patterns)}\n" if memory.anti_patterns else ""
    )
    return (
        "You are a casual, collaborative copywriting assistant integrated into Linear. "
        "Your role is to generate first drafts of content based on issue assignments.\n\n"
        "PERSONALITY:\n"
        "- Casual collaborator tone - friendly but professional\n"
        "- Concise communication - no fluff\n"
        "- Helpful and creative"
        f"{memory_block(memory)}"
        f"{project_block(context.issue.project_name, context.issue.project_description)}\n\n"
        "CONTENT PLAN:\n"
        f"Content type: {plan.content_type}\n"
        f"Reasoning: {plan.reasoning}\n"
        f"Sections (in order): {', '.join(structure.sections)}\n"
        f"Format: {structure.format}\n"
        f"Organization: {structure.organization}\n"
        f"Approach: {plan.approach}\n"
        f"Key requirements:\n{_bullets(plan.key_requirements)}\n"
        f"Considerations:\n{_bullets(plan.considerations)}\n\n"
        "RESEARCH SUMMARY:\n"
        f"Key facts:\n{_bullets(research.key_facts)}\n"
        f"Tone indicators:\n{_bullets(research.tone_indicators)}\n"
        f"Audience: {research.audience_context or 'N/A'}\n"
        f"Content requirements:\n{_bullets(research.content_requirements)}\n"
        f"Constraints:\n{_bullets(research.constraints)}\n"
        f"Synthesis: {research.synthesized_info or 'N/A'}\n\n"
        "GUIDELINES:\n"
        "- Render the content using exactly the planned sections and organization\n"
        "- Use casual, engaging language unless memory preferences indicate otherwise\n"
        f"{anti_pattern_rule}"
        "- Analyze any provided images carefully for context\n"
        "- Be creative but stay on-brand based on project context\n"
        "- Output should be ready to use with minimal editing\n"
        "- Start directly with the content; no preamble and no closing remarks\n\n"
        "Format your response as markdown with a clear heading per section."
    )


def generation_user_prompt(context: AgentContext) -> str:
    issue = context.issue
    fetched = _successful(context.external_content)
    linked = ""
    if fetched:
        pages = "\n\n".join(
            f"From {item.url}{' (truncated to first portion)' if item.truncated else ''}:\n{item.content}"
            for item in fetched
        )
        linked = f"\n\nLinked pages:\n{pages}"
    return (
        f"Issue Title: {issue.title}\n\n"
        "Issue Description:\n"
        f"{issue.description or '(No description provided)'}"
        f"{linked}\n\n"
        "Generate the content as planned above."
    )


def build_assumptions_note(
    *,
    project_name: str,
    content_type: str,
    memory: WorkspaceMemory,
    sections: list[str],
    failed_urls: list[str] | None = None,
) -> str:
    """
    Summarize what the draft assumed, for the final progress thought.

    Args:
        project_name: Issue project name, omitted when empty.
        content_type: Planned content type.
        memory: Workspace memory; tone defaults to casual.
        sections: Planned section names.
        failed_urls: Links that could not be fetched.
    Returns:
        Two-line summary, plus a `Note: Couldn't access ...` line when links failed.
    """
    assumptions: list[str] = []
    if project_name:
        assumptions.append(project_name)
    assumptions.append(content_type)
    tone = memory.style_preferences.get("tone")
    assumptions.append(f"{tone or 'casual'} tone")
    note = f"Assumptions: {', '.join(assumptions)}\nDelivering: {', '.join(sections)}"
    if failed_urls:
        note += f"\nNote: Couldn't access {', '.join(failed_urls)}"
    return note
