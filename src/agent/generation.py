"""Draft generation from the plan, research summary and workspace memory."""

import logging

from src.agent.prompts import generation_system_prompt, generation_user_prompt
from src.agent.types import AgentContext, ContentPlan, ResearchSummary
from src.common.response_formatter import format_response
from src.llm.client import TextGenerator

logger = logging.getLogger(__name__)


async def generate_content(
    llm: TextGenerator,
    context: AgentContext,
    plan: ContentPlan,
    research: ResearchSummary,
) -> str:
    """
    Write the draft and clean it up for posting.

    Returns:
        Formatted markdown ready to post as the session response.
    """
    raw = await llm.generate(
        generation_system_prompt(context, plan, research),
        generation_user_prompt(context),
        context.images or None,
    )
    content = format_response(raw)
    logger.info("Generated draft: raw_chars=%d formatted_chars=%d", len(raw), len(content))
    return content
