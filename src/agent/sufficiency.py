"""
src/agent/sufficiency.py
LLM-judged check that an issue carries enough context to draft from.
Exports: analyze_context_sufficiency, fallback_analysis, build_elicitation_question, INSUFFICIENT_CONTEXT_MESSAGE
"""

import logging
from typing import Any

from src.agent.prompts import SUFFICIENCY_SYSTEM_PROMPT, filter_user_comments, sufficiency_user_prompt
from src.agent.types import ContextAnalysis
from src.llm.client import TextGenerator
from src.llm.parsing import Failed, coerce_str, coerce_str_list, parse_llm_json
from src.tracker.types import IssueDetail

logger = logging.getLogger(__name__)

INSUFFICIENT_CONTEXT_MESSAGE = "Hey! I need a bit more info. What kind of draft are you looking for?"
FALLBACK_ELICITATION_QUESTION = (
    "What kind of content are you looking for? Can you provide more details about what you need?"
)
FALLBACK_REASONING = "Fallback analysis: checking for basic description"
MIN_DESCRIPTION_CHARS = 10
MIN_DESCRIPTION_WORDS = 4
QUALITIES = ("high", "medium", "low")


def fallback_analysis(description: str) -> ContextAnalysis:
    """
    Deterministic verdict used when the LLM path fails.

    Sufficient only when the trimmed description has at least
    MIN_DESCRIPTION_CHARS characters and MIN_DESCRIPTION_WORDS words.
    """
    text = (description or "").strip()
    sufficient = len(text) >= MIN_DESCRIPTION_CHARS and len(text.split()) >= MIN_DESCRIPTION_WORDS
    return ContextAnalysis(
        is_sufficient=sufficient,
        quality="medium" if sufficient else "low",
        missing_information=[] if sufficient else ["Issue description"],
        elicitation_question=FALLBACK_ELICITATION_QUESTION,
        reasoning=FALLBACK_REASONING,
    )


def analysis_from_json(data: dict[str, Any]) -> ContextAnalysis:
    """Build a verdict from decoded JSON; a missing `isSufficient` counts as sufficient."""
    quality = coerce_str(data.get("quality"), "medium").lower()
    return ContextAnalysis(
        is_sufficient=data.get("isSufficient") is not False,
        quality=quality if quality in QUALITIES else "medium",
        missing_information=coerce_str_list(data.get("missingInformation")),
        elicitation_question=coerce_str(data.get("elicitationQuestion")) or None,
        reasoning=coerce_str(data.get("reasoning"), "Context analysis completed"),
    )


async def analyze_context_sufficiency(
    llm: TextGenerator,
    issue: IssueDetail,
    *,
    link_count: int = 0,
) -> ContextAnalysis:
    """
    Ask the LLM whether the issue is actionable.

    Args:
        llm: Text generator.
        issue: Full issue detail.
        link_count: Number of URLs found in the description.
    Returns:
        ContextAnalysis; the deterministic fallback when the call or parse fails.
    """
    user_prompt = sufficiency_user_prompt(
        title=issue.title,
        description=issue.description,
        project_name=issue.project_name,
        attachment_count=len(issue.attachments),
        link_count=link_count,
        comment_count=len(filter_user_comments(issue.comments)),
    )
    try:
        response = await llm.generate(SUFFICIENCY_SYSTEM_PROMPT, user_prompt)
    except Exception as exc:
        logger.warning("Sufficiency call failed (%s); using fallback.", exc)
        return fallback_analysis(issue.description)
    result = parse_llm_json(response)
    if isinstance(result, Failed):
        logger.warning("Could not parse sufficiency verdict; using fallback. Response: %s", result.raw[:500])
        return fallback_analysis(issue.description)
    analysis = analysis_from_json(result.data)
    logger.info(
        "Context sufficiency: sufficient=%s quality=%s missing=%s",
        analysis.is_sufficient,
        analysis.quality,
        analysis.missing_information,
    )
    return analysis


def build_elicitation_question(analysis: ContextAnalysis) -> str:
    if analysis.elicitation_question:
        return analysis.elicitation_question
    if analysis.missing_information:
        return (
            "I need a bit more info to help you best. "
            f"{analysis.missing_information[0]} would be helpful. What kind of content are you looking for?"
        )
    return INSUFFICIENT_CONTEXT_MESSAGE
