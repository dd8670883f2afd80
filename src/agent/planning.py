"""
src/agent/planning.py
One LLM call that produces both the content plan and the research summary.
Exports: plan_and_research, plan_from_json, research_from_json, parse_research_text, fallback_plan
"""

import logging
import re
from typing import Any

from src.agent.prompts import plan_research_system_prompt, plan_research_user_prompt
from src.agent.types import AgentContext, ContentPlan, PlanAndResearch, ProposedStructure, ResearchSummary
from src.llm.client import TextGenerator
from src.llm.parsing import Failed, coerce_str, coerce_str_list, parse_llm_json
from src.shared import safe_dict

logger = logging.getLogger(__name__)

REQUIRED_PLAN_FIELDS = ("contentType", "reasoning", "proposedStructure")
BULLET_RE = re.compile(r"^[-•*]\s+")


def fallback_plan() -> ContentPlan:
    """Generic one-section markdown plan used whenever the structured answer is unusable."""
    return ContentPlan(
        content_type="generic content",
        reasoning="Unable to parse response, using generic structure",
        proposed_structure=ProposedStructure(),
        key_requirements=["Address the issue requirements"],
        approach="Generate content based on issue description",
        considerations=["Parsing error occurred"],
    )


def _structure_from_json(value: Any) -> ProposedStructure:
    data = safe_dict(value)
    sections = coerce_str_list(data.get("sections")) or ["Content"]
    return ProposedStructure(
        sections=sections,
        format=coerce_str(data.get("format"), "markdown"),
        organization=coerce_str(data.get("organization"), "single section"),
    )


def plan_from_json(data: dict[str, Any]) -> ContentPlan | None:
    """Return the plan, or None when a required field is missing or empty."""
    if any(not data.get(name) for name in REQUIRED_PLAN_FIELDS):
        return None
    if not isinstance(data.get("proposedStructure"), dict):
        return None
    return ContentPlan(
        content_type=coerce_str(data.get("contentType"), "generic content"),
        reasoning=coerce_str(data.get("reasoning"), "Content structure determined"),
        proposed_structure=_structure_from_json(data.get("proposedStructure")),
        key_requirements=coerce_str_list(data.get("keyRequirements")),
        approach=coerce_str(data.get("approach"), "Generate content based on issue description"),
        considerations=coerce_str_list(data.get("considerations")),
    )


def research_from_json(data: dict[str, Any], raw: str) -> ResearchSummary:
    return ResearchSummary(
        key_facts=coerce_str_list(data.get("keyFacts")),
        tone_indicators=coerce_str_list(data.get("toneIndicators")),
        audience_context=coerce_str(data.get("audienceContext")),
        content_requirements=coerce_str_list(data.get("contentRequirements")),
        constraints=coerce_str_list(data.get("constraints")),
        synthesized_info=coerce_str(data.get("synthesizedInfo"), raw),
    )


def _section_for(lower: str) -> str | None:
    if "key facts" in lower or "facts:" in lower:
        return "facts"
    if "tone" in lower or "style" in lower:
        return "tone"
    if "audience" in lower:
        return "audience"
    if "requirements" in lower or "needs" in lower:
        return "requirements"
    if "constraints" in lower or "limitations" in lower:
        return "constraints"
    return None


def parse_research_text(text: str) -> ResearchSummary:
    """
    Recover a research summary from a prose answer.

    Heading-like lines switch the current section; bullet lines are collected
    into it and free lines under an audience heading form the audience context.
    The raw text is always kept as `synthesized_info`.
    """
    summary = ResearchSummary(synthesized_info=text)
    targets = {
        "facts": summary.key_facts,
        "tone": summary.tone_indicators,
        "requirements": summary.content_requirements,
        "constraints": summary.constraints,
    }
    audience: list[str] = []
    current = ""
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        bullet = BULLET_RE.match(stripped)
        is_bullet = bullet is not None
        section = None if is_bullet else _section_for(stripped.lower())
        if section:
            current = section
        elif is_bullet:
            item = stripped[bullet.end() :].strip()
            if item and current in targets:
                targets[current].append(item)
            elif item and current == "audience":
                audience.append(item)
        elif current == "audience":
            audience.append(stripped)
    summary.audience_context = " ".join(audience)
    return summary


async def plan_and_research(llm: TextGenerator, context: AgentContext) -> PlanAndResearch:
    """
    Run the combined planning+research call and decode it.

    Args:
        llm: Text generator.
        context: Gathered issue context, images and fetched links.
    Returns:
        PlanAndResearch; `used_fallback` is True when the generic plan was used.
    Raises:
        Exception: Whatever the LLM client raises; parse problems never raise.
    """
    response = await llm.generate(
        plan_research_system_prompt(context),
        plan_research_user_prompt(context),
        context.images or None,
    )
    result = parse_llm_json(response)
    if isinstance(result, Failed):
        logger.warning("Planning response was not JSON; recovering research from text.")
        return PlanAndResearch(plan=fallback_plan(), research=parse_research_text(result.raw), used_fallback=True)

    plan = plan_from_json(result.data)
    if plan is None:
        logger.warning("Planning response missing required plan fields; using generic plan.")
        return PlanAndResearch(
            plan=fallback_plan(),
            research=ResearchSummary(synthesized_info=result.raw),
            used_fallback=True,
        )
    logger.info(
        "Planned '%s' with sections %s (%s).",
        plan.content_type,
        plan.proposed_structure.sections,
        type(result).__name__,
    )
    return PlanAndResearch(plan=plan, research=research_from_json(result.data, result.raw))
