"""
tests/test_sufficiency.py
Unit tests for src/agent/sufficiency.py — context sufficiency gate.
"""

import pytest


@pytest.mark.parametrize("description", ["", "   ", "Write a post", "a b c", "short"])
def test_fallback_three_words_or_fewer_is_insufficient(description):
    from src.agent.sufficiency import fallback_analysis

    analysis = fallback_analysis(description)

    assert analysis.is_sufficient is False
    assert analysis.quality == "low"
    assert analysis.missing_information == ["Issue description"]


def test_fallback_multi_sentence_description_is_sufficient():
    from src.agent.sufficiency import fallback_analysis

    analysis = fallback_analysis("We launched v2. Announce it to customers.")

    assert analysis.is_sufficient is True
    assert analysis.quality == "medium"
    assert analysis.reasoning == "Fallback analysis: checking for basic description"


@pytest.mark.asyncio
async def test_llm_verdict_is_parsed_from_fenced_json(llm_factory, issue_factory):
    from src.agent.sufficiency import analyze_context_sufficiency

    llm = llm_factory(
        [
            '```json\n{"isSufficient": false, "quality": "low", "missingInformation": ["Target audience"],'
            ' "reasoning": "Too vague"}\n```'
        ]
    )

    analysis = await analyze_context_sufficiency(llm, issue_factory(), link_count=2)

    assert analysis.is_sufficient is False
    assert analysis.missing_information == ["Target audience"]
    assert analysis.elicitation_question is None
    assert "External links: 2 provided" in llm.calls[0]["user"]


@pytest.mark.asyncio
async def test_missing_is_sufficient_defaults_to_true(llm_factory, issue_factory):
    from src.agent.sufficiency import analyze_context_sufficiency

    llm = llm_factory(['{"quality": "excellent"}'])

    analysis = await analyze_context_sufficiency(llm, issue_factory())

    assert analysis.is_sufficient is True
    assert analysis.quality == "medium"


@pytest.mark.asyncio
async def test_unparseable_verdict_uses_fallback(llm_factory, issue_factory):
    from src.agent.sufficiency import analyze_context_sufficiency

    llm = llm_factory(["Looks fine to me!"])

    analysis = await analyze_context_sufficiency(llm, issue_factory(description=""))

    assert analysis.is_sufficient is False
    assert analysis.reasoning.startswith("Fallback analysis")


@pytest.mark.asyncio
async def test_llm_error_uses_fallback(llm_factory, issue_factory):
    from src.agent.sufficiency import analyze_context_sufficiency
    from src.llm.client import LLMError

    llm = llm_factory([LLMError("empty")])

    analysis = await analyze_context_sufficiency(llm, issue_factory())

    assert analysis.is_sufficient is True


@pytest.mark.asyncio
async def test_comment_count_excludes_agent_and_thread_header(llm_factory, issue_factory):
    from src.agent.sufficiency import analyze_context_sufficiency
    from src.tracker.types import CommentUser, IssueComment

    comments = [
        IssueComment(id="1", body="Use the blue palette", user=CommentUser(id="u1", name="Sam")),
        IssueComment(id="2", body="Draft posted", user=CommentUser(id="bot", name="FirstDraft", is_me=True)),
        IssueComment(id="3", body="This thread is for an agent session with FirstDraft.", user=CommentUser(id="u2", name="Lin")),
        IssueComment(id="4", body="anonymous", user=None),
    ]
    llm = llm_factory(['{"isSufficient": true}'])

    await analyze_context_sufficiency(llm, issue_factory(comments=comments))

    assert "Comments: 1 available" in llm.calls[0]["user"]


def test_build_elicitation_question_precedence():
    from src.agent.sufficiency import INSUFFICIENT_CONTEXT_MESSAGE, build_elicitation_question
    from src.agent.types import ContextAnalysis

    asked = ContextAnalysis(is_sufficient=False, quality="low", elicitation_question="Who is this for?")
    missing = ContextAnalysis(is_sufficient=False, quality="low", missing_information=["Target audience"])
    bare = ContextAnalysis(is_sufficient=False, quality="low")

    assert build_elicitation_question(asked) == "Who is this for?"
    assert build_elicitation_question(missing) == (
        "I need a bit more info to help you best. Target audience would be helpful. "
        "What kind of content are you looking for?"
    )
    assert build_elicitation_question(bare) == INSUFFICIENT_CONTEXT_MESSAGE
