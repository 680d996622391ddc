"""Tests for turning prompts into tracker configurations."""

import pytest

from tests.conftest import FakeCompletion
from tracker_hub.llm.prompts import PARSE_PROMPT_SYSTEM
from tracker_hub.trackers.prompt_parser import PromptParser
from tracker_hub.utils.errors import TrackerConfigurationError

PROMPT = "Track Korean beauty trends from TikTok"


@pytest.mark.asyncio
async def test_parse_uses_completion_answer():
    completion = FakeCompletion(
        {
            "name": "Korean Beauty Trends",
            "description": "K-beauty trends on TikTok.",
            "sources": ["TikTok"],
            "queries": ["Korean beauty trends", "K-beauty skincare", "korean beauty trends"],
        }
    )

    parsed = await PromptParser(completion).parse(PROMPT)

    assert parsed.name == "Korean Beauty Trends"
    assert parsed.description == "K-beauty trends on TikTok."
    assert parsed.sources == ["tiktok"]
    assert parsed.queries == ["Korean beauty trends", "K-beauty skincare"]
    assert completion.calls == [(PARSE_PROMPT_SYSTEM, PROMPT)]


@pytest.mark.asyncio
async def test_queries_are_capped():
    completion = FakeCompletion(
        {"name": "n", "queries": [f"query {i}" for i in range(10)], "sources": []}
    )

    parsed = await PromptParser(completion, max_queries=3).parse(PROMPT)

    assert parsed.queries == ["query 0", "query 1", "query 2"]
    assert parsed.sources == ["web"]


@pytest.mark.asyncio
async def test_empty_query_list_falls_back_to_prompt():
    completion = FakeCompletion({"name": "n", "queries": ["  "]})

    parsed = await PromptParser(completion).parse(PROMPT)

    assert parsed.queries == [PROMPT]


@pytest.mark.asyncio
@pytest.mark.parametrize("answer", ["not json", '{"description": "no name"}'])
async def test_unusable_answer_falls_back(answer):
    parsed = await PromptParser(FakeCompletion(answer)).parse(PROMPT)

    assert parsed.name == PROMPT[:50]
    assert parsed.description == PROMPT
    assert parsed.sources == ["web"]
    assert parsed.queries == [PROMPT]


@pytest.mark.asyncio
async def test_completion_failure_falls_back(failing_completion):
    long_prompt = "Monitor " + "new AI tools on Product Hunt " * 5

    parsed = await PromptParser(failing_completion).parse(long_prompt)

    assert parsed.name == long_prompt.strip()[:50]
    assert parsed.queries == [long_prompt.strip()]


@pytest.mark.asyncio
async def test_no_completion_capability_falls_back():
    parsed = await PromptParser(None).parse(PROMPT)

    assert parsed.queries == [PROMPT]


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", ["", "   ", None])
async def test_blank_prompt_is_rejected(prompt):
    completion = FakeCompletion({"name": "n"})

    with pytest.raises(TrackerConfigurationError) as exc_info:
        await PromptParser(completion).parse(prompt)

    assert exc_info.value.details["field"] == "prompt"
    assert completion.calls == []
