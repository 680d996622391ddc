"""Tests for language-model enrichment."""

import json

import pytest

from tests.conftest import FakeCompletion, make_item, score_by_title
from tracker_hub.config import EnrichmentSettings
from tracker_hub.result_processing.enrichment import Enricher


@pytest.fixture
def items():
    return [
        make_item("Alpha", "https://a.com"),
        make_item("Beta", "https://b.com"),
        make_item("Gamma", "https://c.com"),
    ]


@pytest.mark.asyncio
async def test_enrich_applies_scores_summaries_and_tags(items):
    completion = FakeCompletion(score_by_title({"Alpha": 8, "Beta": 3, "Gamma": 5}))
    enricher = Enricher(completion)

    enriched = await enricher.enrich(items, "Track launches")

    assert [item.relevance for item in enriched] == [8, 3, 5]
    assert enriched[0].summary == "About Alpha"
    assert enriched[0].tags == ["tag"]
    assert enriched[0].sentiment == "neutral"
    assert all(item.enriched for item in enriched)
    # Originals untouched
    assert items[0].relevance is None


@pytest.mark.asyncio
async def test_prompt_and_items_are_sent(items):
    completion = FakeCompletion(score_by_title({}))

    await Enricher(completion).enrich(items, "Track launches")

    system, payload = completion.calls[0]
    assert "Track launches" in system
    assert [entry["title"] for entry in json.loads(payload)] == ["Alpha", "Beta", "Gamma"]


@pytest.mark.asyncio
async def test_invalid_json_returns_items_unchanged(items):
    enricher = Enricher(FakeCompletion("this is not json"))

    enriched = await enricher.enrich(items, "Track launches")

    assert enriched == items
    assert enricher.get_metrics()["failed_batches"] == 1


@pytest.mark.asyncio
async def test_wrong_shape_returns_items_unchanged(items):
    enricher = Enricher(FakeCompletion({"results": [{"index": 0, "score": 42}]}))

    enriched = await enricher.enrich(items, "Track launches")

    assert enriched == items


@pytest.mark.asyncio
async def test_completion_failure_returns_items_unchanged(items, failing_completion):
    enriched = await Enricher(failing_completion).enrich(items, "Track launches")

    assert enriched == items


@pytest.mark.asyncio
async def test_items_missing_from_answer_stay_unenriched(items):
    completion = FakeCompletion(score_by_title({"Beta": 9}))

    enriched = await Enricher(completion).enrich(items, "Track launches")

    assert [item.relevance for item in enriched] == [None, 9, None]


@pytest.mark.asyncio
async def test_items_are_batched():
    many = [make_item(f"Item {i}", f"https://example.com/{i}") for i in range(23)]
    scores = {f"Item {i}": i % 10 for i in range(23)}
    completion = FakeCompletion(score_by_title(scores))
    enricher = Enricher(completion, config=EnrichmentSettings(batch_size=10))

    enriched = await enricher.enrich(many, "prompt")

    assert len(completion.calls) == 3
    assert [item.title for item in enriched] == [item.title for item in many]
    assert [item.relevance for item in enriched] == [i % 10 for i in range(23)]


@pytest.mark.asyncio
async def test_one_failed_batch_does_not_affect_others():
    many = [make_item(f"Item {i}", f"https://example.com/{i}") for i in range(4)]
    completion = FakeCompletion(
        score_by_title({"Item 0": 7, "Item 1": 6}), "garbage"
    )
    enricher = Enricher(
        completion, config=EnrichmentSettings(batch_size=2, max_concurrent_batches=1)
    )

    enriched = await enricher.enrich(many, "prompt")

    assert [item.relevance for item in enriched] == [7, 6, None, None]


@pytest.mark.asyncio
async def test_tags_are_capped_and_cleaned(items):
    completion = FakeCompletion(
        {
            "results": [
                {
                    "index": 0,
                    "score": 4,
                    "tags": ["a", " ", "b", "c", "d", "e", "f"],
                    "sentiment": " POSITIVE ",
                }
            ]
        }
    )

    enriched = await Enricher(completion).enrich(items[:1], "prompt")

    assert enriched[0].tags == ["a", "b", "c", "d", "e"]
    assert enriched[0].sentiment == "positive"
    assert enriched[0].summary is None


@pytest.mark.asyncio
async def test_without_completion_or_when_disabled_items_pass_through(items):
    assert await Enricher(None).enrich(items, "prompt") is items

    completion = FakeCompletion(score_by_title({"Alpha": 1}))
    disabled = Enricher(completion, config=EnrichmentSettings(enabled=False))
    assert await disabled.enrich(items, "prompt") is items
    assert completion.calls == []
