"""Tests for tracker lifecycle orchestration."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from tests.conftest import FakeAdapter, FakeCompletion, make_item, score_by_title
from tracker_hub.models.base import RunStatus
from tracker_hub.models.tracker import RunTrigger, Tracker, TrackerConfig
from tracker_hub.result_processing.enrichment import Enricher
from tracker_hub.storage.memory import InMemoryTrackerRepository
from tracker_hub.trackers.pipeline import TrackerPipeline
from tracker_hub.trackers.prompt_parser import PromptParser
from tracker_hub.trackers.service import TrackerService
from tracker_hub.utils.errors import (
    PersistenceError,
    RunInProgressError,
    TrackerConfigurationError,
    TrackerNotFoundError,
    TrackerPermissionError,
)

PARSED = {
    "name": "AI Tools",
    "description": "New AI tools on Product Hunt.",
    "sources": ["product hunt"],
    "queries": ["AI tools Product Hunt", "new AI launches"],
}


@pytest.fixture
def repository():
    return InMemoryTrackerRepository()


@pytest.fixture
def adapters():
    return [
        FakeAdapter(
            "firecrawl",
            [
                make_item("Tool A", "https://a.com", "firecrawl", images=["a.png"]),
                make_item("Tool B", "https://b.com", "firecrawl"),
            ],
        ),
        FakeAdapter("exa", [make_item("Tool C", "https://c.com", "exa")]),
    ]


@pytest.fixture
def service(settings, repository, adapters):
    completion = FakeCompletion(
        PARSED, score_by_title({"Tool A": 4, "Tool B": 9, "Tool C": 7})
    )
    pipeline = TrackerPipeline(
        adapters,
        enricher=Enricher(completion, config=settings.enrichment),
        settings=settings,
    )
    return TrackerService(
        repository,
        pipeline,
        parser=PromptParser(completion),
        settings=settings,
    )


@pytest.mark.asyncio
async def test_create_tracker_from_prompt(service, repository):
    tracker = await service.create_tracker("Monitor AI tools on Product Hunt")

    assert tracker.name == "AI Tools"
    assert tracker.description == "New AI tools on Product Hunt."
    assert tracker.config.queries == PARSED["queries"]
    assert tracker.config.platforms == ["product hunt"]
    assert tracker.is_public is True
    assert tracker.schedule == "0 9 * * *"
    assert await repository.get_tracker(tracker.id) == tracker


@pytest.mark.asyncio
async def test_explicit_fields_override_parsed_ones(service):
    tracker = await service.create_tracker(
        "Monitor AI tools", name="Mine", is_public=False, owner_id="u1"
    )

    assert tracker.name == "Mine"
    assert tracker.is_public is False
    assert tracker.owner_id == "u1"


@pytest.mark.asyncio
async def test_create_with_blank_prompt_fails(service, repository):
    with pytest.raises(TrackerConfigurationError):
        await service.create_tracker("   ")

    assert repository.trackers == {}


@pytest.mark.asyncio
async def test_run_tracker_completes_and_persists(service, repository):
    tracker = await service.create_tracker("Monitor AI tools on Product Hunt")

    outcome = await service.run_tracker(tracker.id)

    assert outcome.status == RunStatus.COMPLETED
    run = await repository.get_run(outcome.run.id)
    assert run.status == RunStatus.COMPLETED
    assert run.completed_at is not None
    assert run.error is None
    assert run.metadata.results_count == 3

    stored = await repository.list_results(run.id)
    assert [r.title for r in stored] == ["Tool A", "Tool B", "Tool C"]
    assert (await repository.get_tracker(tracker.id)).last_run_at is not None


@pytest.mark.asyncio
async def test_feed_lists_latest_results_by_score(service):
    tracker = await service.create_tracker("Monitor AI tools on Product Hunt")
    await service.run_tracker(tracker.id)
    second = await service.run_tracker(tracker.id)

    feed = await service.get_tracker_with_results(tracker.id)

    assert feed.latest_run.id == second.run.id
    assert [r.score for r in feed.results] == [9, 7, 4]


@pytest.mark.asyncio
async def test_feed_without_runs_is_empty(service):
    tracker = await service.create_tracker("Monitor AI tools")

    feed = await service.get_tracker_with_results(tracker.id)

    assert feed.latest_run is None
    assert feed.results == []


@pytest.mark.asyncio
async def test_private_feed_requires_owner(service):
    tracker = await service.create_tracker(
        "Monitor AI tools", is_public=False, owner_id="owner"
    )

    with pytest.raises(TrackerPermissionError):
        await service.get_tracker_with_results(tracker.id, viewer_id="stranger")
    feed = await service.get_tracker_with_results(tracker.id, viewer_id="owner")
    assert feed.tracker.id == tracker.id


@pytest.mark.asyncio
async def test_run_missing_tracker(service):
    with pytest.raises(TrackerNotFoundError):
        await service.run_tracker("missing")


@pytest.mark.asyncio
async def test_unrunnable_config_creates_no_run(service, repository):
    tracker = Tracker(name="broken", prompt="", config=TrackerConfig(prompt=""))
    await repository.create_tracker(tracker)

    with pytest.raises(TrackerConfigurationError):
        await service.run_tracker(tracker.id)

    assert repository.runs == {}
    assert not service.is_running(tracker.id)


@pytest.mark.asyncio
async def test_persistence_failure_marks_run_failed(service, repository):
    tracker = await service.create_tracker("Monitor AI tools")
    repository.save_results = AsyncMock(
        side_effect=PersistenceError("disk full", operation="save_results")
    )

    outcome = await service.run_tracker(tracker.id)

    assert outcome.status == RunStatus.FAILED
    assert outcome.results == []
    run = await repository.get_run(outcome.run.id)
    assert run.status == RunStatus.FAILED
    assert run.error.startswith("Tracker run failed")
    assert "disk full" in run.error
    assert await repository.get_latest_completed_run(tracker.id) is None


@pytest.mark.asyncio
async def test_failed_final_update_still_reports_failure(service, repository):
    tracker = await service.create_tracker("Monitor AI tools")
    original_update = repository.update_run

    async def fail_on_completion(run):
        if run.status == RunStatus.COMPLETED:
            raise PersistenceError("write rejected", operation="update_run")
        return await original_update(run)

    repository.update_run = fail_on_completion

    outcome = await service.run_tracker(tracker.id)

    assert outcome.status == RunStatus.FAILED
    assert (await repository.get_run(outcome.run.id)).status == RunStatus.FAILED


@pytest.mark.asyncio
async def test_all_adapters_failing_completes_with_no_results(
    service, repository, adapters
):
    for adapter in adapters:
        adapter.error = "unavailable"
    tracker = await service.create_tracker("Monitor AI tools")

    outcome = await service.run_tracker(tracker.id)

    assert outcome.status == RunStatus.COMPLETED
    assert outcome.results == []
    assert (await repository.get_run(outcome.run.id)).metadata.failed_sources


@pytest.mark.asyncio
async def test_concurrent_run_of_same_tracker_is_rejected(service, adapters):
    tracker = await service.create_tracker("Monitor AI tools")
    release = asyncio.Event()
    original_search = adapters[0].search

    async def slow_search(query, limit):
        await release.wait()
        return await original_search(query, limit)

    adapters[0].search = slow_search

    first = asyncio.create_task(service.run_tracker(tracker.id))
    await asyncio.sleep(0.01)
    assert service.is_running(tracker.id)

    with pytest.raises(RunInProgressError):
        await service.run_tracker(tracker.id)

    release.set()
    outcome = await first
    assert outcome.status == RunStatus.COMPLETED
    assert not service.is_running(tracker.id)


@pytest.mark.asyncio
async def test_handle_trigger_runs_tracker(service):
    tracker = await service.create_tracker("Monitor AI tools")

    outcome = await service.handle_trigger(RunTrigger(tracker_id=tracker.id))

    assert outcome.run.tracker_id == tracker.id
    assert outcome.status == RunStatus.COMPLETED


@pytest.mark.asyncio
async def test_update_tracker_reparses_prompt(service, settings):
    tracker = await service.create_tracker("Monitor AI tools", owner_id="u1")
    service.parser = PromptParser(None)

    updated = await service.update_tracker(
        tracker.id, owner_id="u1", prompt="Track vintage cameras", is_public=False
    )

    assert updated.prompt == "Track vintage cameras"
    assert updated.config.queries == ["Track vintage cameras"]
    assert updated.is_public is False
    assert updated.name == "AI Tools"
    assert updated.updated_at >= tracker.updated_at


@pytest.mark.asyncio
async def test_update_by_other_user_is_rejected(service):
    tracker = await service.create_tracker("Monitor AI tools", owner_id="u1")

    with pytest.raises(TrackerPermissionError):
        await service.update_tracker(tracker.id, owner_id="u2", name="stolen")


@pytest.mark.asyncio
async def test_delete_tracker_cascades(service, repository):
    tracker = await service.create_tracker("Monitor AI tools", owner_id="u1")
    outcome = await service.run_tracker(tracker.id)

    with pytest.raises(TrackerPermissionError):
        await service.delete_tracker(tracker.id, owner_id="u2")

    await service.delete_tracker(tracker.id, owner_id="u1")

    assert await repository.get_tracker(tracker.id) is None
    assert await repository.get_run(outcome.run.id) is None
    assert await repository.list_results(outcome.run.id) == []


@pytest.mark.asyncio
async def test_list_public_trackers_hides_private_ones(service):
    public = await service.create_tracker("Monitor AI tools")
    await service.create_tracker("Monitor AI tools", is_public=False, owner_id="u")

    listed = await service.list_public_trackers()

    assert [tracker.id for tracker in listed] == [public.id]
