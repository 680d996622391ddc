"""Tracker lifecycle orchestration.

TrackerService owns the run state machine (pending -> running -> completed or
failed) and is the only component that talks to the repository. Runs are
started directly or through a RunTrigger delivered by an external scheduler.
"""

import httpx

from ..config.settings import AppSettings, get_settings
from ..llm.client import OpenAICompletionClient
from ..models.base import RUN_TRANSITIONS, RunStatus
from ..models.interfaces import TrackerRepository
from ..models.tracker import (
    RunOutcome,
    RunTrigger,
    Tracker,
    TrackerConfig,
    TrackerFeed,
    TrackerResult,
    TrackerRun,
    utc_now,
)
from ..providers.factory import create_adapters
from ..result_processing.enrichment import Enricher
from ..result_processing.ranker import Ranker
from ..storage import create_repository
from ..utils.errors import (
    PersistenceError,
    RunInProgressError,
    TrackerNotFoundError,
    TrackerPermissionError,
)
from ..utils.logging import get_logger
from .pipeline import TrackerPipeline
from .prompt_parser import PromptParser

logger = get_logger(__name__)

RUN_FAILED_MESSAGE = "Tracker run failed"


class TrackerService:
    """Creates, runs, and serves trackers."""

    def __init__(
        self,
        repository: TrackerRepository,
        pipeline: TrackerPipeline,
        parser: PromptParser | None = None,
        settings: AppSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.repository = repository
        self.pipeline = pipeline
        self.parser = parser or PromptParser(
            max_queries=self.settings.pipeline.max_queries
        )
        self.http_client = http_client
        self._running: set[str] = set()

    async def create_tracker(
        self,
        prompt: str,
        name: str | None = None,
        description: str | None = None,
        is_public: bool = True,
        owner_id: str | None = None,
        schedule: str | None = None,
    ) -> Tracker:
        """Parse ``prompt`` and persist a new tracker.

        Raises:
            TrackerConfigurationError: if the prompt is blank
        """
        parsed = await self.parser.parse(prompt)

        tracker = Tracker(
            owner_id=owner_id,
            name=name or parsed.name,
            description=description or parsed.description,
            prompt=prompt.strip(),
            config=TrackerConfig(
                prompt=prompt.strip(),
                queries=parsed.queries,
                platforms=parsed.sources,
            ),
            is_public=is_public,
            schedule=schedule or self.settings.default_schedule,
        )
        created = await self.repository.create_tracker(tracker)
        logger.info(f"Created tracker {created.id} ({created.name})")
        return created

    async def run_tracker(self, tracker_id: str) -> RunOutcome:
        """Execute one run of a tracker and persist its results.

        Raises:
            RunInProgressError: if the tracker is already running in this process
            TrackerNotFoundError: if the tracker does not exist
            TrackerConfigurationError: if the tracker cannot be run; no run
                record is created in that case
        """
        if tracker_id in self._running:
            raise RunInProgressError(tracker_id)

        self._running.add(tracker_id)
        try:
            tracker = await self._load(tracker_id)
            tracker.config.validate_for_run()
            return await self._execute(tracker)
        finally:
            self._running.discard(tracker_id)

    def is_running(self, tracker_id: str) -> bool:
        return tracker_id in self._running

    async def _execute(self, tracker: Tracker) -> RunOutcome:
        run = await self.repository.create_run(TrackerRun(tracker_id=tracker.id))

        try:
            _transition(run, RunStatus.RUNNING)
            run = await self.repository.update_run(run)

            outcome = await self.pipeline.run(tracker.config, tracker.id, run.id)
            await self.repository.save_results(outcome.results)

            completed_at = utc_now()
            tracker.last_run_at = completed_at
            await self.repository.update_tracker(tracker)

            finished = run.model_copy(
                update={"completed_at": completed_at, "metadata": outcome.metadata}
            )
            _transition(finished, RunStatus.COMPLETED)
            run = await self.repository.update_run(finished)
        except Exception as e:
            logger.error(f"Run {run.id} of tracker {tracker.id} failed: {e}")
            return RunOutcome(run=await self._fail(run, e))

        logger.info(
            f"Run {run.id} of tracker {tracker.id} completed with "
            f"{len(outcome.results)} results"
        )
        return RunOutcome(run=run, results=outcome.results)

    async def _fail(self, run: TrackerRun, error: Exception) -> TrackerRun:
        _transition(run, RunStatus.FAILED)
        run.completed_at = utc_now()
        run.error = f"{RUN_FAILED_MESSAGE}: {error}"

        try:
            return await self.repository.update_run(run)
        except PersistenceError as e:
            logger.error(f"Could not record failure of run {run.id}: {e}")
            return run

    async def handle_trigger(self, trigger: RunTrigger) -> RunOutcome:
        """Entry point for scheduler messages."""
        logger.info(
            f"Received {trigger.reason} trigger for tracker {trigger.tracker_id} "
            f"(scheduled for {trigger.scheduled_for.isoformat()})"
        )
        return await self.run_tracker(trigger.tracker_id)

    async def get_tracker_with_results(
        self, tracker_id: str, viewer_id: str | None = None
    ) -> TrackerFeed:
        """Return a tracker with its latest completed run's results, best first.

        Private trackers are only visible to their owner.
        """
        tracker = await self._load(tracker_id)
        if not tracker.is_public and viewer_id != tracker.owner_id:
            raise TrackerPermissionError(
                tracker_id, message=f"Tracker '{tracker_id}' is private"
            )

        latest_run = await self.repository.get_latest_completed_run(tracker_id)
        if latest_run is None:
            return TrackerFeed(tracker=tracker)

        results = await self.repository.list_results(latest_run.id)
        return TrackerFeed(
            tracker=tracker, latest_run=latest_run, results=_by_score(results)
        )

    async def list_public_trackers(self, limit: int = 20) -> list[Tracker]:
        return await self.repository.list_public_trackers(limit=limit)

    async def update_tracker(
        self,
        tracker_id: str,
        owner_id: str | None = None,
        prompt: str | None = None,
        name: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
        schedule: str | None = None,
    ) -> Tracker:
        """Apply edits to a tracker; an edited prompt is parsed again."""
        tracker = await self._load_owned(tracker_id, owner_id)

        if prompt is not None and prompt.strip() != tracker.prompt:
            parsed = await self.parser.parse(prompt)
            tracker.prompt = prompt.strip()
            tracker.config = TrackerConfig(
                prompt=tracker.prompt,
                queries=parsed.queries,
                platforms=parsed.sources,
                adapters=tracker.config.adapters,
                results_per_query=tracker.config.results_per_query,
            )
            tracker.description = description or parsed.description
        elif description is not None:
            tracker.description = description

        if name is not None:
            tracker.name = name
        if is_public is not None:
            tracker.is_public = is_public
        if schedule is not None:
            tracker.schedule = schedule
        tracker.updated_at = utc_now()

        return await self.repository.update_tracker(tracker)

    async def delete_tracker(self, tracker_id: str, owner_id: str | None) -> None:
        """Delete a tracker with its runs and results."""
        await self._load_owned(tracker_id, owner_id)
        await self.repository.delete_tracker(tracker_id)
        logger.info(f"Deleted tracker {tracker_id}")

    async def close(self) -> None:
        """Release the shared HTTP client, if any."""
        if self.http_client is not None:
            await self.http_client.aclose()

    async def _load(self, tracker_id: str) -> Tracker:
        tracker = await self.repository.get_tracker(tracker_id)
        if tracker is None:
            raise TrackerNotFoundError(tracker_id)
        return tracker

    async def _load_owned(self, tracker_id: str, owner_id: str | None) -> Tracker:
        tracker = await self._load(tracker_id)
        if tracker.owner_id is not None and tracker.owner_id != owner_id:
            raise TrackerPermissionError(tracker_id, owner_id=owner_id)
        return tracker


def _transition(run: TrackerRun, status: RunStatus) -> None:
    if status not in RUN_TRANSITIONS[run.status]:
        raise ValueError(f"Invalid run transition {run.status.value} -> {status.value}")
    run.status = status


def _by_score(results: list[TrackerResult]) -> list[TrackerResult]:
    """Highest score first; unscored results last, each group in rank order."""
    by_rank = sorted(results, key=lambda result: result.rank)
    return sorted(
        by_rank,
        key=lambda result: (result.score is not None, result.score or 0.0),
        reverse=True,
    )


def create_tracker_service(settings: AppSettings | None = None) -> TrackerService:
    """Wire a TrackerService from settings with one shared HTTP client."""
    settings = settings or get_settings()
    client = httpx.AsyncClient(timeout=settings.llm.timeout)

    completion = None
    if settings.llm.api_key.get_secret_value():
        completion = OpenAICompletionClient(settings.llm, client=client)
    else:
        logger.warning("No LLM API key configured; enrichment and parsing disabled")

    pipeline = TrackerPipeline(
        create_adapters(settings, client=client),
        enricher=Enricher(completion, config=settings.enrichment),
        ranker=Ranker(config=settings.ranker),
        settings=settings,
    )
    return TrackerService(
        repository=create_repository(settings, client=client),
        pipeline=pipeline,
        parser=PromptParser(completion, max_queries=settings.pipeline.max_queries),
        settings=settings,
        http_client=client,
    )
