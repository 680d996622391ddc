"""In-process repository used by default and in tests."""

from ..models.base import RunStatus
from ..models.tracker import Tracker, TrackerResult, TrackerRun
from ..utils.errors import PersistenceError


class InMemoryTrackerRepository:
    """Dictionary-backed TrackerRepository.

    Records are copied on the way in and out so callers never share state with
    the store. Deleting a tracker removes its runs and their results.
    """

    def __init__(self):
        self.trackers: dict[str, Tracker] = {}
        self.runs: dict[str, TrackerRun] = {}
        self.results: dict[str, list[TrackerResult]] = {}

    async def create_tracker(self, tracker: Tracker) -> Tracker:
        if tracker.id in self.trackers:
            raise PersistenceError(
                f"Tracker '{tracker.id}' already exists", operation="create_tracker"
            )
        self.trackers[tracker.id] = tracker.model_copy(deep=True)
        return tracker.model_copy(deep=True)

    async def get_tracker(self, tracker_id: str) -> Tracker | None:
        tracker = self.trackers.get(tracker_id)
        return tracker.model_copy(deep=True) if tracker else None

    async def update_tracker(self, tracker: Tracker) -> Tracker:
        if tracker.id not in self.trackers:
            raise PersistenceError(
                f"Tracker '{tracker.id}' does not exist", operation="update_tracker"
            )
        self.trackers[tracker.id] = tracker.model_copy(deep=True)
        return tracker.model_copy(deep=True)

    async def delete_tracker(self, tracker_id: str) -> None:
        self.trackers.pop(tracker_id, None)
        run_ids = [run.id for run in self.runs.values() if run.tracker_id == tracker_id]
        for run_id in run_ids:
            del self.runs[run_id]
            self.results.pop(run_id, None)

    async def list_public_trackers(self, limit: int = 20) -> list[Tracker]:
        public = [tracker for tracker in self.trackers.values() if tracker.is_public]
        public.sort(key=lambda tracker: tracker.created_at, reverse=True)
        return [tracker.model_copy(deep=True) for tracker in public[:limit]]

    async def create_run(self, run: TrackerRun) -> TrackerRun:
        if run.tracker_id not in self.trackers:
            raise PersistenceError(
                f"Tracker '{run.tracker_id}' does not exist", operation="create_run"
            )
        self.runs[run.id] = run.model_copy(deep=True)
        return run.model_copy(deep=True)

    async def update_run(self, run: TrackerRun) -> TrackerRun:
        if run.id not in self.runs:
            raise PersistenceError(
                f"Run '{run.id}' does not exist", operation="update_run"
            )
        self.runs[run.id] = run.model_copy(deep=True)
        return run.model_copy(deep=True)

    async def get_run(self, run_id: str) -> TrackerRun | None:
        run = self.runs.get(run_id)
        return run.model_copy(deep=True) if run else None

    async def get_latest_completed_run(self, tracker_id: str) -> TrackerRun | None:
        # Insertion order breaks ties between equal timestamps
        completed = [
            (run.completed_at or run.started_at, position, run)
            for position, run in enumerate(self.runs.values())
            if run.tracker_id == tracker_id and run.status == RunStatus.COMPLETED
        ]
        if not completed:
            return None
        latest = max(completed, key=lambda entry: entry[:2])[2]
        return latest.model_copy(deep=True)

    async def save_results(self, results: list[TrackerResult]) -> None:
        for result in results:
            if result.run_id not in self.runs:
                raise PersistenceError(
                    f"Run '{result.run_id}' does not exist", operation="save_results"
                )
        for result in results:
            self.results.setdefault(result.run_id, []).append(result)

    async def list_results(self, run_id: str) -> list[TrackerResult]:
        return sorted(self.results.get(run_id, []), key=lambda result: result.rank)
