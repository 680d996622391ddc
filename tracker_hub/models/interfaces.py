"""Protocol definitions for component interfaces.

These protocols describe the capabilities the pipeline consumes: search,
completion and persistence. They use ``typing.Protocol`` for structural
subtyping so tests can pass plain fakes.
"""

from typing import Protocol, runtime_checkable

from .results import SourceResponse
from .tracker import Tracker, TrackerResult, TrackerRun


@runtime_checkable
class SearchCapability(Protocol):
    """A content-discovery provider wrapped behind a uniform search call.

    Implementations never raise for provider failures; they report them
    through ``SourceResponse.error`` with an empty item list.
    """

    name: str

    async def search(self, query: str, limit: int) -> SourceResponse:
        """Search for ``query`` and return at most ``limit`` normalized items."""
        ...


@runtime_checkable
class CompletionCapability(Protocol):
    """A language-model completion endpoint returning JSON text."""

    async def complete(self, system_instructions: str, user_payload: str) -> str:
        """Return the model's structured JSON answer as text."""
        ...


@runtime_checkable
class TrackerRepository(Protocol):
    """Create/read/update/delete operations over trackers, runs, and results.

    Deleting a tracker cascades to its runs and their results.
    """

    async def create_tracker(self, tracker: Tracker) -> Tracker: ...

    async def get_tracker(self, tracker_id: str) -> Tracker | None: ...

    async def update_tracker(self, tracker: Tracker) -> Tracker: ...

    async def delete_tracker(self, tracker_id: str) -> None: ...

    async def list_public_trackers(self, limit: int = 20) -> list[Tracker]: ...

    async def create_run(self, run: TrackerRun) -> TrackerRun: ...

    async def update_run(self, run: TrackerRun) -> TrackerRun: ...

    async def get_run(self, run_id: str) -> TrackerRun | None: ...

    async def get_latest_completed_run(self, tracker_id: str) -> TrackerRun | None: ...

    async def save_results(self, results: list[TrackerResult]) -> None: ...

    async def list_results(self, run_id: str) -> list[TrackerResult]: ...
