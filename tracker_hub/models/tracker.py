"""Tracker, run, and result models."""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from ..utils.errors import TrackerConfigurationError
from .base import RunStatus
from .results import SourceDetails


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid.uuid4())


class ParsedPrompt(BaseModel):
    """Structured configuration derived from a natural-language prompt."""

    name: str = Field(..., description="Short tracker name (3-5 words)")
    description: str = Field("", description="One-sentence description")
    sources: list[str] = Field(
        default_factory=list, description="Platforms to track (tiktok, reddit, ...)"
    )
    queries: list[str] = Field(default_factory=list, description="Search queries")


class TrackerConfig(BaseModel):
    """Structured configuration a tracker run executes."""

    prompt: str = Field(..., description="Original natural-language prompt")
    queries: list[str] = Field(default_factory=list, description="Search queries")
    platforms: list[str] = Field(
        default_factory=list, description="Platforms named in the prompt"
    )
    adapters: list[str] = Field(
        default_factory=list,
        description="Source adapters to use; empty means every enabled adapter",
    )
    results_per_query: int | None = Field(
        None, ge=1, le=50, description="Override for items requested per query"
    )

    def effective_queries(self) -> list[str]:
        """Non-blank queries, falling back to the prompt itself."""
        queries = [q.strip() for q in self.queries if q and q.strip()]
        if not queries and self.prompt.strip():
            queries = [self.prompt.strip()]
        return queries

    def validate_for_run(self) -> None:
        """Raise TrackerConfigurationError when this config cannot be run."""
        if not self.prompt or not self.prompt.strip():
            raise TrackerConfigurationError(
                "Tracker prompt must not be empty", field="prompt"
            )
        if not self.effective_queries():
            raise TrackerConfigurationError(
                "Tracker has no search queries", field="queries"
            )


class Tracker(BaseModel):
    """A saved monitoring subscription."""

    id: str = Field(default_factory=new_id)
    owner_id: str | None = None
    name: str
    description: str = ""
    prompt: str
    config: TrackerConfig
    is_public: bool = True
    schedule: str = "0 9 * * *"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_run_at: datetime | None = None


class RunMetadata(BaseModel):
    """Statistics recorded on a finished run."""

    results_count: int = 0
    collected_count: int = 0
    deduplicated_count: int = 0
    source_counts: dict[str, int] = Field(default_factory=dict)
    failed_sources: dict[str, str] = Field(default_factory=dict)


class TrackerRun(BaseModel):
    """One execution attempt of a tracker."""

    id: str = Field(default_factory=new_id)
    tracker_id: str
    status: RunStatus = RunStatus.PENDING
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = None
    error: str | None = None
    metadata: RunMetadata = Field(default_factory=RunMetadata)


class ResultMetadata(BaseModel):
    """Typed metadata attached to a stored result."""

    sources: list[str] = Field(default_factory=list)
    mentions: int = 1
    tags: list[str] = Field(default_factory=list)
    sentiment: str | None = None
    published_date: datetime | None = None
    source_domain: str | None = None
    provider_score: float | None = None
    enriched: bool = False
    details: list[SourceDetails] = Field(default_factory=list)


class TrackerResult(BaseModel):
    """One content item surfaced by a run. Immutable once formatted."""

    model_config = ConfigDict(frozen=True)

    id: str
    run_id: str
    tracker_id: str
    title: str
    description: str | None = None
    content: str | None = None
    url: str = ""
    images: list[str] = Field(default_factory=list)
    source: str
    score: float | None = None
    rank: int = 0
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)
    created_at: datetime = Field(default_factory=utc_now)


class RunTrigger(BaseModel):
    """Message delivered by an external scheduler to start a run."""

    tracker_id: str
    scheduled_for: datetime = Field(default_factory=utc_now)
    reason: str = "schedule"


class PipelineResult(BaseModel):
    """Output of one pipeline execution."""

    status: RunStatus
    results: list[TrackerResult] = Field(default_factory=list)
    metadata: RunMetadata = Field(default_factory=RunMetadata)


class RunOutcome(BaseModel):
    """A finished run together with the results it delivered."""

    run: TrackerRun
    results: list[TrackerResult] = Field(default_factory=list)

    @property
    def status(self) -> RunStatus:
        return self.run.status


class TrackerFeed(BaseModel):
    """A tracker with its latest completed run and that run's results."""

    tracker: Tracker
    latest_run: TrackerRun | None = None
    results: list[TrackerResult] = Field(default_factory=list)
