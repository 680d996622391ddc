"""Data models shared across the tracker pipeline."""

from .base import HealthStatus, RunStatus
from .query import SearchQuery
from .results import (
    CandidateItem,
    ExaDetails,
    FirecrawlDetails,
    JinaDetails,
    SourceDetails,
    SourceResponse,
)
from .tracker import (
    ParsedPrompt,
    PipelineResult,
    ResultMetadata,
    RunMetadata,
    RunOutcome,
    RunTrigger,
    Tracker,
    TrackerConfig,
    TrackerFeed,
    TrackerResult,
    TrackerRun,
)

__all__ = [
    "CandidateItem",
    "ExaDetails",
    "FirecrawlDetails",
    "HealthStatus",
    "JinaDetails",
    "ParsedPrompt",
    "PipelineResult",
    "ResultMetadata",
    "RunMetadata",
    "RunOutcome",
    "RunStatus",
    "RunTrigger",
    "SearchQuery",
    "SourceDetails",
    "SourceResponse",
    "Tracker",
    "TrackerConfig",
    "TrackerFeed",
    "TrackerResult",
    "TrackerRun",
]
