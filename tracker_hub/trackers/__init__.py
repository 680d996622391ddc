"""Tracker creation, execution and serving."""

from .pipeline import TrackerPipeline
from .prompt_parser import PromptParser
from .service import TrackerService, create_tracker_service

__all__ = [
    "PromptParser",
    "TrackerPipeline",
    "TrackerService",
    "create_tracker_service",
]
