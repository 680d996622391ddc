"""Shared base classes for adapters and result processors."""

import time
from abc import ABC
from typing import Any, Generic, TypeVar

from .base import HealthStatus

ConfigT = TypeVar("ConfigT")


class Component(ABC):
    """Named unit with an async lifecycle and a health check."""

    def __init__(self, name: str):
        self.name = name
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    async def cleanup(self) -> None:
        self.initialized = False

    async def check_health(self) -> tuple[HealthStatus, str]:
        if self.initialized:
            return HealthStatus.HEALTHY, f"{self.name} is ready"
        return HealthStatus.UNHEALTHY, f"{self.name} is not initialized"


class ConfigurableComponentBase(Component, Generic[ConfigT]):
    """Component holding a typed configuration object."""

    def __init__(self, name: str, config: ConfigT | None = None):
        super().__init__(name)
        self.config = config


def _processor_counters() -> dict[str, Any]:
    return {
        "total_runs": 0,
        "total_input_items": 0,
        "total_output_items": 0,
        "avg_processing_time_ms": 0.0,
        "last_run_time": None,
    }


class ResultProcessorBase(ConfigurableComponentBase[ConfigT], Generic[ConfigT]):
    """Pipeline stage that counts items in and out and times each pass."""

    def __init__(self, name: str, config: ConfigT | None = None):
        super().__init__(name, config)
        self.metrics: dict[str, Any] = _processor_counters()

    def _record_run(self, input_count: int, output_count: int, duration: float) -> None:
        runs = self.metrics["total_runs"] + 1
        elapsed_ms = duration * 1000

        self.metrics["total_runs"] = runs
        self.metrics["total_input_items"] += input_count
        self.metrics["total_output_items"] += output_count
        self.metrics["last_run_time"] = time.time()
        # Running mean over all passes
        self.metrics["avg_processing_time_ms"] += (
            elapsed_ms - self.metrics["avg_processing_time_ms"]
        ) / runs

    def get_metrics(self) -> dict[str, Any]:
        return dict(self.metrics)

    def reset_metrics(self) -> None:
        self.metrics = _processor_counters()
