"""Base class for all source adapters.

This module defines the foundation every source adapter builds on. An adapter
wraps exactly one external content-discovery API and translates its response
into normalized CandidateItem records.

The module includes:
- ProviderMetrics: Standardized metrics collection
- SourceAdapter: Abstract base class with the failure policy shared by all
  adapters (bounded wait, at most one retry, failures reported as an empty
  response instead of an exception)

Example:
    Creating a new adapter:
        >>> class MyAdapter(SourceAdapter):
        ...     name = "mine"
        ...     default_base_url = "https://api.example.com"
        ...
        ...     async def search_impl(self, query: SearchQuery) -> list[CandidateItem]:
        ...         ...
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..config.settings import ProviderSettings, RetryConfig
from ..models.base import HealthStatus
from ..models.component import ConfigurableComponentBase
from ..models.query import SearchQuery
from ..models.results import CandidateItem, SourceResponse
from ..utils.errors import (
    ProviderError,
    ProviderRateLimitError,
    ProviderServiceError,
    ProviderTimeoutError,
)
from ..utils.logging import get_logger
from ..utils.retry import format_exception_for_log
from .retry_mixin import RetryMixin

logger = get_logger(__name__)


class ProviderMetrics(dict[str, Any]):
    """Metrics for source adapters."""

    def __init__(self):
        super().__init__(
            {
                "total_queries": 0,
                "successful_queries": 0,
                "failed_queries": 0,
                "avg_response_time_ms": 0.0,
                "total_results": 0,
                "error_rate": 0.0,
                "last_query_time": None,
            }
        )


class SourceAdapter(ConfigurableComponentBase[ProviderSettings], RetryMixin, ABC):
    """Base class for all source adapters."""

    name: str = "base"
    default_base_url: str = ""

    def __init__(
        self,
        config: ProviderSettings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
        call_timeout: float | None = None,
    ):
        """Initialize the adapter.

        Args:
            config: Provider settings (API key, timeout, base URL)
            client: HTTP client to use; one is created when omitted
            retry_config: Retry policy; defaults to application settings
            call_timeout: Upper bound in seconds for a whole search call,
                retries included; defaults to the provider timeout
        """
        config = config or ProviderSettings()
        super().__init__(self.name, config)
        self.api_key = config.api_key
        self.base_url = (config.base_url or self.default_base_url).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=config.timeout,
            limits=httpx.Limits(max_connections=10),
        )
        self.retry_config = retry_config
        self.call_timeout = call_timeout or config.timeout
        self.metrics = ProviderMetrics()

    @abstractmethod
    async def search_impl(self, query: SearchQuery) -> list[CandidateItem]:
        """Call the provider and translate its response into items.

        May raise; ``search`` applies the failure policy.
        """
        ...

    async def search(self, query: str, limit: int) -> SourceResponse:
        """Search the provider, never raising for provider failures."""
        start_time = time.time()
        self.metrics["total_queries"] += 1
        self.metrics["last_query_time"] = start_time

        try:
            search_query = SearchQuery(query=query, max_results=limit)
            async with asyncio.timeout(self.call_timeout):
                items = await self.with_retry(self.search_impl)(search_query)
        except TimeoutError:
            error = ProviderTimeoutError(
                self.name, operation="search", timeout=self.call_timeout
            )
            return self._failed_response(query, error, start_time)
        except Exception as e:
            return self._failed_response(query, e, start_time)

        items = items[:limit]
        duration_ms = (time.time() - start_time) * 1000
        self._record_success(len(items), duration_ms)

        return SourceResponse(
            items=items,
            query=query,
            provider=self.name,
            timing_ms=duration_ms,
        )

    def _failed_response(
        self, query: str, error: Exception, start_time: float
    ) -> SourceResponse:
        self.metrics["failed_queries"] += 1
        self.metrics["error_rate"] = self.metrics["failed_queries"] / max(
            1, self.metrics["total_queries"]
        )
        logger.warning(
            f"Source adapter {self.name} failed for query '{query}': "
            f"{format_exception_for_log(error)}"
        )
        return SourceResponse(
            items=[],
            query=query,
            provider=self.name,
            timing_ms=(time.time() - start_time) * 1000,
            error=str(error) or error.__class__.__name__,
        )

    def _record_success(self, result_count: int, duration_ms: float) -> None:
        self.metrics["successful_queries"] += 1
        self.metrics["total_results"] += result_count

        prev_avg = self.metrics["avg_response_time_ms"]
        prev_count = self.metrics["successful_queries"] - 1
        self.metrics["avg_response_time_ms"] = (
            prev_avg * prev_count + duration_ms
        ) / self.metrics["successful_queries"]
        self.metrics["error_rate"] = self.metrics["failed_queries"] / max(
            1, self.metrics["total_queries"]
        )

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key.get_secret_value()}"}

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate HTTP error statuses into provider errors."""
        if response.status_code < 400:
            return

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise ProviderRateLimitError(
                self.name,
                retry_after=float(retry_after)
                if retry_after and retry_after.isdigit()
                else None,
            )

        message = f"{self.name} returned HTTP {response.status_code}"
        if response.status_code >= 500:
            raise ProviderServiceError(
                self.name, message=message, status_code=response.status_code
            )
        raise ProviderError(message, provider=self.name, status_code=response.status_code)

    def _parse_json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderServiceError(
                self.name, message=f"{self.name} returned invalid JSON", original_error=e
            ) from e
        if not isinstance(data, dict):
            raise ProviderServiceError(
                self.name, message=f"{self.name} returned an unexpected payload"
            )
        return data

    def get_metrics(self) -> dict[str, Any]:
        """Get current metrics."""
        return dict(self.metrics)

    def reset_metrics(self) -> None:
        """Reset all metrics to initial values."""
        self.metrics = ProviderMetrics()

    async def check_health(self) -> tuple[HealthStatus, str]:
        """Report whether the adapter is usable."""
        if not self.api_key.get_secret_value():
            return HealthStatus.UNHEALTHY, f"{self.name} has no API key configured"
        if self.metrics["error_rate"] > 0.5 and self.metrics["total_queries"] >= 4:
            return HealthStatus.DEGRADED, f"{self.name} is failing most queries"
        return HealthStatus.HEALTHY, f"{self.name} is operational"

    async def cleanup(self) -> None:
        """Close the HTTP client if this adapter created it."""
        await super().cleanup()
        if self._owns_client:
            await self.client.aclose()
