"""The collection and processing pipeline behind every tracker run.

One run fans out every (query, adapter) pair in parallel, then passes the
collected items through metadata normalization, deduplication, enrichment,
ranking and formatting. Adapter failures only shrink what was collected; a
run completes even when every adapter fails.
"""

import asyncio
import time
from collections.abc import Iterable, Mapping

from ..config.settings import AppSettings, get_settings
from ..models.base import RunStatus
from ..models.interfaces import SearchCapability
from ..models.results import CandidateItem, SourceResponse
from ..models.tracker import PipelineResult, RunMetadata, TrackerConfig
from ..result_processing.deduplication import Deduplicator
from ..result_processing.enrichment import Enricher
from ..result_processing.formatter import format_results
from ..result_processing.metadata_enrichment import enrich_item_metadata
from ..result_processing.ranker import Ranker
from ..utils.logging import (
    get_logger,
    log_run_start,
    log_run_summary,
    log_source_results,
)

logger = get_logger(__name__)


class TrackerPipeline:
    """Runs a tracker configuration against the configured source adapters."""

    def __init__(
        self,
        adapters: Mapping[str, SearchCapability] | Iterable[SearchCapability],
        enricher: Enricher | None = None,
        deduplicator: Deduplicator | None = None,
        ranker: Ranker | None = None,
        settings: AppSettings | None = None,
    ):
        self.settings = settings or get_settings()
        if isinstance(adapters, Mapping):
            self.adapters = dict(adapters)
        else:
            self.adapters = {adapter.name: adapter for adapter in adapters}

        self.enricher = enricher or Enricher(None, config=self.settings.enrichment)
        self.deduplicator = deduplicator or Deduplicator()
        self.ranker = ranker or Ranker(config=self.settings.ranker)

    def select_adapters(self, config: TrackerConfig) -> dict[str, SearchCapability]:
        """Adapters named by the config, or all of them when it names none."""
        if not config.adapters:
            return dict(self.adapters)

        selected = {}
        for name in config.adapters:
            if name in self.adapters:
                selected[name] = self.adapters[name]
            else:
                logger.warning(f"Tracker requests unknown source adapter: {name}")
        return selected

    async def run(
        self, config: TrackerConfig, tracker_id: str, run_id: str
    ) -> PipelineResult:
        """Execute one run of ``config``.

        Raises:
            TrackerConfigurationError: if the config has no prompt or queries
        """
        config.validate_for_run()

        start_time = time.time()
        queries = config.effective_queries()[: self.settings.pipeline.max_queries]
        limit = config.results_per_query or self.settings.pipeline.results_per_query
        adapters = self.select_adapters(config)

        log_run_start(logger, tracker_id, queries)

        responses = await self.collect(adapters, queries, limit)
        items, source_counts, failed_sources = self._gather_items(responses)
        log_source_results(logger, source_counts)

        for item in items:
            enrich_item_metadata(item)

        unique_items = self.deduplicator.process_results(items)
        enriched_items = await self.enricher.enrich(unique_items, config.prompt)
        ranked_items = self.ranker.rank(enriched_items)
        results = format_results(ranked_items, run_id, tracker_id)

        metadata = RunMetadata(
            results_count=len(results),
            collected_count=len(items),
            deduplicated_count=len(unique_items),
            source_counts=source_counts,
            failed_sources=failed_sources,
        )
        log_run_summary(
            logger,
            {
                "collected": len(items),
                "deduplicated": len(unique_items),
                "results": len(results),
                "failed_sources": failed_sources,
                "duration_ms": round((time.time() - start_time) * 1000, 1),
            },
        )

        return PipelineResult(
            status=RunStatus.COMPLETED, results=results, metadata=metadata
        )

    async def collect(
        self,
        adapters: Mapping[str, SearchCapability],
        queries: list[str],
        limit: int,
    ) -> list[SourceResponse]:
        """Search every query with every adapter concurrently."""
        calls = [
            (name, query, adapter)
            for query in queries
            for name, adapter in adapters.items()
        ]
        outcomes = await asyncio.gather(
            *(adapter.search(query, limit) for _, query, adapter in calls),
            return_exceptions=True,
        )

        responses = []
        for (name, query, _), outcome in zip(calls, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                # Adapters report failures in the response; this covers the rest
                logger.warning(f"Source adapter {name} raised for '{query}': {outcome}")
                outcome = SourceResponse(
                    items=[],
                    query=query,
                    provider=name,
                    error=str(outcome) or outcome.__class__.__name__,
                )
            responses.append(outcome)
        return responses

    def _gather_items(
        self, responses: list[SourceResponse]
    ) -> tuple[list[CandidateItem], dict[str, int], dict[str, str]]:
        items: list[CandidateItem] = []
        source_counts: dict[str, int] = {}
        failed_sources: dict[str, str] = {}

        for response in responses:
            source_counts.setdefault(response.provider, 0)
            if response.failed:
                failed_sources[response.provider] = response.error or "failed"
                continue

            source_counts[response.provider] += len(response.items)
            for item in response.items:
                if not item.sources:
                    item = item.model_copy(update={"sources": [response.provider]})
                items.append(item)

        return items, source_counts, failed_sources
