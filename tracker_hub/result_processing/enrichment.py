"""Language-model enrichment of candidate items.

Items are sent to the completion capability in bounded batches. Each batch
either comes back scored, summarized and tagged, or, when the call fails or
its answer cannot be parsed, is passed through exactly as it was given.
"""

import asyncio
import json
import time

from pydantic import BaseModel, Field, ValidationError

from ..config.settings import EnrichmentSettings
from ..llm.prompts import build_enrichment_instructions
from ..models.component import ResultProcessorBase
from ..models.interfaces import CompletionCapability
from ..models.results import CandidateItem
from ..utils.logging import get_logger

logger = get_logger(__name__)

MAX_TAGS = 5
PAYLOAD_SNIPPET_LENGTH = 500


class ItemEnrichment(BaseModel):
    """The model's verdict on one item of a batch."""

    index: int = Field(..., ge=0)
    score: float = Field(..., ge=0, le=10)
    summary: str | None = None
    tags: list[str] = Field(default_factory=list)
    sentiment: str | None = None


class EnrichmentResponse(BaseModel):
    """Structured answer expected from the completion capability."""

    results: list[ItemEnrichment]


class Enricher(ResultProcessorBase[EnrichmentSettings]):
    """Scores and summarizes items with a language model."""

    def __init__(
        self,
        completion: CompletionCapability | None,
        name: str = "enricher",
        config: EnrichmentSettings | None = None,
    ):
        super().__init__(name, config or EnrichmentSettings())
        self.completion = completion
        self.metrics["failed_batches"] = 0

    async def enrich(self, items: list[CandidateItem], prompt: str) -> list[CandidateItem]:
        """Return enriched copies of ``items`` in their original order."""
        if not items or self.completion is None or not self.config.enabled:
            return items

        start_time = time.time()
        batch_size = self.config.batch_size
        batches = [items[i : i + batch_size] for i in range(0, len(items), batch_size)]
        semaphore = asyncio.Semaphore(self.config.max_concurrent_batches)

        async def run_batch(batch: list[CandidateItem]) -> list[CandidateItem]:
            async with semaphore:
                return await self.enrich_batch(batch, prompt)

        enriched_batches = await asyncio.gather(*(run_batch(b) for b in batches))
        output = [item for batch in enriched_batches for item in batch]

        self._record_run(len(items), len(output), time.time() - start_time)
        return output

    async def enrich_batch(
        self, batch: list[CandidateItem], prompt: str
    ) -> list[CandidateItem]:
        """Enrich one batch, returning it unchanged on any failure."""
        instructions = build_enrichment_instructions(prompt)
        payload = json.dumps(
            [
                {
                    "index": index,
                    "title": item.title,
                    "url": item.url,
                    "snippet": item.snippet[:PAYLOAD_SNIPPET_LENGTH],
                    "sources": item.sources,
                }
                for index, item in enumerate(batch)
            ]
        )

        try:
            answer = await self.completion.complete(instructions, payload)
        except Exception as e:
            self.metrics["failed_batches"] += 1
            logger.warning(f"Enrichment call failed, keeping items unenriched: {e}")
            return batch

        try:
            parsed = EnrichmentResponse.model_validate_json(answer)
        except ValidationError as e:
            self.metrics["failed_batches"] += 1
            logger.warning(
                f"Enrichment answer could not be parsed, keeping items unenriched: "
                f"{e.error_count()} errors"
            )
            return batch

        verdicts = {
            verdict.index: verdict
            for verdict in parsed.results
            if verdict.index < len(batch)
        }

        return [
            self._apply(item, verdicts[index]) if index in verdicts else item
            for index, item in enumerate(batch)
        ]

    def _apply(self, item: CandidateItem, verdict: ItemEnrichment) -> CandidateItem:
        tags = [tag.strip() for tag in verdict.tags if tag and tag.strip()][:MAX_TAGS]
        summary = verdict.summary.strip() if verdict.summary else None
        sentiment = verdict.sentiment.strip().lower() if verdict.sentiment else None

        return item.model_copy(
            update={
                "relevance": verdict.score,
                "summary": summary or None,
                "tags": tags,
                "sentiment": sentiment or None,
            },
            deep=True,
        )
