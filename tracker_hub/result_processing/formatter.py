"""Projection of ranked items into stored TrackerResult records."""

import uuid
from datetime import datetime

from ..models.results import CandidateItem
from ..models.tracker import ResultMetadata, TrackerResult, utc_now
from .deduplication import normalize_url

UNTITLED = "Untitled"
DESCRIPTION_LENGTH = 200


def result_id(
    run_id: str, item: CandidateItem, position: int, by_position: bool = False
) -> str:
    """Stable UUID derived from the run and canonical URL, or title and position."""
    if item.url and item.url.strip() and not by_position:
        key = f"{run_id}|url|{normalize_url(item.url.strip())}"
    else:
        key = f"{run_id}|title|{item.title.strip()}|{position}"
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


def _content(item: CandidateItem) -> str | None:
    for detail in item.details:
        text = getattr(detail, "markdown", None) or getattr(detail, "content", None)
        if text:
            return text
    return None


def format_result(
    item: CandidateItem,
    run_id: str,
    tracker_id: str,
    position: int,
    created_at: datetime | None = None,
) -> TrackerResult:
    """Build the TrackerResult for ``item`` at rank ``position`` (0-based)."""
    description = item.summary or (item.snippet[:DESCRIPTION_LENGTH] or None)

    return TrackerResult(
        id=result_id(run_id, item, position),
        run_id=run_id,
        tracker_id=tracker_id,
        title=item.title.strip() or UNTITLED,
        description=description,
        content=_content(item),
        url=item.url,
        images=list(item.images),
        source=item.source,
        score=item.relevance,
        rank=position + 1,
        metadata=ResultMetadata(
            sources=list(item.sources),
            mentions=item.mentions,
            tags=list(item.tags),
            sentiment=item.sentiment,
            published_date=item.published_date,
            source_domain=item.source_domain,
            provider_score=item.score,
            enriched=item.enriched,
            details=list(item.details),
        ),
        created_at=created_at or utc_now(),
    )


def format_results(
    items: list[CandidateItem],
    run_id: str,
    tracker_id: str,
    created_at: datetime | None = None,
) -> list[TrackerResult]:
    """Format ranked items, preserving their order."""
    created_at = created_at or utc_now()
    results = []
    seen_ids: set[str] = set()

    for position, item in enumerate(items):
        result = format_result(item, run_id, tracker_id, position, created_at)
        # Untitled items are never merged, so two of them may share a URL
        if result.id in seen_ids:
            result = result.model_copy(
                update={"id": result_id(run_id, item, position, by_position=True)}
            )
        seen_ids.add(result.id)
        results.append(result)

    return results
