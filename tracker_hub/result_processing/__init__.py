"""Result processing package for collected items.

This package contains the stages applied to collected items:
- metadata_enrichment: Fill source domain and publication date
- deduplication: Merge items sharing a URL or title signature
- enrichment: Score, summarize and tag items with a language model
- ranker: Order items for presentation
- formatter: Project ranked items into stored results
"""

from .deduplication import Deduplicator, compute_signature, deduplicate
from .enrichment import Enricher
from .formatter import format_result, format_results
from .metadata_enrichment import enrich_item_metadata
from .ranker import Ranker, rank_items

__all__ = [
    "Deduplicator",
    "Enricher",
    "Ranker",
    "compute_signature",
    "deduplicate",
    "enrich_item_metadata",
    "format_result",
    "format_results",
    "rank_items",
]
