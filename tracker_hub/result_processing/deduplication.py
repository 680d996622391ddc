"""Signature-based merging of duplicate items from different adapters.

Two items are duplicates only when their signatures are exactly equal. The
signature is the canonical URL when the item has one, otherwise the
case-folded, whitespace-collapsed title. Items without a title are never
merged.
"""

import hashlib
import re
import time
from typing import Any

from w3lib.url import canonicalize_url

from ..models.component import ResultProcessorBase
from ..models.results import CandidateItem
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Simple config type for deduplication
DeduplicationConfig = dict[str, Any]

TRACKING_PARAMS = frozenset(
    {
        "gclid",
        "fbclid",
        "ref",
        "source",
        "track",
        "campaign",
        "affiliate",
        "click_id",
        "session_id",
        "_hsenc",
        "_ga",
        "_gl",
    }
)
TRACKING_PREFIXES = ("utm_",)


class Deduplicator(ResultProcessorBase[DeduplicationConfig]):
    """Component collapsing items that share a signature."""

    def __init__(
        self,
        name: str = "deduplicator",
        config: DeduplicationConfig | None = None,
    ):
        if config is None:
            config = {"name": name, "strip_tracking_params": True}
        super().__init__(name, config)

    def process_results(self, items: list[CandidateItem]) -> list[CandidateItem]:
        """Merge duplicates and return one item per signature."""
        start_time = time.time()

        output = deduplicate(
            items, strip_tracking_params=self.config["strip_tracking_params"]
        )

        self._record_run(len(items), len(output), time.time() - start_time)
        if len(output) < len(items):
            logger.debug(f"Merged {len(items) - len(output)} duplicate items")
        return output


def deduplicate(
    items: list[CandidateItem], strip_tracking_params: bool = True
) -> list[CandidateItem]:
    """Merge items sharing a signature, keeping first-occurrence order.

    Inputs are not mutated; merged entries are copies of the first occurrence.
    """
    output: list[CandidateItem] = []
    by_signature: dict[str, int] = {}
    copied: set[int] = set()

    for item in items:
        signature = compute_signature(item, strip_tracking_params)

        if signature is None:
            output.append(item)
            continue

        if signature not in by_signature:
            by_signature[signature] = len(output)
            output.append(item)
            continue

        index = by_signature[signature]
        existing = output[index]
        # Copy before the first merge so caller-owned items stay untouched
        if index not in copied:
            existing = existing.model_copy(deep=True)
            output[index] = existing
            copied.add(index)
        _merge_into(existing, item)

    return output


def compute_signature(
    item: CandidateItem, strip_tracking_params: bool = True
) -> str | None:
    """Return the duplicate-detection signature of ``item``.

    Returns None for items with a missing title; those are always unique.
    """
    title = _normalize_title(item.title)
    if not title:
        return None

    if item.url and item.url.strip():
        key = "url:" + normalize_url(item.url.strip(), strip_tracking_params)
    else:
        key = "title:" + title

    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def _normalize_title(title: str) -> str:
    """Case-fold and collapse whitespace."""
    return re.sub(r"\s+", " ", title or "").strip().casefold()


def _is_tracking_param(param: str) -> bool:
    name = param.split("=", 1)[0].lower()
    return name in TRACKING_PARAMS or name.startswith(TRACKING_PREFIXES)


def normalize_url(url: str, strip_tracking_params: bool = True) -> str:
    """Normalize URL for comparison.

    Only the host is case-folded; paths and queries are case-sensitive.
    """
    try:
        normalized = canonicalize_url(
            url,
            keep_blank_values=False,
            keep_fragments=False,
        )
    except ValueError:
        # Malformed URLs (bad ports, invalid IPv6) still get a stable key
        normalized = url

    # Remove tracking parameters
    if strip_tracking_params and "?" in normalized:
        base, params = normalized.split("?", 1)
        params_to_keep = [
            param for param in params.split("&") if not _is_tracking_param(param)
        ]
        normalized = base + "?" + "&".join(params_to_keep) if params_to_keep else base

    # Drop the scheme, then lowercase the host and its www/m prefix
    normalized = re.sub(r"^[a-z][a-z0-9+.-]*://", "", normalized, flags=re.IGNORECASE)
    host, rest = re.match(r"([^/?#]*)(.*)", normalized, flags=re.DOTALL).groups()
    host = re.sub(r"^(www\d?\.|m\.)", "", host.lower())

    return (host + rest).rstrip("/")


def _union(first: list[str], second: list[str]) -> list[str]:
    merged = list(first)
    for value in second:
        if value not in merged:
            merged.append(value)
    return merged


def _merge_into(target: CandidateItem, source: CandidateItem) -> None:
    """Fold ``source`` into ``target``."""
    target.images = _union(target.images, source.images)
    target.sources = _union(target.sources, source.sources)
    target.mentions += source.mentions
    target.details = [*target.details, *source.details]

    if source.score is not None and (target.score is None or source.score > target.score):
        target.score = source.score

    if not target.snippet and source.snippet:
        target.snippet = source.snippet
    if target.published_date is None:
        target.published_date = source.published_date
    if target.source_domain is None:
        target.source_domain = source.source_domain
