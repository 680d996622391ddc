"""Metadata normalization for candidate items.

Fills the domain and publication date of each collected item so the ranker
can apply its recency and trust criteria.
"""

import re
from datetime import UTC, datetime
from urllib.parse import urlparse

import dateparser

from ..models.results import CandidateItem, ExaDetails, FirecrawlDetails, JinaDetails

DATE_PATTERNS = [
    r"\d{4}-\d{1,2}-\d{1,2}",  # ISO format
    r"\d{1,2}/\d{1,2}/\d{4}",  # MM/DD/YYYY
    r"\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{4}",  # DD Mon YYYY
    r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2},\s+\d{4}",  # Mon DD, YYYY
]

_DATEPARSER_SETTINGS = {
    "RETURN_AS_TIMEZONE_AWARE": True,
    "TIMEZONE": "UTC",
    "TO_TIMEZONE": "UTC",
    "PREFER_DAY_OF_MONTH": "first",
}


def extract_source_domain(url: str) -> str | None:
    """Return the lower-cased host of ``url`` without a www prefix."""
    if not url:
        return None

    domain = urlparse(url).netloc.lower()
    domain = domain.split("@")[-1].split(":")[0]
    domain = re.sub(r"^www\d?\.", "", domain)
    return domain or None


def parse_date(value: str | None) -> datetime | None:
    """Parse a free-form date string into an aware UTC datetime."""
    if not value:
        return None

    try:
        parsed = dateparser.parse(value, settings=_DATEPARSER_SETTINGS)
    except (ValueError, TypeError, OverflowError):
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _raw_dates_from_details(item: CandidateItem) -> list[str]:
    raw_dates = []
    for detail in item.details:
        if isinstance(detail, ExaDetails) and detail.published_date:
            raw_dates.append(detail.published_date)
        elif isinstance(detail, FirecrawlDetails | JinaDetails) and detail.published_time:
            raw_dates.append(detail.published_time)
    return raw_dates


def extract_published_date(item: CandidateItem) -> datetime | None:
    """Find the publication date from adapter data, then title and snippet."""
    for raw_date in _raw_dates_from_details(item):
        parsed = parse_date(raw_date)
        if parsed:
            return parsed

    # Look for dates in title and snippet with common patterns
    for pattern in DATE_PATTERNS:
        match = re.search(pattern, item.title) or re.search(pattern, item.snippet)
        if match:
            parsed = parse_date(match.group(0))
            if parsed:
                return parsed

    return None


def enrich_item_metadata(item: CandidateItem) -> CandidateItem:
    """Fill ``source_domain`` and ``published_date`` on ``item`` in place."""
    if item.source_domain is None:
        item.source_domain = extract_source_domain(item.url)

    if item.published_date is None:
        item.published_date = extract_published_date(item)

    return item
