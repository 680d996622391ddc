"""Result models."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class FirecrawlDetails(BaseModel):
    """Payload specific to Firecrawl search results."""

    kind: Literal["firecrawl"] = "firecrawl"
    markdown: str | None = Field(None, description="Scraped page markdown")
    screenshot: str | None = Field(None, description="Screenshot URL")
    published_time: str | None = Field(None, description="Raw page publish time")


class ExaDetails(BaseModel):
    """Payload specific to Exa neural search results."""

    kind: Literal["exa"] = "exa"
    author: str | None = Field(None, description="Author reported by Exa")
    published_date: str | None = Field(None, description="Raw published date")
    highlights: list[str] = Field(default_factory=list, description="Text highlights")


class JinaDetails(BaseModel):
    """Payload specific to Jina search results."""

    kind: Literal["jina"] = "jina"
    content: str | None = Field(None, description="Reader content of the page")
    published_time: str | None = Field(None, description="Raw page date")


SourceDetails = Annotated[
    FirecrawlDetails | ExaDetails | JinaDetails, Field(discriminator="kind")
]


class CandidateItem(BaseModel):
    """A normalized content item gathered by a source adapter.

    Adapters fill the collection fields; the enricher fills ``relevance``,
    ``summary``, ``tags`` and ``sentiment`` on a copy of the item.
    """

    title: str = Field("", description="Item title, empty when unknown")
    url: str = Field("", description="Item URL")
    snippet: str = Field("", description="Text snippet")
    images: list[str] = Field(default_factory=list, description="Image URLs")
    sources: list[str] = Field(
        default_factory=list, description="Adapters that surfaced this item"
    )
    score: float | None = Field(None, description="Provider relevance score")
    mentions: int = Field(1, ge=0, description="Times the item was surfaced")
    published_date: datetime | None = Field(None, description="Publication date")
    source_domain: str | None = Field(None, description="Domain of the item URL")
    details: list[SourceDetails] = Field(
        default_factory=list, description="Per-adapter payloads"
    )

    # Enrichment
    relevance: float | None = Field(None, description="LLM relevance score (0-10)")
    summary: str | None = Field(None, description="LLM rewritten summary")
    tags: list[str] = Field(default_factory=list, description="LLM tags")
    sentiment: str | None = Field(None, description="LLM sentiment label")

    @property
    def source(self) -> str:
        """Primary originating source."""
        return self.sources[0] if self.sources else "unknown"

    @property
    def has_media(self) -> bool:
        return bool(self.images)

    @property
    def enriched(self) -> bool:
        return self.relevance is not None


class SourceResponse(BaseModel):
    """Response from one source adapter for one query."""

    items: list[CandidateItem] = Field(default_factory=list, description="Items")
    query: str = Field(..., description="Original query")
    provider: str = Field(..., description="Adapter name")
    timing_ms: float | None = Field(None, description="Search time in milliseconds")
    error: str | None = Field(None, description="Error message if the call failed")

    @property
    def failed(self) -> bool:
        return self.error is not None
