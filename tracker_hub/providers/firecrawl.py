"""Firecrawl source adapter implementation."""

from typing import Any

from ..models.query import SearchQuery
from ..models.results import CandidateItem, FirecrawlDetails
from ..utils.errors import ProviderServiceError
from .base import SourceAdapter

SNIPPET_LENGTH = 200


class FirecrawlAdapter(SourceAdapter):
    """Broad-crawl web search through the Firecrawl API."""

    name = "firecrawl"
    default_base_url = "https://api.firecrawl.dev"

    async def search_impl(self, query: SearchQuery) -> list[CandidateItem]:
        """Execute a search using the Firecrawl search endpoint."""
        search_options = {
            "query": query.query,
            "limit": query.max_results,
            # Screenshots double as the item image in the feed
            "scrapeOptions": {
                "formats": ["markdown", "screenshot"],
                "onlyMainContent": True,
            },
        }

        response = await self.client.post(
            f"{self.base_url}/v1/search",
            headers=self._auth_headers(),
            timeout=self.config.timeout,
            json=search_options,
        )
        self._raise_for_status(response)
        data = self._parse_json(response)

        if data.get("success") is False:
            raise ProviderServiceError(
                self.name, message=data.get("error") or "Firecrawl search failed"
            )

        # v1 returns "data"; older deployments answered with "results"
        raw_items = data.get("data") or data.get("results") or []
        return [self._to_item(item) for item in raw_items if isinstance(item, dict)]

    def _to_item(self, item: dict[str, Any]) -> CandidateItem:
        page_meta = item.get("metadata") or {}
        markdown = item.get("markdown") or item.get("content")
        screenshot = item.get("screenshot")

        images = []
        if screenshot:
            images.append(screenshot)
        og_image = page_meta.get("ogImage") or page_meta.get("og:image")
        if og_image and og_image not in images:
            images.append(og_image)

        snippet = item.get("description") or page_meta.get("description") or ""
        if not snippet and markdown:
            snippet = markdown[:SNIPPET_LENGTH]

        return CandidateItem(
            title=item.get("title") or page_meta.get("title") or "",
            url=item.get("url") or page_meta.get("sourceURL") or "",
            snippet=snippet,
            images=images,
            sources=[self.name],
            score=item.get("score"),
            details=[
                FirecrawlDetails(
                    markdown=markdown,
                    screenshot=screenshot,
                    published_time=page_meta.get("publishedTime")
                    or page_meta.get("article:published_time"),
                )
            ],
        )
