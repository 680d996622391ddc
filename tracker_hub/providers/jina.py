"""Jina search source adapter implementation."""

from typing import Any

from ..models.query import SearchQuery
from ..models.results import CandidateItem, JinaDetails
from .base import SourceAdapter

SNIPPET_LENGTH = 200


class JinaAdapter(SourceAdapter):
    """Reader-backed web search through the Jina search endpoint."""

    name = "jina"
    default_base_url = "https://s.jina.ai"

    async def search_impl(self, query: SearchQuery) -> list[CandidateItem]:
        """Execute a search using Jina's JSON search mode."""
        headers = self._auth_headers()
        headers["Accept"] = "application/json"

        response = await self.client.get(
            f"{self.base_url}/",
            params={"q": query.query},
            headers=headers,
            timeout=self.config.timeout,
        )
        self._raise_for_status(response)
        data = self._parse_json(response)

        raw_items = data.get("data") or []
        return [
            self._to_item(item) for item in raw_items[: query.max_results]
            if isinstance(item, dict)
        ]

    def _to_item(self, item: dict[str, Any]) -> CandidateItem:
        content = item.get("content")
        snippet = item.get("description") or (content or "")[:SNIPPET_LENGTH]
        raw_images = item.get("images") or []
        if isinstance(raw_images, dict):
            raw_images = list(raw_images.values())
        images = [url for url in raw_images if isinstance(url, str) and url]

        return CandidateItem(
            title=item.get("title") or "",
            url=item.get("url") or "",
            snippet=snippet,
            images=images,
            sources=[self.name],
            details=[JinaDetails(content=content, published_time=item.get("date"))],
        )
