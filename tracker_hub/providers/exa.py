"""Exa source adapter implementation."""

from typing import Any

from ..models.query import SearchQuery
from ..models.results import CandidateItem, ExaDetails
from .base import SourceAdapter

SNIPPET_LENGTH = 1000


class ExaAdapter(SourceAdapter):
    """Semantic (neural) search through the Exa API."""

    name = "exa"
    default_base_url = "https://api.exa.ai"

    async def search_impl(self, query: SearchQuery) -> list[CandidateItem]:
        """Execute a search using the Exa search endpoint."""
        response = await self.client.post(
            f"{self.base_url}/search",
            headers=self._auth_headers(),
            timeout=self.config.timeout,
            json={
                "query": query.query,
                "numResults": query.max_results,
                "contents": {
                    "text": {"maxCharacters": SNIPPET_LENGTH},
                    "highlights": True,
                },
            },
        )
        self._raise_for_status(response)
        data = self._parse_json(response)

        return [
            self._to_item(item)
            for item in data.get("results", [])
            if isinstance(item, dict)
        ]

    def _to_item(self, item: dict[str, Any]) -> CandidateItem:
        image = item.get("image")
        return CandidateItem(
            title=item.get("title") or "",
            url=item.get("url") or "",
            snippet=(item.get("text") or "")[:SNIPPET_LENGTH],
            images=[image] if image else [],
            sources=[self.name],
            score=item.get("score"),
            details=[
                ExaDetails(
                    author=item.get("author"),
                    published_date=item.get("publishedDate"),
                    highlights=item.get("highlights") or [],
                )
            ],
        )
