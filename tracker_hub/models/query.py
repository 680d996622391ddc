"""Query models."""

from pydantic import BaseModel, Field


class SearchQuery(BaseModel):
    """A search query sent to a source adapter."""

    query: str = Field(..., description="The search query text")
    max_results: int = Field(
        5, description="Maximum number of results to return", ge=1, le=100
    )
