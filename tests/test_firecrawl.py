"""Tests for the Firecrawl source adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tracker_hub.config import ProviderSettings
from tracker_hub.providers.firecrawl import FirecrawlAdapter
from tracker_hub.config import RetryConfig


@pytest.fixture
def firecrawl_adapter():
    """Create a Firecrawl adapter with a mocked HTTP client."""
    client = MagicMock()
    client.post = AsyncMock()
    client.aclose = AsyncMock()
    return FirecrawlAdapter(
        config=ProviderSettings(api_key="test_firecrawl_key"),
        client=client,
        retry_config=RetryConfig(max_retries=0),
    )


def mock_response(data, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.json.return_value = data
    return response


@pytest.mark.asyncio
async def test_search(firecrawl_adapter):
    """Test the basic search functionality."""
    firecrawl_adapter.client.post.return_value = mock_response(
        {
            "success": True,
            "data": [
                {
                    "title": "Test Result",
                    "url": "https://example.com",
                    "description": "This is a test result",
                    "markdown": "# Full page",
                    "screenshot": "https://cdn.firecrawl.dev/shot.png",
                    "metadata": {
                        "ogImage": "https://example.com/og.png",
                        "publishedTime": "2024-05-01T08:00:00Z",
                    },
                }
            ],
        }
    )

    response = await firecrawl_adapter.search("test query", 3)

    assert response.query == "test query"
    assert response.provider == "firecrawl"
    assert response.failed is False
    item = response.items[0]
    assert item.title == "Test Result"
    assert item.url == "https://example.com"
    assert item.snippet == "This is a test result"
    assert item.sources == ["firecrawl"]
    assert item.images == [
        "https://cdn.firecrawl.dev/shot.png",
        "https://example.com/og.png",
    ]
    assert item.details[0].markdown == "# Full page"
    assert item.details[0].published_time == "2024-05-01T08:00:00Z"

    args, kwargs = firecrawl_adapter.client.post.call_args
    assert args[0] == "https://api.firecrawl.dev/v1/search"
    assert kwargs["json"]["query"] == "test query"
    assert kwargs["json"]["limit"] == 3
    assert kwargs["json"]["scrapeOptions"]["formats"] == ["markdown", "screenshot"]
    assert kwargs["headers"]["Authorization"] == "Bearer test_firecrawl_key"


@pytest.mark.asyncio
async def test_snippet_falls_back_to_markdown(firecrawl_adapter):
    firecrawl_adapter.client.post.return_value = mock_response(
        {"data": [{"title": "T", "url": "https://e.com", "markdown": "m" * 500}]}
    )

    response = await firecrawl_adapter.search("q", 5)

    assert response.items[0].snippet == "m" * 200
    assert response.items[0].images == []


@pytest.mark.asyncio
async def test_unsuccessful_answer_is_reported(firecrawl_adapter):
    firecrawl_adapter.client.post.return_value = mock_response(
        {"success": False, "error": "Insufficient credits"}
    )

    response = await firecrawl_adapter.search("q", 5)

    assert response.items == []
    assert "Insufficient credits" in response.error


@pytest.mark.asyncio
async def test_http_errors_never_raise(firecrawl_adapter):
    firecrawl_adapter.client.post.return_value = mock_response({}, status_code=401)

    response = await firecrawl_adapter.search("q", 5)

    assert response.failed
    assert "401" in response.error
    assert firecrawl_adapter.get_metrics()["failed_queries"] == 1


@pytest.mark.asyncio
async def test_cleanup_leaves_injected_client_open(firecrawl_adapter):
    await firecrawl_adapter.cleanup()

    firecrawl_adapter.client.aclose.assert_not_called()
