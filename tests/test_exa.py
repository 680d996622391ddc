"""Tests for the Exa source adapter."""

import httpx
import pytest
import respx

from tracker_hub.config import ProviderSettings
from tracker_hub.providers.exa import ExaAdapter
from tracker_hub.config import RetryConfig


@pytest.fixture
def exa_adapter():
    return ExaAdapter(
        config=ProviderSettings(api_key="test_exa_key"),
        retry_config=RetryConfig(max_retries=1, base_delay=0.01, jitter=False),
    )


@pytest.mark.asyncio
@respx.mock
async def test_search_maps_results(exa_adapter):
    route = respx.post("https://api.exa.ai/search").mock(
        return_value=httpx.Response(
            200,
            json={
                "results": [
                    {
                        "title": "Neural result",
                        "url": "https://example.org/post",
                        "text": "t" * 1500,
                        "score": 0.87,
                        "image": "https://example.org/cover.jpg",
                        "author": "Jane",
                        "publishedDate": "2024-07-04",
                        "highlights": ["key sentence"],
                    }
                ]
            },
        )
    )

    response = await exa_adapter.search("ai tools", 5)

    assert route.called
    sent = route.calls.last.request
    assert sent.headers["Authorization"] == "Bearer test_exa_key"
    assert b'"numResults":5' in sent.content.replace(b" ", b"")

    item = response.items[0]
    assert item.title == "Neural result"
    assert len(item.snippet) == 1000
    assert item.score == 0.87
    assert item.images == ["https://example.org/cover.jpg"]
    assert item.sources == ["exa"]
    assert item.details[0].author == "Jane"
    assert item.details[0].highlights == ["key sentence"]


@pytest.mark.asyncio
@respx.mock
async def test_server_error_is_retried_once(exa_adapter):
    route = respx.post("https://api.exa.ai/search").mock(
        side_effect=[
            httpx.Response(503),
            httpx.Response(200, json={"results": [{"title": "ok", "url": "https://o.k"}]}),
        ]
    )

    response = await exa_adapter.search("q", 5)

    assert route.call_count == 2
    assert [item.title for item in response.items] == ["ok"]


@pytest.mark.asyncio
@respx.mock
async def test_retry_is_attempted_at_most_once(exa_adapter):
    route = respx.post("https://api.exa.ai/search").mock(
        return_value=httpx.Response(503)
    )

    response = await exa_adapter.search("q", 5)

    assert route.call_count == 2
    assert response.failed
    assert response.items == []


@pytest.mark.asyncio
@respx.mock
async def test_client_errors_are_not_retried(exa_adapter):
    route = respx.post("https://api.exa.ai/search").mock(
        return_value=httpx.Response(400)
    )

    response = await exa_adapter.search("q", 5)

    assert route.call_count == 1
    assert response.failed


@pytest.mark.asyncio
@respx.mock
async def test_invalid_json_is_reported(exa_adapter):
    respx.post("https://api.exa.ai/search").mock(
        return_value=httpx.Response(200, content=b"<html>")
    )

    response = await exa_adapter.search("q", 5)

    assert response.failed
    assert "invalid JSON" in response.error
