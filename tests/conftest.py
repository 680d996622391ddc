"""Test configuration for Tracker Hub."""

import json

import pytest

from tracker_hub.config import AppSettings, get_settings
from tracker_hub.models.results import CandidateItem, SourceResponse
from tracker_hub.utils.errors import CompletionError


@pytest.fixture
def mock_env(monkeypatch):
    """Mock environment variables for testing."""
    monkeypatch.setenv("FIRECRAWL__API_KEY", "test_firecrawl_key")
    monkeypatch.setenv("EXA__API_KEY", "test_exa_key")
    monkeypatch.setenv("JINA__API_KEY", "test_jina_key")
    monkeypatch.setenv("LLM__API_KEY", "test_llm_key")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("RETRY__BASE_DELAY", "0.01")

    # Clear lru_cache to ensure it picks up the new env vars
    get_settings.cache_clear()

    yield

    # Clean up
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return AppSettings(_env_file=None)


def make_item(
    title="Item",
    url="",
    source="firecrawl",
    images=None,
    snippet="",
    **kwargs,
) -> CandidateItem:
    return CandidateItem(
        title=title,
        url=url,
        snippet=snippet,
        images=images or [],
        sources=[source],
        **kwargs,
    )


class FakeAdapter:
    """Search capability returning canned items, or failing on demand."""

    def __init__(self, name, items=None, error=None, raises=None):
        self.name = name
        self.items = items or []
        self.error = error
        self.raises = raises
        self.calls = []

    async def search(self, query, limit):
        self.calls.append((query, limit))
        if self.raises is not None:
            raise self.raises
        if self.error is not None:
            return SourceResponse(items=[], query=query, provider=self.name, error=self.error)
        return SourceResponse(
            items=[item.model_copy(deep=True) for item in self.items[:limit]],
            query=query,
            provider=self.name,
        )


class FakeCompletion:
    """Completion capability answering from a script of replies.

    A reply may be a string, a dict (serialized to JSON), an exception to
    raise, or a callable receiving (system_instructions, user_payload).
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, system_instructions, user_payload):
        self.calls.append((system_instructions, user_payload))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]

        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(system_instructions, user_payload)
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return reply


def score_by_title(scores):
    """Build a completion reply scoring each batch item by its title."""

    def reply(_system, payload):
        batch = json.loads(payload)
        return {
            "results": [
                {
                    "index": entry["index"],
                    "score": scores[entry["title"]],
                    "summary": f"About {entry['title']}",
                    "tags": ["tag"],
                    "sentiment": "Neutral",
                }
                for entry in batch
                if entry["title"] in scores
            ]
        }

    return reply


@pytest.fixture
def failing_completion():
    return FakeCompletion(CompletionError("model unavailable", model="test"))
