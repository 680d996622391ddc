"""OpenAI-compatible chat completion client."""

import time
from typing import Any

import httpx

from ..config.settings import LLMSettings
from ..utils.errors import CompletionError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class OpenAICompletionClient:
    """Completion capability backed by a chat completions endpoint.

    Requests JSON-object responses and returns the message content as text;
    callers own parsing and validation of that text.
    """

    def __init__(
        self,
        config: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or LLMSettings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=self.config.timeout)

        self.metrics = {
            "total_calls": 0,
            "failed_calls": 0,
            "avg_response_time_ms": 0.0,
        }

    async def complete(self, system_instructions: str, user_payload: str) -> str:
        """Return the model's JSON answer as text.

        Raises:
            CompletionError: when the endpoint fails or answers without content
        """
        start_time = time.time()
        self.metrics["total_calls"] += 1

        try:
            response = await self.client.post(
                f"{self.config.base_url.rstrip('/')}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.config.api_key.get_secret_value()}"
                },
                timeout=self.config.timeout,
                json={
                    "model": self.config.model,
                    "temperature": self.config.temperature,
                    "response_format": {"type": "json_object"},
                    "messages": [
                        {"role": "system", "content": system_instructions},
                        {"role": "user", "content": user_payload},
                    ],
                },
            )
            response.raise_for_status()
            content = self._extract_content(response.json())
        except CompletionError:
            self.metrics["failed_calls"] += 1
            raise
        except (httpx.HTTPError, ValueError) as e:
            self.metrics["failed_calls"] += 1
            raise CompletionError(
                f"Completion request failed: {e}",
                model=self.config.model,
                original_error=e,
            ) from e

        elapsed_ms = (time.time() - start_time) * 1000
        calls = self.metrics["total_calls"] - self.metrics["failed_calls"]
        self.metrics["avg_response_time_ms"] = (
            self.metrics["avg_response_time_ms"] * (calls - 1) + elapsed_ms
        ) / max(1, calls)

        return content

    def _extract_content(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError(
                "Completion response has no message content",
                model=self.config.model,
                original_error=e,
            ) from e

        if not content:
            raise CompletionError(
                "Completion response content is empty", model=self.config.model
            )
        return content

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()
