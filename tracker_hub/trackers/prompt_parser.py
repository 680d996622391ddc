"""Turn a natural-language tracking request into a tracker configuration."""

import re

from pydantic import ValidationError

from ..llm.prompts import PARSE_PROMPT_SYSTEM
from ..models.interfaces import CompletionCapability
from ..models.tracker import ParsedPrompt
from ..utils.errors import TrackerConfigurationError
from ..utils.logging import get_logger

logger = get_logger(__name__)

FALLBACK_NAME_LENGTH = 50
FALLBACK_SOURCES = ["web"]


class PromptParser:
    """Derives name, description, platforms and queries from a prompt.

    When no completion capability is available, or its answer cannot be used,
    the parser falls back to treating the prompt itself as the only query.
    """

    def __init__(
        self, completion: CompletionCapability | None = None, max_queries: int = 5
    ):
        self.completion = completion
        self.max_queries = max_queries

    async def parse(self, prompt: str) -> ParsedPrompt:
        """Parse ``prompt`` into a ParsedPrompt.

        Raises:
            TrackerConfigurationError: if the prompt is blank
        """
        if not prompt or not prompt.strip():
            raise TrackerConfigurationError(
                "Tracker prompt must not be empty", field="prompt"
            )
        prompt = prompt.strip()

        if self.completion is None:
            return self.fallback(prompt)

        try:
            answer = await self.completion.complete(PARSE_PROMPT_SYSTEM, prompt)
            parsed = ParsedPrompt.model_validate_json(answer)
        except ValidationError as e:
            logger.warning(
                f"Prompt parse answer was invalid ({e.error_count()} errors), "
                "using fallback"
            )
            return self.fallback(prompt)
        except Exception as e:
            logger.warning(f"Prompt parsing failed, using fallback: {e}")
            return self.fallback(prompt)

        return self._clean(parsed, prompt)

    def fallback(self, prompt: str) -> ParsedPrompt:
        return ParsedPrompt(
            name=prompt[:FALLBACK_NAME_LENGTH],
            description=prompt,
            sources=list(FALLBACK_SOURCES),
            queries=[prompt],
        )

    def _clean(self, parsed: ParsedPrompt, prompt: str) -> ParsedPrompt:
        queries = _unique(parsed.queries)[: self.max_queries] or [prompt]
        sources = _unique(source.lower() for source in parsed.sources)

        return ParsedPrompt(
            name=re.sub(r"\s+", " ", parsed.name).strip()[:FALLBACK_NAME_LENGTH]
            or prompt[:FALLBACK_NAME_LENGTH],
            description=parsed.description.strip() or prompt,
            sources=sources or list(FALLBACK_SOURCES),
            queries=queries,
        )


def _unique(values) -> list[str]:
    """Strip values and drop blanks and case-insensitive repeats."""
    seen: set[str] = set()
    unique = []
    for value in values:
        value = (value or "").strip()
        if value and value.casefold() not in seen:
            seen.add(value.casefold())
            unique.append(value)
    return unique
