"""Language-model completion capability."""

from .client import OpenAICompletionClient

__all__ = ["OpenAICompletionClient"]
