"""Source adapters package."""

from .base import SourceAdapter
from .exa import ExaAdapter
from .factory import ADAPTER_CLASSES, create_adapters
from .firecrawl import FirecrawlAdapter
from .jina import JinaAdapter

__all__ = [
    "ADAPTER_CLASSES",
    "ExaAdapter",
    "FirecrawlAdapter",
    "JinaAdapter",
    "SourceAdapter",
    "create_adapters",
]
