"""Construction of source adapters from settings."""

import httpx

from ..config.settings import AppSettings
from ..utils.logging import get_logger
from .base import SourceAdapter
from .exa import ExaAdapter
from .firecrawl import FirecrawlAdapter
from .jina import JinaAdapter

logger = get_logger(__name__)

ADAPTER_CLASSES: dict[str, type[SourceAdapter]] = {
    FirecrawlAdapter.name: FirecrawlAdapter,
    ExaAdapter.name: ExaAdapter,
    JinaAdapter.name: JinaAdapter,
}


def create_adapters(
    settings: AppSettings,
    client: httpx.AsyncClient | None = None,
) -> dict[str, SourceAdapter]:
    """Build every enabled adapter that has an API key configured.

    Args:
        settings: Application settings
        client: Optional shared HTTP client handed to every adapter

    Returns:
        Mapping of adapter name to adapter instance
    """
    adapters: dict[str, SourceAdapter] = {}
    for name in settings.get_enabled_providers():
        provider_config = settings.get_provider_config(name)
        if provider_config is None:
            continue
        if not provider_config.api_key.get_secret_value():
            logger.warning(f"Skipping source adapter {name}: no API key configured")
            continue

        adapters[name] = ADAPTER_CLASSES[name](
            config=provider_config,
            client=client,
            retry_config=settings.retry,
            call_timeout=settings.pipeline.adapter_timeout,
        )

    logger.info(f"Initialized source adapters: {', '.join(adapters) or 'none'}")
    return adapters
