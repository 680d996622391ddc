"""Persistence backends for trackers, runs and results."""

import httpx

from ..config.settings import AppSettings
from ..utils.errors import ConfigurationError
from .memory import InMemoryTrackerRepository
from .supabase import SupabaseTrackerRepository


def create_repository(
    settings: AppSettings, client: httpx.AsyncClient | None = None
) -> InMemoryTrackerRepository | SupabaseTrackerRepository:
    """Build the repository selected by ``settings.storage.backend``."""
    storage = settings.storage
    if storage.backend == "memory":
        return InMemoryTrackerRepository()

    key = storage.supabase_key.get_secret_value()
    if not storage.supabase_url or not key:
        raise ConfigurationError(
            "Supabase storage requires STORAGE__SUPABASE_URL and STORAGE__SUPABASE_KEY"
        )
    return SupabaseTrackerRepository(
        storage.supabase_url, key, client=client, timeout=storage.timeout
    )


__all__ = [
    "InMemoryTrackerRepository",
    "SupabaseTrackerRepository",
    "create_repository",
]
