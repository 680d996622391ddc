"""Configuration management module."""

from .settings import (
    AppSettings,
    EnrichmentSettings,
    ExaSettings,
    JinaSettings,
    LLMSettings,
    PipelineSettings,
    ProviderSettings,
    RankerSettings,
    RetryConfig,
    StorageSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "EnrichmentSettings",
    "ExaSettings",
    "JinaSettings",
    "LLMSettings",
    "PipelineSettings",
    "ProviderSettings",
    "RankerSettings",
    "RetryConfig",
    "StorageSettings",
    "get_settings",
]
