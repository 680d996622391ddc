"""Application settings with Pydantic v2 patterns."""

from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryConfig(BaseModel):
    """Retry configuration settings."""

    max_retries: int = Field(
        default=1, ge=0, le=1, description="Retries after the first attempt"
    )
    base_delay: float = Field(
        default=1.0, gt=0, description="Base delay between retries"
    )
    max_delay: float = Field(
        default=10.0, gt=0, description="Maximum delay between retries"
    )
    exponential_base: float = Field(
        default=2.0, gt=1, description="Exponential backoff base"
    )
    jitter: bool = Field(default=True, description="Add randomization to retry delays")


class ProviderSettings(BaseModel):
    """Source adapter configuration settings."""

    api_key: SecretStr = Field(
        default=SecretStr(""), description="API key for the provider"
    )
    enabled: bool = Field(default=True, description="Whether provider is enabled")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    base_url: str | None = Field(
        default=None, description="Override for the provider's API base URL"
    )


class ExaSettings(ProviderSettings):
    """Exa adapter settings."""

    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")


class JinaSettings(ProviderSettings):
    """Jina adapter settings; off unless explicitly enabled."""

    enabled: bool = Field(default=False, description="Whether provider is enabled")
    timeout: float = Field(default=20.0, gt=0, description="Request timeout in seconds")


class LLMSettings(BaseModel):
    """Completion capability settings (OpenAI-compatible chat completions)."""

    api_key: SecretStr = Field(default=SecretStr(""), description="LLM API key")
    model: str = Field(default="gpt-4o-mini", description="Chat completion model")
    base_url: str = Field(
        default="https://api.openai.com/v1", description="Chat completions base URL"
    )
    timeout: float = Field(default=60.0, gt=0, description="Request timeout in seconds")
    temperature: float = Field(default=0.2, ge=0, le=2, description="Sampling temperature")


class PipelineSettings(BaseModel):
    """Collection settings for a tracker run."""

    results_per_query: int = Field(
        default=5, ge=1, le=50, description="Items requested per query and adapter"
    )
    max_queries: int = Field(
        default=5, ge=1, le=20, description="Maximum queries derived from a prompt"
    )
    adapter_timeout: float = Field(
        default=45.0, gt=0, description="Upper bound for one adapter call in seconds"
    )


class EnrichmentSettings(BaseModel):
    """Language-model enrichment settings."""

    enabled: bool = Field(default=True, description="Whether to enrich items")
    batch_size: int = Field(
        default=10, ge=1, le=10, description="Items per completion call"
    )
    max_concurrent_batches: int = Field(
        default=2, ge=1, description="Completion calls allowed in flight"
    )


class RankerSettings(BaseModel):
    """Ranking settings."""

    trust_bonus: float = Field(
        default=0.5, ge=0, description="Bonus applied to higher-trust sources"
    )
    trusted_sources: list[str] = Field(
        default_factory=lambda: ["exa"],
        description="Adapters whose items receive the trust bonus",
    )
    trusted_domains: list[str] = Field(
        default_factory=lambda: [
            "edu",
            "gov",
            "producthunt.com",
            "github.com",
            "reuters.com",
            "bbc.com",
            "nytimes.com",
        ],
        description="Domains (or domain suffixes) whose items receive the trust bonus",
    )


class StorageSettings(BaseModel):
    """Persistence backend settings."""

    backend: str = Field(default="memory", description="Storage backend")
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: SecretStr = Field(
        default=SecretStr(""), description="Supabase service key"
    )
    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend value."""
        valid_backends = {"memory", "supabase"}
        if v.lower() not in valid_backends:
            raise ValueError(
                f"Invalid storage backend: {v}. Must be one of {valid_backends}"
            )
        return v.lower()


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
        validate_default=True,
    )

    # Application metadata
    app_name: str = Field(default="Tracker Hub", description="Application name")
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Tracker defaults
    default_schedule: str = Field(
        default="0 9 * * *", description="Cron schedule for new trackers"
    )

    # Nested configurations
    retry: RetryConfig = Field(
        default_factory=RetryConfig, description="Retry settings"
    )
    pipeline: PipelineSettings = Field(
        default_factory=PipelineSettings, description="Pipeline settings"
    )
    enrichment: EnrichmentSettings = Field(
        default_factory=EnrichmentSettings, description="Enrichment settings"
    )
    ranker: RankerSettings = Field(
        default_factory=RankerSettings, description="Ranker settings"
    )
    storage: StorageSettings = Field(
        default_factory=StorageSettings, description="Storage settings"
    )
    llm: LLMSettings = Field(default_factory=LLMSettings, description="LLM settings")

    # Source adapters
    firecrawl: ProviderSettings = Field(
        default_factory=ProviderSettings, description="Firecrawl adapter"
    )
    exa: ExaSettings = Field(default_factory=ExaSettings, description="Exa adapter")
    jina: JinaSettings = Field(
        default_factory=JinaSettings, description="Jina adapter"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "staging", "production", "test"}
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    def get_provider_config(self, provider_name: str) -> ProviderSettings | None:
        """Get configuration for a specific source adapter."""
        config = getattr(self, provider_name.lower(), None)
        return config if isinstance(config, ProviderSettings) else None

    def get_enabled_providers(self) -> list[str]:
        """Get list of enabled adapter names."""
        providers = ["firecrawl", "exa", "jina"]
        return [p for p in providers if getattr(self, p).enabled]


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()
