"""Retry support shared by source adapters."""

from ..config import RetryConfig, get_settings
from ..utils.retry import with_exponential_backoff


class RetryMixin:
    """Gives an adapter a ``with_retry`` wrapper driven by its retry policy."""

    retry_config: RetryConfig | None = None

    def get_retry_config(self) -> RetryConfig:
        """The injected policy, or the application-wide one."""
        return self.retry_config or get_settings().retry

    def with_retry(self, func):
        return with_exponential_backoff(config=self.get_retry_config())(func)
