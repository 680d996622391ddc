"""Bounded retry for calls to external services.

Only failures that tend to clear up on their own are retried: timeouts,
dropped connections, rate limits and 5xx answers. Everything else is raised
on the first attempt.
"""

import asyncio
import random
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar, cast

import httpx

from ..config.settings import RetryConfig
from .errors import (
    NetworkError,
    ProviderRateLimitError,
    ProviderServiceError,
    ProviderTimeoutError,
    TrackerHubError,
)
from .logging import get_logger

logger = get_logger(__name__)

AsyncFunc = TypeVar("AsyncFunc", bound=Callable[..., Any])

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
    ProviderTimeoutError,
    ProviderRateLimitError,
    NetworkError,
)

_TRANSIENT_WORDS = ("temporar", "timeout", "try again", "overloaded", "busy")


def backoff_delay(config: RetryConfig, attempt: int) -> float:
    """Seconds to wait before retry number ``attempt`` (0-based)."""
    delay = min(config.base_delay * config.exponential_base**attempt, config.max_delay)
    if config.jitter:
        delay *= random.uniform(0.75, 1.25)
    return max(0.0, delay)


def is_retryable_exception(exc: Exception) -> bool:
    """Whether ``exc`` looks transient."""
    if isinstance(exc, TRANSIENT_ERRORS):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in TRANSIENT_STATUS_CODES
    if isinstance(exc, ProviderServiceError) and exc.status_code in TRANSIENT_STATUS_CODES:
        return True
    if isinstance(exc, TrackerHubError):
        message = str(exc).lower()
        return any(word in message for word in _TRANSIENT_WORDS)
    return False


def format_exception_for_log(exc: Exception) -> str:
    """One-line description of ``exc`` with its structured context."""
    text = f"{type(exc).__name__}: {exc}"

    if isinstance(exc, TrackerHubError):
        context = [f"provider={exc.provider}"] if exc.provider else []
        context.append(f"status={int(exc.status_code)}")
        context.extend(f"{key}={value}" for key, value in exc.details.items())
        text += f" [{', '.join(context)}]"
        if exc.original_error is not None:
            cause = exc.original_error
            text += f" caused by {type(cause).__name__}: {cause}"
    elif isinstance(exc, httpx.HTTPStatusError):
        text += f" [HTTP {exc.response.status_code}]"

    return text


def with_exponential_backoff(
    config: RetryConfig | None = None,
    on_retry: Callable[[Exception, int], None] | None = None,
) -> Callable[[AsyncFunc], AsyncFunc]:
    """Retry an async callable on transient failures.

    Args:
        config: Retry policy; defaults to one retry after about a second
        on_retry: Called with (exception, attempt) before each retry
    """
    config = config or RetryConfig()

    def decorator(func: AsyncFunc) -> AsyncFunc:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    if attempt >= config.max_retries or not is_retryable_exception(exc):
                        raise

                    delay = backoff_delay(config, attempt)
                    logger.warning(
                        f"{func.__name__} failed with {format_exception_for_log(exc)}; "
                        f"retry {attempt + 1}/{config.max_retries} in {delay:.2f}s"
                    )
                    if on_retry:
                        on_retry(exc, attempt)

                    await asyncio.sleep(delay)
                    attempt += 1

        return cast(AsyncFunc, wrapper)

    return decorator
