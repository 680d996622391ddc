"""Exceptions raised by Tracker Hub.

Everything derives from ``TrackerHubError``, which carries an HTTP status,
the adapter name when one is involved, the wrapped cause and a dict of
structured details for logs and CLI output.
"""

import http
from typing import Any, TypeVar

E = TypeVar("E", bound="TrackerHubError")


def _details(kwargs: dict[str, Any], **values: Any) -> dict[str, Any]:
    """Pop caller-supplied details and add the non-empty ``values``."""
    details = dict(kwargs.pop("details", None) or {})
    details.update({key: value for key, value in values.items() if value})
    return details


class TrackerHubError(Exception):
    """Root of the Tracker Hub exception family.

    Args:
        message: Text shown to the user
        provider: Source adapter involved, if any
        status_code: Status reported when the error leaves the service
        original_error: Exception this one wraps
        details: Extra context, merged into ``to_dict``
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.original_error = original_error
        self.details = details or {}

    @classmethod
    def from_exception(
        cls: type[E], exc: Exception, message: str | None = None, **kwargs
    ) -> E:
        """Wrap ``exc``, reusing its text unless ``message`` is given."""
        return cls(message=message or str(exc), original_error=exc, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
        }
        if self.provider:
            data["provider"] = self.provider
        if self.details:
            data["details"] = self.details
        return data


class ProviderError(TrackerHubError):
    """A source adapter call went wrong."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int = http.HTTPStatus.BAD_GATEWAY,
        **kwargs,
    ):
        super().__init__(message, provider, status_code, **kwargs)


class ProviderTimeoutError(ProviderError):
    """An adapter call ran past its time budget."""

    def __init__(
        self,
        provider: str,
        operation: str | None = None,
        timeout: float | None = None,
        message: str | None = None,
        status_code: int = http.HTTPStatus.GATEWAY_TIMEOUT,
        **kwargs,
    ):
        details = _details(kwargs, operation=operation, timeout_seconds=timeout)
        if not message:
            parts = [f"Provider '{provider}' timed out"]
            if operation:
                parts.append(f"during {operation}")
            if timeout:
                parts.append(f"after {timeout}s")
            message = " ".join(parts)
        super().__init__(message, provider, status_code, details=details, **kwargs)


class ProviderRateLimitError(ProviderError):
    """The provider refused the call with a rate limit."""

    def __init__(
        self,
        provider: str,
        retry_after: float | None = None,
        message: str | None = None,
        status_code: int = http.HTTPStatus.TOO_MANY_REQUESTS,
        **kwargs,
    ):
        details = _details(kwargs)
        if retry_after is not None:
            details["retry_after_seconds"] = retry_after
        super().__init__(
            message or f"Provider '{provider}' rate limit exceeded",
            provider,
            status_code,
            details=details,
            **kwargs,
        )


class ProviderServiceError(ProviderError):
    """The provider answered with a 5xx or a payload we cannot read."""

    def __init__(
        self,
        provider: str,
        message: str | None = None,
        status_code: int = http.HTTPStatus.BAD_GATEWAY,
        **kwargs,
    ):
        super().__init__(
            message or f"Provider '{provider}' service error",
            provider,
            status_code,
            **kwargs,
        )


class NetworkError(TrackerHubError):
    """Connection-level failure outside any single provider."""

    def __init__(
        self,
        message: str,
        status_code: int = http.HTTPStatus.SERVICE_UNAVAILABLE,
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)


class CompletionError(TrackerHubError):
    """The language model endpoint failed or answered with nothing usable."""

    def __init__(
        self,
        message: str,
        model: str | None = None,
        status_code: int = http.HTTPStatus.BAD_GATEWAY,
        **kwargs,
    ):
        details = _details(kwargs, model=model)
        super().__init__(message, status_code=status_code, details=details, **kwargs)


class ConfigurationError(TrackerHubError):
    """Settings are missing or inconsistent."""

    def __init__(
        self,
        message: str,
        status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)


class TrackerConfigurationError(ConfigurationError):
    """A tracker's prompt or stored configuration cannot be run."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        status_code: int = http.HTTPStatus.BAD_REQUEST,
        **kwargs,
    ):
        details = _details(kwargs, field=field)
        super().__init__(message, status_code=status_code, details=details, **kwargs)


class PersistenceError(TrackerHubError):
    """The repository could not read or write."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        status_code: int = http.HTTPStatus.INTERNAL_SERVER_ERROR,
        **kwargs,
    ):
        details = _details(kwargs, operation=operation)
        super().__init__(message, status_code=status_code, details=details, **kwargs)


class TrackerNotFoundError(TrackerHubError):
    def __init__(
        self,
        tracker_id: str,
        message: str | None = None,
        status_code: int = http.HTTPStatus.NOT_FOUND,
        **kwargs,
    ):
        self.tracker_id = tracker_id
        super().__init__(
            message or f"Tracker '{tracker_id}' not found",
            status_code=status_code,
            **kwargs,
        )


class TrackerPermissionError(TrackerHubError):
    """Someone other than the owner tried to see or change a tracker."""

    def __init__(
        self,
        tracker_id: str,
        owner_id: str | None = None,
        message: str | None = None,
        status_code: int = http.HTTPStatus.FORBIDDEN,
        **kwargs,
    ):
        details = _details(kwargs, tracker_id=tracker_id, owner_id=owner_id)
        super().__init__(
            message or f"Not allowed to modify tracker '{tracker_id}'",
            status_code=status_code,
            details=details,
            **kwargs,
        )


class RunInProgressError(TrackerHubError):
    """A run was requested while the tracker's previous run is still going."""

    def __init__(
        self,
        tracker_id: str,
        message: str | None = None,
        status_code: int = http.HTTPStatus.CONFLICT,
        **kwargs,
    ):
        self.tracker_id = tracker_id
        super().__init__(
            message or f"Tracker '{tracker_id}' already has a run in progress",
            status_code=status_code,
            **kwargs,
        )


def format_exception(e: Exception) -> dict[str, Any]:
    """Serializable view of any exception."""
    if isinstance(e, TrackerHubError):
        return e.to_dict()
    return {"error_type": type(e).__name__, "message": str(e)}
