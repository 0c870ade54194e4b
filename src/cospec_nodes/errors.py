"""Application-level exception types for coSPEC nodes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class CospecError(Exception):
    """Base exception for coSPEC nodes."""


class ConfigurationError(CospecError):
    """Base exception for configuration and startup validation errors."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when the coSPEC API key is missing."""


class HttpRequestError(CospecError):
    """Raised by the host HTTP layer.

    The message is a generic phrase for the HTTP status. The response body, when
    one was received, is kept in ``context["data"]`` and the underlying httpx
    exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        context: Mapping[str, Any] | None = None,
        description: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.context: dict[str, Any] = dict(context or {})
        self.description = description


class TransportError(HttpRequestError):
    """Raised when a request never produced an HTTP response."""


class ApiError(CospecError):
    """Normalized coSPEC API failure with the most specific message available."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RunTimeoutError(CospecError, TimeoutError):
    """Raised when a run does not reach a terminal status in time."""

    def __init__(self, run_id: str, timeout_seconds: float) -> None:
        super().__init__(f"Run {run_id} did not complete within {_format_seconds(timeout_seconds)}s timeout")
        self.run_id = run_id
        self.timeout_seconds = timeout_seconds


class WebhookRegistrationError(CospecError):
    """Raised when the coSPEC API rejects a webhook registration."""


class NodeOperationError(CospecError):
    """Item-level node failure."""

    def __init__(self, message: str, *, item_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.item_index = item_index


def _format_seconds(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
