"""Authenticated HTTP capability used by the nodes.

Failures are wrapped the way a workflow host wraps them: the exception message is
replaced by a generic phrase for the HTTP status, while the response body and the
original httpx exception stay reachable for callers that want the real reason.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from loguru import logger

from cospec_nodes.config import CospecCredentials
from cospec_nodes.errors import HttpRequestError, TransportError

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
MAX_DESCRIPTION_CHARS = 500

STATUS_MESSAGES: dict[int, str] = {
    400: "Bad request - please check your parameters",
    401: "Authorization failed - please check your credentials",
    403: "Forbidden - perhaps check your credentials?",
    404: "The resource you are requesting could not be found",
    409: "Conflict - the request could not be completed",
    422: "Unprocessable entity - please check your parameters",
    429: "The service is receiving too many requests from you",
    500: "The service was not able to process your request",
    502: "Bad gateway - the service failed to handle your request",
    503: "Service unavailable - try again later",
    504: "Gateway timed out - perhaps try again later?",
}
CONNECTION_FAILED_MESSAGE = "The connection to the service failed"
INVALID_JSON_MESSAGE = "The service returned a response that is not valid JSON"
INVALID_REQUEST_MESSAGE = "The request could not be built"


@dataclass(frozen=True)
class HttpRequestOptions:
    """One outbound request."""

    method: str
    url: str
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


class AuthenticatedTransport(Protocol):
    """Minimal async contract for authenticated HTTP providers."""

    async def request(self, options: HttpRequestOptions) -> Any: ...

    async def aclose(self) -> None: ...


class BearerAuth(httpx.Auth):
    """Attach the API key as a bearer token."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._api_key}"
        yield request


class HttpxTransport:
    """httpx-backed transport that authenticates with stored credentials."""

    def __init__(
        self,
        credentials: CospecCredentials,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            auth=BearerAuth(credentials.api_key),
            timeout=timeout,
            transport=transport,
        )

    async def request(self, options: HttpRequestOptions) -> Any:
        try:
            response = await self._client.request(
                options.method,
                options.url,
                json=options.body,
                headers=options.headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _status_error(exc.response) from exc
        except httpx.RequestError as exc:
            logger.debug("http.transport_failed method={} url={} error={}", options.method, options.url, exc)
            raise TransportError(CONNECTION_FAILED_MESSAGE, description=str(exc) or None) from exc
        except (httpx.InvalidURL, TypeError) as exc:
            # Raised before sending: malformed base URL or a body that is not JSON serializable.
            raise TransportError(INVALID_REQUEST_MESSAGE, description=str(exc) or None) from exc

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(INVALID_JSON_MESSAGE, status_code=response.status_code) from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def status_message(status_code: int) -> str:
    """Generic phrase for one HTTP status code."""

    message = STATUS_MESSAGES.get(status_code)
    if message is not None:
        return message
    if status_code >= 500:
        return STATUS_MESSAGES[500]
    return f"Request failed with status code {status_code}"


def _status_error(response: httpx.Response) -> HttpRequestError:
    context: dict[str, Any] = {}
    description: str | None = None
    try:
        data = response.json()
    except ValueError:
        description = _truncate(response.text) or None
    else:
        context["data"] = data
    return HttpRequestError(
        status_message(response.status_code),
        status_code=response.status_code,
        context=context,
        description=description,
    )


def _truncate(text: str) -> str:
    stripped = text.strip()
    if len(stripped) <= MAX_DESCRIPTION_CHARS:
        return stripped
    return f"{stripped[:MAX_DESCRIPTION_CHARS]}..."
