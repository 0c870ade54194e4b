"""coSPEC REST API client."""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType
from typing import Any
from urllib.parse import quote

from loguru import logger

from cospec_nodes.config import CospecCredentials, CospecSettings
from cospec_nodes.errors import ApiError, CospecError
from cospec_nodes.extract import extract_api_error_message
from cospec_nodes.transport import AuthenticatedTransport, HttpRequestOptions, HttpxTransport
from cospec_nodes.types import DataObject

SOURCE_HEADER = "X-Cospec-Source"
SOURCE_HEADER_VALUE = "cospec-nodes"
UNEXPECTED_SHAPE_MESSAGE = "Unexpected response shape from the coSPEC API"


class CospecClient:
    """Authenticated access to the coSPEC API.

    Every failure surfaces as :class:`ApiError` carrying the most specific message
    the response offered.
    """

    def __init__(self, credentials: CospecCredentials, *, transport: AuthenticatedTransport | None = None) -> None:
        self._base_url = credentials.base_url.strip().rstrip("/")
        self._transport = transport or HttpxTransport(credentials)

    @classmethod
    def from_settings(cls, settings: CospecSettings) -> CospecClient:
        credentials = CospecCredentials.from_settings(settings)
        return cls(credentials, transport=HttpxTransport(credentials, timeout=settings.request_timeout_seconds))

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> CospecClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def request(self, method: str, path: str, body: DataObject | None = None) -> Any:
        """Issue one request against ``base_url + path`` and return the parsed body."""

        options = HttpRequestOptions(
            method=method,
            url=f"{self._base_url}{path}",
            body=body,
            headers={SOURCE_HEADER: SOURCE_HEADER_VALUE},
        )
        logger.debug("api.request method={} path={}", method, path)
        try:
            return await self._transport.request(options)
        except CospecError as exc:
            message = extract_api_error_message(exc)
            logger.debug("api.request_failed method={} path={} error={}", method, path, message)
            raise ApiError(message, status_code=getattr(exc, "status_code", None)) from exc

    async def create_run(self, body: DataObject) -> DataObject:
        return _expect_object(await self.request("POST", "/v1/runs", body))

    async def get_run(self, run_id: str) -> DataObject:
        return _expect_object(await self.request("GET", f"/v1/runs/{quote(run_id, safe='')}"))

    async def list_webhooks(self) -> list[DataObject]:
        response = await self.request("GET", "/v1/webhooks")
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def create_webhook(self, url: str, events: Sequence[str]) -> DataObject:
        return _expect_object(await self.request("POST", "/v1/webhooks", {"url": url, "events": list(events)}))

    async def delete_webhook(self, webhook_id: str) -> None:
        await self.request("DELETE", f"/v1/webhooks/{quote(webhook_id, safe='')}")

    async def verify_credentials(self) -> DataObject:
        """Fetch the API key record, which fails when the credentials are rejected."""

        return _expect_object(await self.request("GET", "/v1/api-keys/me"))


def _expect_object(response: Any) -> DataObject:
    if not isinstance(response, dict):
        raise ApiError(f"{UNEXPECTED_SHAPE_MESSAGE}: expected an object, got {type(response).__name__}")
    return response
