from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

import httpx
import pytest

from cospec_nodes.client import CospecClient
from cospec_nodes.config import CospecCredentials
from cospec_nodes.transport import HttpxTransport

BASE_URL = "https://api.cospec.test"

Handler: TypeAlias = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client() -> Callable[[Handler], CospecClient]:
    def _make(handler: Handler) -> CospecClient:
        credentials = CospecCredentials(api_key="csk_test_123", base_url=f"{BASE_URL}/")
        transport = HttpxTransport(credentials, transport=httpx.MockTransport(handler))
        return CospecClient(credentials, transport=transport)

    return _make
