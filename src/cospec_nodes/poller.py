"""Run completion polling."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol

from loguru import logger

from cospec_nodes.errors import RunTimeoutError
from cospec_nodes.normalize import flatten_run_output
from cospec_nodes.types import Clock, DataObject, Sleep

POLL_INTERVAL_SECONDS = 5.0
# Slack for the service's own scheduling on top of the run timeout.
TIMEOUT_BUFFER_SECONDS = 60.0
DEFAULT_TIMEOUT_SECONDS = 1800
TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled"})


class RunFetcher(Protocol):
    async def get_run(self, run_id: str) -> DataObject: ...


class RunPoller:
    """Poll one run at a fixed interval until it reaches a terminal status."""

    def __init__(
        self,
        client: RunFetcher,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        timeout_buffer: float = TIMEOUT_BUFFER_SECONDS,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._timeout_buffer = timeout_buffer
        self._clock = clock
        self._sleep = sleep

    async def poll_until_complete(self, run_id: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> DataObject:
        """Return the normalized run once terminal.

        Waits up to ``timeout_seconds`` plus the buffer. Fetch failures propagate
        and end the poll.
        """

        deadline = self._clock() + timeout_seconds + self._timeout_buffer
        attempts = 0
        while self._clock() < deadline:
            await self._sleep(self._poll_interval)

            run = await self._client.get_run(run_id)
            attempts += 1
            status = run.get("status")
            logger.debug("run.poll run_id={} attempt={} status={}", run_id, attempts, status)

            if isinstance(status, str) and status in TERMINAL_STATUSES:
                logger.info("run.finished run_id={} status={} attempts={}", run_id, status, attempts)
                return flatten_run_output(run)

        logger.warning("run.poll_timeout run_id={} timeout_seconds={} attempts={}", run_id, timeout_seconds, attempts)
        raise RunTimeoutError(run_id, timeout_seconds)
