from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from cospec_nodes.errors import NodeOperationError
from cospec_nodes.nodes.cospec import CREATE_RUN, GET_RUN, CospecNode
from cospec_nodes.types import ExecutionContext

RAW_RUN = {
    "id": "run_abc123",
    "repo": "acme/widgets",
    "callbackUrl": "https://hooks.example/cb",
    "templateId": "tpl_node",
    "outputs": [
        {"type": "branch", "name": "cospec/fix-auth"},
        {"type": "pr", "url": "https://github.com/acme/widgets/pull/9", "title": "Fix auth", "number": 9},
        {"type": "text", "content": "Fixed the token refresh bug."},
    ],
}


class FakeApi:
    """In-memory stand-in for the runs endpoints."""

    def __init__(self, statuses: list[str]) -> None:
        self.statuses = statuses
        self.created: list[dict[str, Any]] = []
        self.fetches = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/v1/runs":
            self.created.append(json.loads(request.content))
            return httpx.Response(201, json={**RAW_RUN, "status": "queued", "outputs": []})
        if request.method == "GET" and request.url.path == "/v1/runs/run_abc123":
            status = self.statuses[min(self.fetches, len(self.statuses) - 1)]
            self.fetches += 1
            return httpx.Response(200, json={**RAW_RUN, "status": status})
        return httpx.Response(404, json={"title": "Not Found", "detail": f"Run {request.url.path.rsplit('/', 1)[-1]} not found"})


def _context(client, clock, items: list[dict[str, Any]], *, continue_on_fail: bool = False) -> ExecutionContext:
    return ExecutionContext(client=client, items=items, continue_on_fail=continue_on_fail, clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_create_run_waits_and_returns_normalized_run(make_client, clock) -> None:
    api = FakeApi(["running", "completed"])
    parameters = {
        "operation": CREATE_RUN,
        "repo": "acme/widgets",
        "prompt": "Fix the bug in auth.ts and create a PR",
        "guardrails": {"timeoutSeconds": 300},
        "env": {"values": [{"key": "NODE_ENV", "value": "test"}]},
    }

    async with make_client(api) as client:
        items = await CospecNode().execute(_context(client, clock, [parameters]))

    assert api.created == [
        {
            "repo": "acme/widgets",
            "prompt": "Fix the bug in auth.ts and create a PR",
            "template": "node",
            "model": "sonnet",
            "guardrails": {"timeoutSeconds": 300},
            "env": {"NODE_ENV": "test"},
        }
    ]
    assert api.fetches == 2
    assert len(items) == 1
    result = items[0].json
    assert items[0].paired_item == 0
    assert result["status"] == "completed"
    assert result["pr"] == {"url": "https://github.com/acme/widgets/pull/9", "title": "Fix auth", "number": 9}
    assert result["branch"] == {"name": "cospec/fix-auth"}
    assert result["summary"] == "Fixed the token refresh bug."
    assert "callbackUrl" not in result
    assert "templateId" not in result


@pytest.mark.asyncio
async def test_create_run_without_waiting_returns_creation_response(make_client, clock) -> None:
    api = FakeApi(["completed"])
    parameters = {"operation": CREATE_RUN, "repo": "acme/widgets", "prompt": "p", "waitForCompletion": False}

    async with make_client(api) as client:
        items = await CospecNode().execute(_context(client, clock, [parameters]))

    assert api.fetches == 0
    assert clock.sleeps == []
    assert items[0].json["id"] == "run_abc123"
    assert items[0].json["status"] == "queued"


@pytest.mark.asyncio
async def test_operation_defaults_to_create_run(make_client, clock) -> None:
    api = FakeApi(["completed"])

    async with make_client(api) as client:
        items = await CospecNode().execute(_context(client, clock, [{"repo": "acme/widgets", "prompt": "p"}]))

    assert len(api.created) == 1
    assert items[0].json["status"] == "completed"


@pytest.mark.asyncio
async def test_get_run_returns_normalized_run(make_client, clock) -> None:
    api = FakeApi(["failed"])

    async with make_client(api) as client:
        items = await CospecNode().execute(_context(client, clock, [{"operation": GET_RUN, "runId": "run_abc123"}]))

    assert api.created == []
    assert items[0].json["status"] == "failed"
    assert items[0].json["summary"] == "Fixed the token refresh bug."
    assert "callbackUrl" not in items[0].json


@pytest.mark.asyncio
async def test_failure_aborts_with_item_index(make_client, clock) -> None:
    api = FakeApi(["completed"])
    items = [
        {"operation": GET_RUN, "runId": "run_abc123"},
        {"operation": GET_RUN, "runId": "run_missing"},
        {"operation": GET_RUN, "runId": "run_abc123"},
    ]

    async with make_client(api) as client:
        with pytest.raises(NodeOperationError) as exc_info:
            await CospecNode().execute(_context(client, clock, items))

    assert exc_info.value.item_index == 1
    assert str(exc_info.value) == "Run run_missing not found"
    assert api.fetches == 1


@pytest.mark.asyncio
async def test_continue_on_fail_reports_item_errors(make_client, clock) -> None:
    api = FakeApi(["completed"])
    items = [
        {"operation": CREATE_RUN, "prompt": "missing repo"},
        {"operation": GET_RUN, "runId": "run_missing"},
        {"operation": GET_RUN, "runId": "run_abc123"},
    ]

    async with make_client(api) as client:
        results = await CospecNode().execute(_context(client, clock, items, continue_on_fail=True))

    assert [item.paired_item for item in results] == [0, 1, 2]
    assert "repo" in results[0].json["error"]
    assert results[1].json == {"error": "Run run_missing not found"}
    assert results[2].json["status"] == "completed"


@pytest.mark.asyncio
async def test_poll_timeout_becomes_item_error(make_client, clock) -> None:
    api = FakeApi(["running"])
    parameters = {"operation": CREATE_RUN, "repo": "acme/widgets", "prompt": "p", "guardrails": {"timeoutSeconds": 30}}

    async with make_client(api) as client:
        with pytest.raises(NodeOperationError) as exc_info:
            await CospecNode().execute(_context(client, clock, [parameters]))

    assert str(exc_info.value) == "Run run_abc123 did not complete within 30s timeout"
    assert exc_info.value.item_index == 0


@pytest.mark.asyncio
async def test_unknown_operation_is_an_item_error(make_client, clock) -> None:
    async with make_client(FakeApi(["completed"])) as client:
        results = await CospecNode().execute(
            _context(client, clock, [{"operation": "Cancel Run"}], continue_on_fail=True)
        )

    assert "Unknown operation 'Cancel Run'" in results[0].json["error"]
