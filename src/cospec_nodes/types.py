"""Framework-neutral data aliases and node execution records."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from cospec_nodes.client import CospecClient
    from cospec_nodes.store import StaticDataStore

DataObject: TypeAlias = dict[str, Any]
Clock: TypeAlias = Callable[[], float]
Sleep: TypeAlias = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class NodeExecutionItem:
    """One output item of a node execution, paired with its input item."""

    json: DataObject
    paired_item: int | None = None


@dataclass
class ExecutionContext:
    """Resolved inputs for one action node execution."""

    client: CospecClient
    items: list[Mapping[str, Any]]
    continue_on_fail: bool = False
    clock: Clock = time.monotonic
    sleep: Sleep = asyncio.sleep


@dataclass
class HookContext:
    """Resolved inputs for one trigger lifecycle call."""

    client: CospecClient
    store: StaticDataStore
    instance_key: str
    webhook_url: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookResponse:
    """Trigger reply to one inbound webhook call."""

    workflow_data: list[list[NodeExecutionItem]]
