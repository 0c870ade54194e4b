"""Node metadata and the contracts the host relies on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from cospec_nodes.types import DataObject, ExecutionContext, HookContext, NodeExecutionItem, WebhookResponse

CREDENTIAL_NAME = "cospecApi"


@dataclass(frozen=True)
class WebhookDescription:
    name: str = "default"
    http_method: str = "POST"
    path: str = "webhook"
    # onReceived: acknowledge before the workflow runs.
    response_mode: Literal["onReceived", "lastNode"] = "onReceived"


@dataclass(frozen=True)
class NodeDescription:
    """Static node metadata shown by the host."""

    name: str
    display_name: str
    description: str
    group: Literal["transform", "trigger"]
    version: int = 1
    credentials: tuple[str, ...] = (CREDENTIAL_NAME,)
    operations: tuple[str, ...] = ()
    webhooks: tuple[WebhookDescription, ...] = ()


@runtime_checkable
class NodeType(Protocol):
    description: NodeDescription


@runtime_checkable
class ActionNode(NodeType, Protocol):
    async def execute(self, context: ExecutionContext) -> list[NodeExecutionItem]: ...


@runtime_checkable
class TriggerNode(NodeType, Protocol):
    async def check_exists(self, context: HookContext) -> bool: ...

    async def create(self, context: HookContext) -> bool: ...

    async def delete(self, context: HookContext) -> bool: ...

    def webhook(self, body: DataObject) -> WebhookResponse: ...
