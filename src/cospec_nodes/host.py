"""Hook-first node host.

The host owns everything that is not node logic: plugin discovery, trigger
bookkeeping storage, and the calls that drive node execution and webhook
lifecycles.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import Any, cast

import pluggy
from loguru import logger

from cospec_nodes.client import CospecClient
from cospec_nodes.errors import ConfigurationError
from cospec_nodes.hook_runtime import HookRuntime
from cospec_nodes.hookspecs import COSPEC_HOOK_NAMESPACE, PLUGIN_ENTRYPOINT_GROUP, NodeHookSpecs
from cospec_nodes.nodes.base import ActionNode, NodeType, TriggerNode
from cospec_nodes.plugin import plugin as builtin_plugin
from cospec_nodes.store import InMemoryStaticDataStore, StaticDataStore
from cospec_nodes.types import Clock, DataObject, ExecutionContext, HookContext, NodeExecutionItem, Sleep, WebhookResponse


class NodeHost:
    """Minimal host core. Nodes come from plugins."""

    def __init__(self, *, load_entrypoints: bool = True) -> None:
        self._plugin_manager = pluggy.PluginManager(COSPEC_HOOK_NAMESPACE)
        self._plugin_manager.add_hookspecs(NodeHookSpecs)
        self._plugin_manager.register(builtin_plugin, name="builtin")
        if load_entrypoints:
            self._plugin_manager.load_setuptools_entrypoints(PLUGIN_ENTRYPOINT_GROUP)
        self._hook_runtime = HookRuntime(self._plugin_manager)
        self._node_types: dict[str, NodeType] | None = None
        self._store: StaticDataStore | None = None

    @property
    def plugin_manager(self) -> pluggy.PluginManager:
        return self._plugin_manager

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register one more plugin and forget cached node types."""

        self._plugin_manager.register(plugin, name=name)
        self._node_types = None
        self._store = None

    @property
    def node_types(self) -> dict[str, NodeType]:
        if self._node_types is None:
            self._node_types = self._collect_node_types()
        return dict(self._node_types)

    @property
    def store(self) -> StaticDataStore:
        if self._store is None:
            provided = self._hook_runtime.call_first("provide_static_data_store")
            self._store = cast(StaticDataStore, provided) if _is_store_like(provided) else InMemoryStaticDataStore()
        return self._store

    def get_node(self, name: str) -> NodeType:
        node = self.node_types.get(name)
        if node is None:
            raise ConfigurationError(f"Unknown node type {name!r}")
        return node

    async def execute_node(
        self,
        name: str,
        items: Sequence[Mapping[str, Any]],
        *,
        client: CospecClient,
        continue_on_fail: bool = False,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> list[NodeExecutionItem]:
        """Execute one action node over the given per-item parameters."""

        node = self.get_node(name)
        if not isinstance(node, ActionNode):
            raise ConfigurationError(f"Node type {name!r} cannot be executed")
        context = ExecutionContext(
            client=client,
            items=list(items),
            continue_on_fail=continue_on_fail,
            clock=clock,
            sleep=sleep,
        )
        try:
            return await node.execute(context)
        except Exception as exc:
            self._hook_runtime.notify_error(stage=f"execute:{name}", error=exc)
            raise

    async def activate_trigger(self, name: str, context: HookContext) -> bool:
        """Make sure the trigger's webhook is registered; returns True when one was created."""

        trigger = self._get_trigger(name)
        if await trigger.check_exists(context):
            logger.debug("trigger.already_active node={} instance={}", name, context.instance_key)
            return False
        try:
            return await trigger.create(context)
        except Exception as exc:
            self._hook_runtime.notify_error(stage=f"activate:{name}", error=exc)
            raise

    async def deactivate_trigger(self, name: str, context: HookContext) -> bool:
        return await self._get_trigger(name).delete(context)

    def receive_webhook(self, name: str, body: object) -> WebhookResponse:
        payload: DataObject = dict(body) if isinstance(body, Mapping) else {}
        return self._get_trigger(name).webhook(payload)

    def hook_context(
        self,
        *,
        client: CospecClient,
        instance_key: str,
        webhook_url: str = "",
        parameters: Mapping[str, Any] | None = None,
    ) -> HookContext:
        return HookContext(
            client=client,
            store=self.store,
            instance_key=instance_key,
            webhook_url=webhook_url,
            parameters=dict(parameters or {}),
        )

    def hook_report(self) -> dict[str, list[str]]:
        """Return hook implementation summary for diagnostics."""

        return self._hook_runtime.hook_report()

    def _get_trigger(self, name: str) -> TriggerNode:
        node = self.get_node(name)
        if not isinstance(node, TriggerNode):
            raise ConfigurationError(f"Node type {name!r} is not a trigger")
        return node

    def _collect_node_types(self) -> dict[str, NodeType]:
        node_types: dict[str, NodeType] = {}
        for batch in self._hook_runtime.call_many("register_node_types"):
            for node in batch or []:
                if not isinstance(node, NodeType):
                    logger.warning("node.invalid_type node={!r}", node)
                    continue
                name = node.description.name
                if name in node_types:
                    logger.warning("node.duplicate_type name={}", name)
                    continue
                node_types[name] = node
        return node_types


def _is_store_like(candidate: Any) -> bool:
    if candidate is None:
        return False
    return all(callable(getattr(candidate, name, None)) for name in ("get", "set", "delete"))
