"""Pluggy hook namespace and host hook specifications."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from cospec_nodes.nodes.base import NodeType
    from cospec_nodes.store import StaticDataStore

COSPEC_HOOK_NAMESPACE = "cospec_nodes"
PLUGIN_ENTRYPOINT_GROUP = "cospec_nodes.plugins"
hookspec = pluggy.HookspecMarker(COSPEC_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(COSPEC_HOOK_NAMESPACE)


class NodeHookSpecs:
    """Hook contract for node plugins."""

    @hookspec
    def register_node_types(self) -> list[NodeType] | None:
        """Return node types contributed by this plugin."""

    @hookspec(firstresult=True)
    def provide_static_data_store(self) -> StaticDataStore | None:
        """Provide storage for trigger bookkeeping."""

    @hookspec
    def on_error(self, stage: str, error: Exception) -> None:
        """Observe host errors from any stage."""
