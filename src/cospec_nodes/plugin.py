"""Builtin plugin contributing the coSPEC action and trigger nodes."""

from __future__ import annotations

from cospec_nodes.hookspecs import hookimpl
from cospec_nodes.nodes import CospecNode, CospecTrigger
from cospec_nodes.nodes.base import NodeType


class CospecNodesPlugin:
    @hookimpl
    def register_node_types(self) -> list[NodeType]:
        return [CospecNode(), CospecTrigger()]


plugin = CospecNodesPlugin()
