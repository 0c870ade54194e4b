"""Workflow nodes contributed by the builtin plugin."""

from cospec_nodes.nodes.cospec import CospecNode
from cospec_nodes.nodes.trigger import CospecTrigger

__all__ = ["CospecNode", "CospecTrigger"]
