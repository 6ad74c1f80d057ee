"""Typed draggable ids of the form ``<type>-<id>`` (e.g. ``tactique-abc``)."""

from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.models.node import Node, NodeType


def format_drag_id(node: Node) -> str:
    return f"{node.type}-{node.id}"


def parse_drag_id(drag_id: str) -> tuple[NodeType, str]:
    """Split a typed draggable id into its node type and bare id."""
    prefix, sep, node_id = drag_id.partition("-")
    if not sep or not node_id:
        msg = f"Not a typed drag id: {drag_id!r}"
        raise ValueError(msg)
    try:
        return NodeType(prefix), node_id
    except ValueError:
        msg = f"Unknown node type {prefix!r} in drag id {drag_id!r}"
        raise ValueError(msg) from None


def resolve_node_ref(hierarchy: Hierarchy, ref: str) -> Node:
    """Look up a node by bare id or typed drag id.

    Bare ids win, so node ids that contain a dash still resolve.

    Raises:
        KeyError: No node matches ``ref``.
        ValueError: The type tag does not match the node's type.
    """
    node = hierarchy.find(ref)
    if node is not None:
        return node

    try:
        node_type, node_id = parse_drag_id(ref)
    except ValueError:
        msg = f"Unknown node: {ref!r}"
        raise KeyError(msg) from None

    node = hierarchy.get(node_id)
    if node.type != node_type:
        msg = f"{ref!r} refers to a {node.type}, not a {node_type}"
        raise ValueError(msg)
    return node
