"""Parse stored plan data into a :class:`Hierarchy` and back."""

from collections import defaultdict
from typing import Any

from plan_reorder.core.tree.hierarchy import PARENT_TYPE, Hierarchy
from plan_reorder.exceptions import TreeFormatError
from plan_reorder.models.node import Node, NodeType


def _number(raw: dict[str, Any], node_id: str, key: str, default: float, kind: type) -> Any:
    value = raw.get(key, default)
    try:
        return kind(value)
    except (TypeError, ValueError):
        msg = f"Node {node_id!r} has non-numeric {key} {value!r}"
        raise TreeFormatError(msg) from None


def _parse_node(raw: Any) -> Node:
    if not isinstance(raw, dict):
        msg = f"Node record must be an object, got {raw!r}"
        raise TreeFormatError(msg)
    try:
        node_id = str(raw["id"])
        raw_type = raw["type"]
    except KeyError as e:
        msg = f"Node record missing field {e.args[0]!r}: {raw!r}"
        raise TreeFormatError(msg) from None

    try:
        node_type = NodeType(raw_type)
    except ValueError:
        msg = f"Node {node_id!r} has unknown type {raw_type!r}"
        raise TreeFormatError(msg) from None

    return Node(
        id=node_id,
        type=node_type,
        parent_id=raw.get("parent_id"),
        order_index=_number(raw, node_id, "order", 0, int),
        budget=_number(raw, node_id, "budget", 0.0, float),
        label=raw.get("label", ""),
        expanded=bool(raw.get("expanded", False)),
    )


def parse_tree_data(data: dict[str, Any], *, normalize: bool = True) -> Hierarchy:
    """Build a hierarchy from the flat stored form.

    Each record carries its ``parent_id`` and an ``order`` value. Siblings are
    sorted by order, keeping record order for ties. Stored orders may have
    gaps or duplicates; when normalizing they are compacted to 0..n-1 and
    container budgets are recomputed from their children.

    Args:
        data: ``{"nodes": [{"id", "type", "parent_id", "order", "budget", ...}]}``.
        normalize: Compact orders and recompute rollups (False keeps stored values).

    Returns:
        The hierarchy; with ``normalize`` it satisfies every structural invariant.

    Raises:
        TreeFormatError: Unknown types, duplicate ids, missing or wrongly typed parents.
    """
    raw_nodes = data.get("nodes")
    if not isinstance(raw_nodes, list):
        msg = "Tree data must contain a 'nodes' list"
        raise TreeFormatError(msg)

    nodes: list[Node] = []
    seen: set[str] = set()
    for raw in raw_nodes:
        node = _parse_node(raw)
        if node.id in seen:
            msg = f"Duplicate node id {node.id!r}"
            raise TreeFormatError(msg)
        seen.add(node.id)
        nodes.append(node)

    by_id = {n.id: n for n in nodes}
    children: defaultdict[str, list[str]] = defaultdict(list)
    for node in nodes:
        expected_parent_type = PARENT_TYPE[node.type]
        if node.parent_id is None:
            if expected_parent_type is not None:
                msg = f"{node.type} {node.id!r} has no parent"
                raise TreeFormatError(msg)
            continue
        parent = by_id.get(node.parent_id)
        if parent is None:
            msg = f"Orphaned node {node.id!r}: parent {node.parent_id!r} not found"
            raise TreeFormatError(msg)
        if parent.type != expected_parent_type:
            msg = f"{node.type} {node.id!r} cannot sit under {parent.type} {parent.id!r}"
            raise TreeFormatError(msg)
        children[node.parent_id].append(node.id)

    for parent_id, child_ids in children.items():
        by_id[parent_id].children = child_ids

    hierarchy = Hierarchy(nodes)
    hierarchy.compact_all(renumber=normalize)
    if normalize:
        hierarchy.recompute_all_rollups()
    return hierarchy


def dump_tree_data(hierarchy: Hierarchy) -> dict[str, Any]:
    """Serialize to the flat stored form, in display order."""
    return {
        "nodes": [
            {
                "id": node.id,
                "type": str(node.type),
                "parent_id": node.parent_id,
                "order": node.order_index,
                "budget": node.budget,
                "label": node.label,
                "expanded": node.expanded,
            }
            for node in hierarchy
        ]
    }
