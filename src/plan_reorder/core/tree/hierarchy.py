"""The owned, mutable section/tactique/placement/creatif tree."""

import copy
from collections.abc import Iterable, Iterator
from typing import Any

from plan_reorder.models.node import DragPreview, Node, NodeType

# Legal parent type for every node type. Sections are top-level.
PARENT_TYPE: dict[NodeType, NodeType | None] = {
    NodeType.SECTION: None,
    NodeType.TACTIQUE: NodeType.SECTION,
    NodeType.PLACEMENT: NodeType.TACTIQUE,
    NodeType.CREATIF: NodeType.PLACEMENT,
}

# Default child type of each container type.
CHILD_TYPE: dict[NodeType, NodeType] = {
    parent: child for child, parent in PARENT_TYPE.items() if parent is not None
}

CONTAINER_TYPES: frozenset[NodeType] = frozenset(CHILD_TYPE)


class Hierarchy:
    """Nodes indexed by id, with sections kept in ``roots`` order.

    All structural writes go through :class:`TreeMutator`; this class only
    offers lookups, reindexing and rollup refresh.
    """

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self.nodes: dict[str, Node] = {}
        self.roots: list[str] = []
        for node in nodes:
            self.nodes[node.id] = node
            if node.parent_id is None:
                self.roots.append(node.id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        """Walk the tree depth-first in display order."""
        todo = list(reversed(self.roots))
        while todo:
            node = self.nodes[todo.pop()]
            yield node
            todo.extend(reversed(node.children))

    def get(self, node_id: str) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            msg = f"Unknown node: {node_id!r}"
            raise KeyError(msg) from None

    def find(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def child_ids(self, parent_id: str | None) -> list[str]:
        """The live sibling sequence under ``parent_id`` (``None`` = sections)."""
        if parent_id is None:
            return self.roots
        return self.get(parent_id).children

    def index_of(self, node_id: str) -> int:
        node = self.get(node_id)
        return self.child_ids(node.parent_id).index(node_id)

    def ancestors(self, node_id: str) -> list[str]:
        """Ancestor ids from the immediate parent up to the section."""
        result: list[str] = []
        parent_id = self.get(node_id).parent_id
        while parent_id is not None:
            result.append(parent_id)
            parent_id = self.get(parent_id).parent_id
        return result

    def is_same_or_descendant(self, node_id: str, ancestor_id: str) -> bool:
        return node_id == ancestor_id or ancestor_id in self.ancestors(node_id)

    def subtree_ids(self, node_id: str) -> list[str]:
        """``node_id`` and all of its descendants, depth-first."""
        result: list[str] = []
        todo = [node_id]
        while todo:
            current = todo.pop()
            result.append(current)
            todo.extend(reversed(self.get(current).children))
        return result

    def reindex(self, parent_id: str | None, start: int = 0) -> None:
        """Rewrite ``order_index`` of the siblings under ``parent_id`` from ``start``."""
        siblings = self.child_ids(parent_id)
        for i in range(start, len(siblings)):
            self.nodes[siblings[i]].order_index = i

    def compact(self, parent_id: str | None, *, renumber: bool = True) -> None:
        """Sort siblings by their stored order and renumber them densely.

        Ties keep their current relative position. With ``renumber=False`` the
        stored values are kept, so gaps stay visible to :meth:`validate`.
        """
        siblings = self.child_ids(parent_id)
        siblings.sort(key=lambda child_id: self.nodes[child_id].order_index)
        if renumber:
            self.reindex(parent_id)

    def compact_all(self, *, renumber: bool = True) -> None:
        self.compact(None, renumber=renumber)
        for node in list(self.nodes.values()):
            if node.children:
                self.compact(node.id, renumber=renumber)

    def refresh_rollups(self, start_id: str | None) -> list[str]:
        """Recompute budgets from ``start_id`` up to its section.

        Returns the ids whose budget was recomputed, innermost first.
        """
        refreshed: list[str] = []
        current_id = start_id
        while current_id is not None:
            node = self.get(current_id)
            node.budget = sum(self.nodes[child_id].budget for child_id in node.children)
            refreshed.append(current_id)
            current_id = node.parent_id
        return refreshed

    def recompute_all_rollups(self) -> None:
        """Recompute every container with children, bottom-up."""
        for node in reversed(list(self)):
            if node.children:
                node.budget = sum(self.nodes[child_id].budget for child_id in node.children)

    def leaf_total(self, node_id: str) -> float:
        """Sum of the budgets of childless nodes in the subtree."""
        return sum(
            self.nodes[sub_id].budget
            for sub_id in self.subtree_ids(node_id)
            if not self.nodes[sub_id].children
        )

    def describe(self, node_id: str) -> DragPreview:
        node = self.get(node_id)
        return DragPreview(
            node_id=node.id,
            type=node.type,
            label=node.label or node.id,
            descendant_count=len(self.subtree_ids(node_id)) - 1,
            budget=node.budget,
        )

    def validate(self) -> list[str]:
        """Check every structural invariant, returning human-readable problems."""
        problems: list[str] = []
        seen: dict[str, str | None] = {}

        for parent_id in [None, *self.nodes]:
            if parent_id is not None and self.nodes[parent_id].type == NodeType.CREATIF:
                if self.nodes[parent_id].children:
                    problems.append(f"Creatif {parent_id!r} has children")
            siblings = self.child_ids(parent_id)
            indexes = [self.nodes[c].order_index for c in siblings if c in self.nodes]
            if sorted(indexes) != list(range(len(siblings))):
                problems.append(f"Children of {parent_id!r} have order {indexes!r}")
            for i, child_id in enumerate(siblings):
                child = self.nodes.get(child_id)
                if child is None:
                    problems.append(f"{parent_id!r} lists missing child {child_id!r}")
                    continue
                if child_id in seen:
                    problems.append(
                        f"Node {child_id!r} listed under {seen[child_id]!r} and {parent_id!r}"
                    )
                seen[child_id] = parent_id
                if child.parent_id != parent_id:
                    problems.append(
                        f"Node {child_id!r} points to parent {child.parent_id!r}, "
                        f"listed under {parent_id!r}"
                    )
                if child.order_index != i:
                    problems.append(
                        f"Node {child_id!r} has order_index {child.order_index}, position {i}"
                    )
                parent_type = self.nodes[parent_id].type if parent_id is not None else None
                if PARENT_TYPE[child.type] != parent_type:
                    problems.append(f"{child.type} {child_id!r} cannot sit under {parent_type}")

        for node_id, node in self.nodes.items():
            if node_id not in seen:
                problems.append(f"Node {node_id!r} is not reachable")
            if node.children:
                expected = sum(self.nodes[c].budget for c in node.children if c in self.nodes)
                if abs(node.budget - expected) > 1e-9:
                    problems.append(
                        f"Budget of {node_id!r} is {node.budget}, children sum to {expected}"
                    )

        return problems

    def snapshot(self) -> dict[str, Any]:
        """A deep, JSON-ready copy of the structural state."""
        return {
            "roots": list(self.roots),
            "nodes": {
                node_id: {
                    "type": str(node.type),
                    "parent_id": node.parent_id,
                    "order_index": node.order_index,
                    "budget": node.budget,
                    "label": node.label,
                    "expanded": node.expanded,
                    "children": list(node.children),
                }
                for node_id, node in self.nodes.items()
            },
        }

    def copy(self) -> "Hierarchy":
        clone = Hierarchy()
        clone.nodes = copy.deepcopy(self.nodes)
        clone.roots = list(self.roots)
        return clone
