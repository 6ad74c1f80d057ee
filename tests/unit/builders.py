"""Tree and layout builders shared by the tests."""

from typing import Any

from plan_reorder.core.dnd.hit_tester import HitTester
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.core.tree.loader import parse_tree_data
from plan_reorder.models.node import NodeType, Rect

# S1: T1 (100), T2 [P1 [C1 (30), C2 (20)], P2 [C3 (10)]], T3 (40)
# S2: T4 [P3 (5)]
# S3: (empty)
PLAN_SOURCE: dict[str, Any] = {
    "nodes": [
        {"id": "S1", "type": "section", "parent_id": None, "order": 0, "label": "Search"},
        {"id": "S2", "type": "section", "parent_id": None, "order": 1, "label": "Social"},
        {"id": "S3", "type": "section", "parent_id": None, "order": 2, "label": "Display"},
        {"id": "T1", "type": "tactique", "parent_id": "S1", "order": 0, "budget": 100},
        {"id": "T2", "type": "tactique", "parent_id": "S1", "order": 1},
        {"id": "T3", "type": "tactique", "parent_id": "S1", "order": 2, "budget": 40},
        {"id": "T4", "type": "tactique", "parent_id": "S2", "order": 0},
        {"id": "P1", "type": "placement", "parent_id": "T2", "order": 0},
        {"id": "P2", "type": "placement", "parent_id": "T2", "order": 1},
        {"id": "P3", "type": "placement", "parent_id": "T4", "order": 0, "budget": 5},
        {"id": "C1", "type": "creatif", "parent_id": "P1", "order": 0, "budget": 30},
        {"id": "C2", "type": "creatif", "parent_id": "P1", "order": 1, "budget": 20},
        {"id": "C3", "type": "creatif", "parent_id": "P2", "order": 0, "budget": 10},
    ]
}

ROW_HEIGHT = 20.0
ROW_WIDTH = 300.0


def make_tree(*records: tuple[str, str, str | None, float]) -> Hierarchy:
    """Build a tree from ``(id, type, parent_id, budget)`` tuples, in order."""
    counters: dict[str | None, int] = {}
    nodes = []
    for node_id, node_type, parent_id, budget in records:
        order = counters.get(parent_id, 0)
        counters[parent_id] = order + 1
        nodes.append(
            {
                "id": node_id,
                "type": node_type,
                "parent_id": parent_id,
                "order": order,
                "budget": budget,
            }
        )
    return parse_tree_data({"nodes": nodes})


def register_rows(hit_tester: HitTester, hierarchy: Hierarchy) -> dict[str, Rect]:
    """Lay out every node as one row, top to bottom, like the hierarchy view."""
    rects: dict[str, Rect] = {}
    for i, node in enumerate(hierarchy):
        rect = Rect(0.0, i * ROW_HEIGHT, ROW_WIDTH, ROW_HEIGHT)
        hit_tester.register_target(
            node.id, rect, accepted_types=list(NodeType), target_type=node.type
        )
        rects[node.id] = rect
    return rects


def row_point(rect: Rect, fraction: float) -> tuple[float, float]:
    """A pointer position ``fraction`` of the way down a row."""
    return rect.x + rect.width / 2, rect.y + rect.height * fraction
