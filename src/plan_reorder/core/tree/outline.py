"""Render plan subtrees as an indented outline."""

import io

from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.protocols import BudgetFormatterProtocol


class PlainBudgetFormatter:
    """Formatter used when no currency-aware formatter is supplied."""

    def format_budget(self, amount: float) -> str:
        return f"{amount:,.2f}"


def render_outline(
    hierarchy: Hierarchy,
    *,
    formatter: BudgetFormatterProtocol,
    node_id: str | None = None,
    max_depth: int | None = None,
) -> str:
    """Render a node (or every section) and its descendants as an outline.

    Args:
        hierarchy: The plan tree.
        formatter: Turns rollup budgets into display text.
        node_id: The node to start from (None = all sections).
        max_depth: Max levels below the start to include (None = unlimited).

    Returns:
        One ``- [type] label (id): budget`` line per node.
    """
    starts = [node_id] if node_id is not None else list(hierarchy.roots)

    out = io.StringIO()
    todo: list[tuple[str, int]] = [(start, 0) for start in reversed(starts)]
    while todo:
        current_id, depth = todo.pop()
        node = hierarchy.get(current_id)
        indent = "    " * depth
        label = node.label or node.id
        budget = formatter.format_budget(node.budget)
        out.write(f"{indent}- [{node.type}] {label} ({node.id}): {budget}\n")

        if max_depth is not None and depth >= max_depth:
            if node.children:
                noun = "child" if len(node.children) == 1 else "children"
                out.write(f"{indent}    - ... ({len(node.children)} more {noun})\n")
            continue
        todo.extend((child_id, depth + 1) for child_id in reversed(node.children))

    return out.getvalue()
