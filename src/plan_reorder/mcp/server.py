"""MCP server exposing plan hierarchy browsing and reordering tools."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from plan_reorder.config import TREE_FILE_ENV, resolve_tree_file
from plan_reorder.core.dnd.drag_ids import format_drag_id, resolve_node_ref
from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.core.tree.outline import PlainBudgetFormatter, render_outline
from plan_reorder.exceptions import MoveError, MoveErrorKind
from plan_reorder.models.node import Candidate, InsertionMode, Node
from plan_reorder.store import JsonTreeStore


def _node_summary(node: Node) -> dict[str, Any]:
    return {
        "id": node.id,
        "drag_id": format_drag_id(node),
        "type": str(node.type),
        "label": node.label,
        "budget": node.budget,
        "order": node.order_index,
    }


# --- Core functions (testable without MCP context) ---


def hierarchy_outline(
    hierarchy: Hierarchy,
    *,
    node: str | None = None,
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Render the plan (or one subtree) as an outline with rollup budgets.

    Args:
        node: Node id or typed id to start from (None = whole plan).
        max_depth: Max levels below the start node (None = unlimited).
    """
    node_id: str | None = None
    if node:
        try:
            node_id = resolve_node_ref(hierarchy, node).id
        except (KeyError, ValueError) as e:
            return {"error": f"Node '{node}' not found: {e}"}

    content = render_outline(
        hierarchy, formatter=PlainBudgetFormatter(), node_id=node_id, max_depth=max_depth
    )
    return {"content": content, "node_count": len(hierarchy)}


def hierarchy_node_context(hierarchy: Hierarchy, *, node: str) -> dict[str, Any]:
    """Get a node with its ancestors, siblings and children."""
    try:
        found = resolve_node_ref(hierarchy, node)
    except (KeyError, ValueError) as e:
        return {"error": f"Node '{node}' not found: {e}"}

    siblings = hierarchy.child_ids(found.parent_id)
    position = found.order_index
    return {
        **_node_summary(found),
        "parent_id": found.parent_id,
        "ancestors": [
            _node_summary(hierarchy.get(a)) for a in reversed(hierarchy.ancestors(found.id))
        ],
        "siblings_before": [_node_summary(hierarchy.get(s)) for s in siblings[:position]],
        "siblings_after": [_node_summary(hierarchy.get(s)) for s in siblings[position + 1 :]],
        "children": [_node_summary(hierarchy.get(c)) for c in found.children],
    }


def hierarchy_move(
    mutator: TreeMutator,
    *,
    dragged: str,
    target: str,
    mode: str = "inside",
) -> dict[str, Any]:
    """Drop a node before, after or inside a target, as a drag gesture would.

    Args:
        dragged: Node to move (id or typed id such as "tactique-abc").
        target: Node to drop on.
        mode: "before", "after" or "inside".
    """
    hierarchy = mutator.hierarchy
    try:
        insertion_mode = InsertionMode(mode)
    except ValueError:
        msg = f"Unknown mode {mode!r}: use before, after or inside."
        return {"success": False, "error": msg}

    try:
        dragged_node = resolve_node_ref(hierarchy, dragged)
        target_node = resolve_node_ref(hierarchy, target)
    except (KeyError, ValueError) as e:
        return {"success": False, "error": str(e.args[0] if e.args else e)}

    try:
        record = mutator.apply_drop(
            dragged_node.id, Candidate(target_id=target_node.id, mode=insertion_mode)
        )
    except MoveError as e:
        return {"success": False, "error": e.message, "reason": str(e.kind)}

    output: dict[str, Any] = {
        "success": True,
        "moved": record is not None,
        "node_id": dragged_node.id,
        "parent_id": dragged_node.parent_id,
        "index": dragged_node.order_index,
    }
    if record is None:
        output["reason"] = str(MoveErrorKind.NO_OP)
    else:
        output["recomputed"] = {
            node_id: hierarchy.get(node_id).budget for node_id in record.recomputed_ids
        }
    return output


def hierarchy_check(hierarchy: Hierarchy) -> dict[str, Any]:
    """Audit structure and budget rollups of the loaded plan."""
    problems = hierarchy.validate()
    return {"ok": not problems, "problems": problems, "node_count": len(hierarchy)}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    store: JsonTreeStore
    hierarchy: Hierarchy
    mutator: TreeMutator


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load the plan tree on startup."""
    tree_file = resolve_tree_file()
    if tree_file is None:
        msg = f"No plan tree file found; set ${TREE_FILE_ENV}"
        raise RuntimeError(msg)

    store = JsonTreeStore(tree_file)
    hierarchy = store.load()
    logger.info("Serving {} ({} nodes)", tree_file, len(hierarchy))
    mutator = TreeMutator(hierarchy, sink=store)
    yield ServerContext(store=store, hierarchy=hierarchy, mutator=mutator)


mcp_server = FastMCP(
    "plan-reorder",
    instructions="""\
A media plan is a four-level tree: sections > tactiques > placements > creatifs.
Budgets of sections, tactiques and placements are rollups of their children.

## Moving things around
- Use plan_outline_tool first to see ids and the current order.
- plan_move_tool drops a node "before"/"after" a sibling-level target (which
  may live under another parent) or "inside" a container, where it is
  appended as the last child.
- A node can only go under the level directly above it: a creatif inside a
  placement, a placement inside a tactique, a tactique inside a section.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def plan_outline_tool(
    ctx: Context,
    node: str | None = None,
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Show the plan as an indented outline with ids and rollup budgets.

    Args:
        node: Node id to start from (None = whole plan).
        max_depth: Max depth levels (None = unlimited).
    """
    return hierarchy_outline(_ctx(ctx).hierarchy, node=node, max_depth=max_depth)


@mcp_server.tool()
async def plan_node_context_tool(ctx: Context, node: str) -> dict[str, Any]:
    """Get a node with its ancestors, siblings and children.

    Args:
        node: Node id or typed id.
    """
    return hierarchy_node_context(_ctx(ctx).hierarchy, node=node)


@mcp_server.tool()
async def plan_move_tool(
    ctx: Context,
    dragged: str,
    target: str,
    mode: str = "inside",
) -> dict[str, Any]:
    """Move a node relative to a target and save the plan.

    Args:
        dragged: Node to move.
        target: Node to drop on.
        mode: "before", "after" or "inside".
    """
    return hierarchy_move(_ctx(ctx).mutator, dragged=dragged, target=target, mode=mode)


@mcp_server.tool()
async def plan_check_tool(ctx: Context) -> dict[str, Any]:
    """Check the plan's ordering and budget rollups for problems."""
    return hierarchy_check(_ctx(ctx).hierarchy)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from plan_reorder.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
