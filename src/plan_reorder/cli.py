"""CLI for plan-reorder (show, move, check, normalize)."""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from plan_reorder.config import TREE_FILE_ENV, resolve_tree_file
from plan_reorder.core.dnd.drag_ids import resolve_node_ref
from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.core.tree.outline import PlainBudgetFormatter, render_outline
from plan_reorder.exceptions import MoveError, TreeFormatError
from plan_reorder.logging_config import configure_logging
from plan_reorder.models.node import Candidate, InsertionMode
from plan_reorder.store import JsonTreeStore

app = typer.Typer(help="Reorder a plan hierarchy: sections, tactiques, placements, creatifs.")

TreeOption = Annotated[
    Path | None,
    typer.Option("--tree", "-t", help=f"Plan tree file (default: ${TREE_FILE_ENV})"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _open_store(
    tree: Path | None, *, dry_run: bool = False, normalize: bool = True
) -> tuple[JsonTreeStore, Hierarchy]:
    """Open and load the tree file, exiting with an error if it can't be used."""
    path = resolve_tree_file(tree)
    if path is None:
        logger.error("No plan tree file given and none found. Use --tree or ${}.", TREE_FILE_ENV)
        raise typer.Exit(1)

    store = JsonTreeStore(path, dry_run=dry_run)
    try:
        hierarchy = store.load(normalize=normalize)
    except FileNotFoundError:
        logger.error("Plan tree file not found: {}", path)
        raise typer.Exit(1) from None
    except TreeFormatError as e:
        logger.error("Invalid plan tree {}: {}", path, e)
        raise typer.Exit(1) from None
    return store, hierarchy


@app.command()
def show(
    tree: TreeOption = None,
    node: Annotated[
        str | None,
        typer.Option("--node", "-n", help="Start from this node (id or type-id)"),
    ] = None,
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-d", help="Max levels below the start node"),
    ] = None,
) -> None:
    """Print the plan as an outline with rollup budgets."""
    _store, hierarchy = _open_store(tree)

    node_id: str | None = None
    if node:
        try:
            node_id = resolve_node_ref(hierarchy, node).id
        except (KeyError, ValueError) as e:
            typer.echo(f"Node '{node}' not found: {e}")
            raise typer.Exit(1) from None

    typer.echo(
        render_outline(
            hierarchy, formatter=PlainBudgetFormatter(), node_id=node_id, max_depth=depth
        ),
        nl=False,
    )


@app.command()
def move(
    dragged: str = typer.Argument(..., help="Node to move (id or type-id)"),
    target: str = typer.Argument(..., help="Node to drop on (id or type-id)"),
    mode: InsertionMode = typer.Option(InsertionMode.INSIDE, "--mode", "-m", help="Drop mode"),
    tree: TreeOption = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write anything"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Drop DRAGGED before, after or inside TARGET and save the plan."""
    store, hierarchy = _open_store(tree, dry_run=dry_run)

    try:
        dragged_node = resolve_node_ref(hierarchy, dragged)
        target_node = resolve_node_ref(hierarchy, target)
    except (KeyError, ValueError) as e:
        logger.error("{}", e.args[0] if e.args else e)
        raise typer.Exit(1) from None

    mutator = TreeMutator(hierarchy, sink=store)
    candidate = Candidate(target_id=target_node.id, mode=mode)
    try:
        record = mutator.apply_drop(dragged_node.id, candidate)
    except MoveError as e:
        logger.error("Move refused ({}): {}", e.kind, e.message)
        raise typer.Exit(1) from None

    if output_json:
        data: dict[str, Any] = {
            "moved": record is not None,
            "node_id": dragged_node.id,
            "parent_id": dragged_node.parent_id,
            "index": dragged_node.order_index,
        }
        if record is not None:
            data["old_parent_id"] = record.old_parent_id
            data["old_index"] = record.old_index
            data["recomputed"] = list(record.recomputed_ids)
        typer.echo(json.dumps(data, indent=2))
    elif record is None:
        typer.echo(f"{dragged_node.id} is already there, nothing to do.")
    else:
        typer.echo(
            f"Moved {dragged_node.type} {dragged_node.id} to "
            f"{record.new_parent_id or 'top level'} at position {record.new_index}"
        )


@app.command()
def check(tree: TreeOption = None) -> None:
    """Audit the stored plan's structure and budgets."""
    store, hierarchy = _open_store(tree, normalize=False)

    problems = hierarchy.validate()
    if problems:
        for problem in problems:
            typer.echo(f"- {problem}")
        raise typer.Exit(1)
    typer.echo(f"{store.path}: {len(hierarchy)} nodes, no problems.")


@app.command()
def normalize(
    tree: TreeOption = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write anything"),
) -> None:
    """Rewrite the plan file with dense orders and fresh rollups."""
    store, hierarchy = _open_store(tree, dry_run=dry_run)
    changed = store.save(hierarchy)
    typer.echo(f"{store.path}: {'rewritten' if changed else 'already normalized'}")
