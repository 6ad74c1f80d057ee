"""JSON file store for plan trees.

The store is the persistence collaborator of the reordering engine: it loads
a plan, and after each committed move it rewrites the file. Like a careful
file writer, it leaves the file alone when the serialized contents did not
change.
"""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.core.tree.loader import dump_tree_data, parse_tree_data
from plan_reorder.exceptions import TreeFormatError
from plan_reorder.models.node import MoveRecord


class JsonTreeStore:
    """Load and save one plan tree file."""

    def __init__(self, path: str | Path, *, dry_run: bool = False) -> None:
        self.path = Path(path)
        self.dry_run = dry_run
        self.hierarchy: Hierarchy | None = None
        # Committed moves since the store was created, oldest first.
        self.moves: list[MoveRecord] = []

    def load(self, *, normalize: bool = True) -> Hierarchy:
        """Read and parse the tree file.

        With ``normalize=False`` stored orders and budgets are kept as-is.

        Raises:
            FileNotFoundError: The file does not exist.
            TreeFormatError: The file is not a valid plan tree.
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            msg = f"{self.path} is not valid JSON: {e}"
            raise TreeFormatError(msg) from e
        if not isinstance(data, dict):
            msg = f"{self.path} must contain a JSON object"
            raise TreeFormatError(msg)

        self.hierarchy = parse_tree_data(data, normalize=normalize)
        logger.debug("Loaded {} nodes from {}", len(self.hierarchy), self.path)
        return self.hierarchy

    def save(self, hierarchy: Hierarchy) -> bool:
        """Write the tree. Returns True when the file changed (or would have)."""
        contents = json.dumps(dump_tree_data(hierarchy), sort_keys=True, indent=4) + "\n"

        action = "create"
        try:
            if self.path.read_text(encoding="utf-8") == contents:
                logger.debug("{} unchanged", self.path)
                return False
            action = "update"
        except FileNotFoundError:
            pass

        if self.dry_run:
            logger.info("dry-run: would {} {}", action, self.path)
        else:
            logger.debug("Writing ({}) {}", action, self.path)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(contents, encoding="utf-8")
        return True

    def record_move(self, record: MoveRecord, snapshot: dict[str, Any]) -> None:
        """Persist a committed move. Called by the mutator after the mutation."""
        self.moves.append(record)
        if self.hierarchy is None:
            logger.warning("Move of {} recorded before a tree was loaded", record.moved_id)
            return
        logger.debug("Persisting move of {} ({} nodes)", record.moved_id, len(snapshot["nodes"]))
        self.save(self.hierarchy)
