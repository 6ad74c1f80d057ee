"""Apply validated moves to the hierarchy."""

from loguru import logger

from plan_reorder.core.dnd.acceptance import check_drop, destination_parent
from plan_reorder.core.tree.hierarchy import PARENT_TYPE, Hierarchy
from plan_reorder.exceptions import (
    CyclicMoveError,
    IllegalTypeError,
    StaleTargetError,
    move_error_for,
)
from plan_reorder.models.node import Candidate, InsertionMode, MoveRecord
from plan_reorder.protocols import MoveSinkProtocol


class TreeMutator:
    """The single entry point for structural changes to a :class:`Hierarchy`.

    Nothing is written until every check has passed, so a refused move leaves
    the tree untouched. The optional sink is told about each committed move
    after the in-memory mutation has completed.
    """

    def __init__(self, hierarchy: Hierarchy, *, sink: MoveSinkProtocol | None = None) -> None:
        self.hierarchy = hierarchy
        self.sink = sink

    def destination_for(self, candidate: Candidate, dragged_id: str) -> tuple[str | None, int]:
        """Derive ``(parent_id, final_index)`` for a candidate.

        ``before`` takes the target's slot, ``after`` the slot behind it and
        ``inside`` appends after the container's last child. The index is the
        position the node ends at, so moves towards the end of the same
        parent account for the slot the node leaves behind.
        """
        tree = self.hierarchy
        parent_id = destination_parent(tree, candidate)

        if candidate.mode == InsertionMode.INSIDE:
            index = len(tree.child_ids(parent_id))
        else:
            index = tree.index_of(candidate.target_id)
            if candidate.mode == InsertionMode.AFTER:
                index += 1

        dragged = tree.get(dragged_id)
        if dragged.parent_id == parent_id and tree.index_of(dragged_id) < index:
            index -= 1
        return parent_id, index

    def apply_drop(self, dragged_id: str, candidate: Candidate) -> MoveRecord | None:
        """Check a drop candidate against the current tree and commit it."""
        rejection = check_drop(self.hierarchy, dragged_id, candidate)
        if rejection is not None:
            msg = f"Cannot drop {dragged_id!r} {candidate.mode} {candidate.target_id!r}"
            raise move_error_for(rejection, msg)
        parent_id, index = self.destination_for(candidate, dragged_id)
        return self.move(dragged_id, parent_id, index)

    def move(
        self, dragged_id: str, destination_parent_id: str | None, destination_index: int
    ) -> MoveRecord | None:
        """Move a node (with its subtree) to ``destination_index`` under a parent.

        Args:
            dragged_id: Node to move.
            destination_parent_id: New parent, None for the section list.
            destination_index: Final position among the new siblings.

        Returns:
            The committed move, or None when the node is already there.

        Raises:
            StaleTargetError: A referenced node no longer exists.
            CyclicMoveError: The destination is the node or one of its descendants.
            IllegalTypeError: The destination cannot hold the node's type.
            ValueError: ``destination_index`` is out of range.
        """
        tree = self.hierarchy
        dragged = tree.find(dragged_id)
        if dragged is None:
            msg = f"Dragged node {dragged_id!r} no longer exists"
            raise StaleTargetError(msg)

        parent = None
        if destination_parent_id is not None:
            parent = tree.find(destination_parent_id)
            if parent is None:
                msg = f"Destination {destination_parent_id!r} no longer exists"
                raise StaleTargetError(msg)
            if tree.is_same_or_descendant(destination_parent_id, dragged_id):
                msg = f"Cannot move {dragged_id!r} into its own subtree"
                raise CyclicMoveError(msg)

        parent_type = parent.type if parent is not None else None
        if PARENT_TYPE[dragged.type] != parent_type:
            where = f"{parent_type} {destination_parent_id!r}" if parent else "the top level"
            msg = f"A {dragged.type} cannot be placed under {where}"
            raise IllegalTypeError(msg)

        old_parent_id = dragged.parent_id
        old_index = tree.index_of(dragged_id)
        same_parent = old_parent_id == destination_parent_id
        slots = len(tree.child_ids(destination_parent_id)) - (1 if same_parent else 0)
        if not 0 <= destination_index <= slots:
            msg = f"destination_index {destination_index} outside 0..{slots}"
            raise ValueError(msg)

        if same_parent and destination_index == old_index:
            logger.debug("Move of {} is a no-op", dragged_id)
            return None

        budget_moved = dragged.budget

        origin = tree.child_ids(old_parent_id)
        origin.pop(old_index)
        tree.reindex(old_parent_id, old_index)

        destination = tree.child_ids(destination_parent_id)
        destination.insert(destination_index, dragged_id)
        dragged.parent_id = destination_parent_id
        if same_parent:
            tree.reindex(destination_parent_id, min(old_index, destination_index))
        else:
            tree.reindex(destination_parent_id, destination_index)

        recomputed: list[str] = []
        if not same_parent:
            recomputed.extend(tree.refresh_rollups(old_parent_id))
            recomputed.extend(tree.refresh_rollups(destination_parent_id))

        record = MoveRecord(
            moved_id=dragged_id,
            old_parent_id=old_parent_id,
            old_index=old_index,
            new_parent_id=destination_parent_id,
            new_index=destination_index,
            budget_moved=budget_moved,
            recomputed_ids=tuple(dict.fromkeys(recomputed)),
        )
        logger.info(
            "Moved {} {} from {}[{}] to {}[{}]",
            dragged.type,
            dragged_id,
            old_parent_id,
            old_index,
            destination_parent_id,
            destination_index,
        )

        if self.sink is not None:
            self.sink.record_move(record, tree.snapshot())
        return record
