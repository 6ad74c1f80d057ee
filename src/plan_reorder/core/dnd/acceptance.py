"""Which dragged types may be dropped where.

The static table answers type questions only. :func:`check_drop` adds the
live checks that need the current tree: ids that disappeared, and drops onto
the dragged node itself or anything below it.
"""

from loguru import logger

from plan_reorder.core.tree.hierarchy import CHILD_TYPE, CONTAINER_TYPES, PARENT_TYPE, Hierarchy
from plan_reorder.exceptions import DropRejection
from plan_reorder.models.node import Candidate, InsertionMode, NodeType

_SIBLING_MODES = frozenset({InsertionMode.BEFORE, InsertionMode.AFTER})

# dragged type -> mode -> target types accepting it
ACCEPTANCE: dict[NodeType, dict[InsertionMode, frozenset[NodeType]]] = {
    dragged: {
        InsertionMode.BEFORE: frozenset({dragged}),
        InsertionMode.AFTER: frozenset({dragged}),
        InsertionMode.INSIDE: frozenset({parent} if parent is not None else ()),
    }
    for dragged, parent in PARENT_TYPE.items()
}


def is_legal_type(dragged_type: NodeType, target_type: NodeType, mode: InsertionMode) -> bool:
    """Static part of the acceptance rules."""
    return target_type in ACCEPTANCE[dragged_type][mode]


def can_contain(container_type: NodeType, dragged_type: NodeType) -> bool:
    """True when ``dragged_type`` is a legal direct child of ``container_type``."""
    return container_type in CONTAINER_TYPES and CHILD_TYPE[container_type] == dragged_type


def check_drop(
    hierarchy: Hierarchy, dragged_id: str, candidate: Candidate
) -> DropRejection | None:
    """Evaluate a candidate against the live tree.

    Returns None when the drop is legal, otherwise the first reason it is not.
    """
    dragged = hierarchy.find(dragged_id)
    target = hierarchy.find(candidate.target_id)
    if dragged is None or target is None:
        rejection = DropRejection.STALE_TARGET
    elif hierarchy.is_same_or_descendant(target.id, dragged.id):
        rejection = DropRejection.CYCLIC_MOVE
    elif not is_legal_type(dragged.type, target.type, candidate.mode):
        rejection = DropRejection.ILLEGAL_TYPE
    else:
        return None

    logger.debug(
        "Rejected {} {} {}: {}", dragged_id, candidate.mode, candidate.target_id, rejection
    )
    return rejection


def is_legal(hierarchy: Hierarchy, dragged_id: str, candidate: Candidate) -> bool:
    return check_drop(hierarchy, dragged_id, candidate) is None


def destination_parent(hierarchy: Hierarchy, candidate: Candidate) -> str | None:
    """Parent the dragged node would end up under for this candidate.

    ``before``/``after`` re-parent to the target's parent, which may differ
    from the dragged node's current parent.
    """
    target = hierarchy.get(candidate.target_id)
    if candidate.mode in _SIBLING_MODES:
        return target.parent_id
    return target.id
