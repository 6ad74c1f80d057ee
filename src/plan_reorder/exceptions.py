"""Custom exceptions for plan-reorder."""

from enum import StrEnum


class MoveErrorKind(StrEnum):
    """Outcome of a move the tree mutator did not apply.

    ``NO_OP`` is never raised: a move that would not change parent or index is
    skipped and ``TreeMutator.move`` returns None. The kind exists so callers
    can report the skip by name.
    """

    ILLEGAL_TYPE = "illegal_type"
    CYCLIC_MOVE = "cyclic_move"
    STALE_TARGET = "stale_target"
    NO_OP = "no_op"


class DropRejection(StrEnum):
    """Why a hovered position is not a legal drop candidate."""

    ILLEGAL_TYPE = "illegal_type"
    CYCLIC_MOVE = "cyclic_move"
    STALE_TARGET = "stale_target"
    NO_REGISTERED_TARGETS = "no_registered_targets"


class PlanReorderError(Exception):
    """Base exception for plan-reorder operations."""


class MoveError(PlanReorderError):
    """A move was refused against the current tree."""

    kind: MoveErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class IllegalTypeError(MoveError):
    """The destination parent cannot hold the dragged node's type."""

    kind = MoveErrorKind.ILLEGAL_TYPE


class CyclicMoveError(MoveError):
    """The destination is the dragged node itself or one of its descendants."""

    kind = MoveErrorKind.CYCLIC_MOVE


class StaleTargetError(MoveError):
    """A node referenced by the move no longer exists."""

    kind = MoveErrorKind.STALE_TARGET


class SessionMisuseError(PlanReorderError, RuntimeError):
    """The drag session was driven out of order by the gesture layer."""


class TreeFormatError(PlanReorderError, ValueError):
    """Stored tree data is malformed."""


def move_error_for(rejection: DropRejection, message: str) -> MoveError:
    """Map a drop rejection onto the matching move error."""
    if rejection == DropRejection.CYCLIC_MOVE:
        return CyclicMoveError(message)
    if rejection == DropRejection.STALE_TARGET:
        return StaleTargetError(message)
    return IllegalTypeError(message)
