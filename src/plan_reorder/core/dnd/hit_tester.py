"""Resolve a pointer position to a drop target and insertion mode."""

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from plan_reorder.config import EDGE_ZONE_RATIO
from plan_reorder.core.dnd.acceptance import can_contain
from plan_reorder.exceptions import DropRejection
from plan_reorder.models.node import Candidate, InsertionMode, NodeType, Point, Rect


@dataclass(frozen=True)
class TargetRegistration:
    """A drop surface pushed by the rendering layer."""

    target_id: str
    rect: Rect
    accepted_types: frozenset[NodeType]
    target_type: NodeType | None
    sequence: int


class HitTester:
    """Registry of target rectangles plus the hit-testing rules.

    The rendering layer pushes registrations whenever a row mounts, moves or
    unmounts. ``resolve`` always sees the latest registrations.
    """

    def __init__(self, *, edge_ratio: float = EDGE_ZONE_RATIO) -> None:
        if not 0 < edge_ratio <= 0.5:
            msg = f"edge_ratio must be in (0, 0.5], got {edge_ratio!r}"
            raise ValueError(msg)
        self.edge_ratio = edge_ratio
        self._targets: dict[str, TargetRegistration] = {}
        self._sequence = 0
        # Why the last resolve returned None, if it did.
        self.last_miss: DropRejection | None = None

    def __len__(self) -> int:
        return len(self._targets)

    def register_target(
        self,
        target_id: str,
        rect: Rect,
        accepted_types: Iterable[NodeType] = (),
        *,
        target_type: NodeType | None = None,
    ) -> None:
        """Add or replace a target. Replacing makes it the most recent one."""
        self._sequence += 1
        self._targets[target_id] = TargetRegistration(
            target_id=target_id,
            rect=rect,
            accepted_types=frozenset(accepted_types),
            target_type=target_type,
            sequence=self._sequence,
        )

    def unregister_target(self, target_id: str) -> None:
        """Forget a target. Unknown ids are ignored."""
        self._targets.pop(target_id, None)

    def clear(self) -> None:
        self._targets.clear()

    def registration(self, target_id: str) -> TargetRegistration | None:
        return self._targets.get(target_id)

    def resolve(self, pointer: Point, dragged_type: NodeType | None = None) -> Candidate | None:
        """Find the target under (or nearest to) ``pointer`` and its insertion mode."""
        usable = [t for t in self._targets.values() if not t.rect.is_empty]
        if not usable:
            self.last_miss = DropRejection.NO_REGISTERED_TARGETS
            logger.debug("No registered targets to resolve {}", pointer)
            return None

        winner = self._pick(pointer, usable)
        self.last_miss = None
        mode = self._mode_for(pointer, winner, dragged_type)
        logger.debug("Resolved {} -> {} {}", pointer, mode, winner.target_id)
        return Candidate(target_id=winner.target_id, mode=mode)

    def _pick(self, pointer: Point, usable: list[TargetRegistration]) -> TargetRegistration:
        containing = [t for t in usable if t.rect.contains(pointer)]
        if containing:
            # Innermost wins; equal areas go to the most recently registered.
            return min(containing, key=lambda t: (t.rect.area, -t.sequence))

        # Pointer between rows or beside them: fall back to the vertically nearest row.
        return min(
            usable,
            key=lambda t: (
                t.rect.vertical_distance(pointer.y),
                t.rect.horizontal_distance(pointer.x),
                t.rect.area,
                -t.sequence,
            ),
        )

    def _mode_for(
        self, pointer: Point, target: TargetRegistration, dragged_type: NodeType | None
    ) -> InsertionMode:
        rect = target.rect
        rel = min(max((pointer.y - rect.y) / rect.height, 0.0), 1.0)
        if rel < self.edge_ratio:
            return InsertionMode.BEFORE
        if rel >= 1.0 - self.edge_ratio:
            return InsertionMode.AFTER
        if self._accepts_inside(target, dragged_type):
            return InsertionMode.INSIDE
        return InsertionMode.BEFORE if rel < 0.5 else InsertionMode.AFTER

    @staticmethod
    def _accepts_inside(target: TargetRegistration, dragged_type: NodeType | None) -> bool:
        if dragged_type is None:
            return False
        if target.target_type is None:
            # Untyped targets hold exactly what they were registered to accept.
            return dragged_type in target.accepted_types
        if target.accepted_types and dragged_type not in target.accepted_types:
            return False
        return can_contain(target.target_type, dragged_type)
