"""The drag session state machine.

IDLE -> DRAGGING -> (COMMITTING | CANCELLED) -> IDLE

The session holds ids and the captured origin only. The tree is mutated at
most once, by the mutator, at release.
"""

from enum import StrEnum

from loguru import logger

from plan_reorder.core.dnd.acceptance import check_drop
from plan_reorder.core.dnd.feedback import InsertionFeedbackProjector
from plan_reorder.core.dnd.hit_tester import HitTester
from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.exceptions import DropRejection, MoveError, SessionMisuseError
from plan_reorder.models.node import (
    Candidate,
    DragPreview,
    IndicatorSpec,
    MoveRecord,
    Point,
)
from plan_reorder.protocols import IndicatorListener


class DragState(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    CANCELLED = "cancelled"


class DragSession:
    """Single-flight drag session driven by the gesture layer."""

    def __init__(
        self,
        mutator: TreeMutator,
        hit_tester: HitTester,
        *,
        projector: InsertionFeedbackProjector | None = None,
        on_indicator: IndicatorListener | None = None,
    ) -> None:
        self.mutator = mutator
        self.hit_tester = hit_tester
        self.projector = projector or InsertionFeedbackProjector(
            hit_tester, hierarchy=mutator.hierarchy
        )
        self.on_indicator = on_indicator

        self.state = DragState.IDLE
        self.dragged_id: str | None = None
        self.origin_parent_id: str | None = None
        self.origin_index: int | None = None
        self.candidate: Candidate | None = None
        self.last_rejection: DropRejection | None = None
        self.preview: DragPreview | None = None
        self._last_ended_by_cancel = False

    @property
    def hierarchy(self) -> Hierarchy:
        return self.mutator.hierarchy

    @property
    def is_active(self) -> bool:
        return self.state != DragState.IDLE

    def start_drag(self, node_id: str) -> DragPreview:
        """Begin dragging ``node_id`` and capture where it came from."""
        if self.state != DragState.IDLE:
            msg = f"Cannot start dragging {node_id!r}: session is {self.state}"
            raise SessionMisuseError(msg)
        node = self.hierarchy.find(node_id)
        if node is None:
            msg = f"Cannot start dragging unknown node {node_id!r}"
            raise SessionMisuseError(msg)

        self.dragged_id = node_id
        self.origin_parent_id = node.parent_id
        self.origin_index = self.hierarchy.index_of(node_id)
        self.candidate = None
        self.last_rejection = None
        self.preview = self.hierarchy.describe(node_id)
        self._last_ended_by_cancel = False
        self.state = DragState.DRAGGING
        logger.debug(
            "Drag started: {} from {}[{}]", node_id, self.origin_parent_id, self.origin_index
        )
        return self.preview

    def pointer_move(self, x: float, y: float) -> IndicatorSpec | None:
        """Re-resolve the hovered target and keep the last legal candidate."""
        if self.state != DragState.DRAGGING or self.dragged_id is None:
            return None

        dragged = self.hierarchy.find(self.dragged_id)
        dragged_type = dragged.type if dragged is not None else None
        resolved = self.hit_tester.resolve(Point(x, y), dragged_type)

        if resolved is None:
            self.last_rejection = self.hit_tester.last_miss
        else:
            self.last_rejection = check_drop(self.hierarchy, self.dragged_id, resolved)
            if self.last_rejection is None:
                self.candidate = resolved

        indicator = self.projector.project(self.candidate)
        if indicator is None and self.candidate is not None:
            # The held target is no longer drawn; never commit onto it.
            logger.debug("Dropping candidate {}: target not registered", self.candidate)
            self.candidate = None
        self._emit(indicator)
        return indicator

    def release(self) -> MoveRecord | None:
        """Commit the held candidate, or cancel when there is none."""
        if self.state != DragState.DRAGGING or self.dragged_id is None:
            msg = f"Cannot release: session is {self.state}"
            raise SessionMisuseError(msg)

        if self.candidate is None:
            logger.debug("Released {} with no legal drop", self.dragged_id)
            self._finish(cancelled=True)
            return None

        self.state = DragState.COMMITTING
        try:
            record = self.mutator.apply_drop(self.dragged_id, self.candidate)
        except MoveError as e:
            logger.warning("Drop of {} discarded: {}", self.dragged_id, e.message)
            self._finish(cancelled=True)
            return None

        self._finish(cancelled=False)
        return record

    def cancel(self) -> None:
        """Abandon the drag without touching the tree.

        Extra cancel signals right after a cancellation are ignored.
        """
        if self.state == DragState.IDLE:
            if self._last_ended_by_cancel:
                return
            msg = "Cannot cancel: no drag in progress"
            raise SessionMisuseError(msg)
        logger.debug("Drag of {} cancelled", self.dragged_id)
        self._finish(cancelled=True)

    def _finish(self, *, cancelled: bool) -> None:
        if cancelled:
            self.state = DragState.CANCELLED
        self.dragged_id = None
        self.origin_parent_id = None
        self.origin_index = None
        self.candidate = None
        self.preview = None
        self._last_ended_by_cancel = cancelled
        self.state = DragState.IDLE
        self._emit(None)

    def _emit(self, indicator: IndicatorSpec | None) -> None:
        if self.on_indicator is not None:
            self.on_indicator(indicator)
