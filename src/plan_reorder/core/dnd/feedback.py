"""Turn the current drop candidate into an insertion line to draw."""

from plan_reorder.config import INDICATOR_THICKNESS, INSIDE_INDENT
from plan_reorder.core.dnd.hit_tester import HitTester
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.models.node import Candidate, IndicatorSpec, InsertionMode, Rect


class InsertionFeedbackProjector:
    """Project candidates onto the registered target rectangles."""

    def __init__(
        self,
        hit_tester: HitTester,
        *,
        thickness: float = INDICATOR_THICKNESS,
        inside_indent: float = INSIDE_INDENT,
        hierarchy: Hierarchy | None = None,
    ) -> None:
        self.hit_tester = hit_tester
        # Fills in the target type for rows registered without one.
        self.hierarchy = hierarchy
        self.thickness = thickness
        self.inside_indent = inside_indent

    def project(self, candidate: Candidate | None) -> IndicatorSpec | None:
        """Return the line for ``candidate``; None means hide the indicator."""
        if candidate is None:
            return None
        registration = self.hit_tester.registration(candidate.target_id)
        if registration is None or registration.rect.is_empty:
            return None

        target = registration.rect
        band = min(self.thickness, target.height)
        if candidate.mode == InsertionMode.BEFORE:
            rect = Rect(target.x, target.y, target.width, band)
        elif candidate.mode == InsertionMode.AFTER:
            rect = Rect(target.x, target.bottom - band, target.width, band)
        else:
            # Append as last child: bottom edge, shifted one level in.
            indent = min(self.inside_indent, target.width / 2)
            rect = Rect(target.x + indent, target.bottom - band, target.width - indent, band)

        target_type = registration.target_type
        if target_type is None and self.hierarchy is not None:
            node = self.hierarchy.find(candidate.target_id)
            target_type = node.type if node is not None else None
        return IndicatorSpec(rect=rect, direction=candidate.mode, target_type=target_type)
