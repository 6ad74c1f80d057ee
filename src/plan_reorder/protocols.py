"""Protocols for the collaborators around the reordering engine."""

from typing import Any, Protocol, runtime_checkable

from plan_reorder.models.node import IndicatorSpec, MoveRecord


@runtime_checkable
class MoveSinkProtocol(Protocol):
    """Protocol for persistence layers notified after each committed move."""

    def record_move(self, record: MoveRecord, snapshot: dict[str, Any]) -> None:
        """Persist a committed move and the resulting tree snapshot."""
        ...


@runtime_checkable
class BudgetFormatterProtocol(Protocol):
    """Protocol for turning rollup totals into display text."""

    def format_budget(self, amount: float) -> str:
        """Format a budget amount for display."""
        ...


@runtime_checkable
class IndicatorListener(Protocol):
    """Protocol for the renderer that draws the insertion line."""

    def __call__(self, indicator: IndicatorSpec | None) -> None:
        """Show ``indicator``, or hide the line when it is None."""
        ...
