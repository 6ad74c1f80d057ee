"""Drag-and-drop reordering engine for section/tactique/placement/creatif plans."""

from plan_reorder.core.dnd.feedback import InsertionFeedbackProjector
from plan_reorder.core.dnd.hit_tester import HitTester
from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.core.dnd.session import DragSession, DragState
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.protocols import BudgetFormatterProtocol, MoveSinkProtocol
from plan_reorder.store import JsonTreeStore

__all__ = [
    "BudgetFormatterProtocol",
    "DragSession",
    "DragState",
    "Hierarchy",
    "HitTester",
    "InsertionFeedbackProjector",
    "JsonTreeStore",
    "MoveSinkProtocol",
    "TreeMutator",
]
