"""Tests for the drag session lifecycle."""

from typing import Any

import pytest

from plan_reorder.core.dnd.hit_tester import HitTester
from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.core.dnd.session import DragSession, DragState
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.exceptions import DropRejection, SessionMisuseError
from plan_reorder.models.node import Candidate, InsertionMode, MoveRecord, Rect
from tests.unit.builders import register_rows, row_point
from tests.unit.fakes import FakeSink, RecordingIndicator


@pytest.fixture
def rows(plan: Hierarchy, hit_tester: HitTester) -> dict[str, Rect]:
    return register_rows(hit_tester, plan)


@pytest.fixture
def indicator() -> RecordingIndicator:
    return RecordingIndicator()


@pytest.fixture
def session(
    mutator: TreeMutator,
    hit_tester: HitTester,
    rows: dict[str, Rect],
    indicator: RecordingIndicator,
) -> DragSession:
    return DragSession(mutator, hit_tester, on_indicator=indicator)


def test_start_captures_origin(session: DragSession) -> None:
    preview = session.start_drag("T3")

    assert session.state == DragState.DRAGGING
    assert session.is_active
    assert session.dragged_id == "T3"
    assert (session.origin_parent_id, session.origin_index) == ("S1", 2)
    assert session.candidate is None
    assert preview.label == "T3"
    assert preview.budget == 40
    assert preview.descendant_count == 0
    assert session.preview == preview


def test_full_drag_commits_once(
    session: DragSession,
    rows: dict[str, Rect],
    sink: FakeSink,
    indicator: RecordingIndicator,
) -> None:
    tree = session.hierarchy
    session.start_drag("T3")

    shown = session.pointer_move(*row_point(rows["T1"], 0.2))
    assert session.candidate == Candidate("T1", InsertionMode.BEFORE)
    assert shown is not None
    assert shown.rect == Rect(0, rows["T1"].y, rows["T1"].width, 2)
    assert indicator.last == shown

    record = session.release()

    assert record is not None
    assert tree.child_ids("S1") == ["T3", "T1", "T2"]
    assert len(sink.calls) == 1
    assert session.state == DragState.IDLE
    assert session.dragged_id is None
    assert session.candidate is None
    assert indicator.last is None


def test_illegal_hover_keeps_previous_candidate(
    session: DragSession, rows: dict[str, Rect], indicator: RecordingIndicator
) -> None:
    tree = session.hierarchy
    session.start_drag("C1")

    session.pointer_move(*row_point(rows["P2"], 0.5))
    assert session.candidate == Candidate("P2", InsertionMode.INSIDE)
    held = indicator.last

    # Middle of a section row: a creatif can't go there at all.
    shown = session.pointer_move(*row_point(rows["S2"], 0.5))
    assert session.candidate == Candidate("P2", InsertionMode.INSIDE)
    assert session.last_rejection == DropRejection.ILLEGAL_TYPE
    assert shown == held

    record = session.release()
    assert record is not None
    assert tree.child_ids("P2") == ["C3", "C1"]
    assert tree.get("P1").budget == 20
    assert tree.get("P2").budget == 40
    assert tree.get("S1").budget == 200


def test_hovering_own_subtree_is_rejected(session: DragSession, rows: dict[str, Rect]) -> None:
    tree = session.hierarchy
    before = tree.snapshot()
    session.start_drag("T2")

    session.pointer_move(*row_point(rows["C1"], 0.5))
    assert session.last_rejection == DropRejection.CYCLIC_MOVE
    assert session.candidate is None

    assert session.release() is None
    assert tree.snapshot() == before
    assert session.state == DragState.IDLE


def test_pointer_beside_rows_uses_nearest_row(
    session: DragSession, rows: dict[str, Rect], indicator: RecordingIndicator
) -> None:
    session.start_drag("T1")
    shown = session.pointer_move(rows["S3"].right + 50, rows["S3"].y + 10)
    assert session.candidate == Candidate("S3", InsertionMode.INSIDE)
    assert session.last_rejection is None
    assert shown is not None
    assert indicator.last == shown


def test_unregistered_target_is_not_committed(
    session: DragSession,
    hit_tester: HitTester,
    rows: dict[str, Rect],
    sink: FakeSink,
    indicator: RecordingIndicator,
) -> None:
    tree = session.hierarchy
    before = tree.snapshot()
    session.start_drag("T3")
    session.pointer_move(*row_point(rows["T1"], 0.2))
    assert session.candidate == Candidate("T1", InsertionMode.BEFORE)

    # The T1 row unmounts, then the pointer moves over a creatif row.
    hit_tester.unregister_target("T1")
    assert session.pointer_move(*row_point(rows["C1"], 0.5)) is None
    assert session.last_rejection == DropRejection.ILLEGAL_TYPE
    assert session.candidate is None
    assert indicator.last is None

    assert session.release() is None
    assert tree.snapshot() == before
    assert sink.calls == []


def test_no_registered_targets(mutator: TreeMutator) -> None:
    session = DragSession(mutator, HitTester())
    session.start_drag("T1")
    assert session.pointer_move(10, 10) is None
    assert session.last_rejection == DropRejection.NO_REGISTERED_TARGETS
    assert session.release() is None
    assert mutator.hierarchy.child_ids("S1") == ["T1", "T2", "T3"]


def test_cancel_restores_nothing_to_undo(
    session: DragSession,
    rows: dict[str, Rect],
    sink: FakeSink,
    indicator: RecordingIndicator,
) -> None:
    tree = session.hierarchy
    before = tree.snapshot()

    session.start_drag("T1")
    session.pointer_move(*row_point(rows["S2"], 0.5))
    assert session.candidate == Candidate("S2", InsertionMode.INSIDE)
    session.cancel()

    assert tree.snapshot() == before
    assert sink.calls == []
    assert session.state == DragState.IDLE
    assert session.candidate is None
    assert indicator.last is None


def test_repeated_cancel_is_ignored(session: DragSession) -> None:
    session.start_drag("T1")
    session.cancel()
    session.cancel()
    assert session.state == DragState.IDLE


def test_cancel_without_drag_is_misuse(session: DragSession) -> None:
    with pytest.raises(SessionMisuseError):
        session.cancel()


def test_cancel_after_commit_is_misuse(session: DragSession, rows: dict[str, Rect]) -> None:
    session.start_drag("T3")
    session.pointer_move(*row_point(rows["T1"], 0.2))
    session.release()
    with pytest.raises(SessionMisuseError):
        session.cancel()


def test_second_start_is_misuse(session: DragSession) -> None:
    session.start_drag("T1")
    with pytest.raises(SessionMisuseError, match="dragging"):
        session.start_drag("T2")
    assert session.dragged_id == "T1"


def test_start_unknown_node_is_misuse(session: DragSession) -> None:
    with pytest.raises(SessionMisuseError, match="ghost"):
        session.start_drag("ghost")
    assert session.state == DragState.IDLE


def test_release_while_idle_is_misuse(session: DragSession) -> None:
    with pytest.raises(SessionMisuseError):
        session.release()


def test_pointer_move_while_idle_is_ignored(
    session: DragSession, indicator: RecordingIndicator
) -> None:
    assert session.pointer_move(10, 10) is None
    assert indicator.shown == []


def test_target_deleted_before_release(
    session: DragSession, rows: dict[str, Rect], sink: FakeSink
) -> None:
    tree = session.hierarchy
    session.start_drag("T3")
    session.pointer_move(*row_point(rows["T1"], 0.2))

    # Another editor removed T1 while the pointer was held down.
    tree.get("S1").children.remove("T1")
    del tree.nodes["T1"]
    tree.reindex("S1")

    assert session.release() is None
    assert tree.child_ids("S1") == ["T2", "T3"]
    assert sink.calls == []
    assert session.state == DragState.IDLE


def test_state_is_committing_while_sink_runs(
    plan: Hierarchy, hit_tester: HitTester, rows: dict[str, Rect]
) -> None:
    seen: list[DragState] = []

    class StateProbe:
        def record_move(self, record: MoveRecord, snapshot: dict[str, Any]) -> None:
            seen.append(session.state)

    session = DragSession(TreeMutator(plan, sink=StateProbe()), hit_tester)
    session.start_drag("T3")
    session.pointer_move(*row_point(rows["T1"], 0.2))
    session.release()

    assert seen == [DragState.COMMITTING]
    assert session.state == DragState.IDLE


def test_session_is_reusable(session: DragSession, rows: dict[str, Rect]) -> None:
    tree = session.hierarchy
    session.start_drag("T3")
    session.cancel()

    session.start_drag("T1")
    session.pointer_move(*row_point(rows["S3"], 0.5))
    assert session.release() is not None
    assert tree.child_ids("S3") == ["T1"]
