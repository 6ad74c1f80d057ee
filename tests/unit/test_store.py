"""Tests for the JSON tree store."""

import json
from pathlib import Path

import pytest

from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.exceptions import TreeFormatError
from plan_reorder.models.node import Candidate, InsertionMode, MoveRecord
from plan_reorder.store import JsonTreeStore


def test_load(tree_file: Path) -> None:
    store = JsonTreeStore(tree_file)
    hierarchy = store.load()
    assert store.hierarchy is hierarchy
    assert len(hierarchy) == 13
    assert hierarchy.get("S1").budget == 200


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        JsonTreeStore(tmp_path / "missing.json").load()


@pytest.mark.parametrize("contents", ["{not json", "[1, 2]"])
def test_load_rejects_bad_contents(tmp_path: Path, contents: str) -> None:
    path = tmp_path / "plan.json"
    path.write_text(contents)
    with pytest.raises(TreeFormatError):
        JsonTreeStore(path).load()


def test_save_skips_unchanged_file(tree_file: Path) -> None:
    store = JsonTreeStore(tree_file)
    hierarchy = store.load()

    assert store.save(hierarchy) is True
    written = tree_file.read_text()
    assert written.endswith("}\n")
    assert store.save(hierarchy) is False
    assert tree_file.read_text() == written


def test_save_creates_file(tree_file: Path, tmp_path: Path) -> None:
    hierarchy = JsonTreeStore(tree_file).load()
    target = tmp_path / "nested" / "copy.json"
    assert JsonTreeStore(target).save(hierarchy) is True
    assert json.loads(target.read_text())["nodes"][0]["id"] == "S1"


def test_dry_run_does_not_write(tree_file: Path) -> None:
    original = tree_file.read_text()
    store = JsonTreeStore(tree_file, dry_run=True)
    hierarchy = store.load()

    assert store.save(hierarchy) is True
    assert tree_file.read_text() == original


def test_committed_move_is_persisted(tree_file: Path) -> None:
    store = JsonTreeStore(tree_file)
    mutator = TreeMutator(store.load(), sink=store)

    record = mutator.apply_drop("T1", Candidate("S2", InsertionMode.INSIDE))

    assert store.moves == [record]
    reloaded = JsonTreeStore(tree_file).load()
    assert reloaded.get("T1").parent_id == "S2"
    assert reloaded.child_ids("S2") == ["T4", "T1"]
    assert reloaded.get("S1").budget == 100
    assert reloaded.validate() == []


def test_record_move_before_load(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    store = JsonTreeStore(path)
    record = MoveRecord(
        moved_id="T1",
        old_parent_id="S1",
        old_index=0,
        new_parent_id="S2",
        new_index=0,
        budget_moved=100,
    )
    store.record_move(record, {"roots": [], "nodes": {}})
    assert store.moves == [record]
    assert not path.exists()
