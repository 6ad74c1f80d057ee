"""Shared test fixtures."""

import json
from pathlib import Path

import pytest

from plan_reorder.core.dnd.hit_tester import HitTester
from plan_reorder.core.dnd.mutator import TreeMutator
from plan_reorder.core.tree.hierarchy import Hierarchy
from plan_reorder.core.tree.loader import parse_tree_data
from tests.unit.builders import PLAN_SOURCE
from tests.unit.fakes import FakeSink


@pytest.fixture
def plan() -> Hierarchy:
    """The sample plan, normalized."""
    return parse_tree_data(PLAN_SOURCE)


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def mutator(plan: Hierarchy, sink: FakeSink) -> TreeMutator:
    return TreeMutator(plan, sink=sink)


@pytest.fixture
def hit_tester() -> HitTester:
    return HitTester()


@pytest.fixture
def tree_file(tmp_path: Path) -> Path:
    """The sample plan written to disk."""
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(PLAN_SOURCE))
    return path
