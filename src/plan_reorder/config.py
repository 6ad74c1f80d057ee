"""Configuration constants for plan-reorder."""

import os
from pathlib import Path

# Share of a row's height, at the top and at the bottom, that maps to
# before/after. The remaining middle band is the "inside" zone.
EDGE_ZONE_RATIO: float = 0.25

# Insertion indicator geometry, in the same units as registered rectangles.
INDICATOR_THICKNESS: float = 2.0
INSIDE_INDENT: float = 24.0

# Environment variable pointing at the plan tree file.
TREE_FILE_ENV: str = "PLAN_REORDER_TREE"
TREE_FILE_NAME: str = "plan.json"

# Directory with data. First directory which holds a plan file is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/plan-reorder").expanduser(),
    Path("~/.config/plan-reorder").expanduser(),
]


def resolve_tree_file(explicit: Path | None = None) -> Path | None:
    """Pick the tree file: explicit path, then the env variable, then data dirs."""
    if explicit is not None:
        return explicit.expanduser()

    env_value = os.environ.get(TREE_FILE_ENV)
    if env_value:
        return Path(env_value).expanduser()

    for candidate in DATA_DIRECTORIES:
        tree_file = candidate / TREE_FILE_NAME
        if tree_file.is_file():
            return tree_file
    return None
