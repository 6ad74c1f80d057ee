"""Domain models for the plan hierarchy and drag-and-drop engine."""

from dataclasses import dataclass, field
from enum import StrEnum


class NodeType(StrEnum):
    """Kind of a hierarchy entry, outermost first."""

    SECTION = "section"
    TACTIQUE = "tactique"
    PLACEMENT = "placement"
    CREATIF = "creatif"


class InsertionMode(StrEnum):
    """Where a dragged node lands relative to its target."""

    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"


@dataclass
class Node:
    """A single entry in the section/tactique/placement/creatif tree.

    ``budget`` is authoritative for childless nodes and a derived rollup
    for nodes with children.
    """

    id: str
    type: NodeType
    parent_id: str | None = None
    order_index: int = 0
    budget: float = 0.0
    label: str = ""
    expanded: bool = False
    children: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Point:
    """A pointer position."""

    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle, ``y`` growing downwards."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, point: Point) -> bool:
        """Edges are inclusive."""
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def horizontal_distance(self, x: float) -> float:
        """Distance from ``x`` to the nearest vertical edge, 0 when inside."""
        if x < self.x:
            return self.x - x
        if x > self.right:
            return x - self.right
        return 0.0

    def vertical_distance(self, y: float) -> float:
        """Distance from ``y`` to the nearest horizontal edge, 0 when inside."""
        if y < self.y:
            return self.y - y
        if y > self.bottom:
            return y - self.bottom
        return 0.0


@dataclass(frozen=True)
class Candidate:
    """A tentative drop: target node id plus insertion mode."""

    target_id: str
    mode: InsertionMode


@dataclass(frozen=True)
class IndicatorSpec:
    """Renderable insertion line for the current candidate."""

    rect: Rect
    direction: InsertionMode
    target_type: NodeType | None


@dataclass(frozen=True)
class MoveRecord:
    """Summary of a committed move, handed to the persistence sink."""

    moved_id: str
    old_parent_id: str | None
    old_index: int
    new_parent_id: str | None
    new_index: int
    budget_moved: float
    recomputed_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class DragPreview:
    """What the drag overlay shows about the item being dragged."""

    node_id: str
    type: NodeType
    label: str
    descendant_count: int
    budget: float
