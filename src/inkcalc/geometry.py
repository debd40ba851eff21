"""
Bounding boxes and the spatial predicates shared by every pipeline stage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box around a set of points."""

    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center_x(self) -> float:
        return self.min_x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.min_y + self.height / 2

    @property
    def max_dimension(self) -> float:
        return max(self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        if self.height == 0:
            return float("inf")
        return self.width / self.height

    def is_degenerate(self) -> bool:
        return self.width == 0 and self.height == 0


def bounding_box(coords: Iterable[Tuple[float, float]]) -> BoundingBox:
    """
    Box around ``(x, y)`` pairs; all-zero when there are none.
    """
    xs = []
    ys = []
    for x, y in coords:
        xs.append(x)
        ys.append(y)
    if not xs:
        return BoundingBox()
    return BoundingBox(min(xs), min(ys), max(xs), max(ys))


def boxes_overlap_x(a: BoundingBox, b: BoundingBox, margin: float = 0.0) -> bool:
    """True if ``a``'s X-range grown by ``margin`` on both sides meets ``b``'s."""
    return a.min_x - margin <= b.max_x and a.max_x + margin >= b.min_x


def horizontal_gap(a: BoundingBox, b: BoundingBox) -> float:
    """Distance between the nearer vertical edges, 0 when the X-ranges overlap."""
    if a.max_x < b.min_x:
        return b.min_x - a.max_x
    if b.max_x < a.min_x:
        return a.min_x - b.max_x
    return 0.0


def y_overlap_ratio(a: BoundingBox, b: BoundingBox) -> float:
    """Shared Y extent as a fraction of the shorter box (0 for flat boxes)."""
    overlap = max(0.0, min(a.max_y, b.max_y) - max(a.min_y, b.min_y))
    min_height = min(a.height, b.height)
    if min_height == 0:
        return 0.0
    return overlap / min_height
