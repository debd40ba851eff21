"""
Stroke capture structures and rasterisation of stroke groups.
"""

from __future__ import annotations

import math
import time
from typing import Iterable, List, NamedTuple, Optional

import numpy as np

from .constants import (
    ANGLE_TOLERANCE,
    BRUSH_CENTER,
    BRUSH_NEIGHBOUR,
    GRID_SIZE,
    HALF_PI,
    RASTER_MARGIN,
    RASTER_PAD_FRACTION,
)
from .geometry import BoundingBox, bounding_box


class Point(NamedTuple):
    x: float
    y: float
    t: float


def _now_ms() -> float:
    return time.time() * 1000.0


class Stroke:
    """One pen-down to pen-up trace, points kept in capture order."""

    def __init__(self, points: Optional[Iterable[Point]] = None) -> None:
        self.points: List[Point] = []
        for point in points or ():
            self.add_point(*point)

    def __len__(self) -> int:
        return len(self.points)

    def __repr__(self) -> str:
        return f"Stroke(points={len(self.points)})"

    def add_point(self, x: float, y: float, t: Optional[float] = None) -> Point:
        last_t = self.points[-1].t if self.points else None
        if t is None:
            # Wall clock may step backwards; timestamps within a stroke may not.
            t = _now_ms() if last_t is None else max(_now_ms(), last_t)
        elif last_t is not None and t < last_t:
            raise ValueError(f"Timestamp {t} precedes previous point at {last_t}")
        point = Point(float(x), float(y), float(t))
        self.points.append(point)
        return point

    def bounding_box(self) -> BoundingBox:
        return bounding_box((p.x, p.y) for p in self.points)

    def length(self) -> float:
        """Total path length of the stroke."""
        total = 0.0
        for p0, p1 in zip(self.points, self.points[1:]):
            total += math.hypot(p1.x - p0.x, p1.y - p0.y)
        return total

    def angle(self) -> float:
        """Angle of the chord from the first to the last point."""
        if len(self.points) < 2:
            return 0.0
        first = self.points[0]
        last = self.points[-1]
        return math.atan2(last.y - first.y, last.x - first.x)

    def is_horizontal(self, tolerance: float = ANGLE_TOLERANCE) -> bool:
        angle = abs(self.angle())
        return angle < tolerance or angle > math.pi - tolerance

    def is_vertical(self, tolerance: float = ANGLE_TOLERANCE) -> bool:
        return abs(abs(self.angle()) - HALF_PI) < tolerance

    def aspect_ratio(self) -> float:
        return self.bounding_box().aspect_ratio


class StrokeGroup:
    """Strokes hypothesised to form a single character."""

    def __init__(self, strokes: Optional[Iterable[Stroke]] = None) -> None:
        self.strokes: List[Stroke] = list(strokes or ())

    def __len__(self) -> int:
        return len(self.strokes)

    def __repr__(self) -> str:
        return f"StrokeGroup(strokes={len(self.strokes)})"

    def add_stroke(self, stroke: Stroke) -> None:
        self.strokes.append(stroke)

    def all_points(self) -> List[Point]:
        return [point for stroke in self.strokes for point in stroke.points]

    def bounding_box(self) -> BoundingBox:
        return bounding_box((p.x, p.y) for p in self.all_points())

    def render_to_grid(self, size: int = GRID_SIZE) -> np.ndarray:
        """
        Rasterise the group into a flat ``size * size`` float32 bitmap.

        The padded bounding box is scaled uniformly into the grid (leaving a
        small margin) and every segment is stamped with a soft 3x3 brush.
        Values lie in [0, 1], ink is bright.
        """
        grid = np.zeros((size, size), dtype=np.float32)
        bb = self.bounding_box()
        if bb.is_degenerate():
            return grid.reshape(-1)

        pad = bb.max_dimension * RASTER_PAD_FRACTION
        pad_min_x = bb.min_x - pad
        pad_min_y = bb.min_y - pad
        pad_w = bb.width + pad * 2
        pad_h = bb.height + pad * 2

        scale = (size - RASTER_MARGIN) / max(pad_w, pad_h)
        offset_x = (size - pad_w * scale) / 2
        offset_y = (size - pad_h * scale) / 2

        brush = np.full((3, 3), BRUSH_NEIGHBOUR, dtype=np.float32)
        brush[1, 1] = BRUSH_CENTER

        for stroke in self.strokes:
            for p0, p1 in zip(stroke.points, stroke.points[1:]):
                dist = math.hypot(p1.x - p0.x, p1.y - p0.y)
                steps = max(math.ceil(dist * scale), 1)
                for step in range(steps + 1):
                    frac = step / steps
                    px = (p0.x + (p1.x - p0.x) * frac - pad_min_x) * scale + offset_x
                    py = (p0.y + (p1.y - p0.y) * frac - pad_min_y) * scale + offset_y
                    # Round half up, as a canvas would.
                    x = int(math.floor(px + 0.5))
                    y = int(math.floor(py + 0.5))
                    if 0 <= x < size and 0 <= y < size:
                        _stamp(grid, brush, x, y)

        # Stamps only add, so clamping once equals clamping per stamp.
        np.clip(grid, 0.0, 1.0, out=grid)
        return grid.reshape(-1)


def _stamp(grid: np.ndarray, brush: np.ndarray, x: int, y: int) -> None:
    size = grid.shape[0]
    y0, y1 = max(0, y - 1), min(size, y + 2)
    x0, x1 = max(0, x - 1), min(size, x + 2)
    grid[y0:y1, x0:x1] += brush[y0 - (y - 1) : y1 - (y - 1), x0 - (x - 1) : x1 - (x - 1)]
