"""
Segmentation routines that cluster raw strokes into character groups.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from .constants import (
    GAP_HEIGHT_FACTOR,
    GAP_Y_RATIO,
    MIN_GAP_THRESHOLD,
    OVERLAP_MARGIN_FACTOR,
    OVERLAP_Y_RATIO,
)
from .geometry import BoundingBox, boxes_overlap_x, horizontal_gap, y_overlap_ratio
from .strokes import Stroke, StrokeGroup


class _DisjointSet:
    """Union-find over stroke indices, scoped to one segmentation call."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, x: int) -> int:
        parent = self.parent
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra = self.find(a)
        rb = self.find(b)
        if ra != rb:
            self.parent[ra] = rb


class StrokeSegmenter:
    """Partition strokes into groups, each expected to be one glyph."""

    def __init__(
        self,
        min_gap: float = MIN_GAP_THRESHOLD,
        gap_height_factor: float = GAP_HEIGHT_FACTOR,
    ) -> None:
        self.min_gap = min_gap
        self.gap_height_factor = gap_height_factor

    def gap_threshold(self, boxes: Sequence[BoundingBox]) -> float:
        """Merge distance scaled by the mean stroke height."""
        if not boxes:
            return self.min_gap
        avg_height = sum(box.height for box in boxes) / len(boxes)
        return max(avg_height * self.gap_height_factor, self.min_gap)

    def _should_merge(
        self, a: BoundingBox, b: BoundingBox, gap_threshold: float, margin: float
    ) -> bool:
        if boxes_overlap_x(a, b, margin):
            return y_overlap_ratio(a, b) > OVERLAP_Y_RATIO
        gap = horizontal_gap(a, b)
        return 0 < gap < gap_threshold and y_overlap_ratio(a, b) > GAP_Y_RATIO

    def segment(self, strokes: Sequence[Stroke]) -> List[StrokeGroup]:
        """
        Cluster ``strokes`` and return the groups in reading order.

        Every input stroke lands in exactly one group. Groups are ordered by
        the centre X of their bounding boxes.
        """
        if not strokes:
            return []
        if len(strokes) == 1:
            return [StrokeGroup([strokes[0]])]

        boxes = [stroke.bounding_box() for stroke in strokes]
        gap_threshold = self.gap_threshold(boxes)
        margin = gap_threshold * OVERLAP_MARGIN_FACTOR

        order = sorted(range(len(strokes)), key=lambda idx: boxes[idx].min_x)
        sets = _DisjointSet(len(strokes))
        for pos, i in enumerate(order):
            for j in order[pos + 1 :]:
                if self._should_merge(boxes[i], boxes[j], gap_threshold, margin):
                    sets.union(i, j)

        members: Dict[int, List[Stroke]] = {}
        for idx, stroke in enumerate(strokes):
            members.setdefault(sets.find(idx), []).append(stroke)

        groups = [StrokeGroup(group) for group in members.values()]
        groups.sort(key=lambda group: group.bounding_box().center_x)
        return groups
