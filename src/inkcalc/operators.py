"""
Rule-based recognition of arithmetic operators from stroke geometry.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Sequence

from .constants import (
    DIAGONAL_RANGE,
    DIVIDE_DOTS_CONFIDENCE,
    DIVIDE_SLASH_CONFIDENCE,
    EQUALS_CONFIDENCE,
    MINUS_CONFIDENCE,
    MULTIPLY_CONFIDENCE,
    PLUS_CONFIDENCE,
    SLASH_ANGLE_RANGE,
    SLASH_ASPECT_RANGE,
)
from .geometry import BoundingBox
from .results import RecognitionResult
from .strokes import Stroke, StrokeGroup


def _operator(char: str, confidence: float) -> RecognitionResult:
    return RecognitionResult(char=char, confidence=confidence, type="operator")


def _is_diagonal(stroke: Stroke) -> bool:
    low, high = DIAGONAL_RANGE
    angle = abs(stroke.angle())
    return low < angle < high or low < math.pi - angle < high


class OperatorHeuristic:
    """
    Recognise ``= + - * /`` directly from stroke geometry.

    Rules run in a fixed priority order and the first match wins. The order
    settles visually similar shapes: two horizontal strokes are tried as
    ``=`` before ``+``, and ``*`` is tried before the single-stroke ``/``.
    Confidence is fixed per rule. ``None`` means no operator was found.
    """

    def __init__(self) -> None:
        self.rules: List[Callable[[Sequence[Stroke], BoundingBox], Optional[RecognitionResult]]] = [
            self._match_equals,
            self._match_plus,
            self._match_minus,
            self._match_multiply,
            self._match_divide_dots,
            self._match_divide_slash,
        ]

    def recognize(self, group: StrokeGroup) -> Optional[RecognitionResult]:
        strokes = group.strokes
        bb = group.bounding_box()
        for rule in self.rules:
            result = rule(strokes, bb)
            if result is not None:
                return result
        return None

    def _match_equals(self, strokes: Sequence[Stroke], bb: BoundingBox) -> Optional[RecognitionResult]:
        if len(strokes) != 2:
            return None
        s0, s1 = strokes
        if not (s0.is_horizontal() and s1.is_horizontal()):
            return None
        bb0 = s0.bounding_box()
        bb1 = s1.bounding_box()
        vertical_gap = abs(bb0.center_y - bb1.center_y)
        avg_width = (bb0.width + bb1.width) / 2
        if not 3 < vertical_gap < avg_width * 1.5:
            return None
        widest = max(bb0.width, bb1.width)
        width_ratio = min(bb0.width, bb1.width) / widest if widest else 0.0
        if width_ratio > 0.4:
            return _operator("=", EQUALS_CONFIDENCE)
        return None

    def _match_plus(self, strokes: Sequence[Stroke], bb: BoundingBox) -> Optional[RecognitionResult]:
        if len(strokes) != 2:
            return None
        s0, s1 = strokes
        # Either stroke may supply the horizontal and the vertical bar.
        one_h = s0.is_horizontal() or s1.is_horizontal()
        one_v = s0.is_vertical() or s1.is_vertical()
        if not (one_h and one_v):
            return None
        bb0 = s0.bounding_box()
        bb1 = s1.bounding_box()
        center_dist = math.hypot(bb0.center_x - bb1.center_x, bb0.center_y - bb1.center_y)
        avg_size = (bb0.max_dimension + bb1.max_dimension) / 2
        if center_dist < avg_size * 0.5:
            return _operator("+", PLUS_CONFIDENCE)
        return None

    def _match_minus(self, strokes: Sequence[Stroke], bb: BoundingBox) -> Optional[RecognitionResult]:
        if len(strokes) != 1:
            return None
        stroke = strokes[0]
        if stroke.is_horizontal() and stroke.aspect_ratio() > 2.5:
            return _operator("-", MINUS_CONFIDENCE)
        return None

    def _match_multiply(self, strokes: Sequence[Stroke], bb: BoundingBox) -> Optional[RecognitionResult]:
        if len(strokes) != 2:
            return None
        if all(_is_diagonal(stroke) for stroke in strokes):
            return _operator("*", MULTIPLY_CONFIDENCE)
        return None

    def _match_divide_dots(self, strokes: Sequence[Stroke], bb: BoundingBox) -> Optional[RecognitionResult]:
        if len(strokes) != 3:
            return None
        bars = [s for s in strokes if s.is_horizontal() and s.aspect_ratio() > 2]
        dots = []
        for stroke in strokes:
            sbb = stroke.bounding_box()
            if sbb.width < bb.width * 0.4 and sbb.height < bb.height * 0.4:
                dots.append(stroke)
        if len(bars) == 1 and len(dots) >= 2:
            return _operator("/", DIVIDE_DOTS_CONFIDENCE)
        return None

    def _match_divide_slash(self, strokes: Sequence[Stroke], bb: BoundingBox) -> Optional[RecognitionResult]:
        if len(strokes) != 1:
            return None
        stroke = strokes[0]
        low, high = SLASH_ANGLE_RANGE
        if not low < stroke.angle() < high:
            return None
        low, high = SLASH_ASPECT_RANGE
        if low < stroke.aspect_ratio() < high:
            return _operator("/", DIVIDE_SLASH_CONFIDENCE)
        return None
