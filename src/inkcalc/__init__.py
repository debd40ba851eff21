"""
Handwritten arithmetic from pen strokes.

Strokes are clustered into character groups, each group is labelled by
operator rules or a digit classifier, and the resulting string is
validated and evaluated.
"""

from .evaluator import ExpressionEvaluator
from .geometry import BoundingBox, boxes_overlap_x, horizontal_gap
from .operators import OperatorHeuristic
from .parser import ExpressionParser, ParsedExpression
from .pipeline import InkOptions, InkResult, InkSession, recognize_all
from .recognizer import Classifier, Recognizer
from .results import RecognitionResult
from .segmentation import StrokeSegmenter
from .strokes import Point, Stroke, StrokeGroup

__version__ = "1.0.0"

__all__ = [
    "BoundingBox",
    "Classifier",
    "ExpressionEvaluator",
    "ExpressionParser",
    "InkOptions",
    "InkResult",
    "InkSession",
    "OperatorHeuristic",
    "ParsedExpression",
    "Point",
    "RecognitionResult",
    "Recognizer",
    "Stroke",
    "StrokeGroup",
    "StrokeSegmenter",
    "boxes_overlap_x",
    "horizontal_gap",
    "recognize_all",
]
