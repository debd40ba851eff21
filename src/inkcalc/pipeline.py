"""
High-level pipeline: stroke capture session, recognition and evaluation.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .constants import DEFAULT_TRAINING_DATA, RESULT_PRECISION
from .dataset import has_samples, load_training_json
from .evaluator import ExpressionEvaluator
from .models import DigitCNNModel
from .parser import ExpressionParser
from .recognizer import Classifier, Recognizer
from .results import RecognitionResult
from .segmentation import StrokeSegmenter
from .strokes import Point, Stroke
from .training import AutoTrainer, ProgressCallback, TrainOptions

PointLike = Union[Point, Mapping[str, float], Sequence[float]]


@dataclass(frozen=True)
class InkOptions:
    """
    Session configuration.

    Without ``model_path`` a fresh CNN is built and, when ``auto`` is set,
    trained on ``training_data`` or else on the JSON at
    ``training_data_path``. That path is relative to the working directory
    and no data ships with the package; a missing file skips auto-training.
    """

    model_path: Optional[str] = None
    auto: bool = True
    training_data: Optional[Mapping[str, Sequence[Sequence[float]]]] = None
    training_data_path: str = DEFAULT_TRAINING_DATA
    auto_epochs: int = 10
    auto_augment_factor: int = 5
    on_train_progress: Optional[ProgressCallback] = None


@dataclass
class InkResult:
    expression: str
    raw_expression: str
    result: Optional[float]
    characters: List[RecognitionResult] = field(default_factory=list)
    valid: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expression": self.expression,
            "rawExpression": self.raw_expression,
            "result": self.result,
            "characters": [c.to_dict() for c in self.characters],
            "valid": self.valid,
        }


def round_result(value: float, digits: int = RESULT_PRECISION) -> float:
    """Trim binary floating-point noise; non-finite values pass through."""
    if not math.isfinite(value):
        return value
    return round(value, digits)


def recognize_all(
    strokes: Sequence[Stroke],
    recognizer: Optional[Recognizer] = None,
    segmenter: Optional[StrokeSegmenter] = None,
    parser: Optional[ExpressionParser] = None,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> InkResult:
    """
    Segment, recognise, parse and evaluate ``strokes``.

    Groups are recognised one at a time in reading order. ``result`` is only
    computed for a valid expression.
    """
    if not strokes:
        return InkResult(expression="", raw_expression="", result=None, characters=[], valid=False)

    recognizer = recognizer or Recognizer()
    segmenter = segmenter or StrokeSegmenter()
    parser = parser or ExpressionParser()
    evaluator = evaluator or ExpressionEvaluator()

    groups = segmenter.segment(strokes)
    characters = [recognizer.recognize(group) for group in groups]
    parsed = parser.parse(characters)

    result: Optional[float] = None
    if parsed.is_valid:
        try:
            result = round_result(evaluator.evaluate(parsed.normalized))
        except RecursionError:
            result = None

    return InkResult(
        expression=parsed.normalized,
        raw_expression=parsed.raw,
        result=result,
        characters=characters,
        valid=parsed.is_valid,
    )


def _coerce_point(point: PointLike) -> tuple:
    if isinstance(point, Mapping):
        return point["x"], point["y"], point.get("t")
    values = tuple(point)
    if len(values) == 2:
        return values[0], values[1], None
    return values[0], values[1], values[2]


class InkSession:
    """
    Owns the strokes of one drawing surface and runs recognition on them.

    Mutating calls and ``recognize`` must not interleave; the session does
    no locking of its own.
    """

    def __init__(
        self,
        options: Optional[InkOptions] = None,
        classifier: Optional[Classifier] = None,
    ) -> None:
        self.options = options or InkOptions()
        self._strokes: List[Stroke] = []
        self.segmenter = StrokeSegmenter()
        self.recognizer = Recognizer(classifier=classifier)
        self.parser = ExpressionParser()
        self.evaluator = ExpressionEvaluator()

    # Capture

    def begin_stroke(self) -> Stroke:
        stroke = Stroke()
        self._strokes.append(stroke)
        return stroke

    def append_point(self, stroke: Stroke, x: float, y: float, t: Optional[float] = None) -> Point:
        if not any(stroke is own for own in self._strokes):
            raise ValueError("Stroke does not belong to this session")
        return stroke.add_point(x, y, t)

    def add_stroke(self, points: Iterable[PointLike]) -> Stroke:
        stroke = Stroke()
        for point in points:
            stroke.add_point(*_coerce_point(point))
        self._strokes.append(stroke)
        return stroke

    def undo_last_stroke(self) -> Optional[Stroke]:
        if not self._strokes:
            return None
        return self._strokes.pop()

    def clear_strokes(self) -> None:
        self._strokes = []

    def list_strokes(self) -> List[Stroke]:
        return list(self._strokes)

    @property
    def stroke_count(self) -> int:
        return len(self._strokes)

    # Model

    def is_ready(self) -> bool:
        return self.recognizer.classifier_ready()

    def _training_data(self) -> Optional[Mapping[str, Sequence[Sequence[float]]]]:
        if self.options.training_data is not None:
            return self.options.training_data
        path = self.options.training_data_path
        if not path or not os.path.isfile(path):
            print(f"Warning: default training data not found at '{path}'; skipping auto-training.")
            return None
        try:
            return load_training_json(path)
        except (OSError, ValueError) as exc:
            print(f"Warning: could not load training data '{path}': {exc}")
            return None

    def load_model(self) -> None:
        """
        Attach the CNN classifier.

        Load and fit failures are reported and leave the session running on
        operator rules alone.
        """
        model = DigitCNNModel()
        if self.options.model_path:
            try:
                model.load_model(self.options.model_path)
            except Exception as exc:
                print(f"Warning: failed to load digit model '{self.options.model_path}', "
                      f"falling back to operator rules: {exc}")
                return
            self.recognizer.classifier = model
            return

        try:
            model.build_model()
        except ImportError as exc:
            print(f"Warning: {exc}")
            return
        self.recognizer.classifier = model

        if not self.options.auto:
            return
        data = self._training_data()
        if not data or not has_samples(data):
            return
        options = TrainOptions(
            epochs=self.options.auto_epochs,
            augment_factor=self.options.auto_augment_factor,
            on_progress=self.options.on_train_progress,
        )
        try:
            AutoTrainer().train(model, data, options)
        except Exception as exc:
            print(f"Warning: auto-training failed: {exc}")

    # Recognition

    def recognize(self) -> InkResult:
        return recognize_all(
            self._strokes,
            recognizer=self.recognizer,
            segmenter=self.segmenter,
            parser=self.parser,
            evaluator=self.evaluator,
        )
