"""
Per-group recognition combining the operator rules with a digit classifier.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Optional, Protocol, Sequence, Union

import numpy as np

from .constants import DIGIT_LABELS, GRID_SIZE, OPERATOR_SHORT_CIRCUIT, UNKNOWN_CHAR
from .operators import OperatorHeuristic
from .results import RecognitionResult
from .strokes import StrokeGroup


class Classifier(Protocol):
    """
    Anything mapping a flat bitmap to probabilities over ``DIGIT_LABELS``.

    ``classify`` may be a coroutine function; its result is awaited before
    use, one group at a time.
    """

    def is_ready(self) -> bool:
        ...

    def classify(self, bitmap: np.ndarray) -> Union[Sequence[float], Awaitable[Sequence[float]]]:
        ...


class Recognizer:
    """Label stroke groups as digits or operators."""

    def __init__(
        self,
        classifier: Optional[Classifier] = None,
        heuristic: Optional[OperatorHeuristic] = None,
        grid_size: int = GRID_SIZE,
    ) -> None:
        self.classifier = classifier
        self.heuristic = heuristic or OperatorHeuristic()
        self.grid_size = grid_size

    def classifier_ready(self) -> bool:
        return self.classifier is not None and bool(self.classifier.is_ready())

    def recognize(self, group: StrokeGroup) -> RecognitionResult:
        operator = self.heuristic.recognize(group)
        if operator is not None and operator.confidence > OPERATOR_SHORT_CIRCUIT:
            return operator

        digit = self.recognize_digit(group) if self.classifier_ready() else None
        if digit is not None:
            if operator is not None and operator.confidence > digit.confidence:
                return operator
            return digit

        if operator is not None:
            return operator
        return RecognitionResult(char=UNKNOWN_CHAR, confidence=0.0, type="digit")

    def recognize_digit(self, group: StrokeGroup) -> Optional[RecognitionResult]:
        """Run the classifier on the rasterised group; ``None`` if it fails."""
        bitmap = group.render_to_grid(self.grid_size)
        try:
            output = self.classifier.classify(bitmap)
            if inspect.isawaitable(output):
                output = _run_awaitable(output)
            probs = np.asarray(output, dtype=np.float64).reshape(-1)
        except Exception as exc:
            print(f"Warning: digit classifier failed, using operator rules only: {exc}")
            return None
        if probs.size == 0:
            return None
        label_idx = int(np.argmax(probs))
        char = DIGIT_LABELS[label_idx] if label_idx < len(DIGIT_LABELS) else UNKNOWN_CHAR
        return RecognitionResult(char=char, confidence=float(probs[label_idx]), type="digit")


def _run_awaitable(awaitable: Awaitable[Sequence[float]]) -> Sequence[float]:
    async def _await():
        return await awaitable

    return asyncio.run(_await())
