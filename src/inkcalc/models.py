"""
Keras digit classifier used as the default recogniser backend.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
from sklearn.metrics import accuracy_score, confusion_matrix

from .constants import DIGIT_LABELS, GRID_SIZE

# TensorFlow is optional: the pipeline runs on operator rules alone without it.
try:
    import tensorflow as tf  # type: ignore
    from tensorflow import keras  # type: ignore
    from tensorflow.keras import layers  # type: ignore

    _TF_AVAILABLE = True
    _TF_IMPORT_ERROR = None
except Exception as exc:  # pragma: no cover - environment dependent
    tf = None  # type: ignore
    keras = None  # type: ignore
    layers = None  # type: ignore
    _TF_AVAILABLE = False
    _TF_IMPORT_ERROR = exc


def tensorflow_available() -> bool:
    return _TF_AVAILABLE


def require_tensorflow() -> None:
    if not _TF_AVAILABLE:
        raise ImportError(
            "TensorFlow is required for the digit CNN but is not available. "
            "Install it with: pip install 'inkcalc[cnn]'. "
            f"Original import error: {_TF_IMPORT_ERROR}"
        )


@dataclass
class PredictionOutput:
    labels: np.ndarray
    probabilities: np.ndarray


class DigitCNNModel:
    """Small CNN over ``GRID_SIZE`` x ``GRID_SIZE`` ink bitmaps, digits 0-9."""

    def __init__(
        self,
        grid_size: int = GRID_SIZE,
        num_classes: int = len(DIGIT_LABELS),
    ) -> None:
        self.grid_size = int(grid_size)
        self.input_shape: Tuple[int, int, int] = (self.grid_size, self.grid_size, 1)
        self.num_classes = int(num_classes)
        self.model = None
        self.history = None

    def build_model(self):
        """Create and compile a fresh, untrained network."""
        require_tensorflow()
        self.model = keras.Sequential(
            [
                layers.Input(shape=self.input_shape),
                layers.Conv2D(32, (3, 3), activation="relu"),
                layers.MaxPooling2D((2, 2)),
                layers.Conv2D(64, (3, 3), activation="relu"),
                layers.MaxPooling2D((2, 2)),
                layers.Flatten(),
                layers.Dense(128, activation="relu"),
                layers.Dense(self.num_classes, activation="softmax"),
            ],
            name="digit_cnn",
        )
        self.model.compile(
            optimizer="adam",
            loss="sparse_categorical_crossentropy",
            metrics=["accuracy"],
        )
        return self.model

    def is_ready(self) -> bool:
        return self.model is not None

    def _as_batch(self, X: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=np.float32)
        per_sample = self.grid_size * self.grid_size
        if X.size == per_sample:
            return X.reshape(1, *self.input_shape)
        return X.reshape(-1, *self.input_shape)

    def predict(self, X: np.ndarray) -> PredictionOutput:
        require_tensorflow()
        if self.model is None:
            raise ValueError("Model not built or loaded yet!")
        probs = np.asarray(self.model(self._as_batch(X), training=False))
        return PredictionOutput(labels=probs.argmax(axis=1), probabilities=probs)

    def classify(self, bitmap: np.ndarray) -> np.ndarray:
        """Probabilities over ``DIGIT_LABELS`` for one flat bitmap."""
        return self.predict(bitmap).probabilities[0]

    def evaluate(self, X: np.ndarray, y: np.ndarray) -> Dict[str, object]:
        output = self.predict(X)
        y = np.asarray(y)
        return {
            "accuracy": float(accuracy_score(y, output.labels)),
            "predictions": output.labels,
            "probabilities": output.probabilities,
            "confusion_matrix": confusion_matrix(y, output.labels, labels=list(range(self.num_classes))),
        }

    def save_model(self, path: str) -> None:
        require_tensorflow()
        if self.model is None:
            raise ValueError("No model to save!")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.model.save(path)

    def load_model(self, path: str) -> None:
        require_tensorflow()
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Model not found: {path}")
        self.model = keras.models.load_model(path)
