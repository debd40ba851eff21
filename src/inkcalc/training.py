"""
Fitting the digit CNN from labelled bitmaps.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
from sklearn.utils import shuffle

from .augment import AugmentOptions, DataAugmentor
from .constants import DIGIT_LABELS, GRID_SIZE
from .models import DigitCNNModel, require_tensorflow, keras

ProgressCallback = Callable[[int, int, Optional[Dict[str, Any]]], None]


@dataclass(frozen=True)
class TrainOptions:
    epochs: int = 10
    batch_size: int = 32
    augment_factor: int = 5
    augment_options: AugmentOptions = field(default_factory=AugmentOptions)
    on_progress: Optional[ProgressCallback] = None
    validation_split: float = 0.15
    seed: Optional[int] = None
    verbose: int = 0


class AutoTrainer:
    """Augment labelled digit samples and fit a ``DigitCNNModel`` on them."""

    def __init__(self, grid_size: int = GRID_SIZE) -> None:
        self.grid_size = grid_size

    def _valid_only(self, data: Mapping[str, Sequence[Sequence[float]]]) -> Dict[str, list]:
        expected = self.grid_size * self.grid_size
        return {
            label: [grid for grid in (data.get(label) or []) if len(grid) == expected]
            for label in DIGIT_LABELS
        }

    def build_arrays(
        self,
        data: Mapping[str, Sequence[Sequence[float]]],
        options: TrainOptions,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Augmented, shuffled ``(X, y)`` with ``X`` shaped for the CNN."""
        augment_options = replace(options.augment_options, factor=options.augment_factor)
        if augment_options.seed is None:
            augment_options = replace(augment_options, seed=options.seed)
        augmentor = DataAugmentor(augment_options, size=self.grid_size)
        augmented = augmentor.augment_dataset(self._valid_only(data), show_progress=options.verbose > 0)

        images = []
        labels = []
        for label_idx, label in enumerate(DIGIT_LABELS):
            for grid in augmented.get(label, []):
                images.append(grid)
                labels.append(label_idx)

        if not images:
            raise ValueError(
                f"No valid training samples found. Need {self.grid_size}x{self.grid_size} "
                f"({self.grid_size * self.grid_size}) grids for digits 0-9."
            )

        X = np.stack(images, axis=0).astype(np.float32).reshape(-1, self.grid_size, self.grid_size, 1)
        y = np.asarray(labels, dtype=np.int64)
        X, y = shuffle(X, y, random_state=options.seed)
        return X, y

    def train(
        self,
        model: DigitCNNModel,
        data: Mapping[str, Sequence[Sequence[float]]],
        options: Optional[TrainOptions] = None,
    ):
        """
        Fit ``model`` (built first if needed) and return the Keras history.

        ``options.on_progress`` is called as ``(epoch, total_epochs, logs)``
        after every epoch, epochs counted from 1.
        """
        require_tensorflow()
        opts = options or TrainOptions()
        X, y = self.build_arrays(data, opts)
        if model.model is None:
            model.build_model()

        callbacks = []
        if opts.on_progress is not None:
            callbacks.append(
                keras.callbacks.LambdaCallback(
                    on_epoch_end=lambda epoch, logs: opts.on_progress(epoch + 1, opts.epochs, logs)
                )
            )

        validation_split = opts.validation_split if len(X) > 1 else 0.0
        model.history = model.model.fit(
            X,
            y,
            epochs=opts.epochs,
            batch_size=opts.batch_size,
            validation_split=validation_split,
            shuffle=True,
            callbacks=callbacks,
            verbose=opts.verbose,
        )
        return model.history
