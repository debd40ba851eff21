"""
Synthetic variation of training bitmaps (rotation, shift, scale, noise).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import cv2
import numpy as np
from tqdm import tqdm

from .constants import GRID_SIZE

# Progress is reported after this many source samples.
PROGRESS_INTERVAL = 1000


@dataclass(frozen=True)
class AugmentOptions:
    factor: int = 5
    max_rotation: float = 15.0  # degrees
    max_shift: int = 2  # pixels
    scale_range: Tuple[float, float] = (0.85, 1.15)
    noise_intensity: float = 0.05
    seed: Optional[int] = None


class DataAugmentor:
    """Create randomly perturbed copies of flat ``size * size`` bitmaps."""

    def __init__(self, options: Optional[AugmentOptions] = None, size: int = GRID_SIZE) -> None:
        self.options = options or AugmentOptions()
        self.size = int(size)
        self.rng = np.random.default_rng(self.options.seed)

    def _uniform(self, limit: float) -> float:
        return float(self.rng.uniform(-limit, limit))

    def _warp(self, image: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        return cv2.warpAffine(
            image,
            matrix,
            (self.size, self.size),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=0,
        )

    def rotate(self, image: np.ndarray) -> np.ndarray:
        angle = self._uniform(self.options.max_rotation)
        centre = (self.size / 2, self.size / 2)
        matrix = cv2.getRotationMatrix2D(centre, angle, 1.0)
        return self._warp(image, matrix)

    def shift(self, image: np.ndarray) -> np.ndarray:
        tx = int(round(self._uniform(self.options.max_shift)))
        ty = int(round(self._uniform(self.options.max_shift)))
        matrix = np.float32([[1, 0, tx], [0, 1, ty]])
        return self._warp(image, matrix)

    def scale(self, image: np.ndarray) -> np.ndarray:
        low, high = self.options.scale_range
        factor = float(self.rng.uniform(low, high))
        centre = (self.size / 2, self.size / 2)
        matrix = cv2.getRotationMatrix2D(centre, 0.0, factor)
        return self._warp(image, matrix)

    def add_noise(self, image: np.ndarray) -> np.ndarray:
        intensity = self.options.noise_intensity
        noise = self.rng.uniform(-intensity, intensity, size=image.shape).astype(np.float32)
        return np.clip(image + noise, 0.0, 1.0)

    def augment(self, grid: Sequence[float]) -> List[np.ndarray]:
        """The original bitmap followed by ``factor`` perturbed copies."""
        original = np.asarray(grid, dtype=np.float32).reshape(-1)
        if original.size != self.size * self.size:
            raise ValueError(f"Expected {self.size * self.size} values, got {original.size}")
        image = original.reshape(self.size, self.size)
        results = [original]
        for _ in range(self.options.factor):
            variant = self.rotate(image)
            variant = self.shift(variant)
            variant = self.scale(variant)
            variant = self.add_noise(variant)
            results.append(variant.reshape(-1).astype(np.float32))
        return results

    def augment_dataset(
        self,
        data: Mapping[str, Sequence[Sequence[float]]],
        on_progress: Optional[Callable[[int], None]] = None,
        show_progress: bool = False,
    ) -> Dict[str, List[np.ndarray]]:
        """
        Augment every sample of a label -> samples mapping.

        ``on_progress`` receives the running sample count every
        ``PROGRESS_INTERVAL`` samples so a host loop can stay responsive.
        """
        result: Dict[str, List[np.ndarray]] = {}
        total = sum(len(samples) for samples in data.values() if samples is not None)
        processed = 0
        with tqdm(total=total, desc="Augmenting samples", disable=not show_progress) as bar:
            for label, samples in data.items():
                augmented: List[np.ndarray] = []
                for sample in samples or ():
                    augmented.extend(self.augment(sample))
                    processed += 1
                    bar.update(1)
                    if on_progress is not None and processed % PROGRESS_INTERVAL == 0:
                        on_progress(processed)
                result[label] = augmented
        return result
