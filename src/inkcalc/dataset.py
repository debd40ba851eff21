"""
Loading and saving labelled digit bitmaps for the trainer.

All sources produce the same shape: a mapping of digit label to a list of
flat float32 bitmaps with bright ink on a dark background.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import cv2
import numpy as np
import pandas as pd
from tqdm import tqdm

from .constants import DIGIT_LABELS, GRID_SIZE

TrainingData = Dict[str, List[np.ndarray]]

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp"}


def sample_counts(data: Mapping[str, Sequence[Sequence[float]]], size: int = GRID_SIZE) -> Dict[str, int]:
    """Number of correctly sized samples per digit label."""
    expected = size * size
    counts: Dict[str, int] = {}
    for label in DIGIT_LABELS:
        samples = data.get(label) or []
        counts[label] = sum(1 for grid in samples if len(grid) == expected)
    return counts


def has_samples(data: Mapping[str, Sequence[Sequence[float]]]) -> bool:
    return any(len(samples or ()) > 0 for samples in data.values())


def load_training_json(path: str | os.PathLike[str]) -> TrainingData:
    """Read ``{"0": [[784 floats], ...], ...}``."""
    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return {
        str(label): [np.asarray(grid, dtype=np.float32) for grid in samples]
        for label, samples in raw.items()
    }


def save_training_json(data: Mapping[str, Sequence[Sequence[float]]], path: str | os.PathLike[str]) -> None:
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)
    payload = {
        label: [np.round(np.asarray(grid, dtype=np.float32), 4).tolist() for grid in samples]
        for label, samples in data.items()
    }
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle)


def to_square_bitmap(gray: np.ndarray, size: int = GRID_SIZE) -> np.ndarray:
    """
    Crop the ink in a grayscale image and centre it in a ``size`` grid.

    Dark-on-light images are inverted first so ink is bright.
    """
    border = np.concatenate([gray[0, :], gray[-1, :], gray[:, 0], gray[:, -1]])
    if border.mean() > gray.mean():
        gray = 255 - gray
    ys, xs = np.where(gray > 32)
    if ys.size == 0:
        return np.zeros(size * size, dtype=np.float32)
    crop = gray[ys.min() : ys.max() + 1, xs.min() : xs.max() + 1]
    h, w = crop.shape
    scale = (size - 4) / max(h, w)
    new_h = max(1, int(round(h * scale)))
    new_w = max(1, int(round(w * scale)))
    resized = cv2.resize(crop, (new_w, new_h), interpolation=cv2.INTER_AREA)
    canvas = np.zeros((size, size), dtype=np.uint8)
    y_offset = (size - new_h) // 2
    x_offset = (size - new_w) // 2
    canvas[y_offset : y_offset + new_h, x_offset : x_offset + new_w] = resized
    return (canvas.astype(np.float32) / 255.0).reshape(-1)


def _iter_image_files(root: Path) -> Iterable[Tuple[str, Path]]:
    for label in DIGIT_LABELS:
        folder = root / label
        if not folder.is_dir():
            continue
        for file in sorted(folder.iterdir()):
            if file.suffix.lower() in IMAGE_SUFFIXES:
                yield label, file


def load_image_folder(
    root: str | os.PathLike[str],
    size: int = GRID_SIZE,
    max_per_class: Optional[int] = None,
) -> TrainingData:
    """Read ``<root>/<digit>/*.png`` style datasets."""
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileNotFoundError(f"Data directory not found: {root_path}")
    data: TrainingData = {label: [] for label in DIGIT_LABELS}
    for label, file in tqdm(list(_iter_image_files(root_path)), desc="Loading digit images"):
        if max_per_class is not None and len(data[label]) >= max_per_class:
            continue
        gray = cv2.imread(str(file), cv2.IMREAD_GRAYSCALE)
        if gray is None:
            continue
        data[label].append(to_square_bitmap(gray, size))
    return data


def load_mnist_csv(path: str | os.PathLike[str], max_per_class: Optional[int] = None) -> TrainingData:
    """
    Read an MNIST CSV (label column followed by 784 pixel columns, 0-255).
    """
    frame = pd.read_csv(path)
    labels = frame.iloc[:, 0].astype(int).to_numpy()
    pixels = frame.iloc[:, 1:].to_numpy(dtype=np.float32) / 255.0
    if pixels.shape[1] != GRID_SIZE * GRID_SIZE:
        raise ValueError(f"Expected {GRID_SIZE * GRID_SIZE} pixel columns, got {pixels.shape[1]}")
    data: TrainingData = {label: [] for label in DIGIT_LABELS}
    for digit, row in zip(labels, pixels):
        key = str(digit)
        if key not in data:
            continue
        if max_per_class is not None and len(data[key]) >= max_per_class:
            continue
        data[key].append(row)
    return data
