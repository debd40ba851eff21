"""
Tests for the training side: augmentation, dataset sources and the trainer
"""

import json
import os
import sys
import tempfile
import unittest

import cv2
import numpy as np
import pandas as pd

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from inkcalc.augment import AugmentOptions, DataAugmentor
from inkcalc.constants import DIGIT_LABELS, GRID_SIZE
from inkcalc.dataset import (
    has_samples,
    load_image_folder,
    load_mnist_csv,
    load_training_json,
    sample_counts,
    save_training_json,
    to_square_bitmap,
)
from inkcalc.models import DigitCNNModel, tensorflow_available
from inkcalc.training import AutoTrainer, TrainOptions

PIXELS = GRID_SIZE * GRID_SIZE


def bar_bitmap():
    image = np.zeros((GRID_SIZE, GRID_SIZE), dtype=np.float32)
    image[6:22, 12:16] = 1.0
    return image.reshape(-1)


class TestDataAugmentor(unittest.TestCase):
    """Test synthetic variation of bitmaps"""

    def test_original_comes_first(self):
        augmentor = DataAugmentor(AugmentOptions(factor=3, seed=1))
        sample = bar_bitmap()
        variants = augmentor.augment(sample)
        self.assertEqual(len(variants), 4)
        np.testing.assert_array_equal(variants[0], sample)
        for variant in variants:
            self.assertEqual(variant.shape, (PIXELS,))
            self.assertGreaterEqual(float(variant.min()), 0.0)
            self.assertLessEqual(float(variant.max()), 1.0)

    def test_seeded_runs_repeat(self):
        first = DataAugmentor(AugmentOptions(factor=2, seed=42)).augment(bar_bitmap())
        second = DataAugmentor(AugmentOptions(factor=2, seed=42)).augment(bar_bitmap())
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_noise_is_clamped(self):
        augmentor = DataAugmentor(AugmentOptions(factor=3, noise_intensity=0.5, seed=3))
        for variant in augmentor.augment(np.ones(PIXELS, dtype=np.float32)):
            self.assertLessEqual(float(variant.max()), 1.0)

    def test_wrong_size_rejected(self):
        with self.assertRaises(ValueError):
            DataAugmentor().augment(np.zeros(10))

    def test_progress_every_thousand_samples(self):
        calls = []
        data = {"1": [np.zeros(PIXELS, dtype=np.float32)] * 2500}
        augmented = DataAugmentor(AugmentOptions(factor=0)).augment_dataset(data, on_progress=calls.append)
        self.assertEqual(calls, [1000, 2000])
        self.assertEqual(len(augmented["1"]), 2500)


class TestDatasetSources(unittest.TestCase):
    """Test the JSON, image folder and MNIST CSV loaders"""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_sample_counts_ignore_bad_sizes(self):
        data = {"1": [bar_bitmap(), [0.0] * 10], "7": [bar_bitmap()]}
        counts = sample_counts(data)
        self.assertEqual(counts["1"], 1)
        self.assertEqual(counts["7"], 1)
        self.assertEqual(counts["0"], 0)
        self.assertEqual(sorted(counts), sorted(DIGIT_LABELS))
        self.assertTrue(has_samples(data))
        self.assertFalse(has_samples({"1": []}))

    def test_json_file(self):
        path = os.path.join(self.tmp.name, "nested", "points.json")
        save_training_json({"3": [bar_bitmap()]}, path)
        with open(path, "r", encoding="utf-8") as handle:
            self.assertEqual(list(json.load(handle)), ["3"])
        data = load_training_json(path)
        self.assertEqual(len(data["3"]), 1)
        np.testing.assert_allclose(data["3"][0], bar_bitmap())

    def test_to_square_bitmap_inverts_paper_scans(self):
        page = np.full((100, 100), 255, dtype=np.uint8)
        page[30:71, 40:61] = 0
        bitmap = to_square_bitmap(page).reshape(GRID_SIZE, GRID_SIZE)
        self.assertGreater(float(bitmap[14, 14]), 0.9)
        self.assertEqual(float(bitmap[0, 0]), 0.0)
        self.assertEqual(float(bitmap[-1, -1]), 0.0)

    def test_to_square_bitmap_blank(self):
        self.assertEqual(float(to_square_bitmap(np.zeros((20, 20), dtype=np.uint8)).sum()), 0.0)

    def test_image_folder(self):
        folder = os.path.join(self.tmp.name, "3")
        os.makedirs(folder)
        image = np.zeros((40, 40), dtype=np.uint8)
        image[10:30, 18:22] = 255
        cv2.imwrite(os.path.join(folder, "a.png"), image)
        cv2.imwrite(os.path.join(folder, "b.png"), image)
        with open(os.path.join(folder, "notes.txt"), "w") as handle:
            handle.write("not an image")

        data = load_image_folder(self.tmp.name, max_per_class=1)
        self.assertEqual(len(data["3"]), 1)
        self.assertEqual(len(data["5"]), 0)
        self.assertEqual(data["3"][0].shape, (PIXELS,))

    def test_missing_image_folder(self):
        with self.assertRaises(FileNotFoundError):
            load_image_folder(os.path.join(self.tmp.name, "missing"))

    def test_mnist_csv(self):
        columns = ["label"] + [f"pixel{i}" for i in range(PIXELS)]
        rows = [[4] + [255] * PIXELS, [9] + [0] * PIXELS, [4] + [0] * PIXELS]
        path = os.path.join(self.tmp.name, "mnist.csv")
        pd.DataFrame(rows, columns=columns).to_csv(path, index=False)

        data = load_mnist_csv(path)
        self.assertEqual(len(data["4"]), 2)
        self.assertEqual(len(data["9"]), 1)
        self.assertEqual(float(data["4"][0].max()), 1.0)
        self.assertEqual(len(load_mnist_csv(path, max_per_class=1)["4"]), 1)

    def test_mnist_csv_wrong_width(self):
        path = os.path.join(self.tmp.name, "small.csv")
        pd.DataFrame([[1, 0, 0]], columns=["label", "a", "b"]).to_csv(path, index=False)
        with self.assertRaises(ValueError):
            load_mnist_csv(path)


class TestAutoTrainer(unittest.TestCase):
    """Test array building and (when TensorFlow is present) fitting"""

    def test_build_arrays(self):
        data = {"1": [bar_bitmap()] * 2, "7": [bar_bitmap()], "8": [[0.0] * 5]}
        X, y = AutoTrainer().build_arrays(data, TrainOptions(augment_factor=1, seed=0))
        self.assertEqual(X.shape, (6, GRID_SIZE, GRID_SIZE, 1))
        self.assertEqual(sorted(y.tolist()), [1, 1, 1, 1, 7, 7])

    def test_no_samples(self):
        with self.assertRaises(ValueError):
            AutoTrainer().build_arrays({"1": []}, TrainOptions())

    @unittest.skipUnless(tensorflow_available(), "TensorFlow not installed")
    def test_train_reports_progress(self):
        progress = []
        model = DigitCNNModel()
        data = {label: [bar_bitmap()] for label in DIGIT_LABELS}
        options = TrainOptions(
            epochs=2,
            augment_factor=1,
            seed=0,
            on_progress=lambda epoch, total, logs: progress.append((epoch, total)),
        )
        AutoTrainer().train(model, data, options)
        self.assertTrue(model.is_ready())
        self.assertEqual(progress, [(1, 2), (2, 2)])

        probs = model.classify(bar_bitmap())
        self.assertEqual(probs.shape, (len(DIGIT_LABELS),))
        self.assertAlmostEqual(float(probs.sum()), 1.0, places=4)

    @unittest.skipUnless(tensorflow_available(), "TensorFlow not installed")
    def test_save_and_load(self):
        model = DigitCNNModel()
        model.build_model()
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "digit_cnn.keras")
            model.save_model(path)
            restored = DigitCNNModel()
            restored.load_model(path)
            self.assertTrue(restored.is_ready())
            np.testing.assert_allclose(restored.classify(bar_bitmap()), model.classify(bar_bitmap()), atol=1e-5)

    @unittest.skipUnless(tensorflow_available(), "TensorFlow not installed")
    def test_evaluate(self):
        model = DigitCNNModel()
        model.build_model()
        X = np.stack([bar_bitmap()] * 3)
        report = model.evaluate(X, np.array([1, 1, 1]))
        self.assertEqual(report["confusion_matrix"].shape, (10, 10))
        self.assertEqual(int(report["confusion_matrix"].sum()), 3)


if __name__ == "__main__":
    unittest.main()
