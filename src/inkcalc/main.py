"""
Command-line entry point for the ink calculator.
"""

import argparse
import json
import os
import sys

from .constants import DEFAULT_MODEL_PATH
from .dataset import load_image_folder, load_mnist_csv, load_training_json, sample_counts
from .evaluator import ExpressionEvaluator
from .models import DigitCNNModel
from .parser import ExpressionParser
from .pipeline import InkOptions, InkSession, round_result
from .training import AutoTrainer, TrainOptions


def recognize_file(strokes_path, model_path=None, strict=False):
    """Recognise a JSON file holding a list of strokes, each a list of points."""
    if not os.path.exists(strokes_path):
        print(f"Error: strokes file {strokes_path} not found")
        return 1
    with open(strokes_path, "r", encoding="utf-8") as handle:
        strokes = json.load(handle)

    session = InkSession(InkOptions(model_path=model_path, auto=False))
    session.parser = ExpressionParser(strict_operators=strict)
    if model_path:
        session.load_model()
    for points in strokes:
        session.add_stroke(points)

    print(f"Strokes: {session.stroke_count}")
    print(f"Classifier ready: {session.is_ready()}")
    result = session.recognize()
    for i, char in enumerate(result.characters):
        print(f"  Symbol {i+1}: {char.char} ({char.type}, confidence: {char.confidence:.3f})")
    print(f"Raw expression: {result.raw_expression}")
    print(f"Expression: {result.expression} ({'valid' if result.valid else 'invalid'})")
    if result.result is not None:
        print(f"Result: {result.result}")
    return 0


def evaluate_expression(expression, strict=False):
    parser = ExpressionParser(strict_operators=strict)
    normalized = parser.normalize(expression)
    if not parser.validate(normalized):
        print(f"Invalid expression: {normalized!r}")
        return 1
    try:
        value = round_result(ExpressionEvaluator().evaluate(normalized))
    except RecursionError:
        print("Error: expression is nested too deeply to evaluate")
        return 1
    print(f"{normalized} = {value}")
    return 0


def _load_training_source(args):
    if args.train_json:
        return load_training_json(args.train_json)
    if args.train_images:
        return load_image_folder(args.train_images, max_per_class=args.max_per_class)
    return load_mnist_csv(args.train_mnist, max_per_class=args.max_per_class)


def train_model(args):
    data = _load_training_source(args)
    counts = sample_counts(data)
    print("Samples per digit:")
    for label, count in counts.items():
        print(f"  {label}: {count}")

    def report(epoch, total, logs):
        logs = logs or {}
        acc = logs.get("accuracy")
        val_acc = logs.get("val_accuracy")
        line = f"Epoch {epoch}/{total}"
        if acc is not None:
            line += f" - accuracy: {acc:.4f}"
        if val_acc is not None:
            line += f" - val_accuracy: {val_acc:.4f}"
        print(line)

    model = DigitCNNModel()
    options = TrainOptions(
        epochs=args.epochs,
        batch_size=args.batch,
        augment_factor=args.augment_factor,
        on_progress=report,
        seed=args.seed,
    )
    AutoTrainer().train(model, data, options)
    model.save_model(args.out)
    print(f"Model saved to: {args.out}")
    return 0


def check_dependencies():
    """Check if all required dependencies are installed"""
    required_packages = ["numpy", "cv2", "sklearn", "pandas", "tqdm", "tensorflow"]
    missing_packages = []
    for package in required_packages:
        try:
            __import__(package)
            print(f"✓ {package}")
        except ImportError:
            missing_packages.append(package)
            print(f"✗ {package} - MISSING")

    if missing_packages:
        print(f"\nMissing packages: {missing_packages}")
        print("Digit recognition needs TensorFlow: pip install 'inkcalc[cnn]'")
        return False
    print("\nAll dependencies are installed!")
    return True


def build_parser():
    parser = argparse.ArgumentParser(description="Handwritten arithmetic recognition from pen strokes")
    parser.add_argument("--strokes", type=str, help="Recognise a JSON file of strokes")
    parser.add_argument("--model", type=str, help="Saved digit model to use for recognition")
    parser.add_argument("--evaluate", type=str, help="Normalise and evaluate an expression string")
    parser.add_argument("--strict", action="store_true", help="Reject runs of operators such as '2*/3'")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--train-json", type=str, help="Train on a JSON file of label -> bitmaps")
    source.add_argument("--train-images", type=str, help="Train on an image folder (<root>/<digit>/*.png)")
    source.add_argument("--train-mnist", type=str, help="Train on an MNIST CSV file")
    parser.add_argument("--out", type=str, default=DEFAULT_MODEL_PATH, help="Where to save the trained model")
    parser.add_argument("--epochs", type=int, default=10)
    parser.add_argument("--batch", type=int, default=32)
    parser.add_argument("--augment-factor", type=int, default=5)
    parser.add_argument("--max-per-class", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)

    parser.add_argument("--check-deps", action="store_true", help="Check if all dependencies are installed")
    return parser


def main(argv=None):
    """Main function with command line interface"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.check_deps:
        return 0 if check_dependencies() else 1

    if args.train_json or args.train_images or args.train_mnist:
        try:
            return train_model(args)
        except (ImportError, FileNotFoundError, ValueError) as exc:
            print(f"Error training model: {exc}")
            return 1

    if args.evaluate is not None:
        return evaluate_expression(args.evaluate, strict=args.strict)

    if args.strokes:
        return recognize_file(args.strokes, args.model, strict=args.strict)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
