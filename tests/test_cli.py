"""
Tests for the command-line interface
"""

import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from inkcalc.main import main


def run_cli(*argv):
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        code = main(list(argv))
    return code, buffer.getvalue()


class TestCommandLine(unittest.TestCase):

    def test_evaluate(self):
        code, output = run_cli("--evaluate", "2(3+1)=")
        self.assertEqual(code, 0)
        self.assertIn("2*(3+1) = 8", output)

    def test_evaluate_invalid(self):
        code, output = run_cli("--evaluate", "5+")
        self.assertEqual(code, 1)
        self.assertIn("Invalid expression", output)

    def test_evaluate_strict(self):
        self.assertEqual(run_cli("--evaluate", "2*/3")[0], 0)
        self.assertEqual(run_cli("--evaluate", "2*/3", "--strict")[0], 1)

    def test_recognise_strokes_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "strokes.json")
            with open(path, "w", encoding="utf-8") as handle:
                json.dump([[[0, 0, 0], [30, 2, 1]]], handle)
            code, output = run_cli("--strokes", path)
        self.assertEqual(code, 0)
        self.assertIn("Strokes: 1", output)
        self.assertIn("Raw expression: -", output)

    def test_missing_strokes_file(self):
        code, output = run_cli("--strokes", os.path.join("no", "such", "file.json"))
        self.assertEqual(code, 1)
        self.assertIn("not found", output)

    def test_evaluate_deep_nesting(self):
        code, output = run_cli("--evaluate", "(" * 3000 + "1" + ")" * 3000)
        self.assertEqual(code, 1)
        self.assertIn("nested too deeply", output)

    def test_training_source_missing(self):
        code, output = run_cli("--train-images", os.path.join("no", "such", "folder"))
        self.assertEqual(code, 1)
        self.assertIn("Error training model", output)


if __name__ == "__main__":
    unittest.main()
