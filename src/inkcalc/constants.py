"""
Label configuration, thresholds and defaults for the ink calculator.
"""

from __future__ import annotations

import math
import os
from typing import Dict, List

# Side length of the square bitmap handed to the classifier.
GRID_SIZE: int = 28

# Ordered label set of the digit classifier (index -> label).
DIGIT_LABELS: List[str] = ["0", "1", "2", "3", "4", "5", "6", "7", "8", "9"]

# Locale-specific glyphs mapped to their ASCII operators.
GLYPH_MAP: Dict[str, str] = {
    "×": "*",
    "·": "*",
    "∙": "*",
    "÷": "/",
    "∕": "/",
}

UNKNOWN_CHAR: str = "?"

# Stroke angle classification (radians).
ANGLE_TOLERANCE: float = 0.4

# Segmentation.
MIN_GAP_THRESHOLD: float = 15.0
GAP_HEIGHT_FACTOR: float = 0.5
OVERLAP_MARGIN_FACTOR: float = 0.3
OVERLAP_Y_RATIO: float = 0.1
GAP_Y_RATIO: float = 0.3

# Rasterisation.
RASTER_PAD_FRACTION: float = 0.1
RASTER_MARGIN: int = 4
BRUSH_CENTER: float = 1.0
BRUSH_NEIGHBOUR: float = 0.6

# Operator heuristic confidences, in rule order.
EQUALS_CONFIDENCE: float = 0.85
PLUS_CONFIDENCE: float = 0.85
MINUS_CONFIDENCE: float = 0.8
MULTIPLY_CONFIDENCE: float = 0.7
DIVIDE_DOTS_CONFIDENCE: float = 0.75
DIVIDE_SLASH_CONFIDENCE: float = 0.65

# Heuristic results above this skip the classifier entirely.
OPERATOR_SHORT_CIRCUIT: float = 0.6

DIAGONAL_RANGE = (0.4, 1.2)
SLASH_ANGLE_RANGE = (-1.3, -0.5)
SLASH_ASPECT_RANGE = (0.5, 3.0)

RESULT_PRECISION: int = 10

HALF_PI: float = math.pi / 2


# Resolved against the working directory at use time, so an installed package
# picks up the data and models of the project it is run from.
DEFAULT_MODEL_DIR: str = "models"
DEFAULT_MODEL_PATH: str = os.path.join(DEFAULT_MODEL_DIR, "digit_cnn.keras")
DEFAULT_TRAINING_DATA: str = os.path.join("data", "trained", "points.json")
