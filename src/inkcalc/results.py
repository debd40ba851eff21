"""
Result records passed between the recognition stages.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class RecognitionResult:
    """Label assigned to one stroke group."""

    char: str
    confidence: float
    type: str  # "digit" | "operator"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
