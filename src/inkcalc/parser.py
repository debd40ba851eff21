"""
Assembly of recognised characters into a normalised arithmetic string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from .constants import GLYPH_MAP
from .results import RecognitionResult

_TRAILING_EQUALS = re.compile(r"\s*=+\s*$")
_DIGIT_PAREN = re.compile(r"([0-9])\(")
_PAREN_DIGIT = re.compile(r"\)([0-9])")
_ALLOWED = re.compile(r"[0-9+\-*/().= ]+")
_LEADING_OPERATOR = re.compile(r"^[*/]")
_TRAILING_OPERATOR = re.compile(r"[+\-*/]$")
_OPERATOR_RUN = re.compile(r"[+\-*/]{2,}")
_SIGN_PAIR = re.compile(r"[+\-]\s*[+\-]")


@dataclass
class ParsedExpression:
    raw: str
    normalized: str
    characters: List[RecognitionResult] = field(default_factory=list)
    is_valid: bool = False


class ExpressionParser:
    """
    Join per-group labels and clean them into evaluable syntax.

    ``strict_operators`` rejects runs of binary operators such as ``2*/3``
    (a ``+``/``-`` pair counts as a sign). It is off by default, so
    ``2++2`` stays valid.
    """

    def __init__(self, strict_operators: bool = False) -> None:
        self.strict_operators = strict_operators

    def parse(self, characters: Sequence[RecognitionResult]) -> ParsedExpression:
        raw = "".join(result.char for result in characters)
        normalized = self.normalize(raw)
        return ParsedExpression(
            raw=raw,
            normalized=normalized,
            characters=list(characters),
            is_valid=self.validate(normalized),
        )

    def normalize(self, raw: str) -> str:
        expr = _TRAILING_EQUALS.sub("", raw).strip()
        for glyph, ascii_op in GLYPH_MAP.items():
            expr = expr.replace(glyph, ascii_op)
        # Only digit-paren and paren-digit adjacency imply multiplication.
        expr = _DIGIT_PAREN.sub(r"\1*(", expr)
        expr = _PAREN_DIGIT.sub(r")*\1", expr)
        return expr

    def validate(self, expr: str) -> bool:
        if not expr:
            return False
        if not _ALLOWED.fullmatch(expr):
            return False

        depth = 0
        for ch in expr:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth < 0:
                    return False
        if depth != 0:
            return False

        if self.strict_operators and _OPERATOR_RUN.search(_SIGN_PAIR.sub("+", expr)):
            return False

        if _LEADING_OPERATOR.search(expr):
            return False
        if _TRAILING_OPERATOR.search(expr):
            return False
        return True
