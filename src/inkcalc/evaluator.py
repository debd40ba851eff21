"""
Recursive-descent evaluation of normalised arithmetic strings.
"""

from __future__ import annotations

import re
from typing import List, Optional

import numpy as np

_OPERATORS = "+-*/()"
_NUMBER_PREFIX = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")


def tokenize(expr: str) -> List[str]:
    """
    Split ``expr`` into number and operator tokens.

    Runs of digits and dots form one number token; whitespace and any other
    character are dropped.
    """
    tokens: List[str] = []
    number = ""
    for ch in expr:
        if ch.isspace():
            continue
        if ch in "0123456789.":
            number += ch
            continue
        if number:
            tokens.append(number)
            number = ""
        if ch in _OPERATORS:
            tokens.append(ch)
    if number:
        tokens.append(number)
    return tokens


def parse_number(token: Optional[str]) -> float:
    """Leading numeric part of ``token`` (``"1.2.3"`` -> 1.2), 0 if there is none."""
    if token is None:
        return 0.0
    match = _NUMBER_PREFIX.match(token)
    if match is None:
        return 0.0
    return float(match.group(0))


def _divide(left: float, right: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(left) / np.float64(right))


class _TokenCursor:
    def __init__(self, tokens: List[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Optional[str]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Optional[str]:
        token = self.peek()
        self.pos += 1
        return token


class ExpressionEvaluator:
    """
    Evaluate ``+ - * /`` expressions with parentheses and unary signs.

    Grammar::

        expression := term (('+' | '-') term)*
        term       := factor (('*' | '/') factor)*
        factor     := number | '(' expression ')' | ('+' | '-') factor

    Evaluation is lenient: a missing ``)`` is ignored, unparsable numbers
    count as 0 and division by zero gives ``inf`` or ``nan``.
    """

    def evaluate(self, expr: str) -> float:
        cursor = _TokenCursor(tokenize(expr))
        return self._expression(cursor)

    def _expression(self, cursor: _TokenCursor) -> float:
        left = self._term(cursor)
        while cursor.peek() in ("+", "-"):
            op = cursor.advance()
            right = self._term(cursor)
            left = left + right if op == "+" else left - right
        return left

    def _term(self, cursor: _TokenCursor) -> float:
        left = self._factor(cursor)
        while cursor.peek() in ("*", "/"):
            op = cursor.advance()
            right = self._factor(cursor)
            left = left * right if op == "*" else _divide(left, right)
        return left

    def _factor(self, cursor: _TokenCursor) -> float:
        token = cursor.peek()
        if token == "-":
            cursor.advance()
            return -self._factor(cursor)
        if token == "+":
            cursor.advance()
            return self._factor(cursor)
        if token == "(":
            cursor.advance()
            value = self._expression(cursor)
            if cursor.peek() == ")":
                cursor.advance()
            return value
        return parse_number(cursor.advance())
