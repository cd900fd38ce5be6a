"""Output equivalence rules."""

from __future__ import annotations

import math
import re

NUMERIC_TOLERANCE = 1e-4

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_number(text: str) -> float | None:
    if not _DECIMAL.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def compare(actual: object, expected: object) -> bool:
    """
    Decide whether one test case passed.

    Checked in order, first match wins: exact equality after trimming,
    numeric equality within NUMERIC_TOLERANCE when both sides are finite
    decimals, then case-insensitive equality.
    """
    actual_text = str(actual).strip()
    expected_text = str(expected).strip()

    if actual_text == expected_text:
        return True

    actual_number = _parse_number(actual_text)
    expected_number = _parse_number(expected_text)
    if actual_number is not None and expected_number is not None:
        return abs(actual_number - expected_number) < NUMERIC_TOLERANCE

    return actual_text.casefold() == expected_text.casefold()
