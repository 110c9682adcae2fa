"""Tolerant numeric parsing for exchange wire values.

Exchange APIs send numbers as JSON numbers, numeric strings, empty strings
or not at all. Every parser here resolves bad input per a caller-chosen
policy instead of raising:

* ``"null"``: invalid input becomes ``None`` ("source has no value").
* ``"zero"``: invalid input becomes ``0`` ("source has the field, value unusable").
"""

from __future__ import annotations

import math
from typing import Any, Literal

InvalidPolicy = Literal["null", "zero"]


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            num = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def parse_number(value: Any, on_invalid: InvalidPolicy = "null") -> float | None:
    """Parse ``value`` as a float.

    Args:
        value: Raw wire value (str, int, float, None, anything else).
        on_invalid: ``"null"`` or ``"zero"``, the result for missing/bad input.

    Returns:
        The parsed float, or ``None``/``0.0`` per ``on_invalid``.
    """
    num = _to_float(value)
    if num is None:
        return 0.0 if on_invalid == "zero" else None
    return num


def parse_int(value: Any, on_invalid: InvalidPolicy = "zero") -> int | None:
    """Parse ``value`` as an int, truncating toward zero (``"12.9"`` -> 12)."""
    num = _to_float(value)
    if num is None:
        return 0 if on_invalid == "zero" else None
    return int(num)


__all__ = ["InvalidPolicy", "parse_number", "parse_int"]
