"""
Numeric coercion helpers.

Spreadsheet cells and LLM payloads deliver numbers in many shapes
(57, "57", "57%", "4.0 out of 5", {"percentage": "57%"}). These helpers
normalize them to plain numbers without raising.
"""

import math
import re
import sys
from typing import Any

_LEADING_NUMBER = re.compile(
    r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity)"
)


def parse_float(value: Any) -> float:
    """
    Parse the leading number of a value.

    Strings are read up to the first character that cannot continue a
    number ("4.5 stars" -> 4.5). Returns NaN when nothing numeric leads.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        if not _fits_float(value):
            return math.inf if value > 0 else -math.inf
        return float(value)
    if not isinstance(value, str):
        return math.nan

    match = _LEADING_NUMBER.match(value)
    if not match:
        return math.nan
    token = match.group(1)
    if token.endswith("Infinity"):
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (round() would round to even)."""
    if isinstance(value, int):
        return value
    return int(math.floor(value + 0.5))


def coerce_percentage(value: Any) -> float:
    """
    Normalize a percentage-like value to a plain number.

    - numbers are returned as-is (NaN, and integers beyond float range, become 0)
    - strings have a "%" removed and are parsed ("57%" -> 57)
    - objects with a "percentage" key are unwrapped recursively
    - anything else is 0
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if _fits_float(value) else 0
    if isinstance(value, float):
        return 0 if math.isnan(value) else value
    if isinstance(value, str):
        number = parse_float(value.replace("%", "", 1))
        return 0 if math.isnan(number) else _tidy(number)
    if isinstance(value, dict) and "percentage" in value:
        return coerce_percentage(value["percentage"])
    return 0


def coerce_number(value: Any, default: float = 0) -> float:
    """Number, or numeric string, else ``default``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if _fits_float(value) else default
    if isinstance(value, float):
        return value if math.isfinite(value) else default
    if isinstance(value, str):
        number = parse_float(value)
        return default if math.isnan(number) or math.isinf(number) else _tidy(number)
    return default


def _tidy(number: float) -> float:
    """Whole floats parsed from text come back as int (57.0 -> 57)."""
    if math.isfinite(number) and number == int(number):
        return int(number)
    return number


def _fits_float(number: int) -> bool:
    """JSON integers are unbounded; float arithmetic on them is not."""
    return abs(number) <= sys.float_info.max
