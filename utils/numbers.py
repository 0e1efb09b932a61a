"""Lenient numeric coercion for loosely-typed JSON input."""

import math
from decimal import Decimal, InvalidOperation
from typing import Any


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce a value to float, falling back to default.

    Accepts ints, floats, Decimals and numeric strings (surrounding
    whitespace ignored). None, booleans, empty strings, unparseable strings
    and non-finite values (NaN, inf) all return the default. Never raises.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, Decimal):
        try:
            result = float(value)
        except (InvalidOperation, ValueError):
            return default
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            result = float(text)
        except ValueError:
            return default
    else:
        return default

    if not math.isfinite(result):
        return default
    return result
