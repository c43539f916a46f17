from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from typing import Any, Union

"""Cell value model and explicit conversions.

A cell is one of int | float | str | bool | None. Reader output (pandas / numpy
scalars, NaN, Timestamp) is coerced into that closed set once, at ingestion, by
``coerce_scalar``. Every other module converts cells only through the functions
below so that "is this empty", "is this a number" and "how is this displayed"
have exactly one answer each.
"""

__all__ = [
    "CellValue",
    "is_blank",
    "is_present",
    "to_number",
    "to_text",
    "to_key",
    "coerce_scalar",
]

CellValue = Union[int, float, str, bool, None]

# optional sign, digits with optional fraction (or fraction only), optional exponent
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def is_present(value: Any) -> bool:
    """Statistics notion of presence: not None and not the empty string."""
    return value is not None and value != ""


def to_number(value: Any) -> float | int | None:
    """Return a finite number for numeric cells or decimal literals, else None.

    Booleans are never numbers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not _DECIMAL_RE.match(text):
            return None
        number = float(text)
        return number if math.isfinite(number) else None
    return None


def to_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def to_key(value: Any) -> str | None:
    """Grouping key for pivot axes; blank cells have no key."""
    if is_blank(value):
        return None
    return to_text(value)


def coerce_scalar(value: Any) -> CellValue:
    """Coerce a reader scalar into a CellValue.

    NaN / NaT / None -> None, numpy scalars -> python scalars,
    datetime-like values -> ISO-8601 text.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        # pandas.NaT は datetime サブクラスで自身と等しくならない
        if value != value:
            return None
        if value.time() == time(0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    # numpy scalars expose item()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        try:
            value = value.item()
        except (ValueError, TypeError):
            pass
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    try:
        if value != value:  # NaT and other NaN-like sentinels
            return None
    except (TypeError, ValueError):
        pass
    return str(value)
