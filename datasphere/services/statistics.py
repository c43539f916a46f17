from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import pandas as pd

from ..models.cell import CellValue, is_present, to_number, to_text
from ..models.column_stat import ColumnStat, ColumnType
from ..models.dataset import Dataset

"""Column statistics calculator.

Type inference per column, in this order:
1. Numeric  - share of present values parsing as finite decimals is strictly
              greater than ``numeric_threshold``
2. Boolean  - every present value is a bool or the text "true"/"false"
3. Date     - every present value parses as a date whose year lies strictly
              inside ``date_year_bounds``; a single failure (unparseable or out
              of range) rejects the whole column, which then becomes Text
4. Text

Pure function of the Dataset: no caching, no mutation.
"""

__all__ = [
    "DEFAULT_NUMERIC_THRESHOLD",
    "DEFAULT_DATE_YEAR_BOUNDS",
    "calculate_column_stats",
    "infer_column_type",
    "parse_date",
]

logger = logging.getLogger(__name__)

DEFAULT_NUMERIC_THRESHOLD = 0.8
DEFAULT_DATE_YEAR_BOUNDS = (1900, 2100)


def parse_date(value: CellValue) -> datetime | None:
    """Parse a cell as a date; None when pandas cannot make sense of it."""
    if value is None or isinstance(value, bool):
        return None
    try:
        ts = pd.to_datetime(to_text(value), errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _all_dates_in_range(values: Sequence[CellValue], bounds: tuple[int, int]) -> bool:
    """True when every value parses as a date with low < year < high.

    The column is parsed in one ``pd.to_datetime`` call; ``format="mixed"``
    lets each element keep its own layout, ``utc=True`` puts naive and
    offset-aware strings on one timeline.
    """
    if not values or any(v is None or isinstance(v, bool) for v in values):
        return False
    texts = pd.Series([to_text(v) for v in values], dtype=object)
    try:
        parsed = pd.to_datetime(texts, errors="coerce", format="mixed", utc=True)
    except (ValueError, TypeError, OverflowError):
        return False
    if parsed.isna().any():
        return False
    low, high = bounds
    years = parsed.dt.year
    return bool(((years > low) & (years < high)).all())


def _is_boolean_like(value: CellValue) -> bool:
    return isinstance(value, bool) or to_text(value).lower() in ("true", "false")


def infer_column_type(
    present: Sequence[CellValue],
    *,
    numeric_threshold: float = DEFAULT_NUMERIC_THRESHOLD,
    date_year_bounds: tuple[int, int] = DEFAULT_DATE_YEAR_BOUNDS,
) -> ColumnType:
    """Infer the semantic type of a column from its present values."""
    if not present:
        return ColumnType.OTHER
    numeric_count = sum(1 for v in present if to_number(v) is not None)
    if numeric_count / len(present) > numeric_threshold:
        return ColumnType.NUMERIC
    if all(_is_boolean_like(v) for v in present):
        return ColumnType.BOOLEAN
    if _all_dates_in_range(present, date_year_bounds):
        return ColumnType.DATE
    return ColumnType.TEXT


def _column_stat(
    header: str,
    present: list[CellValue],
    numeric_threshold: float,
    date_year_bounds: tuple[int, int],
) -> ColumnStat:
    col_type = infer_column_type(
        present, numeric_threshold=numeric_threshold, date_year_bounds=date_year_bounds
    )
    counts = Counter(to_text(v) for v in present)
    # 件数降順、同数はテキスト昇順
    value_counts = dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))
    extra: dict[str, Any] = {}
    if col_type is ColumnType.NUMERIC:
        numbers = [n for n in (to_number(v) for v in present) if n is not None]
        total = sum(numbers)
        extra = {
            "min": min(numbers),
            "max": max(numbers),
            "sum": total,
            "average": total / len(numbers),
        }
    return ColumnStat(
        column=header,
        type=col_type,
        unique_values=len(counts),
        value_counts=value_counts,
        **extra,
    )


def calculate_column_stats(
    dataset: Dataset,
    *,
    numeric_threshold: float = DEFAULT_NUMERIC_THRESHOLD,
    date_year_bounds: tuple[int, int] = DEFAULT_DATE_YEAR_BOUNDS,
) -> list[ColumnStat]:
    """Compute one ColumnStat per header, in header order.

    Args:
        dataset: normalized dataset
        numeric_threshold: share of numeric present values required (exclusive)
        date_year_bounds: (low, high) exclusive year range for Date columns

    Returns:
        list of ColumnStat, ``len(result) == len(dataset.headers)``
    """
    stats = []
    for header in dataset.headers:
        present = [v for v in dataset.column(header) if is_present(v)]
        stats.append(_column_stat(header, present, numeric_threshold, date_year_bounds))
    logger.debug(
        "column stats: %s",
        ", ".join(f"{s.column}={s.type.value}" for s in stats),
    )
    return stats
