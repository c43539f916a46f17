from __future__ import annotations

import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Union

from ..models.aggregation import TOTAL_COLUMN, Aggregation, FilterSpec, TotalsMode
from ..models.cell import CellValue, is_blank, to_key, to_number, to_text
from ..models.dataset import Dataset, Row
from .errors import UnknownFieldError, UnsupportedAggregationError

"""Shared grouping / aggregation primitives for the pivot and custom summary.

Totals default to the sum of the per-cell aggregates (TotalsMode.CELL_SUM),
accumulated row-major over the sorted keys. For avg/min/max/sdev this differs
from aggregating all underlying values; REAGGREGATE does the latter.
"""

__all__ = [
    "Number",
    "CrossTab",
    "aggregate",
    "sample_stdev",
    "apply_filters",
    "require_fields",
    "coerce_aggregation",
    "group_values",
    "build_cross_tab",
]

Number = Union[int, float]


def sample_stdev(values: Sequence[Number]) -> float:
    """Sample standard deviation (N-1); 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return statistics.stdev(values)


def aggregate(values: Sequence[Any], aggregation: Aggregation) -> Number:
    """Apply ``aggregation`` to one group.

    Numeric aggregations expect parsed numbers; COUNT and UNIQUE accept any
    non-blank cell values. Callers never pass an empty group except for
    REAGGREGATE totals, where empty yields 0.
    """
    if aggregation is Aggregation.COUNT:
        return len(values)
    if aggregation is Aggregation.UNIQUE:
        return len({to_text(v) for v in values})
    if not values:
        return 0
    if aggregation is Aggregation.SUM:
        return sum(values)
    if aggregation is Aggregation.AVG:
        return sum(values) / len(values)
    if aggregation is Aggregation.MIN:
        return min(values)
    if aggregation is Aggregation.MAX:
        return max(values)
    if aggregation is Aggregation.SDEV:
        return sample_stdev(values)
    raise UnsupportedAggregationError(f"unsupported aggregation: {aggregation!r}")


def coerce_aggregation(value: Aggregation | str, allowed: Iterable[Aggregation] | None = None) -> Aggregation:
    try:
        agg = value if isinstance(value, Aggregation) else Aggregation(str(value).lower())
    except ValueError as e:
        raise UnsupportedAggregationError(f"unsupported aggregation: {value!r}") from e
    if allowed is not None and agg not in allowed:
        names = ", ".join(sorted(a.value for a in allowed))
        raise UnsupportedAggregationError(f"aggregation {agg.value!r} not available here (choose from {names})")
    return agg


def require_fields(dataset: Dataset, *fields: str | None) -> None:
    """Fail fast when a requested field is not a header (None is skipped)."""
    for f in fields:
        if f is not None and not dataset.has_field(f):
            raise UnknownFieldError(f, dataset.headers)


def apply_filters(rows: Iterable[Row], filters: Sequence[FilterSpec]) -> list[Row]:
    """Keep rows matching every filter (text equality, AND-ed)."""
    result = list(rows)
    for flt in filters:
        result = [r for r in result if to_text(r.get(flt.column)) == flt.value]
    return result


def group_values(
    rows: Iterable[Row],
    row_field: str,
    column_field: str | None,
    value_field: str,
    *,
    numeric_only: bool,
) -> dict[str, dict[str, list[Any]]]:
    """Group contributing values by (row key, column key).

    A row contributes only when both keys are non-blank and its value is a
    parseable number (``numeric_only``) or at least non-blank. With
    ``column_field=None`` every row goes to the TOTAL_COLUMN key.
    """
    groups: dict[str, dict[str, list[Any]]] = {}
    for row in rows:
        row_key = to_key(row.get(row_field))
        column_key = TOTAL_COLUMN if column_field is None else to_key(row.get(column_field))
        if row_key is None or column_key is None:
            continue
        raw: CellValue = row.get(value_field)
        if numeric_only:
            value: Any = to_number(raw)
            if value is None:
                continue
        else:
            if is_blank(raw):
                continue
            value = raw
        groups.setdefault(row_key, {}).setdefault(column_key, []).append(value)
    return groups


@dataclass(frozen=True)
class CrossTab:
    row_values: tuple[str, ...]
    column_values: tuple[str, ...]
    data: dict[str, dict[str, Number]]
    row_totals: dict[str, Number]
    column_totals: dict[str, Number]
    grand_total: Number


def build_cross_tab(
    groups: dict[str, dict[str, list[Any]]],
    aggregation: Aggregation,
    totals_mode: TotalsMode = TotalsMode.CELL_SUM,
    *,
    column_values: tuple[str, ...] | None = None,
) -> CrossTab:
    """Aggregate every group and derive totals.

    ``column_values`` pins the column keys (single-column layout) instead of
    deriving them from the observed groups.
    """
    row_values = tuple(sorted(groups))
    if column_values is None:
        column_values = tuple(sorted({c for cols in groups.values() for c in cols}))

    data: dict[str, dict[str, Number]] = {}
    for r in row_values:
        data[r] = {c: aggregate(groups[r][c], aggregation) for c in column_values if c in groups[r]}

    row_totals: dict[str, Number] = {r: 0 for r in row_values}
    column_totals: dict[str, Number] = {c: 0 for c in column_values}
    grand_total: Number = 0

    if totals_mode is TotalsMode.CELL_SUM:
        for r in row_values:
            for c in column_values:
                if c not in data[r]:
                    continue
                v = data[r][c]
                row_totals[r] += v
                column_totals[c] += v
                grand_total += v
    else:
        every: list[Any] = []
        for r in row_values:
            row_vals = [v for c in column_values for v in groups[r].get(c, ())]
            row_totals[r] = aggregate(row_vals, aggregation)
            every.extend(row_vals)
        for c in column_values:
            column_totals[c] = aggregate([v for r in row_values for v in groups[r].get(c, ())], aggregation)
        grand_total = aggregate(every, aggregation)

    return CrossTab(
        row_values=row_values,
        column_values=column_values,
        data=data,
        row_totals=row_totals,
        column_totals=column_totals,
        grand_total=grand_total,
    )
