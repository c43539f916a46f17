from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Aggregation request models.

``SummaryRequest.columns_field is None`` means "no column grouping": one
aggregated value per row under the reserved TOTAL_COLUMN key. The legacy
"_TOTAL_" string is only understood at the mapping boundary
(``SummaryRequest.from_mapping``) and is turned into None there.
"""

__all__ = [
    "Aggregation",
    "PIVOT_AGGREGATIONS",
    "TotalsMode",
    "FilterSpec",
    "SummaryRequest",
    "TOTAL_COLUMN",
]

TOTAL_COLUMN = "_TOTAL_"


class Aggregation(str, Enum):
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    UNIQUE = "unique"
    SDEV = "sdev"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_numeric(self) -> bool:
        """True when the aggregation consumes parsed numbers only."""
        return self not in (Aggregation.COUNT, Aggregation.UNIQUE)


_LABELS = {
    Aggregation.SUM: "Sum",
    Aggregation.AVG: "Average",
    Aggregation.COUNT: "Count",
    Aggregation.MIN: "Minimum",
    Aggregation.MAX: "Maximum",
    Aggregation.UNIQUE: "Unique Count",
    Aggregation.SDEV: "Standard Deviation",
}

PIVOT_AGGREGATIONS = frozenset(
    {Aggregation.SUM, Aggregation.AVG, Aggregation.COUNT, Aggregation.MIN, Aggregation.MAX}
)


class TotalsMode(str, Enum):
    """How row / column / grand totals are derived.

    CELL_SUM: totals are sums of the per-cell aggregates.
    REAGGREGATE: the aggregation is applied again over all underlying values.
    """
    CELL_SUM = "cell_sum"
    REAGGREGATE = "reaggregate"


@dataclass(frozen=True)
class FilterSpec:
    """Equality predicate: keep rows where text(row[column]) == value."""
    column: str
    value: str

    @classmethod
    def parse(cls, expr: str) -> FilterSpec:
        """Parse ``COLUMN=VALUE`` (CLI form)."""
        column, sep, value = expr.partition("=")
        if not sep or not column.strip():
            raise ValueError(f"filter must look like COLUMN=VALUE: {expr!r}")
        return cls(column=column.strip(), value=value)


@dataclass(frozen=True)
class SummaryRequest:
    rows_field: str
    columns_field: str | None  # None: no column grouping
    values_field: str
    aggregation: Aggregation = Aggregation.SUM
    filters: tuple[FilterSpec, ...] = ()

    def __post_init__(self) -> None:
        if len(self.filters) > 2:
            raise ValueError("at most two filters are supported")
        # str を渡されても Enum に揃える (循環 import を避けて遅延 import)
        from ..services.aggregation import coerce_aggregation

        object.__setattr__(self, "aggregation", coerce_aggregation(self.aggregation))

    @property
    def single_column(self) -> bool:
        return self.columns_field is None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SummaryRequest:
        """Build a request from a UI/config style mapping.

        Keys: rowsField, columnsField, valuesField, aggregation,
        filterColumn1/filterValue1, filterColumn2/filterValue2. A filter is
        active only when both its column and value are non-empty.
        """
        columns_field = data.get("columnsField") or None
        if columns_field == TOTAL_COLUMN:
            columns_field = None
        filters = []
        for n in (1, 2):
            column = data.get(f"filterColumn{n}")
            value = data.get(f"filterValue{n}")
            if column and value:
                filters.append(FilterSpec(column=column, value=str(value)))
        return cls(
            rows_field=data["rowsField"],
            columns_field=columns_field,
            values_field=data["valuesField"],
            aggregation=data.get("aggregation") or Aggregation.SUM,
            filters=tuple(filters),
        )
