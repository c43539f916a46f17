from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .aggregation import Aggregation

"""Pivot and custom summary result models.

``data`` is sparse: a (row key, column key) pair that no included row produced
is absent. Callers read cells through ``cell()`` which substitutes a
placeholder for absent data instead of raising.
"""

__all__ = [
    "PLACEHOLDER",
    "SummaryLayout",
    "PivotResult",
    "CustomSummaryResult",
]

PLACEHOLDER = "-"

Number = Union[int, float]


class SummaryLayout(Enum):
    CROSS_TAB = "cross_tab"
    SINGLE_COLUMN = "single_column"  # one aggregate per row, no column breakdown


@dataclass(frozen=True)
class PivotResult:
    row_values: tuple[str, ...]  # sorted ascending, unique
    column_values: tuple[str, ...]  # sorted ascending, unique
    data: dict[str, dict[str, Number]]
    row_totals: dict[str, Number]
    column_totals: dict[str, Number]
    grand_total: Number

    def cell(self, row_key: str, column_key: str, default: Number | str = PLACEHOLDER) -> Number | str:
        return self.data.get(row_key, {}).get(column_key, default)

    @property
    def is_empty(self) -> bool:
        return not self.row_values


@dataclass(frozen=True)
class CustomSummaryResult(PivotResult):
    """PivotResult plus the presentation metadata of the request."""
    rows_field: str = ""
    columns_field: str | None = None
    value_field_name: str = ""
    aggregation: Aggregation = Aggregation.SUM
    layout: SummaryLayout = SummaryLayout.CROSS_TAB

    @property
    def aggregation_label(self) -> str:
        return self.aggregation.label

    @property
    def title(self) -> str:
        return f"{self.aggregation.value.upper()} of {self.value_field_name}"
