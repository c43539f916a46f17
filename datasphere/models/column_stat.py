from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""ColumnStat model and ColumnType enum.

One ColumnStat per header, derived entirely from a Dataset. Numeric fields are
full precision; rounding for display happens in the presentation layer.
"""

__all__ = [
    "ColumnType",
    "ColumnStat",
]


class ColumnType(Enum):
    """Inferred semantic type of a column.

    Inference order: Numeric → Boolean → Date → Text. A column without any
    present value is Other.
    """
    NUMERIC = "Numeric"
    BOOLEAN = "Boolean"
    DATE = "Date"
    TEXT = "Text"
    OTHER = "Other"


@dataclass(frozen=True)
class ColumnStat:
    column: str
    type: ColumnType
    unique_values: int  # distinct present values (compared as text)
    min: float | None = None  # Numeric only
    max: float | None = None  # Numeric only
    sum: float | None = None  # Numeric only
    average: float | None = None  # Numeric only
    value_counts: dict[str, int] = field(default_factory=dict)

    @property
    def is_numeric(self) -> bool:
        return self.type is ColumnType.NUMERIC
