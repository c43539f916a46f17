from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .cell import CellValue

"""Dataset model.

A Dataset is created once per uploaded file and never mutated afterwards;
every view (statistics, pivot, custom summary) derives new structures from it.
"""

__all__ = [
    "Row",
    "Dataset",
]

Row = Mapping[str, CellValue]


@dataclass(frozen=True)
class Dataset:
    """Normalized table: ordered unique headers plus ordered rows.

    Every row's key set is a subset of ``headers``.
    """
    headers: tuple[str, ...]
    rows: tuple[Row, ...]
    file_name: str | None = None
    sheet_name: str | None = None  # spreadsheet sources only
    sheet_names: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_rows(
        cls,
        headers: Iterable[str],
        rows: Iterable[Mapping[str, Any]],
        **meta: Any,
    ) -> Dataset:
        return cls(headers=tuple(headers), rows=tuple(dict(r) for r in rows), **meta)

    def __len__(self) -> int:
        return len(self.rows)

    def has_field(self, name: str) -> bool:
        return name in self.headers

    def column(self, name: str) -> list[CellValue]:
        """Values of one header in row order (absent keys read as None)."""
        return [row.get(name) for row in self.rows]
