from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..models.aggregation import FilterSpec
from ..models.cell import to_key, to_number
from ..models.dataset import Dataset
from .aggregation import apply_filters, require_fields

"""Chart series preparation.

Turns a dataset into labels + values for a chart renderer. Colours, themes and
renderer options are the renderer's business.
"""

__all__ = [
    "ChartType",
    "ChartSeries",
    "prepare_chart_series",
]


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    AREA = "area"
    PIE = "pie"
    POLAR_AREA = "polarArea"
    RADAR = "radar"
    SCATTER = "scatter"


# 円グラフ系は x ごとの合計
_SUM_TYPES = frozenset({ChartType.PIE, ChartType.POLAR_AREA, ChartType.RADAR})


@dataclass(frozen=True)
class ChartSeries:
    chart_type: ChartType
    label: str  # y field name
    labels: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    points: list[tuple[str, float]] = field(default_factory=list)  # scatter only

    @property
    def is_empty(self) -> bool:
        return not self.labels


def prepare_chart_series(
    dataset: Dataset,
    x_field: str,
    y_field: str,
    chart_type: ChartType | str = ChartType.BAR,
    *,
    filters: Sequence[FilterSpec] = (),
) -> ChartSeries:
    """Group ``y_field`` by ``x_field`` for the given chart type.

    - pie / polarArea / radar: sum per x, non-numeric y counts as 0, labels in
      first-seen order
    - bar / line / area: mean of numeric y per x, labels sorted
    - scatter: one point per numeric y, labels sorted
    Rows with a blank x are skipped.
    """
    chart_type = ChartType(chart_type)
    require_fields(dataset, x_field, y_field, *(f.column for f in filters))
    rows = apply_filters(dataset.rows, filters)

    if chart_type in _SUM_TYPES:
        sums: dict[str, float] = {}
        for row in rows:
            x = to_key(row.get(x_field))
            if x is None:
                continue
            sums[x] = sums.get(x, 0) + (to_number(row.get(y_field)) or 0)
        return ChartSeries(chart_type, y_field, labels=list(sums), values=list(sums.values()))

    grouped: dict[str, list[float]] = {}
    for row in rows:
        x = to_key(row.get(x_field))
        y = to_number(row.get(y_field))
        if x is None or y is None:
            continue
        grouped.setdefault(x, []).append(y)
    labels = sorted(grouped)

    if chart_type is ChartType.SCATTER:
        points = [(label, y) for label in labels for y in grouped[label]]
        return ChartSeries(chart_type, y_field, labels=labels, points=points)

    values = [sum(grouped[label]) / len(grouped[label]) for label in labels]
    return ChartSeries(chart_type, y_field, labels=labels, values=values)
