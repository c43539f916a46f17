from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.aggregation import PIVOT_AGGREGATIONS, Aggregation, FilterSpec
from ..models.dataset import Dataset
from ..models.pivot_result import PivotResult
from .aggregation import apply_filters, build_cross_tab, coerce_aggregation, group_values, require_fields

"""Pivot aggregator: rowField x columnField cross-tab over a numeric value field.

Rows with a blank row/column key or a value that is not a finite number are
left out entirely. Totals are sums of the cell results.
"""

__all__ = [
    "generate_pivot",
]

logger = logging.getLogger(__name__)


def generate_pivot(
    dataset: Dataset,
    row_field: str,
    column_field: str,
    value_field: str,
    aggregation: Aggregation | str = Aggregation.SUM,
    *,
    filters: Sequence[FilterSpec] = (),
) -> PivotResult:
    """Build a cross-tab of ``value_field`` grouped by ``row_field`` and ``column_field``.

    Args:
        dataset: normalized dataset
        row_field / column_field / value_field: dataset headers
        aggregation: one of sum, avg, count, min, max
        filters: up to two equality filters applied before grouping

    Raises:
        UnknownFieldError: a field or filter column is not a header
        UnsupportedAggregationError: aggregation outside the pivot set

    Examples:
        >>> ds = Dataset.from_rows(["region", "sales"], [{"region": "East", "sales": 10}])
        >>> generate_pivot(ds, "region", "region", "sales").grand_total
        10
    """
    agg = coerce_aggregation(aggregation, PIVOT_AGGREGATIONS)
    if len(filters) > 2:
        raise ValueError("at most two filters are supported")
    require_fields(dataset, row_field, column_field, value_field, *(f.column for f in filters))

    rows = apply_filters(dataset.rows, filters)
    groups = group_values(rows, row_field, column_field, value_field, numeric_only=True)
    tab = build_cross_tab(groups, agg)
    logger.debug(
        "pivot %s x %s (%s of %s): %d rows, %d columns",
        row_field, column_field, agg.value, value_field, len(tab.row_values), len(tab.column_values),
    )
    return PivotResult(
        row_values=tab.row_values,
        column_values=tab.column_values,
        data=tab.data,
        row_totals=tab.row_totals,
        column_totals=tab.column_totals,
        grand_total=tab.grand_total,
    )
