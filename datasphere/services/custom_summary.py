from __future__ import annotations

import logging

from ..models.aggregation import TOTAL_COLUMN, SummaryRequest, TotalsMode
from ..models.dataset import Dataset
from ..models.pivot_result import CustomSummaryResult, SummaryLayout
from .aggregation import apply_filters, build_cross_tab, coerce_aggregation, group_values, require_fields

"""Custom summary aggregator.

Generalizes the pivot with:
- up to two AND-ed equality filters applied before grouping
- no-column-grouping mode (``request.columns_field is None``): one aggregate
  per row under the single TOTAL_COLUMN key
- unique count and sample standard deviation

count / unique consume every non-blank value of the value field; the numeric
aggregations consume parseable numbers only, exactly like the pivot.
"""

__all__ = [
    "generate_custom_summary",
]

logger = logging.getLogger(__name__)


def generate_custom_summary(
    dataset: Dataset,
    request: SummaryRequest,
    *,
    totals_mode: TotalsMode = TotalsMode.CELL_SUM,
) -> CustomSummaryResult:
    """Aggregate ``request.values_field`` per row (and column) key.

    Raises:
        UnknownFieldError: a field or filter column is not a header
        UnsupportedAggregationError: unknown aggregation name
    """
    agg = coerce_aggregation(request.aggregation)
    require_fields(
        dataset,
        request.rows_field,
        request.columns_field,
        request.values_field,
        *(f.column for f in request.filters),
    )

    rows = apply_filters(dataset.rows, request.filters)
    groups = group_values(
        rows,
        request.rows_field,
        request.columns_field,
        request.values_field,
        numeric_only=agg.is_numeric,
    )
    layout = SummaryLayout.SINGLE_COLUMN if request.single_column else SummaryLayout.CROSS_TAB
    tab = build_cross_tab(
        groups,
        agg,
        totals_mode,
        column_values=(TOTAL_COLUMN,) if request.single_column else None,
    )
    logger.debug(
        "custom summary %s of %s by %s/%s: %d of %d rows after filters, layout=%s",
        agg.value, request.values_field, request.rows_field, request.columns_field,
        len(rows), len(dataset.rows), layout.value,
    )
    return CustomSummaryResult(
        row_values=tab.row_values,
        column_values=tab.column_values,
        data=tab.data,
        row_totals=tab.row_totals,
        column_totals=tab.column_totals,
        grand_total=tab.grand_total,
        rows_field=request.rows_field,
        columns_field=request.columns_field,
        value_field_name=request.values_field,
        aggregation=agg,
        layout=layout,
    )
