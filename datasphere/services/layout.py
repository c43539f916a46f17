from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.column_stat import ColumnStat, ColumnType
from ..models.pivot_result import PLACEHOLDER, CustomSummaryResult, PivotResult, SummaryLayout

"""Row-major table layouts consumed by the exporters and the CLI.

Pivot / summary grid:
    [label, *column keys, "Row Total"]
    [row key, *cells, row total]           (one line per sorted row key)
    ["Column Total", *column totals, grand total]

The label is the rows field name; a plain PivotResult carries no field names,
so callers pass ``row_label`` (default "Row Field").

Single-column summaries collapse to [rows field, "Row Total"] lines with a
["Grand Total", grand total] footer.
"""

__all__ = [
    "ROW_TOTAL_LABEL",
    "COLUMN_TOTAL_LABEL",
    "GRAND_TOTAL_LABEL",
    "pivot_table_rows",
    "column_stats_rows",
    "render_stats_line",
]

ROW_TOTAL_LABEL = "Row Total"
COLUMN_TOTAL_LABEL = "Column Total"
GRAND_TOTAL_LABEL = "Grand Total"
STATS_COLUMNS = ("Column", "Type", "Minimum", "Maximum", "Average", "Sum", "Unique Values")


def _header_label(result: PivotResult, row_label: str | None) -> str:
    if row_label:
        return row_label
    if isinstance(result, CustomSummaryResult) and result.row_values:
        return result.rows_field or "Row Field"
    return "Row Field"


def pivot_table_rows(
    result: PivotResult,
    *,
    row_label: str | None = None,
    placeholder: str = PLACEHOLDER,
) -> list[list[Any]]:
    """Lay a pivot / custom summary result out as a list of table rows."""
    label = _header_label(result, row_label)
    single = isinstance(result, CustomSummaryResult) and result.layout is SummaryLayout.SINGLE_COLUMN

    if single:
        table: list[list[Any]] = [[label, ROW_TOTAL_LABEL]]
        for rv in result.row_values:
            table.append([rv, result.row_totals.get(rv, placeholder)])
        table.append([GRAND_TOTAL_LABEL, result.grand_total])
        return table

    table = [[label, *result.column_values, ROW_TOTAL_LABEL]]
    for rv in result.row_values:
        line: list[Any] = [rv]
        line.extend(result.cell(rv, cv, placeholder) for cv in result.column_values)
        line.append(result.row_totals.get(rv, placeholder))
        table.append(line)
    footer: list[Any] = [COLUMN_TOTAL_LABEL]
    footer.extend(result.column_totals.get(cv, placeholder) for cv in result.column_values)
    footer.append(result.grand_total)
    table.append(footer)
    return table


def column_stats_rows(stats: Sequence[ColumnStat], missing: str = "N/A") -> list[dict[str, Any]]:
    """Summary-sheet records, one per column, in column order."""
    def _num(v: float | None) -> Any:
        return missing if v is None else v

    return [
        dict(zip(STATS_COLUMNS, (
            s.column,
            s.type.value,
            _num(s.min),
            _num(s.max),
            _num(s.average),
            _num(s.sum),
            s.unique_values,
        )))
        for s in stats
    ]


def render_stats_line(row_count: int, stats: Sequence[ColumnStat]) -> str:
    """Render a one-line SUMMARY of a statistics run.

    Examples:
        >>> render_stats_line(0, [])
        'SUMMARY rows=0 columns=0 numeric=0 boolean=0 date=0 text=0 other=0'
    """
    counts = {t: 0 for t in ColumnType}
    for s in stats:
        counts[s.type] += 1
    return (
        f"SUMMARY rows={row_count} columns={len(stats)} "
        f"numeric={counts[ColumnType.NUMERIC]} "
        f"boolean={counts[ColumnType.BOOLEAN]} "
        f"date={counts[ColumnType.DATE]} "
        f"text={counts[ColumnType.TEXT]} "
        f"other={counts[ColumnType.OTHER]}"
    )
