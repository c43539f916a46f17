from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from ..models.column_stat import ColumnStat
from ..models.dataset import Dataset
from ..models.pivot_result import PLACEHOLDER, CustomSummaryResult, PivotResult
from .layout import column_stats_rows, pivot_table_rows

"""Workbook export.

Sheets: "Data" (rows in header order), "Basic Column Stats" (when stats are
given) and "Custom Summary" (when a pivot / summary result is given). A custom
summary sheet starts with its title line ("SUM of sales") above the grid.
Values are written at full precision; number formats are left to the
spreadsheet.
"""

__all__ = [
    "DATA_SHEET",
    "STATS_SHEET",
    "SUMMARY_SHEET",
    "export_workbook",
]

logger = logging.getLogger(__name__)

DATA_SHEET = "Data"
STATS_SHEET = "Basic Column Stats"
SUMMARY_SHEET = "Custom Summary"


def export_workbook(
    path: Path,
    dataset: Dataset,
    stats: Sequence[ColumnStat] | None = None,
    summary: PivotResult | None = None,
    *,
    row_label: str | None = None,
    placeholder: str = PLACEHOLDER,
) -> Path:
    """Write dataset, statistics and summary to an .xlsx workbook.

    Args:
        row_label: header label of the summary grid; needed for a plain
            PivotResult, which does not know its rows field

    Returns:
        The written path

    Raises:
        OSError: the target cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data_df = pd.DataFrame([dict(r) for r in dataset.rows], columns=list(dataset.headers))
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        data_df.to_excel(writer, sheet_name=DATA_SHEET, index=False)
        if stats:
            pd.DataFrame(column_stats_rows(stats)).to_excel(writer, sheet_name=STATS_SHEET, index=False)
        if summary is not None:
            table = pivot_table_rows(summary, row_label=row_label, placeholder=placeholder)
            if isinstance(summary, CustomSummaryResult):
                # 短い行は空セルで埋められる
                table = [[summary.title], *table]
            pd.DataFrame(table).to_excel(writer, sheet_name=SUMMARY_SHEET, header=False, index=False)
    logger.info("exported workbook %s (%d rows)", path, len(dataset.rows))
    return path
