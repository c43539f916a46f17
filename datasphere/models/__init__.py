"""Domain models for the datasphere aggregation engine.

Cells, datasets, column statistics, aggregation requests and pivot results.
All models are immutable; services derive new instances instead of mutating.
"""

from .aggregation import PIVOT_AGGREGATIONS, TOTAL_COLUMN, Aggregation, FilterSpec, SummaryRequest, TotalsMode
from .cell import CellValue, coerce_scalar, is_blank, is_present, to_key, to_number, to_text
from .column_stat import ColumnStat, ColumnType
from .config_models import AnalysisConfig
from .dataset import Dataset, Row
from .pivot_result import PLACEHOLDER, CustomSummaryResult, PivotResult, SummaryLayout

__all__ = [
    # Cells
    "CellValue",
    "coerce_scalar",
    "is_blank",
    "is_present",
    "to_key",
    "to_number",
    "to_text",
    # Dataset
    "Dataset",
    "Row",
    # Statistics
    "ColumnStat",
    "ColumnType",
    # Aggregation
    "Aggregation",
    "FilterSpec",
    "PIVOT_AGGREGATIONS",
    "SummaryRequest",
    "TOTAL_COLUMN",
    "TotalsMode",
    "PLACEHOLDER",
    "CustomSummaryResult",
    "PivotResult",
    "SummaryLayout",
    # Config
    "AnalysisConfig",
]
