"""Engine services: statistics, pivot, custom summary, layout and export."""

from .custom_summary import generate_custom_summary
from .errors import EngineError, UnknownFieldError, UnsupportedAggregationError
from .pivot import generate_pivot
from .statistics import calculate_column_stats, infer_column_type

__all__ = [
    "EngineError",
    "UnknownFieldError",
    "UnsupportedAggregationError",
    "calculate_column_stats",
    "generate_custom_summary",
    "generate_pivot",
    "infer_column_type",
]
