from __future__ import annotations

from dataclasses import dataclass, field

from .aggregation import TotalsMode
from .pivot_result import PLACEHOLDER

"""Config dataclass for the analysis engine.

Separate from the loader in datasphere/config/loader.py; this module only
holds the typed, validated result.
"""

__all__ = [
    "AnalysisConfig",
]


@dataclass(frozen=True)
class AnalysisConfig:
    """Tunables for ingestion, type inference and summary totals.

    Defaults reproduce the behaviour users see without any config file.
    """
    numeric_threshold: float = 0.8  # numeric ratio must be strictly greater
    date_year_bounds: tuple[int, int] = (1900, 2100)  # exclusive on both ends
    totals_mode: TotalsMode = TotalsMode.CELL_SUM
    placeholder: str = PLACEHOLDER
    keep_na_strings: tuple[str, ...] = ()  # pandas の既定 NA 変換から除外する文字列
    null_sentinels: frozenset[str] = field(default_factory=frozenset)  # 大文字化済
    default_sheet: str | None = None
