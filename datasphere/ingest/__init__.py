from .reader import (
    EmptySourceError,
    NoSheetError,
    SourceError,
    UnsupportedFormatError,
    normalize_grid,
    normalize_records,
    read_source,
    read_source_bytes,
)

__all__ = [
    "EmptySourceError",
    "NoSheetError",
    "SourceError",
    "UnsupportedFormatError",
    "normalize_grid",
    "normalize_records",
    "read_source",
    "read_source_bytes",
]
