from __future__ import annotations

"""Engine error taxonomy.

Data-quality problems (unparseable numbers, blank keys) never raise; these
errors signal caller/config bugs such as a field that does not exist.
"""

__all__ = [
    "EngineError",
    "UnknownFieldError",
    "UnsupportedAggregationError",
]


class EngineError(Exception):
    """Base exception for aggregation/statistics errors."""


class UnknownFieldError(EngineError, KeyError):
    """Raised when a requested field is not one of the dataset headers."""

    def __init__(self, field: str, headers: tuple[str, ...] | list[str] = ()) -> None:
        self.field = field
        self.headers = tuple(headers)
        super().__init__(f"unknown field {field!r} (available: {', '.join(self.headers) or 'none'})")

    def __str__(self) -> str:
        # KeyError の既定 __str__ は repr() になるため上書き
        return str(self.args[0])


class UnsupportedAggregationError(EngineError, ValueError):
    """Raised when an aggregation is not available for the requested view."""
