from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from datasphere.models.cell import coerce_scalar, is_blank, is_present, to_key, to_number, to_text


@pytest.mark.parametrize(
    "value, expected",
    [
        (7, 7),
        (2.5, 2.5),
        ("12", 12.0),
        (" 3.5 ", 3.5),
        ("-.5", -0.5),
        ("1e3", 1000.0),
    ],
)
def test_to_number_parses_decimals(value, expected):
    assert to_number(value) == expected


@pytest.mark.parametrize("value", [None, "", "  ", "abc", "12abc", "1,000", True, False, float("nan"), float("inf"), "nan", "inf"])
def test_to_number_rejects_non_numbers(value):
    assert to_number(value) is None


def test_to_number_keeps_int_type():
    assert isinstance(to_number(3), int)


def test_to_text_display_forms():
    assert to_text(None) == "null"
    assert to_text(True) == "true"
    assert to_text(False) == "false"
    assert to_text(2.0) == "2"
    assert to_text(2.5) == "2.5"
    assert to_text(3) == "3"
    assert to_text("East") == "East"


def test_blank_and_present():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank("   ")
    assert not is_blank(0)
    assert not is_blank(False)
    assert is_present("  ")  # whitespace is still a present value for statistics
    assert not is_present("")
    assert not is_present(None)


def test_to_key():
    assert to_key(None) is None
    assert to_key(" ") is None
    assert to_key(0) == "0"
    assert to_key(1.0) == "1"


def test_coerce_scalar_reader_values():
    assert coerce_scalar(float("nan")) is None
    assert coerce_scalar(pd.NaT) is None
    assert coerce_scalar(np.int64(5)) == 5
    assert isinstance(coerce_scalar(np.int64(5)), int)
    assert coerce_scalar(np.float64(2.5)) == 2.5
    assert coerce_scalar(np.bool_(True)) is True
    assert coerce_scalar(pd.Timestamp("2024-01-05")) == "2024-01-05"
    assert coerce_scalar(pd.Timestamp("2024-01-05 10:30")) == "2024-01-05T10:30:00"
    assert coerce_scalar("text") == "text"
    assert coerce_scalar(np.float64("nan")) is None
