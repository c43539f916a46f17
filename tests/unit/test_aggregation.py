from __future__ import annotations

import pytest

from datasphere.models.aggregation import PIVOT_AGGREGATIONS, Aggregation, FilterSpec, TotalsMode
from datasphere.services.aggregation import (
    aggregate,
    apply_filters,
    build_cross_tab,
    coerce_aggregation,
    group_values,
    sample_stdev,
)
from datasphere.services.errors import UnsupportedAggregationError


def test_sample_stdev():
    assert sample_stdev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.13809, abs=1e-5)
    assert sample_stdev([5]) == 0.0
    assert sample_stdev([]) == 0.0


@pytest.mark.parametrize(
    "agg, expected",
    [
        (Aggregation.SUM, 10),
        (Aggregation.AVG, 2.5),
        (Aggregation.COUNT, 4),
        (Aggregation.MIN, 1),
        (Aggregation.MAX, 4),
        (Aggregation.UNIQUE, 4),
    ],
)
def test_aggregate(agg, expected):
    assert aggregate([1, 2, 3, 4], agg) == expected


def test_unique_counts_distinct_text():
    assert aggregate(["a", "a", 1, 1.0, "1"], Aggregation.UNIQUE) == 2


def test_empty_group_yields_zero():
    assert aggregate([], Aggregation.AVG) == 0
    assert aggregate([], Aggregation.COUNT) == 0


def test_coerce_aggregation():
    assert coerce_aggregation("AVG") is Aggregation.AVG
    assert coerce_aggregation(Aggregation.SDEV) is Aggregation.SDEV
    with pytest.raises(UnsupportedAggregationError):
        coerce_aggregation("median")
    with pytest.raises(UnsupportedAggregationError):
        coerce_aggregation("unique", PIVOT_AGGREGATIONS)


def test_filter_spec_parse():
    assert FilterSpec.parse("region=East") == FilterSpec("region", "East")
    assert FilterSpec.parse("note=a=b") == FilterSpec("note", "a=b")
    with pytest.raises(ValueError):
        FilterSpec.parse("region")
    with pytest.raises(ValueError):
        FilterSpec.parse("=East")


def test_apply_filters_missing_value_reads_null():
    rows = [{"a": None}, {"a": "x"}, {}]
    assert apply_filters(rows, [FilterSpec("a", "null")]) == [{"a": None}, {}]


def test_group_values_skips_blank_keys():
    rows = [
        {"r": "x", "c": "1", "v": 1},
        {"r": " ", "c": "1", "v": 2},
        {"r": "x", "c": None, "v": 3},
        {"r": "x", "c": "1", "v": "abc"},
    ]
    assert group_values(rows, "r", "c", "v", numeric_only=True) == {"x": {"1": [1]}}
    assert group_values(rows, "r", "c", "v", numeric_only=False) == {"x": {"1": [1, "abc"]}}


def test_cross_tab_totals_modes():
    groups = {"a": {"x": [1, 3], "y": [10]}, "b": {"x": [5]}}
    cell_sum = build_cross_tab(groups, Aggregation.MAX)
    assert cell_sum.data == {"a": {"x": 3, "y": 10}, "b": {"x": 5}}
    assert cell_sum.row_totals == {"a": 13, "b": 5}
    assert cell_sum.column_totals == {"x": 8, "y": 10}
    assert cell_sum.grand_total == 18

    reagg = build_cross_tab(groups, Aggregation.MAX, TotalsMode.REAGGREGATE)
    assert reagg.row_totals == {"a": 10, "b": 5}
    assert reagg.column_totals == {"x": 5, "y": 10}
    assert reagg.grand_total == 10
