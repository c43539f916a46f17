from __future__ import annotations

import math

import pytest

from datasphere.models.aggregation import Aggregation, FilterSpec, SummaryRequest, TotalsMode
from datasphere.models.dataset import Dataset
from datasphere.models.pivot_result import SummaryLayout
from datasphere.services.custom_summary import generate_custom_summary
from datasphere.services.errors import UnknownFieldError, UnsupportedAggregationError
from datasphere.services.pivot import generate_pivot


@pytest.mark.parametrize("agg", ["sum", "avg", "count", "min", "max"])
def test_matches_pivot_on_numeric_field(orders_dataset: Dataset, agg: str):
    # count は数値以外も数えるので、数値だけの列で比較する
    numeric_rows = [r for r in orders_dataset.rows if r["qty"] != "n/a"]
    ds = Dataset.from_rows(orders_dataset.headers, numeric_rows)
    pivot = generate_pivot(ds, "region", "product", "qty", agg)
    summary = generate_custom_summary(ds, SummaryRequest("region", "product", "qty", agg))
    assert summary.row_values == pivot.row_values
    assert summary.column_values == pivot.column_values
    assert summary.data == pivot.data
    assert summary.row_totals == pivot.row_totals
    assert summary.column_totals == pivot.column_totals
    assert summary.grand_total == pivot.grand_total


def test_single_column_mode(orders_dataset: Dataset):
    result = generate_custom_summary(orders_dataset, SummaryRequest("region", None, "qty"))
    assert result.layout is SummaryLayout.SINGLE_COLUMN
    assert result.column_values == ("_TOTAL_",)
    assert result.row_values == ("East", "North", "West")
    assert result.data["East"] == {"_TOTAL_": 13.0}
    assert result.data["North"] == {"_TOTAL_": 7}
    assert result.row_totals == {"East": 13.0, "North": 7, "West": 12.5}
    assert result.grand_total == 32.5


def test_single_column_on_empty_dataset_still_has_total_key():
    ds = Dataset.from_rows(["a", "b"], [])
    result = generate_custom_summary(ds, SummaryRequest("a", None, "b"))
    assert result.column_values == ("_TOTAL_",)
    assert result.row_values == ()
    assert result.grand_total == 0


def test_from_mapping_legacy_total_column(orders_dataset: Dataset):
    request = SummaryRequest.from_mapping({
        "rowsField": "region",
        "columnsField": "_TOTAL_",
        "valuesField": "customer",
        "aggregation": "unique",
    })
    assert request.columns_field is None
    result = generate_custom_summary(orders_dataset, request)
    assert result.row_totals == {"East": 2, "North": 1, "West": 2}
    assert result.grand_total == 5


def test_from_mapping_filters_need_column_and_value():
    request = SummaryRequest.from_mapping({
        "rowsField": "region",
        "columnsField": "product",
        "valuesField": "qty",
        "filterColumn1": "channel",
        "filterValue1": "web",
        "filterColumn2": "customer",
        "filterValue2": "",
    })
    assert request.filters == (FilterSpec("channel", "web"),)
    assert request.aggregation is Aggregation.SUM


def test_filters_are_anded(orders_dataset: Dataset):
    request = SummaryRequest(
        "region",
        "product",
        "qty",
        filters=(FilterSpec("channel", "web"), FilterSpec("customer", "c1")),
    )
    result = generate_custom_summary(orders_dataset, request)
    assert result.data == {"East": {"A": 4, "B": 3.0}}
    assert result.grand_total == 7.0


def test_filter_compares_display_text():
    ds = Dataset.from_rows(["k", "n", "v"], [{"k": "a", "n": 2.0, "v": 1}, {"k": "b", "n": 3, "v": 5}])
    result = generate_custom_summary(ds, SummaryRequest("k", None, "v", filters=(FilterSpec("n", "2"),)))
    assert result.row_values == ("a",)


def test_count_uses_any_non_blank_value(orders_dataset: Dataset):
    result = generate_custom_summary(orders_dataset, SummaryRequest("region", "product", "customer", "count"))
    assert result.data == {"East": {"A": 2, "B": 1}, "West": {"A": 1, "B": 2}}
    assert result.grand_total == 6


def test_unique_cross_tab(orders_dataset: Dataset):
    result = generate_custom_summary(orders_dataset, SummaryRequest("region", "product", "customer", "unique"))
    assert result.data["West"] == {"A": 1, "B": 2}


def test_sdev_sample(orders_dataset: Dataset):
    result = generate_custom_summary(orders_dataset, SummaryRequest("region", "product", "qty", "sdev"))
    assert result.data["East"]["A"] == pytest.approx(math.sqrt(2))
    assert result.data["East"]["B"] == 0.0


def test_reaggregate_totals(orders_dataset: Dataset):
    request = SummaryRequest("region", "product", "qty", "avg")
    cell_sum = generate_custom_summary(orders_dataset, request)
    reagg = generate_custom_summary(orders_dataset, request, totals_mode=TotalsMode.REAGGREGATE)
    assert cell_sum.row_totals["East"] == 8.0
    assert reagg.row_totals["East"] == pytest.approx(13 / 3)
    assert reagg.grand_total == pytest.approx(5.1)
    assert reagg.data == cell_sum.data


def test_result_metadata(orders_dataset: Dataset):
    result = generate_custom_summary(orders_dataset, SummaryRequest("region", "product", "qty", "max"))
    assert result.rows_field == "region"
    assert result.columns_field == "product"
    assert result.value_field_name == "qty"
    assert result.aggregation is Aggregation.MAX
    assert result.aggregation_label == "Maximum"
    assert result.title == "MAX of qty"
    assert result.layout is SummaryLayout.CROSS_TAB


def test_more_than_two_filters_rejected():
    with pytest.raises(ValueError):
        SummaryRequest("a", None, "b", filters=(FilterSpec("x", "1"),) * 3)


def test_unknown_aggregation_rejected():
    with pytest.raises(UnsupportedAggregationError, match="median"):
        SummaryRequest("a", None, "b", "median")
    with pytest.raises(UnsupportedAggregationError):
        SummaryRequest.from_mapping({"rowsField": "a", "valuesField": "b", "aggregation": "median"})


def test_aggregation_given_as_text_is_normalized():
    req = SummaryRequest("a", None, "b", "Count")
    assert req.aggregation is Aggregation.COUNT


def test_unsupported_aggregation_is_engine_error():
    assert issubclass(UnsupportedAggregationError, ValueError)


def test_unknown_field(orders_dataset: Dataset):
    with pytest.raises(UnknownFieldError):
        generate_custom_summary(orders_dataset, SummaryRequest("region", None, "price"))
    with pytest.raises(UnknownFieldError):
        generate_custom_summary(
            orders_dataset, SummaryRequest("region", None, "qty", filters=(FilterSpec("store", "x"),))
        )
