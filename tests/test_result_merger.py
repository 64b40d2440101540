"""Tests for folding GA report rows into a ResultTable."""

import pytest

from application.schemas.report_schema import ReportResponse
from application.services.result_merger import build_label, make_default_row, merge_result, to_number
from core_domain.entities.result_table import ResultRow, ResultTable

from conftest import make_response


def merge(table, rows, dimensions, metrics, default_metrics=None):
    response = ReportResponse.model_validate(make_response(rows))
    return merge_result(table, response, dimensions, metrics, make_default_row(default_metrics or metrics))


class TestBuildLabel:
    def test_values_are_comma_joined(self):
        assert build_label(["ga:country", "ga:browser"], ["US", "Chrome"]) == "US,Chrome"

    def test_not_set_leaves_an_empty_segment(self):
        assert build_label(["ga:country", "ga:browser"], ["US", "(not set)"]) == "US,"
        assert build_label(["ga:country", "ga:browser"], ["(not set)", "Chrome"]) == ",Chrome"

    def test_no_dimensions_means_no_label(self):
        assert build_label([], []) is None


class TestToNumber:
    @pytest.mark.parametrize("raw, expected", [
        ("10", 10),
        ("0", 0),
        ("12.5", 12.5),
        (" 3 ", 3),
        ("12.5%", "12.5%"),
        (7, 7),
    ])
    def test_conversion(self, raw, expected):
        assert to_number(raw) == expected


class TestMergeResult:
    def test_rows_get_label_metadata_and_values(self):
        table = ResultTable()
        processed = merge(
            table,
            [(("US", "Chrome"), [10, 3]), (("DE", "(not set)"), [4, 1])],
            ["ga:country", "ga:browser"],
            ["ga:sessions", "ga:bounces"],
        )

        assert processed == 2
        us = table.get_row_from_label("US,Chrome")
        assert us.get_columns() == {"ga:sessions": 10, "ga:bounces": 3, "label": "US,Chrome"}
        assert us.get_all_metadata() == {"ga:country": "US", "ga:browser": "Chrome"}

        de = table.get_row_from_label("DE,")
        assert de.get_metadata("ga:browser") is None
        assert de.get_metadata("ga:country") == "DE"

    def test_chunks_with_the_same_label_are_merged_into_one_row(self):
        table = ResultTable()
        all_metrics = ["ga:sessions", "ga:hits"]
        dimensions = ["ga:country", "ga:browser"]

        merge(table, [(("US", "Chrome"), [10, 10])], dimensions, ["ga:sessions"], all_metrics)
        merge(table, [(("US", "Chrome"), [50, 10])], dimensions, ["ga:hits"], all_metrics)

        assert len(table) == 1
        row = table.get_first_row()
        assert row.get_column("ga:sessions") == 10
        assert row.get_column("ga:hits") == 50
        assert row.label == "US,Chrome"

    def test_trailing_order_by_value_is_ignored(self):
        table = ResultTable()
        merge(table, [(("US",), [5, 99])], ["ga:country"], ["ga:bounces"])

        assert table.get_first_row().get_columns() == {"ga:bounces": 5, "label": "US"}

    def test_duplicate_labels_within_a_response_are_summed(self):
        table = ResultTable()
        merge(table, [(("US",), [5]), (("US",), [7])], ["ga:country"], ["ga:sessions"])

        assert len(table) == 1
        assert table.get_first_row().get_column("ga:sessions") == 12

    def test_dimensionless_rows_fold_into_first_row(self):
        table = ResultTable()
        merge(table, [((), [5, 1])], [], ["ga:sessions", "ga:users"])
        merge(table, [((), [2])], [], ["ga:pageviews"], ["ga:sessions", "ga:users", "ga:pageviews"])

        assert len(table) == 1
        assert table.get_first_row().get_columns() == {"ga:sessions": 5, "ga:users": 1, "ga:pageviews": 2}
        assert table.get_first_row().label is None

    def test_merge_order_does_not_change_the_result(self):
        dimensions = ["ga:country"]
        metrics = ["ga:sessions", "ga:hits"]
        first = [(("US",), [1, 0]), (("FR",), [2, 0])]
        second = [(("FR",), [0, 30]), (("US",), [0, 10]), (("IT",), [0, 5])]

        forward, backward = ResultTable(), ResultTable()
        merge(forward, first, dimensions, metrics)
        merge(forward, second, dimensions, metrics)
        merge(backward, second, dimensions, metrics)
        merge(backward, first, dimensions, metrics)

        for label in ("US", "FR", "IT"):
            assert forward.get_row_from_label(label) == backward.get_row_from_label(label)

    def test_empty_response_leaves_table_untouched(self):
        table = ResultTable()
        assert merge(table, [], ["ga:country"], ["ga:sessions"]) == 0
        assert len(table) == 0

    def test_default_row_is_cloned_per_row(self):
        default_row = make_default_row(["ga:sessions"])
        table = ResultTable()
        response = ReportResponse.model_validate(make_response([(("US",), [3])]))
        merge_result(table, response, ["ga:country"], ["ga:sessions"], default_row)

        assert default_row == ResultRow({"ga:sessions": 0})


class TestResultRow:
    def test_sum_row_merges_nested_values(self):
        row = ResultRow({"label": "a", 1: 2, 2: {1: {1: 3}}})
        row.sum_row(ResultRow({"label": "b", 1: 3, 2: {1: {1: 1, 2: 5}}}))

        assert row.get_columns() == {"label": "a", 1: 5, 2: {1: {1: 4, 2: 5}}}

    def test_to_records(self):
        table = ResultTable()
        table.add_row(ResultRow({"label": "US", 2: 10}, {"ga:country": "US"}))

        assert table.to_records() == [{"label": "US", "metadata": {"ga:country": "US"}, "columns": {"label": "US", 2: 10}}]
