# File: /tests/test_rollups.py | Version: 1.0 | Title: Rollup aggregation functions
import pytest

from recordbase.engine.rollups import compute_rollup, empty_rollup_value

NUMS = [4, None, "6", 2, ""]


@pytest.mark.parametrize(
    "function,expected",
    [
        ("count", 5),
        ("count_values", 3),
        ("count_not_empty", 3),
        ("count_empty", 2),
        ("percent_empty", 40.0),
        ("percent_not_empty", 60.0),
        ("sum", 12),
        ("average", 4.0),
        ("median", 4),
        ("min", 2),
        ("max", 6),
        ("range", 4),
        ("show_original", 4),
    ],
)
def test_number_rollups(function, expected):
    assert compute_rollup(function, NUMS, "number") == expected


def test_count_unique_ignores_empties():
    assert compute_rollup("count_unique", ["a", "b", "a", None, ["x"], ["x"]], "text") == 3


def test_numeric_functions_need_a_number_target():
    assert compute_rollup("sum", ["1", "2"], "text") is None
    assert compute_rollup("median", ["a"], "text") is None


def test_date_rollups_return_iso_strings():
    dates = ["2025-05-01", "2024-12-24T10:00:00Z", None]
    assert compute_rollup("earliest", dates, "date") == "2024-12-24T10:00:00+00:00"
    assert compute_rollup("latest", dates, "date") == "2025-05-01T00:00:00+00:00"
    assert compute_rollup("max", dates, "date") == "2025-05-01T00:00:00+00:00"
    assert compute_rollup("earliest", dates, "number") is None


def test_checkbox_rollups():
    flags = [True, False, "true", None]
    assert compute_rollup("checked", flags, "checkbox") == 2
    assert compute_rollup("unchecked", flags, "checkbox") == 2
    assert compute_rollup("percent_checked", flags, "checkbox") == 50.0


@pytest.mark.parametrize("function", ["count", "sum", "percent_checked"])
def test_empty_relation_gives_zero_for_counters(function):
    assert compute_rollup(function, [], "number") == 0
    assert empty_rollup_value(function) == 0


def test_empty_relation_gives_none_for_value_functions():
    assert compute_rollup("average", [], "number") is None
    assert compute_rollup("latest", [], "date") is None
