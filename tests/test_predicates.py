# File: /tests/test_predicates.py | Version: 1.0 | Title: Filter predicate compiler + search
import pytest
from conftest import make_record

from recordbase.core.errors import CoercionError, NotFoundError, UnsupportedOperatorError
from recordbase.engine.predicates import compile_filter, compile_filters, compile_search
from recordbase.schemas.filters import FilterRule

TYPES = {
    "name": "text",
    "status": "select",
    "score": "number",
    "due": "date",
    "tags": "multi_select",
    "done": "checkbox",
    "email": "email",
    "created_at": "created_time",
}


def _rule(pid, op, value=None):
    return FilterRule(property_id=pid, operator=op, value=value)


def _matches(registry, pid, op, value, record):
    return compile_filter(_rule(pid, op, value), TYPES[pid], registry)(record)


@pytest.fixture()
def rec():
    return make_record(
        "r1",
        name="Quarterly Report",
        status="done",
        score=7,
        due="2025-03-10",
        tags=["red", "blue"],
        done=True,
        email="ops@example.com",
    )


def test_text_operators_are_case_insensitive(registry, rec):
    assert _matches(registry, "name", "contains", "report", rec)
    assert _matches(registry, "name", "starts_with", "QUARTER", rec)
    assert _matches(registry, "name", "ends_with", "PORT", rec)
    assert _matches(registry, "name", "does_not_contain", "annual", rec)
    assert not _matches(registry, "name", "contains", "annual", rec)


def test_equals_after_coercion(registry, rec):
    assert _matches(registry, "score", "equals", "7", rec)
    assert _matches(registry, "status", "equals", "done", rec)
    assert _matches(registry, "status", "not_equals", "todo", rec)
    assert _matches(registry, "done", "equals", "true", rec)


def test_numeric_comparisons(registry, rec):
    assert _matches(registry, "score", "greater_than", 5, rec)
    assert _matches(registry, "score", "less_than_or_equal", 7, rec)
    assert not _matches(registry, "score", "less_than", 7, rec)


def test_non_numeric_record_value_fails_comparison_without_raising(registry):
    odd = make_record("r9", score="lots")
    assert _matches(registry, "score", "greater_than", 1, odd) is False


def test_unparsable_number_filter_value_is_compile_error(registry):
    with pytest.raises(CoercionError):
        compile_filter(_rule("score", "greater_than", "many"), "number", registry)


def test_date_comparisons(registry, rec):
    assert _matches(registry, "due", "after", "2025-03-01", rec)
    assert _matches(registry, "due", "before", "2025-03-10T00:00:01Z", rec)
    assert _matches(registry, "due", "on_or_after", "2025-03-10", rec)
    assert not _matches(registry, "due", "before", "2025-03-10", rec)


def test_unparsable_date_filter_value_is_compile_error(registry):
    with pytest.raises(CoercionError):
        compile_filter(_rule("due", "before", "someday"), "date", registry)


def test_system_created_time_is_filterable(registry, rec):
    # rec was created at BASE_TIME (2025-01-01T12:00Z)
    assert _matches(registry, "created_at", "on_or_after", "2025-01-01", rec)
    assert not _matches(registry, "created_at", "after", "2025-06-01", rec)


def test_contains_all_requires_superset(registry, rec):
    assert _matches(registry, "tags", "contains_all", ["red", "blue"], rec)
    assert not _matches(registry, "tags", "contains_all", ["red", "green"], rec)
    assert _matches(registry, "tags", "contains", "red", rec)
    assert _matches(registry, "tags", "does_not_contain", "green", rec)


def test_select_is_any_of(registry, rec):
    assert _matches(registry, "status", "is_any_of", ["todo", "done"], rec)
    assert _matches(registry, "status", "is_none_of", ["todo"], rec)


@pytest.mark.parametrize("value", [None, "", []])
def test_empty_values_match_is_empty(registry, value):
    r = make_record("r2", name=value, tags=value)
    assert _matches(registry, "name", "is_empty", None, r)
    assert _matches(registry, "tags", "is_empty", None, r)
    assert not _matches(registry, "name", "is_not_empty", None, r)


def test_missing_value_excludes_record_for_other_operators(registry):
    bare = make_record("r3")
    assert _matches(registry, "name", "is_empty", None, bare)
    assert not _matches(registry, "name", "contains", "x", bare)
    assert not _matches(registry, "name", "not_equals", "x", bare)
    assert not _matches(registry, "score", "less_than", 100, bare)


def test_unsupported_operator_raises(registry):
    with pytest.raises(UnsupportedOperatorError):
        compile_filter(_rule("done", "contains", "t"), "checkbox", registry)


def test_conjunction_is_and_of_each_filter(registry, rec):
    a = _rule("score", "greater_than", 5)
    b = _rule("status", "equals", "todo")
    both = compile_filters([a, b], TYPES, registry)
    assert compile_filters([a], TYPES, registry)(rec) is True
    assert compile_filters([b], TYPES, registry)(rec) is False
    assert both(rec) is False
    # Pure: same answer every time
    assert [both(rec) for _ in range(3)] == [False, False, False]


def test_no_filters_matches_everything(registry, rec):
    assert compile_filters([], TYPES, registry)(rec) is True


def test_filter_on_unknown_property_raises_not_found(registry):
    with pytest.raises(NotFoundError):
        compile_filters([_rule("ghost", "equals", 1)], TYPES, registry)


def test_search_is_or_across_properties(rec):
    pred = compile_search("OPS@", ["name", "email"])
    assert pred(rec) is True
    assert compile_search("nothing-like-this", ["name", "email"])(rec) is False


def test_search_matches_option_names():
    r = make_record("r4", status="opt-1")
    pred = compile_search("in progress", ["status"], {"status": {"opt-1": "In Progress"}})
    assert pred(r) is True


def test_blank_search_is_ignored():
    assert compile_search("   ", ["name"]) is None
