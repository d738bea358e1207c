# File: /tests/test_sorting.py | Version: 1.0 | Title: Sort comparator (multi-key, null policy, default order)
import pytest
from conftest import make_record

from recordbase.core.errors import NotFoundError
from recordbase.engine.sorting import build_comparator, build_sort_key
from recordbase.schemas.filters import SortRule

TYPES = {"score": "number", "name": "text", "status": "select", "due": "date", "created_at": "created_time"}


def _ids(rows):
    return [r.id for r in rows]


def _sort(rows, sorts, registry, option_order=None):
    return sorted(rows, key=build_sort_key(sorts, TYPES, registry, option_order))


@pytest.fixture()
def scored():
    # scores [5, null, 1, 3]
    return [
        make_record("a", 1, score=5),
        make_record("b", 2),
        make_record("c", 3, score=1),
        make_record("d", 4, score=3),
    ]


def test_desc_puts_missing_last(registry, scored):
    rows = _sort(scored, [SortRule(property_id="score", direction="desc")], registry)
    assert _ids(rows) == ["a", "d", "c", "b"]


def test_asc_puts_missing_first(registry, scored):
    rows = _sort(scored, [SortRule(property_id="score", direction="asc")], registry)
    assert _ids(rows) == ["b", "c", "d", "a"]


def test_order_does_not_depend_on_input_order(registry, scored):
    sorts = [SortRule(property_id="score", direction="desc")]
    assert _ids(_sort(scored, sorts, registry)) == _ids(_sort(list(reversed(scored)), sorts, registry))


def test_numbers_compare_numerically_not_lexically(registry):
    rows = [make_record("x", score="10"), make_record("y", score=9)]
    assert _ids(_sort(rows, [SortRule(property_id="score")], registry)) == ["y", "x"]


def test_secondary_key_breaks_ties_with_its_own_direction(registry):
    rows = [
        make_record("r1", status="todo", name="beta"),
        make_record("r2", status="done", name="alpha"),
        make_record("r3", status="todo", name="Alpha"),
        make_record("r4", status="done", name="gamma"),
    ]
    sorts = [
        SortRule(property_id="status", direction="asc"),
        SortRule(property_id="name", direction="desc"),
    ]
    assert _ids(_sort(rows, sorts, registry)) == ["r4", "r2", "r1", "r3"]


def test_select_sorts_by_configured_option_order(registry):
    rows = [make_record("r1", status="done"), make_record("r2", status="todo")]
    order = {"status": {"todo": 0, "done": 1}}
    assert _ids(_sort(rows, [SortRule(property_id="status")], registry, order)) == ["r2", "r1"]


def test_record_id_is_final_tie_breaker(registry):
    rows = [make_record("z", score=1), make_record("m", score=1), make_record("k", score=1)]
    assert _ids(_sort(rows, [SortRule(property_id="score", direction="desc")], registry)) == ["k", "m", "z"]


def test_default_is_newest_first(registry, scored):
    assert _ids(_sort(scored, [], registry)) == ["d", "c", "b", "a"]


def test_dates_sort_chronologically(registry):
    rows = [
        make_record("late", due="2025-12-01"),
        make_record("early", due="2024-02-01T08:00:00+02:00"),
        make_record("mid", due="2025-06-15"),
    ]
    assert _ids(_sort(rows, [SortRule(property_id="due")], registry)) == ["early", "mid", "late"]


def test_comparator_is_antisymmetric(registry, scored):
    cmp = build_comparator([SortRule(property_id="score")], TYPES, registry)
    for a in scored:
        for b in scored:
            assert cmp(a, b) == -cmp(b, a)
            assert (cmp(a, b) == 0) == (a.id == b.id)


def test_unknown_sort_property_raises(registry):
    with pytest.raises(NotFoundError):
        build_comparator([SortRule(property_id="ghost")], TYPES, registry)
