# File: /tests/test_validator.py | Version: 1.0 | Title: Record validator (required, per-type checks, relations)
import copy

import pytest
from conftest import make_prop

from recordbase.engine.validator import RecordValidator

RELATED_DB = "db-people"


@pytest.fixture()
def props():
    return [
        make_prop("title", "text", "Title", required=True),
        make_prop("email", "email", "Email", required=True),
        make_prop("score", "number", "Score"),
        make_prop("site", "url", "Website"),
        make_prop("due", "date", "Due"),
        make_prop("status", "select", "Status", options=["todo", "done"]),
        make_prop("tags", "multi_select", "Tags", options=["red", "blue"]),
        make_prop(
            "owner",
            "relation",
            "Owner",
            relation_config={"related_database_id": RELATED_DB, "relation_type": "many_to_many"},
        ),
        make_prop("total", "rollup", "Total", rollup_config={
            "relation_property_id": "owner", "target_property_id": "x", "function": "count",
        }),
    ]


def _lookup(existing):
    calls = []

    def lookup(database_id, ids):
        calls.append((database_id, list(ids)))
        return {i for i in ids if i in existing}

    lookup.calls = calls
    return lookup


def _by_id(errors):
    return {e.property_id: e for e in errors}


def test_valid_map_yields_no_errors_and_is_idempotent(registry, props):
    v = RecordValidator(registry, _lookup({"p1"}))
    values = {
        "title": "Launch",
        "email": "lead@example.com",
        "score": "12.5",
        "site": "https://example.com",
        "due": "2025-04-01",
        "status": "todo",
        "tags": ["red"],
        "owner": ["p1"],
    }
    assert v.validate(props, values) == []
    assert v.validate(props, values) == []


def test_required_missing_and_empty_string(registry, props):
    errors = _by_id(RecordValidator(registry).validate(props, {"title": ""}))
    assert set(errors) == {"title", "email"}
    assert errors["email"].property_name == "Email"
    assert "required" in errors["email"].message


def test_all_errors_returned_together(registry, props):
    values = {
        "title": "ok",
        "email": "nope",
        "score": "twelve",
        "site": "not a url",
        "due": "whenever",
        "status": "archived",
    }
    errors = _by_id(RecordValidator(registry).validate(props, values))
    assert set(errors) == {"email", "score", "site", "due", "status"}
    assert errors["score"].value == "twelve"


def test_multi_select_collects_every_invalid_option(registry, props):
    values = {"title": "t", "email": "a@example.com", "tags": ["red", "green", "purple"]}
    errors = RecordValidator(registry).validate(props, values)
    assert len(errors) == 1
    assert errors[0].property_id == "tags"
    assert "green" in errors[0].message and "purple" in errors[0].message


def test_multi_select_must_be_a_list(registry, props):
    values = {"title": "t", "email": "a@example.com", "tags": "red"}
    assert _by_id(RecordValidator(registry).validate(props, values))["tags"]


def test_relation_ids_must_exist_in_target_database(registry, props):
    lookup = _lookup({"p1"})
    values = {"title": "t", "email": "a@example.com", "owner": ["p1", "p404"]}
    errors = RecordValidator(registry, lookup).validate(props, values)
    assert [e.property_id for e in errors] == ["owner"]
    assert "p404" in errors[0].message
    assert lookup.calls == [(RELATED_DB, ["p1", "p404"])]


def test_single_relation_id_is_accepted(registry, props):
    values = {"title": "t", "email": "a@example.com", "owner": "p1"}
    assert RecordValidator(registry, _lookup({"p1"})).validate(props, values) == []


def test_optional_empty_values_skip_type_checks(registry, props):
    values = {"title": "t", "email": "a@example.com", "score": "", "tags": [], "owner": None}
    lookup = _lookup(set())
    assert RecordValidator(registry, lookup).validate(props, values) == []
    assert lookup.calls == []


def test_computed_properties_are_ignored(registry, props):
    values = {"title": "t", "email": "a@example.com", "total": "whatever"}
    assert RecordValidator(registry).validate(props, values) == []


def test_validation_does_not_mutate_input(registry, props):
    values = {"title": "t", "email": "a@example.com", "tags": ["red", "green"], "owner": [{"id": "p1"}]}
    snapshot = copy.deepcopy(values)
    RecordValidator(registry, _lookup({"p1"})).validate(props, values)
    assert values == snapshot


def test_clean_coerces_and_drops_unknown_empty_and_computed(registry, props):
    values = {
        "title": "t",
        "email": "a@example.com",
        "score": "3",
        "due": "2025-04-01",
        "owner": {"id": "p1"},
        "tags": [],
        "total": 99,
        "stray": "x",
    }
    cleaned = RecordValidator(registry).clean(props, values)
    assert cleaned == {
        "title": "t",
        "email": "a@example.com",
        "score": 3,
        "due": "2025-04-01T00:00:00+00:00",
        "owner": ["p1"],
    }
    assert "stray" in values
