# File: /recordbase/engine/predicates.py | Version: 1.4 | Title: Filter Predicate Compiler (+ free-text search)
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from recordbase.core.errors import CoercionError, NotFoundError
from recordbase.engine.registry import (
    DATE_TYPES,
    LIST_TYPES,
    SYSTEM_FIELDS,
    PropertyTypeRegistry,
)
from recordbase.schemas.filters import FilterOperator as Op
from recordbase.schemas.filters import FilterRule
from recordbase.schemas.properties import PropertyType as T

Predicate = Callable[[Any], bool]
Matcher = Callable[[Any], bool]

# Marker for "record has no stored value for this property"
MISSING: Any = object()

_LOOSE_TYPES = frozenset({T.formula, T.rollup})


def field_value(record: Any, property_id: str) -> Any:
    """Value of a property (or system field) on an ORM row or RecordOut."""
    if property_id in SYSTEM_FIELDS:
        value = getattr(record, property_id, None)
        return MISSING if value is None else value
    props = getattr(record, "properties", None) or {}
    return props.get(property_id, MISSING)


def is_empty(value: Any) -> bool:
    if value is MISSING or value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _try_coerce(registry: PropertyTypeRegistry, ptype: T, value: Any) -> Any:
    try:
        return registry.coerce(ptype, value)
    except CoercionError:
        return MISSING


def _target(registry: PropertyTypeRegistry, ptype: T, raw: Any, op: Op) -> Any:
    if is_empty(raw):
        raise CoercionError(ptype.value, raw, f"Operator '{op.value}' requires a filter value")
    return registry.coerce(ptype, raw)


def _text_of(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def _loose_equal(a: Any, b: Any) -> bool:
    if a == b:
        return True
    try:
        return float(a) == float(b)
    except (TypeError, ValueError):
        return _text_of(a) == _text_of(b)


# ---------------------------
# Per-operator matcher builders
# ---------------------------
def _build_equals(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    expected = _target(registry, ptype, raw, Op.equals)
    same = _loose_equal if ptype in _LOOSE_TYPES else (lambda a, b: a == b)

    def match(value: Any) -> bool:
        actual = _try_coerce(registry, ptype, value)
        return actual is not MISSING and same(actual, expected)

    return match


def _build_not_equals(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    equals = _build_equals(ptype, raw, registry)
    return lambda value: not equals(value)


def _build_contains(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    if ptype in LIST_TYPES:
        needles = set(_target(registry, ptype, raw, Op.contains))

        def match_any(value: Any) -> bool:
            actual = _try_coerce(registry, ptype, value)
            return actual is not MISSING and bool(needles & set(actual))

        return match_any

    needle = _text_of(_target(registry, T.text, raw, Op.contains)).casefold()
    return lambda value: needle in _text_of(value).casefold()


def _build_does_not_contain(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    contains = _build_contains(ptype, raw, registry)
    return lambda value: not contains(value)


def _build_starts_with(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    prefix = _text_of(_target(registry, T.text, raw, Op.starts_with)).casefold()
    return lambda value: _text_of(value).casefold().startswith(prefix)


def _build_ends_with(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    suffix = _text_of(_target(registry, T.text, raw, Op.ends_with)).casefold()
    return lambda value: _text_of(value).casefold().endswith(suffix)


def _comparison(op: Op, test: Callable[[Any, Any], bool]):
    def build(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
        # Dates compare chronologically, everything else numerically
        kind = ptype if ptype in DATE_TYPES else T.number
        bound = _target(registry, kind, raw, op)

        def match(value: Any) -> bool:
            actual = _try_coerce(registry, kind, value)
            return actual is not MISSING and test(actual, bound)

        return match

    return build


def _build_contains_all(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    needles = set(_target(registry, ptype, raw, Op.contains_all))

    def match(value: Any) -> bool:
        actual = _try_coerce(registry, ptype, value)
        return actual is not MISSING and needles <= set(actual)

    return match


def _build_is_any_of(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    choices = set(_target(registry, T.multi_select, raw, Op.is_any_of))

    def match(value: Any) -> bool:
        actual = _try_coerce(registry, ptype, value)
        return actual is not MISSING and actual in choices

    return match


def _build_is_none_of(ptype: T, raw: Any, registry: PropertyTypeRegistry) -> Matcher:
    any_of = _build_is_any_of(ptype, raw, registry)
    return lambda value: not any_of(value)


_BUILDERS: Dict[Op, Callable[[T, Any, PropertyTypeRegistry], Matcher]] = {
    Op.equals: _build_equals,
    Op.not_equals: _build_not_equals,
    Op.contains: _build_contains,
    Op.does_not_contain: _build_does_not_contain,
    Op.starts_with: _build_starts_with,
    Op.ends_with: _build_ends_with,
    Op.greater_than: _comparison(Op.greater_than, lambda a, b: a > b),
    Op.less_than: _comparison(Op.less_than, lambda a, b: a < b),
    Op.greater_than_or_equal: _comparison(Op.greater_than_or_equal, lambda a, b: a >= b),
    Op.less_than_or_equal: _comparison(Op.less_than_or_equal, lambda a, b: a <= b),
    Op.before: _comparison(Op.before, lambda a, b: a < b),
    Op.after: _comparison(Op.after, lambda a, b: a > b),
    Op.on_or_before: _comparison(Op.on_or_before, lambda a, b: a <= b),
    Op.on_or_after: _comparison(Op.on_or_after, lambda a, b: a >= b),
    Op.contains_all: _build_contains_all,
    Op.is_any_of: _build_is_any_of,
    Op.is_none_of: _build_is_none_of,
}


# ---------------------------
# Public API
# ---------------------------
def compile_filter(rule: FilterRule, ptype: T | str, registry: PropertyTypeRegistry) -> Predicate:
    """
    Compile one filter into `record -> bool`.

    Raises UnsupportedOperatorError for an operator the type does not accept
    and CoercionError for a filter value that cannot be coerced. A record
    without a value for the property only matches is_empty.
    """
    ptype = T(ptype)
    op = registry.check_operator(ptype, rule.operator, rule.property_id)
    pid = rule.property_id

    if op is Op.is_empty:
        return lambda record: is_empty(field_value(record, pid))
    if op is Op.is_not_empty:
        return lambda record: not is_empty(field_value(record, pid))

    matcher = _BUILDERS[op](ptype, rule.value, registry)

    def predicate(record: Any) -> bool:
        value = field_value(record, pid)
        if is_empty(value):
            return False
        return matcher(value)

    return predicate


def compile_filters(
    rules: Sequence[FilterRule],
    types: Mapping[str, T | str],
    registry: PropertyTypeRegistry,
) -> Predicate:
    """AND-combine every filter. No filters -> matches everything."""
    compiled: List[Predicate] = []
    for rule in rules:
        if rule.property_id not in types:
            raise NotFoundError("Property", rule.property_id)
        compiled.append(compile_filter(rule, types[rule.property_id], registry))

    if not compiled:
        return lambda record: True
    return lambda record: all(p(record) for p in compiled)


def compile_search(
    term: Optional[str],
    property_ids: Iterable[str],
    option_names: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Optional[Predicate]:
    """
    Case-insensitive substring search OR-ed across `property_ids`.
    Select-like values also match on their option name. Returns None for an
    empty search term.
    """
    needle = (term or "").strip().casefold()
    if not needle:
        return None
    pids = list(property_ids)
    names = option_names or {}

    def _haystack(pid: str, value: Any) -> str:
        labels = names.get(pid)
        if labels:
            ids = value if isinstance(value, (list, tuple)) else [value]
            return " ".join([_text_of(value)] + [labels.get(str(i), "") for i in ids])
        return _text_of(value)

    def predicate(record: Any) -> bool:
        for pid in pids:
            value = field_value(record, pid)
            if not is_empty(value) and needle in _haystack(pid, value).casefold():
                return True
        return False

    return predicate


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    active = [p for p in predicates if p is not None]
    if not active:
        return lambda record: True
    if len(active) == 1:
        return active[0]
    return lambda record: all(p(record) for p in active)
