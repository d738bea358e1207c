# File: /recordbase/engine/sorting.py | Version: 1.1 | Title: Sort Comparator Builder
"""
Multi-key record ordering.

Null policy: a record without a value for a sort property compares LESS than
any record that has one, so `asc` lists missing values first and `desc` lists
them last. Direction flips each key independently. Record id (ascending) is
the final tie-breaker, which makes the order strict and total.
"""
from __future__ import annotations

import functools
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from recordbase.core.errors import CoercionError, NotFoundError
from recordbase.engine.predicates import field_value, is_empty
from recordbase.engine.registry import DATE_TYPES, LIST_TYPES, PropertyTypeRegistry
from recordbase.schemas.filters import SortDirection, SortRule
from recordbase.schemas.properties import PropertyType as T

Comparator = Callable[[Any, Any], int]
Normalizer = Callable[[Any], Tuple]

DEFAULT_SORTS: List[SortRule] = [SortRule(property_id="created_at", direction=SortDirection.desc)]

_NUMERIC_TYPES = frozenset({T.number, T.formula, T.rollup})

# Rank 0 = missing, 1 = typed value, 2 = value that did not coerce to the declared type
_MISSING_KEY: Tuple = (0,)


def _text_key(value: Any) -> Tuple:
    if isinstance(value, (list, tuple)):
        return (1, " ".join(str(v) for v in value).casefold())
    return (1, str(value).casefold())


def _list_key(value: Any) -> Tuple:
    items = value if isinstance(value, (list, tuple)) else [value]
    return (1, tuple(str(v).casefold() for v in items))


def _normalizer(
    ptype: T,
    registry: PropertyTypeRegistry,
    option_order: Optional[Mapping[str, int]] = None,
) -> Normalizer:
    def coerced(kind: T, value: Any) -> Tuple:
        try:
            return (1, registry.coerce(kind, value))
        except CoercionError:
            return (2, str(value).casefold())

    def normalize(value: Any) -> Tuple:
        if is_empty(value):
            return _MISSING_KEY
        if ptype in _NUMERIC_TYPES:
            return coerced(T.number, value)
        if ptype in DATE_TYPES:
            return coerced(ptype, value)
        if ptype is T.checkbox:
            rank, v = coerced(T.checkbox, value)
            return (rank, int(v)) if rank == 1 else (rank, v)
        if ptype is T.select and option_order:
            # Options sort in their configured order; unknown ids go after them
            key = str(value.get("id")) if isinstance(value, dict) else str(value)
            if key in option_order:
                return (1, option_order[key])
            return (2, key.casefold())
        if ptype in LIST_TYPES:
            return _list_key(value)
        return _text_key(value)

    return normalize


def build_comparator(
    sorts: Sequence[SortRule],
    types: Mapping[str, T | str],
    registry: PropertyTypeRegistry,
    option_order: Optional[Mapping[str, Mapping[str, int]]] = None,
) -> Comparator:
    """
    Lexicographic comparator over `sorts`; an empty list means newest first.
    Raises NotFoundError for a sort property missing from `types`.
    """
    rules = list(sorts) or DEFAULT_SORTS
    keys: List[Tuple[str, bool, Normalizer]] = []
    for rule in rules:
        if rule.property_id not in types:
            raise NotFoundError("Property", rule.property_id)
        keys.append(
            (
                rule.property_id,
                rule.direction == SortDirection.desc,
                _normalizer(
                    T(types[rule.property_id]),
                    registry,
                    (option_order or {}).get(rule.property_id),
                ),
            )
        )

    def compare(a: Any, b: Any) -> int:
        for pid, descending, normalize in keys:
            ka = normalize(field_value(a, pid))
            kb = normalize(field_value(b, pid))
            if ka == kb:
                continue
            result = -1 if ka < kb else 1
            return -result if descending else result
        ida, idb = str(a.id), str(b.id)
        return (ida > idb) - (ida < idb)

    return compare


def build_sort_key(
    sorts: Sequence[SortRule],
    types: Mapping[str, T | str],
    registry: PropertyTypeRegistry,
    option_order: Optional[Mapping[str, Mapping[str, int]]] = None,
):
    """`key=` callable for sorted(); see build_comparator."""
    return functools.cmp_to_key(build_comparator(sorts, types, registry, option_order))
