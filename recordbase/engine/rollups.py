# File: /recordbase/engine/rollups.py | Version: 1.0 | Title: Rollup aggregation over related records
from __future__ import annotations

import statistics
from datetime import datetime
from typing import Any, List, Optional, Sequence

from recordbase.core.errors import CoercionError
from recordbase.engine.predicates import is_empty
from recordbase.engine.registry import DATE_TYPES, PropertyTypeRegistry
from recordbase.schemas.properties import PropertyType as T
from recordbase.schemas.properties import RollupFunction as F

_COUNTERS = frozenset(
    {F.count, F.count_values, F.count_unique, F.count_empty, F.count_not_empty, F.checked, F.unchecked}
)
_PERCENTAGES = frozenset({F.percent_empty, F.percent_not_empty, F.percent_checked})


def empty_rollup_value(function: F | str) -> Any:
    """Value of a rollup whose relation points at no records."""
    function = F(function)
    if function in _COUNTERS or function in _PERCENTAGES or function is F.sum:
        return 0
    return None


def _numbers(values: Sequence[Any], registry: PropertyTypeRegistry) -> List[float]:
    out: List[float] = []
    for v in values:
        if is_empty(v):
            continue
        try:
            out.append(registry.coerce(T.number, v))
        except CoercionError:
            continue
    return out


def _dates(values: Sequence[Any], registry: PropertyTypeRegistry) -> List[datetime]:
    out: List[datetime] = []
    for v in values:
        if is_empty(v):
            continue
        try:
            out.append(registry.coerce(T.date, v))
        except CoercionError:
            continue
    return out


def _percent(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole else 0


def _hashable(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_hashable(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((k, _hashable(v)) for k, v in value.items()))
    return value


def compute_rollup(
    function: F | str,
    values: Sequence[Any],
    target_type: T | str,
    registry: Optional[PropertyTypeRegistry] = None,
) -> Any:
    """
    Aggregate `values` (one entry per related record, missing values included
    as None) of a target property of type `target_type`.

    Type-specific functions return None when the target type does not fit
    (e.g. `sum` over a text property). Dates come back as ISO strings.
    """
    function = F(function)
    target_type = T(target_type)
    registry = registry or PropertyTypeRegistry()

    if not values:
        return empty_rollup_value(function)

    filled = [v for v in values if not is_empty(v)]

    if function is F.count:
        return len(values)
    if function in (F.count_values, F.count_not_empty):
        return len(filled)
    if function is F.count_unique:
        return len({_hashable(v) for v in filled})
    if function is F.count_empty:
        return len(values) - len(filled)
    if function is F.percent_empty:
        return _percent(len(values) - len(filled), len(values))
    if function is F.percent_not_empty:
        return _percent(len(filled), len(values))

    if function in (F.sum, F.average, F.median, F.range):
        if target_type is not T.number:
            return None
        nums = _numbers(values, registry)
        if function is F.sum:
            return sum(nums)
        if not nums:
            return None
        if function is F.average:
            return sum(nums) / len(nums)
        if function is F.median:
            return statistics.median(nums)
        return max(nums) - min(nums)

    if function in (F.min, F.max):
        if target_type is T.number:
            nums = _numbers(values, registry)
            if not nums:
                return None
            return min(nums) if function is F.min else max(nums)
        if target_type in DATE_TYPES:
            dates = _dates(values, registry)
            if not dates:
                return None
            return (min(dates) if function is F.min else max(dates)).isoformat()
        return None

    if function in (F.earliest, F.latest):
        if target_type not in DATE_TYPES:
            return None
        dates = _dates(values, registry)
        if not dates:
            return None
        return (min(dates) if function is F.earliest else max(dates)).isoformat()

    if function in (F.checked, F.unchecked, F.percent_checked):
        if target_type is not T.checkbox:
            return None
        checked = 0
        for v in values:
            try:
                checked += bool(registry.coerce(T.checkbox, v))
            except CoercionError:
                continue
        if function is F.checked:
            return checked
        if function is F.unchecked:
            return len(values) - checked
        return _percent(checked, len(values))

    # show_original: the first related value as stored
    return values[0]
