# File: /recordbase/engine/registry.py | Version: 1.3 | Title: Property Type Registry (operators + value coercion)
"""
Single source of truth for what each property type accepts.

For every PropertyType the registry knows:
  - the filter operators that may be applied to it
  - how a raw (JSON) value is coerced into a typed Python value

Typed values are: str, int/float, timezone-aware datetime, bool, list[str].
Formula and rollup values are kept as-is since their type depends on the
computation that produced them.
"""
from __future__ import annotations

import math
from datetime import UTC, date, datetime, time
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from recordbase.core.errors import CoercionError, UnsupportedOperatorError
from recordbase.schemas.filters import FilterOperator as Op
from recordbase.schemas.properties import PropertyType as T

Coercer = Callable[[Any], Any]

TEXT_TYPES = frozenset({T.text, T.email, T.phone, T.url})
DATE_TYPES = frozenset({T.date, T.created_time, T.last_edited_time})
LIST_TYPES = frozenset({T.multi_select, T.relation})
COMPUTED_TYPES = frozenset(
    {T.formula, T.rollup, T.created_time, T.last_edited_time, T.created_by, T.last_edited_by}
)

# Record attributes that filters/sorts/grouping may address like properties
SYSTEM_FIELDS: Dict[str, T] = {
    "created_at": T.created_time,
    "updated_at": T.last_edited_time,
    "created_by": T.created_by,
    "last_edited_by": T.last_edited_by,
}

_EMPTY_OPS = frozenset({Op.is_empty, Op.is_not_empty})
_EQ_OPS = frozenset({Op.equals, Op.not_equals})
_TEXT_OPS = _EQ_OPS | _EMPTY_OPS | {Op.contains, Op.does_not_contain, Op.starts_with, Op.ends_with}
_NUMBER_OPS = _EQ_OPS | _EMPTY_OPS | {
    Op.greater_than,
    Op.less_than,
    Op.greater_than_or_equal,
    Op.less_than_or_equal,
}
_DATE_OPS = _EQ_OPS | _EMPTY_OPS | {Op.before, Op.after, Op.on_or_before, Op.on_or_after}
_SELECT_OPS = _EQ_OPS | _EMPTY_OPS | {Op.is_any_of, Op.is_none_of}
_LIST_OPS = _EMPTY_OPS | {Op.contains, Op.does_not_contain, Op.contains_all}
_COMPUTED_OPS = _TEXT_OPS | _NUMBER_OPS

_URL = TypeAdapter(AnyUrl)
_DATETIME = TypeAdapter(datetime)

_TRUE = {"1", "true", "yes", "y", "on", "checked"}
_FALSE = {"0", "false", "no", "n", "off", "unchecked"}


# ---------------------------
# Coercers
# ---------------------------
def _to_text(raw: Any) -> str:
    if isinstance(raw, (dict, list, tuple)):
        raise CoercionError("text", raw)
    return raw if isinstance(raw, str) else str(raw)


def _to_number(raw: Any) -> int | float:
    if isinstance(raw, bool):
        raise CoercionError("number", raw)
    if isinstance(raw, (int, float)):
        num = raw
    elif isinstance(raw, str):
        s = raw.strip()
        try:
            num = int(s)
        except ValueError:
            try:
                num = float(s)
            except ValueError:
                raise CoercionError("number", raw)
    else:
        raise CoercionError("number", raw)
    if isinstance(num, float) and not math.isfinite(num):
        raise CoercionError("number", raw, f"Value {raw!r} is not a finite number")
    return num


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime.combine(raw, time.min)
    elif isinstance(raw, str) and raw.strip():
        try:
            value = _DATETIME.validate_python(raw.strip())
        except PydanticValidationError:
            raise CoercionError("date", raw)
    else:
        raise CoercionError("date", raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        s = raw.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    raise CoercionError("checkbox", raw)


def _to_id(raw: Any) -> str:
    # Accepts bare ids and option/relation objects: {"id": ...} / {"record_id": ...}
    if isinstance(raw, dict):
        for key in ("id", "record_id", "recordId"):
            if raw.get(key):
                return str(raw[key])
        raise CoercionError("id", raw)
    if isinstance(raw, (list, tuple, bool)) or raw is None:
        raise CoercionError("id", raw)
    return str(raw)


def _to_id_list(raw: Any) -> list[str]:
    if isinstance(raw, (list, tuple)):
        return [_to_id(item) for item in raw]
    return [_to_id(raw)]


def _to_email(raw: Any) -> str:
    if not isinstance(raw, str):
        raise CoercionError("email", raw)
    try:
        return validate_email(raw.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        raise CoercionError("email", raw, f"Value {raw!r} is not a valid email address")


def _to_url(raw: Any) -> str:
    if not isinstance(raw, str):
        raise CoercionError("url", raw)
    try:
        _URL.validate_python(raw.strip())
    except PydanticValidationError:
        raise CoercionError("url", raw, f"Value {raw!r} is not a valid URL")
    return raw.strip()


def _to_files(raw: Any) -> list[Any]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, (dict, str)):
        return [raw]
    raise CoercionError("file", raw)


def _as_is(raw: Any) -> Any:
    return raw


_DEFAULTS: Dict[T, tuple[FrozenSet[Op], Coercer]] = {
    T.text: (_TEXT_OPS, _to_text),
    T.email: (_TEXT_OPS, _to_email),
    T.phone: (_TEXT_OPS, _to_text),
    T.url: (_TEXT_OPS, _to_url),
    T.number: (_NUMBER_OPS, _to_number),
    T.date: (_DATE_OPS, _to_datetime),
    T.created_time: (_DATE_OPS, _to_datetime),
    T.last_edited_time: (_DATE_OPS, _to_datetime),
    T.checkbox: (_EQ_OPS, _to_bool),
    T.select: (_SELECT_OPS, _to_id),
    T.multi_select: (_LIST_OPS, _to_id_list),
    T.relation: (_LIST_OPS, _to_id_list),
    T.file: (_EMPTY_OPS, _to_files),
    T.formula: (_COMPUTED_OPS, _as_is),
    T.rollup: (_COMPUTED_OPS, _as_is),
    T.created_by: (_EQ_OPS | _EMPTY_OPS, _to_text),
    T.last_edited_by: (_EQ_OPS | _EMPTY_OPS, _to_text),
}


class PropertyTypeRegistry:
    """
    Built once at startup and handed to the predicate compiler, the sort
    builder, the validator and the query service.
    """

    def __init__(self) -> None:
        self._operators: Dict[T, FrozenSet[Op]] = {}
        self._coercers: Dict[T, Coercer] = {}
        for ptype, (operators, coercer) in _DEFAULTS.items():
            self.register(ptype, operators, coercer)

    def register(self, ptype: T | str, operators: Iterable[Op | str], coercer: Coercer) -> None:
        key = self._key(ptype)
        self._operators[key] = frozenset(Op(o) for o in operators)
        self._coercers[key] = coercer

    def types(self) -> FrozenSet[T]:
        return frozenset(self._operators)

    def operators_for(self, ptype: T | str) -> FrozenSet[Op]:
        return self._operators[self._key(ptype)]

    def supports(self, ptype: T | str, operator: Op | str) -> bool:
        try:
            return Op(operator) in self.operators_for(ptype)
        except ValueError:
            return False

    def check_operator(
        self, ptype: T | str, operator: Op | str, property_id: Optional[str] = None
    ) -> Op:
        """Return the operator as an enum, or raise UnsupportedOperatorError."""
        key = self._key(ptype)
        if not self.supports(key, operator):
            raise UnsupportedOperatorError(
                getattr(operator, "value", str(operator)), key.value, property_id
            )
        return Op(operator)

    def coerce(self, ptype: T | str, raw: Any) -> Any:
        return self._coercers[self._key(ptype)](raw)

    def dump(self, ptype: T | str, value: Any) -> Any:
        """JSON-safe storage form of a coerced value."""
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    @staticmethod
    def _key(ptype: T | str) -> T:
        try:
            return T(ptype)
        except ValueError:
            raise ValueError(f"Unknown property type: {ptype!r}")
