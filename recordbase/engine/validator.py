# File: /recordbase/engine/validator.py | Version: 1.2 | Title: Record Validator (write-time property checks)
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from recordbase.core.errors import CoercionError
from recordbase.engine.predicates import MISSING, is_empty
from recordbase.engine.registry import COMPUTED_TYPES, PropertyTypeRegistry
from recordbase.schemas.properties import PropertyOut, RelationType
from recordbase.schemas.properties import PropertyType as T
from recordbase.schemas.records import FieldError

log = logging.getLogger(__name__)

# (related_database_id, candidate ids) -> ids that exist
RelationLookup = Callable[[str, List[str]], Set[str]]

_TYPE_MESSAGES = {
    T.number: "must be a valid number",
    T.email: "must be a valid email address",
    T.url: "must be a valid URL",
    T.date: "must be a valid date",
    T.checkbox: "must be true or false",
    T.text: "must be text",
    T.phone: "must be text",
    T.file: "must be a file reference or a list of them",
}


def is_writable(prop: PropertyOut) -> bool:
    return prop.type not in COMPUTED_TYPES


class RecordValidator:
    """
    Checks a candidate property map against the ordered property schema.

    All problems are returned together as FieldError items; an empty list means
    the map is valid. The input map is never modified. The only I/O is the
    optional `relation_lookup` used to confirm related records exist.
    """

    def __init__(
        self,
        registry: PropertyTypeRegistry,
        relation_lookup: Optional[RelationLookup] = None,
    ) -> None:
        self.registry = registry
        self.relation_lookup = relation_lookup

    def validate(
        self, properties: Sequence[PropertyOut], values: Mapping[str, Any]
    ) -> List[FieldError]:
        errors: List[FieldError] = []
        for prop in properties:
            if not is_writable(prop):
                continue
            value = values.get(prop.id, MISSING)
            if is_empty(value):
                if prop.required:
                    errors.append(self._error(prop, value, f"{prop.name} is required"))
                continue
            message = self._check(prop, value)
            if message:
                errors.append(self._error(prop, value, message))
        return errors

    def clean(self, properties: Sequence[PropertyOut], values: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Coerced, JSON-safe copy of `values` restricted to writable schema
        properties. Empty values are left out so the stored map stays sparse.
        Call after validate() returned no errors.
        """
        cleaned: Dict[str, Any] = {}
        for prop in properties:
            if not is_writable(prop):
                continue
            value = values.get(prop.id, MISSING)
            if is_empty(value):
                continue
            typed = self.registry.coerce(prop.type, value)
            cleaned[prop.id] = self.registry.dump(prop.type, typed)
        return cleaned

    # ---------------------------
    # Per-type checks
    # ---------------------------
    def _check(self, prop: PropertyOut, value: Any) -> Optional[str]:
        if prop.type is T.select:
            return self._check_select(prop, value)
        if prop.type is T.multi_select:
            return self._check_multi_select(prop, value)
        if prop.type is T.relation:
            return self._check_relation(prop, value)
        try:
            self.registry.coerce(prop.type, value)
        except CoercionError:
            return f"{prop.name} {_TYPE_MESSAGES.get(prop.type, 'has an invalid value')}"
        return None

    def _check_select(self, prop: PropertyOut, value: Any) -> Optional[str]:
        try:
            option = self.registry.coerce(T.select, value)
        except CoercionError:
            return f"{prop.name} must be a single option id"
        if option not in prop.option_ids():
            return f"Invalid option for {prop.name}: {option}"
        return None

    def _check_multi_select(self, prop: PropertyOut, value: Any) -> Optional[str]:
        if not isinstance(value, (list, tuple)):
            return f"{prop.name} must be a list of option ids"
        try:
            chosen = self.registry.coerce(T.multi_select, value)
        except CoercionError:
            return f"{prop.name} must be a list of option ids"
        allowed = set(prop.option_ids())
        invalid = [o for o in chosen if o not in allowed]
        if invalid:
            return f"Invalid options for {prop.name}: {', '.join(invalid)}"
        return None

    def _check_relation(self, prop: PropertyOut, value: Any) -> Optional[str]:
        try:
            ids = self.registry.coerce(T.relation, value)
        except CoercionError:
            return f"{prop.name} must be a record id or a list of record ids"
        rel = prop.config.relation_config
        if rel is None:
            return f"{prop.name} has no relation configured"
        if rel.relation_type == RelationType.one_to_one and len(ids) > 1:
            return f"{prop.name} accepts a single related record"
        if self.relation_lookup is None:
            log.debug("No relation lookup configured; skipping existence check for %s", prop.id)
            return None
        existing = self.relation_lookup(rel.related_database_id, list(ids))
        missing = [i for i in ids if i not in existing]
        if missing:
            return f"Related records not found for {prop.name}: {', '.join(missing)}"
        return None

    @staticmethod
    def _error(prop: PropertyOut, value: Any, message: str) -> FieldError:
        return FieldError(
            property_id=prop.id,
            property_name=prop.name,
            value=None if value is MISSING else value,
            message=message,
        )


def unknown_keys(properties: Iterable[PropertyOut], values: Mapping[str, Any]) -> List[str]:
    known = {p.id for p in properties}
    return [k for k in values if k not in known]
