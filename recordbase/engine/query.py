# File: /recordbase/engine/query.py | Version: 1.4 | Title: Query Orchestrator (view resolution, filter/sort/search, grouping, pagination)
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from recordbase.core.config import settings
from recordbase.core.errors import NotFoundError
from recordbase.engine.predicates import all_of, compile_filters, compile_search, field_value, is_empty
from recordbase.engine.registry import SYSTEM_FIELDS, TEXT_TYPES, PropertyTypeRegistry
from recordbase.engine.sorting import build_sort_key
from recordbase.engine.store import RecordStore, StoreQuery
from recordbase.schemas.database import DatabaseSchema
from recordbase.schemas.filters import FilterRule, RecordQuery, SortRule
from recordbase.schemas.properties import PropertyType as T
from recordbase.schemas.records import Aggregations, AppliedView, Pagination, RecordOut, RecordPage
from recordbase.schemas.view import ViewOut

log = logging.getLogger(__name__)

UNGROUPED = "Ungrouped"

Authorizer = Callable[[DatabaseSchema], Any]

_SELECT_LIKE = frozenset({T.select, T.multi_select})


def property_types(schema: DatabaseSchema) -> Dict[str, T]:
    """Addressable ids of a schema: its properties plus the system fields."""
    types: Dict[str, T] = dict(SYSTEM_FIELDS)
    types.update({p.id: p.type for p in schema.properties})
    return types


def group_key(value: Any) -> str:
    if is_empty(value):
        return UNGROUPED
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def group_records(rows: Sequence[Any], property_id: str) -> Dict[str, List[Any]]:
    """Partition rows by the stringified value of one property, keeping row order."""
    buckets: Dict[str, List[Any]] = {}
    for row in rows:
        buckets.setdefault(group_key(field_value(row, property_id)), []).append(row)
    return buckets


class RecordQueryService:
    """
    Single entry point for listing records of one database.

    Explicit request values win over the selected view; a view only supplies
    what the request leaves as None. Unknown property ids in the request raise
    NotFoundError, while stale ids stored in a view are dropped with a warning.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: PropertyTypeRegistry,
        *,
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ):
        self.store = store
        self.registry = registry
        self.default_limit = settings.DEFAULT_PAGE_SIZE if default_limit is None else default_limit
        self.max_limit = settings.MAX_PAGE_SIZE if max_limit is None else max_limit

    def list_records(
        self,
        schema: DatabaseSchema,
        query: Optional[RecordQuery] = None,
        authorize: Optional[Authorizer] = None,
    ) -> RecordPage:
        if authorize is not None:
            authorize(schema)
        query = query or RecordQuery()

        view = self._resolve_view(schema, query.view_id)
        types = property_types(schema)

        filters: List[FilterRule] = self._effective(
            query.filters, view.filters if view else [], types, "filter", view
        )
        sorts: List[SortRule] = self._effective(
            query.sorts, view.sorts if view else [], types, "sort", view
        )
        group_by = self._group_by(query, view, types)

        predicate = all_of(
            compile_filters(filters, types, self.registry),
            self._search(schema, query),
        )
        sort_key = build_sort_key(sorts, types, self.registry, self._option_order(schema))

        limit = self._limit(query.limit)
        total = self.store.count(StoreQuery(schema.id, predicate))
        if limit:
            rows = self.store.find(
                StoreQuery(schema.id, predicate, sort_key, skip=(query.page - 1) * limit, limit=limit)
            )
        else:
            rows = []

        aggregations = None
        if group_by:
            everything = self.store.find(StoreQuery(schema.id, predicate, sort_key))
            grouped = group_records(everything, group_by)
            aggregations = Aggregations(
                grouped_data={k: [RecordOut.model_validate(r) for r in v] for k, v in grouped.items()}
            )

        log.debug(
            "Listed records db=%s filters=%d sorts=%d total=%d page=%d limit=%d",
            schema.id, len(filters), len(sorts), total, query.page, limit,
        )
        total_pages = math.ceil(total / limit) if limit else 0
        return RecordPage(
            records=[RecordOut.model_validate(r) for r in rows],
            pagination=Pagination(
                page=query.page,
                limit=limit,
                total=total,
                total_pages=total_pages,
                has_next=query.page < total_pages,
                has_prev=query.page > 1,
            ),
            aggregations=aggregations,
            view=AppliedView(id=view.id, name=view.name) if view else None,
            visible_properties=self._visible(schema, view),
        )

    # ---------------------------
    # Resolution helpers
    # ---------------------------
    def _resolve_view(self, schema: DatabaseSchema, view_id: Optional[str]) -> Optional[ViewOut]:
        if not view_id:
            return None
        view = schema.get_view(view_id)
        if view is None:
            raise NotFoundError("View", view_id)
        return view

    def _effective(
        self,
        explicit: Optional[List[Any]],
        inherited: List[Any],
        types: Mapping[str, T],
        kind: str,
        view: Optional[ViewOut],
    ) -> List[Any]:
        if explicit is not None:
            for rule in explicit:
                if rule.property_id not in types:
                    raise NotFoundError("Property", rule.property_id)
            return list(explicit)

        kept = []
        for rule in inherited:
            if rule.property_id not in types:
                log.warning(
                    "Dropping %s on unknown property %s from view %s",
                    kind, rule.property_id, view.id if view else None,
                )
            elif kind == "filter" and not self.registry.supports(types[rule.property_id], rule.operator):
                # Property type changed after the view was saved
                log.warning(
                    "Dropping filter %s on %s property %s from view %s",
                    rule.operator.value, types[rule.property_id].value, rule.property_id, view.id if view else None,
                )
            else:
                kept.append(rule)
        return kept

    def _group_by(
        self, query: RecordQuery, view: Optional[ViewOut], types: Mapping[str, T]
    ) -> Optional[str]:
        if query.group_by is not None:
            # An explicit empty string switches off the view's grouping
            if query.group_by and query.group_by not in types:
                raise NotFoundError("Property", query.group_by)
            return query.group_by or None
        if view and view.group_by:
            if view.group_by in types:
                return view.group_by
            log.warning("Dropping groupBy on unknown property %s from view %s", view.group_by, view.id)
        return None

    def _search(self, schema: DatabaseSchema, query: RecordQuery):
        if not (query.search or "").strip():
            return None
        props = schema.property_map()
        types = property_types(schema)
        if query.search_properties is not None:
            for pid in query.search_properties:
                if pid not in types:
                    raise NotFoundError("Property", pid)
            pids = list(query.search_properties)
        else:
            pids = [p.id for p in schema.properties if p.type in TEXT_TYPES]
        option_names = {
            pid: props[pid].option_names() for pid in pids if types[pid] in _SELECT_LIKE
        }
        return compile_search(query.search, pids, option_names)

    @staticmethod
    def _option_order(schema: DatabaseSchema) -> Dict[str, Dict[str, int]]:
        return {
            p.id: {oid: i for i, oid in enumerate(p.option_ids())}
            for p in schema.properties
            if p.type is T.select
        }

    def _limit(self, requested: Optional[int]) -> int:
        if requested is None:
            return self.default_limit
        return min(requested, self.max_limit)

    @staticmethod
    def _visible(schema: DatabaseSchema, view: Optional[ViewOut]) -> List[str]:
        known = schema.property_map()
        if view is not None and view.visible_properties is not None:
            return [pid for pid in view.visible_properties if pid in known]
        return [p.id for p in schema.properties if p.is_visible]
