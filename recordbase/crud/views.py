# File: /recordbase/crud/views.py | Version: 2.0 | Title: CRUD helpers for saved database views
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from recordbase.core.errors import NotFoundError, OperationNotAllowedError
from recordbase.crud.databases import get_database_or_404, load_schema
from recordbase.engine.predicates import compile_filter
from recordbase.engine.query import property_types
from recordbase.engine.registry import PropertyTypeRegistry
from recordbase.models.view import View
from recordbase.schemas.filters import FilterRule, SortRule
from recordbase.schemas.view import ViewCreate, ViewUpdate

log = logging.getLogger(__name__)


def _check_references(
    db: Session,
    database_id: str,
    *,
    filters: Optional[Sequence[FilterRule]] = None,
    sorts: Optional[Sequence[SortRule]] = None,
    visible_properties: Optional[Sequence[str]] = None,
    group_by: Optional[str] = None,
    registry: Optional[PropertyTypeRegistry] = None,
) -> None:
    """Saved views may only reference existing properties with valid operators."""
    schema = load_schema(db, database_id)
    types = property_types(schema)
    registry = registry or PropertyTypeRegistry()

    for rule in filters or []:
        if rule.property_id not in types:
            raise NotFoundError("Property", rule.property_id)
        compile_filter(rule, types[rule.property_id], registry)
    for rule in sorts or []:
        if rule.property_id not in types:
            raise NotFoundError("Property", rule.property_id)
    known = schema.property_map()
    for pid in visible_properties or []:
        if pid not in known:
            raise NotFoundError("Property", pid)
    if group_by and group_by not in types:
        raise NotFoundError("Property", group_by)


def _clear_default(db: Session, database_id: str, keep_id: Optional[str] = None) -> None:
    q = db.query(View).filter(View.database_id == database_id, View.is_default.is_(True))
    for v in q.all():
        if v.id != keep_id:
            v.is_default = False


def create_view(
    db: Session,
    database_id: str,
    data: ViewCreate,
    *,
    user_id: Optional[str] = None,
    registry: Optional[PropertyTypeRegistry] = None,
) -> View:
    database = get_database_or_404(db, database_id)
    _check_references(
        db,
        database.id,
        filters=data.filters,
        sorts=data.sorts,
        visible_properties=data.visible_properties,
        group_by=data.group_by,
        registry=registry,
    )

    first = db.query(View).filter(View.database_id == database.id).first() is None
    is_default = first or bool(data.is_default)
    if is_default:
        _clear_default(db, database.id)

    v = View(
        database_id=database.id,
        name=data.name,
        type=data.type,
        filters_json=[f.model_dump(mode="json") for f in data.filters],
        sorts_json=[s.model_dump(mode="json") for s in data.sorts],
        visible_properties_json=data.visible_properties,
        group_by=data.group_by,
        is_default=is_default,
        created_by=user_id,
    )
    db.add(v)
    db.commit()
    db.refresh(v)
    return v


def get_view(db: Session, view_id: str) -> Optional[View]:
    return db.query(View).filter(View.id == view_id).first()


def get_view_or_404(db: Session, view_id: str, database_id: Optional[str] = None) -> View:
    v = get_view(db, view_id)
    if v is None or (database_id is not None and v.database_id != str(database_id)):
        raise NotFoundError("View", view_id)
    return v


def list_views(db: Session, database_id: str) -> List[View]:
    return (
        db.query(View)
        .filter(View.database_id == str(database_id))
        .order_by(View.is_default.desc(), View.created_at.asc())
        .all()
    )


def update_view(
    db: Session,
    view_id: str,
    data: ViewUpdate,
    *,
    registry: Optional[PropertyTypeRegistry] = None,
) -> View:
    v = get_view_or_404(db, view_id)
    _check_references(
        db,
        v.database_id,
        filters=data.filters,
        sorts=data.sorts,
        visible_properties=data.visible_properties,
        group_by=data.group_by,
        registry=registry,
    )

    if data.name is not None:
        v.name = data.name
    if data.type is not None:
        v.type = data.type
    if data.filters is not None:
        v.filters_json = [f.model_dump(mode="json") for f in data.filters]
    if data.sorts is not None:
        v.sorts_json = [s.model_dump(mode="json") for s in data.sorts]
    if "visible_properties" in data.model_fields_set:
        v.visible_properties_json = data.visible_properties
    if "group_by" in data.model_fields_set:
        v.group_by = data.group_by or None
    if data.is_default:
        _clear_default(db, v.database_id, keep_id=v.id)
        v.is_default = True
    db.commit()
    db.refresh(v)
    return v


def set_default_view(db: Session, view_id: str) -> View:
    v = get_view_or_404(db, view_id)
    _clear_default(db, v.database_id, keep_id=v.id)
    v.is_default = True
    db.commit()
    db.refresh(v)
    return v


def delete_view(db: Session, view_id: str) -> bool:
    """
    The last view of a database cannot be deleted. Deleting the default view
    makes the oldest remaining view the default.
    """
    v = get_view_or_404(db, view_id)
    remaining = (
        db.query(View)
        .filter(View.database_id == v.database_id, View.id != v.id)
        .order_by(View.created_at.asc(), View.id.asc())
        .all()
    )
    if not remaining:
        raise OperationNotAllowedError("Cannot delete the last view of a database.")

    was_default = bool(v.is_default)
    db.delete(v)
    if was_default:
        remaining[0].is_default = True
        log.info("Promoted view %s to default after deleting %s", remaining[0].id, view_id)
    db.commit()
    return True
