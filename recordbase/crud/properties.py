# File: /recordbase/crud/properties.py | Version: 1.2 | Title: Property schema management (create/update/reorder/duplicate/delete)
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.orm import Session

from recordbase.core.errors import ConflictError, NotFoundError, OperationNotAllowedError
from recordbase.crud.databases import get_database_or_404
from recordbase.models import Property, Record, View
from recordbase.schemas.properties import PropertyConfig, PropertyCreate, PropertyType, PropertyUpdate

log = logging.getLogger(__name__)


def _ensure_unique_name(db: Session, database_id: str, name: str, exclude_id: Optional[str] = None) -> None:
    q = db.query(Property).filter(Property.database_id == database_id, Property.name == name)
    if exclude_id:
        q = q.filter(Property.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"A property named '{name}' already exists in this database.")


def _next_order(db: Session, database_id: str) -> int:
    current = db.query(func.max(Property.order)).filter(Property.database_id == database_id).scalar()
    return 0 if current is None else current + 1


def _config_dict(db: Session, database_id: str, config: PropertyConfig) -> Dict[str, Any]:
    """Stored form of a property config; select options get ids, references are checked."""
    out = config.model_dump(mode="json", exclude_none=True)
    for option in out.get("select_options") or []:
        if not option.get("id"):
            option["id"] = str(uuid4())

    rel = config.relation_config
    if rel is not None:
        get_database_or_404(db, rel.related_database_id)

    rollup = config.rollup_config
    if rollup is not None:
        relation_prop = get_property_or_404(db, rollup.relation_property_id, database_id=database_id)
        if relation_prop.type != PropertyType.relation.value:
            raise OperationNotAllowedError(
                f"Rollup source '{relation_prop.name}' is not a relation property."
            )
        related_db = (relation_prop.config or {}).get("relation_config", {}).get("related_database_id")
        get_property_or_404(db, rollup.target_property_id, database_id=related_db)
    return out


def get_property(db: Session, property_id: str) -> Optional[Property]:
    return db.query(Property).filter(Property.id == str(property_id)).first()


def get_property_or_404(db: Session, property_id: str, database_id: Optional[str] = None) -> Property:
    obj = get_property(db, property_id)
    if obj is None or (database_id is not None and obj.database_id != str(database_id)):
        raise NotFoundError("Property", str(property_id))
    return obj


def list_properties(db: Session, database_id: str) -> List[Property]:
    return (
        db.query(Property)
        .filter(Property.database_id == str(database_id))
        .order_by(Property.order.asc(), Property.created_at.asc())
        .all()
    )


def create_property(db: Session, database_id: str, data: PropertyCreate) -> Property:
    database = get_database_or_404(db, database_id)
    _ensure_unique_name(db, database.id, data.name)

    obj = Property(
        database_id=database.id,
        name=data.name,
        type=data.type.value,
        required=data.required,
        config=_config_dict(db, database.id, data.config),
        order=data.order if data.order is not None else _next_order(db, database.id),
        is_visible=data.is_visible,
        is_system=False,
        description=data.description,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    log.info("Created %s property %s on database %s", obj.type, obj.id, database.id)
    return obj


def update_property(db: Session, property_id: str, data: PropertyUpdate) -> Property:
    """
    Partial update. Existing record values are not revalidated against the
    new definition.
    """
    obj = get_property_or_404(db, property_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") and changes["name"] != obj.name:
        _ensure_unique_name(db, obj.database_id, changes["name"], exclude_id=obj.id)
        obj.name = changes["name"]
    if data.type is not None and data.type.value != obj.type:
        if obj.is_system:
            raise OperationNotAllowedError("The type of a system property cannot be changed.")
        obj.type = data.type.value
    if data.config is not None:
        obj.config = _config_dict(db, obj.database_id, data.config)
    for field in ("required", "order", "is_visible", "description"):
        if field in changes and (changes[field] is not None or field == "description"):
            setattr(obj, field, changes[field])

    db.commit()
    db.refresh(obj)
    return obj


def reorder_properties(db: Session, database_id: str, property_ids: Sequence[str]) -> List[Property]:
    """Assign order 0..n-1 following `property_ids`; properties left out keep their relative order after them."""
    props = {p.id: p for p in list_properties(db, database_id)}
    for pid in property_ids:
        if pid not in props:
            raise NotFoundError("Property", pid)

    ordered = [props[pid] for pid in property_ids]
    ordered += [p for pid, p in props.items() if pid not in set(property_ids)]
    for index, prop in enumerate(ordered):
        prop.order = index
    db.commit()
    return list_properties(db, database_id)


def duplicate_property(db: Session, property_id: str) -> Property:
    """Copy of a property definition (values are not copied), appended last."""
    src = get_property_or_404(db, property_id)
    name = f"{src.name} (copy)"
    n = 2
    while db.query(Property).filter(Property.database_id == src.database_id, Property.name == name).first():
        name = f"{src.name} (copy {n})"
        n += 1

    config = dict(src.config or {})
    if config.get("select_options"):
        config["select_options"] = [dict(o) for o in config["select_options"]]

    obj = Property(
        database_id=src.database_id,
        name=name,
        type=src.type,
        required=src.required,
        config=config,
        order=_next_order(db, src.database_id),
        is_visible=src.is_visible,
        is_system=False,
        description=src.description,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def _rule_targets(rule: Any, property_id: str) -> bool:
    if isinstance(rule, dict):
        return (rule.get("property_id") or rule.get("propertyId")) == property_id
    return False


def _strip_from_view(view: View, property_id: str) -> bool:
    changed = False
    if view.filters_json and any(_rule_targets(r, property_id) for r in view.filters_json):
        view.filters_json = [r for r in view.filters_json if not _rule_targets(r, property_id)]
        changed = True
    if view.sorts_json and any(_rule_targets(r, property_id) for r in view.sorts_json):
        view.sorts_json = [r for r in view.sorts_json if not _rule_targets(r, property_id)]
        changed = True
    if view.visible_properties_json and property_id in view.visible_properties_json:
        view.visible_properties_json = [p for p in view.visible_properties_json if p != property_id]
        changed = True
    if view.group_by == property_id:
        view.group_by = None
        changed = True
    return changed


def delete_property(db: Session, property_id: str) -> bool:
    """
    Delete a property and clean up after it: its values are removed from every
    record of the database and every view stops referencing it. Records that
    never had a value are left untouched.
    """
    obj = get_property_or_404(db, property_id)
    if obj.is_system:
        raise OperationNotAllowedError(f"System property '{obj.name}' cannot be deleted.")

    touched = 0
    for record in db.query(Record).filter(Record.database_id == obj.database_id).all():
        if property_id in (record.properties or {}):
            # New dict so the JSON column is flagged dirty
            record.properties = {k: v for k, v in record.properties.items() if k != property_id}
            touched += 1

    views_touched = 0
    for view in db.query(View).filter(View.database_id == obj.database_id).all():
        if _strip_from_view(view, property_id):
            views_touched += 1

    db.delete(obj)
    db.commit()
    log.info(
        "Deleted property %s (records cleaned=%d, views cleaned=%d)",
        property_id, touched, views_touched,
    )
    return True
