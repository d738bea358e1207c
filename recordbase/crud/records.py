# File: /recordbase/crud/records.py | Version: 1.4 | Title: Records write path (validate -> clean -> persist) + listing
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from recordbase.core.config import settings
from recordbase.core.errors import NotFoundError, RecordbaseError, ValidationError
from recordbase.crud.databases import load_schema
from recordbase.engine.query import Authorizer, RecordQueryService
from recordbase.engine.registry import PropertyTypeRegistry
from recordbase.engine.rollups import compute_rollup
from recordbase.engine.store import SqlRecordStore, StoreQuery
from recordbase.engine.validator import RecordValidator, unknown_keys
from recordbase.models import Property, Record
from recordbase.models.core_entities import utcnow
from recordbase.schemas.database import DatabaseSchema
from recordbase.schemas.filters import RecordQuery
from recordbase.schemas.properties import PropertyType as T
from recordbase.schemas.records import BulkFailure, BulkOperationResult, RecordCreate, RecordPage, RecordUpdate

log = logging.getLogger(__name__)


def _validator(db: Session, registry: PropertyTypeRegistry) -> RecordValidator:
    return RecordValidator(registry, relation_lookup=SqlRecordStore(db).existing_ids)


def _drop_unknown(schema: DatabaseSchema, values: Dict[str, Any]) -> Dict[str, Any]:
    unknown = unknown_keys(schema.properties, values)
    if unknown:
        log.warning("Ignoring unknown property ids on database %s: %s", schema.id, ", ".join(unknown))
    return {k: v for k, v in values.items() if k not in unknown}


def _system_values(
    schema: DatabaseSchema,
    *,
    created_at: datetime,
    updated_at: datetime,
    created_by: Optional[str],
    last_edited_by: Optional[str],
) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for prop in schema.properties:
        if prop.type is T.created_time:
            out[prop.id] = created_at.isoformat()
        elif prop.type is T.last_edited_time:
            out[prop.id] = updated_at.isoformat()
        elif prop.type is T.created_by and created_by:
            out[prop.id] = created_by
        elif prop.type is T.last_edited_by and last_edited_by:
            out[prop.id] = last_edited_by
    return out


def _rollup_values(
    db: Session, schema: DatabaseSchema, values: Dict[str, Any], registry: Optional[PropertyTypeRegistry]
) -> Dict[str, Any]:
    """Recompute every rollup property of `schema` for one record's values."""
    store = SqlRecordStore(db)
    props = schema.property_map()
    out: Dict[str, Any] = {}
    for prop in schema.properties:
        rc = prop.config.rollup_config
        if prop.type is not T.rollup or rc is None:
            continue
        relation = props.get(rc.relation_property_id)
        target = db.query(Property).filter(Property.id == rc.target_property_id).first()
        if relation is None or relation.config.relation_config is None or target is None:
            log.warning("Skipping rollup %s with a dangling definition", prop.id)
            continue
        ids = values.get(relation.id) or []
        related = store.find_by_ids(relation.config.relation_config.related_database_id, ids)
        result = compute_rollup(
            rc.function,
            [(r.properties or {}).get(target.id) for r in related],
            target.type,
            registry,
        )
        if result is not None:
            out[prop.id] = result
    return out


def _apply_rollups(
    db: Session, schema: DatabaseSchema, stored: Dict[str, Any], registry: Optional[PropertyTypeRegistry]
) -> Dict[str, Any]:
    """`stored` with every rollup value replaced by a fresh computation."""
    rollup_ids = {p.id for p in schema.properties if p.type is T.rollup}
    out = {k: v for k, v in stored.items() if k not in rollup_ids}
    out.update(_rollup_values(db, schema, out, registry))
    return out


def _linked_ids(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def refresh_dependent_rollups(
    db: Session,
    database_id: str,
    record_id: str,
    *,
    registry: Optional[PropertyTypeRegistry] = None,
) -> int:
    """
    Recompute rollups in records whose relations point at `record_id` after it
    was written or deleted. Returns how many records were rewritten; the caller
    commits.
    """
    schemas: Dict[str, DatabaseSchema] = {}
    for row in db.query(Property).filter(Property.type == T.rollup.value).all():
        if row.database_id not in schemas:
            schemas[row.database_id] = load_schema(db, row.database_id)

    touched = 0
    for schema in schemas.values():
        relations = [
            p.id
            for p in schema.properties
            if p.type is T.relation
            and p.config.relation_config is not None
            and p.config.relation_config.related_database_id == database_id
        ]
        if not relations:
            continue
        for record in SqlRecordStore(db).find(StoreQuery(schema.id)):
            values = record.properties or {}
            if not any(str(record_id) in _linked_ids(values.get(pid)) for pid in relations):
                continue
            refreshed = _apply_rollups(db, schema, values, registry)
            if refreshed != values:
                record.properties = refreshed
                touched += 1
    if touched:
        log.info("Refreshed rollups on %d record(s) referencing %s", touched, record_id)
    return touched


def _next_order(db: Session, database_id: str) -> int:
    current = db.query(func.max(Record.order)).filter(Record.database_id == database_id).scalar()
    return 0 if current is None else current + 1


def create_record(
    db: Session,
    database_id: str,
    data: RecordCreate,
    *,
    registry: PropertyTypeRegistry,
    user_id: Optional[str] = None,
) -> Record:
    """
    Validate against the current schema and persist. On any field error a
    ValidationError carrying every FieldError is raised and nothing is written.
    """
    schema = load_schema(db, database_id)
    values = _drop_unknown(schema, dict(data.properties))

    validator = _validator(db, registry)
    errors = validator.validate(schema.properties, values)
    if errors:
        raise ValidationError(errors)

    now = utcnow()
    stored = validator.clean(schema.properties, values)
    stored.update(
        _system_values(schema, created_at=now, updated_at=now, created_by=user_id, last_edited_by=user_id)
    )
    stored = _apply_rollups(db, schema, stored, registry)

    record = Record(
        database_id=schema.id,
        properties=stored,
        order=data.order if data.order is not None else _next_order(db, schema.id),
        created_by=user_id,
        last_edited_by=user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    if refresh_dependent_rollups(db, record.database_id, record.id, registry=registry):
        db.commit()
    log.info("Created record %s in database %s", record.id, schema.id)
    return record


def get_record(db: Session, record_id: str, *, include_deleted: bool = False) -> Optional[Record]:
    q = db.query(Record).filter(Record.id == str(record_id))
    if not include_deleted:
        q = q.filter(Record.is_deleted.is_(False))
    return q.first()


def get_record_or_404(db: Session, record_id: str, database_id: Optional[str] = None) -> Record:
    record = get_record(db, record_id)
    if record is None or (database_id is not None and record.database_id != str(database_id)):
        raise NotFoundError("Record", str(record_id))
    return record


def update_record(
    db: Session,
    record_id: str,
    data: RecordUpdate,
    *,
    registry: PropertyTypeRegistry,
    user_id: Optional[str] = None,
) -> Record:
    """
    Merge-patch the stored values: keys in the patch replace stored ones and a
    None value removes the key. Only the patched properties are validated;
    values written earlier are not revalidated.
    """
    record = get_record_or_404(db, record_id)
    schema = load_schema(db, record.database_id)
    patch = _drop_unknown(schema, dict(data.properties))

    merged = dict(record.properties or {})
    for key, value in patch.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value

    touched = [p for p in schema.properties if p.id in patch]
    validator = _validator(db, registry)
    errors = validator.validate(touched, merged)
    if errors:
        raise ValidationError(errors)

    now = utcnow()
    stored = {k: v for k, v in (record.properties or {}).items() if k not in patch}
    stored.update(validator.clean(touched, merged))
    stored.update(
        _system_values(
            schema,
            created_at=record.created_at or now,
            updated_at=now,
            created_by=record.created_by,
            last_edited_by=user_id or record.last_edited_by,
        )
    )
    stored = _apply_rollups(db, schema, stored, registry)

    record.properties = stored
    if data.order is not None:
        record.order = data.order
    if user_id:
        record.last_edited_by = user_id
    record.updated_at = now
    db.commit()
    db.refresh(record)
    if refresh_dependent_rollups(db, record.database_id, record.id, registry=registry):
        db.commit()
        db.refresh(record)
    return record


def delete_record(
    db: Session,
    record_id: str,
    *,
    user_id: Optional[str] = None,
    permanent: Optional[bool] = None,
    registry: Optional[PropertyTypeRegistry] = None,
) -> bool:
    """Soft delete unless `permanent` (default follows settings.SOFT_DELETE_RECORDS)."""
    record = get_record_or_404(db, record_id)
    database_id = record.database_id
    hard = (not settings.SOFT_DELETE_RECORDS) if permanent is None else permanent
    if hard:
        db.delete(record)
    else:
        record.is_deleted = True
        record.deleted_at = utcnow()
        record.deleted_by = user_id
    db.commit()
    if refresh_dependent_rollups(db, database_id, str(record_id), registry=registry):
        db.commit()
    log.info("Deleted record %s (permanent=%s)", record_id, hard)
    return True


def bulk_delete_records(
    db: Session,
    database_id: str,
    record_ids: Iterable[str],
    *,
    user_id: Optional[str] = None,
    permanent: Optional[bool] = None,
    registry: Optional[PropertyTypeRegistry] = None,
) -> BulkOperationResult:
    ok: List[str] = []
    failed: List[BulkFailure] = []
    for rid in record_ids:
        try:
            get_record_or_404(db, rid, database_id=database_id)
            delete_record(db, rid, user_id=user_id, permanent=permanent, registry=registry)
        except RecordbaseError as exc:
            failed.append(BulkFailure(record_id=str(rid), error=exc.message))
        else:
            ok.append(str(rid))
    return BulkOperationResult(
        success_count=len(ok),
        failed_count=len(failed),
        successful_records=ok,
        failed_records=failed,
    )


def list_records(
    db: Session,
    database_id: str,
    query: Optional[RecordQuery] = None,
    *,
    registry: PropertyTypeRegistry,
    authorize: Optional[Authorizer] = None,
) -> RecordPage:
    schema = load_schema(db, database_id)
    service = RecordQueryService(SqlRecordStore(db), registry)
    return service.list_records(schema, query, authorize=authorize)
