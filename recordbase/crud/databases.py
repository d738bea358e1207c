# File: /recordbase/crud/databases.py | Version: 1.1 | Title: Databases CRUD + Schema Provider
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from recordbase.core.errors import NotFoundError
from recordbase.models import Database, Property, View
from recordbase.schemas.database import DatabaseCreate, DatabaseSchema, DatabaseUpdate
from recordbase.schemas.properties import PropertyOut, PropertyType
from recordbase.schemas.view import ViewOut

log = logging.getLogger(__name__)

TITLE_PROPERTY_NAME = "Name"
DEFAULT_VIEW_NAME = "Table"


def create_database(
    db: Session,
    *,
    workspace_id: str,
    data: DatabaseCreate,
    user_id: Optional[str] = None,
) -> Database:
    """
    New database with a system `Name` text property and a default table view
    showing it.
    """
    obj = Database(
        workspace_id=str(workspace_id),
        name=data.name,
        description=data.description,
        created_by=user_id,
    )
    db.add(obj)
    db.flush()

    title = Property(
        database_id=obj.id,
        name=TITLE_PROPERTY_NAME,
        type=PropertyType.text.value,
        required=False,
        config={},
        order=0,
        is_visible=True,
        is_system=True,
    )
    db.add(title)
    db.flush()

    db.add(
        View(
            database_id=obj.id,
            name=DEFAULT_VIEW_NAME,
            type="table",
            filters_json=[],
            sorts_json=[],
            visible_properties_json=[title.id],
            is_default=True,
            created_by=user_id,
        )
    )
    db.commit()
    db.refresh(obj)
    log.info("Created database %s in workspace %s", obj.id, obj.workspace_id)
    return obj


def get_database(db: Session, database_id: str) -> Optional[Database]:
    return db.query(Database).filter(Database.id == str(database_id)).first()


def get_database_or_404(db: Session, database_id: str) -> Database:
    obj = get_database(db, database_id)
    if obj is None:
        raise NotFoundError("Database", str(database_id))
    return obj


def list_databases(db: Session, *, workspace_id: str) -> List[Database]:
    return (
        db.query(Database)
        .filter(Database.workspace_id == str(workspace_id))
        .order_by(Database.created_at.asc())
        .all()
    )


def update_database(db: Session, database_id: str, data: DatabaseUpdate) -> Database:
    obj = get_database_or_404(db, database_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(obj, field, value)
    db.commit()
    db.refresh(obj)
    return obj


def delete_database(db: Session, database_id: str) -> bool:
    """Removes the database with its properties, views and records."""
    obj = get_database_or_404(db, database_id)
    db.delete(obj)
    db.commit()
    log.info("Deleted database %s", database_id)
    return True


def load_schema(db: Session, database_id: str) -> DatabaseSchema:
    """Ordered properties and views of a database, as plain schema objects."""
    obj = get_database_or_404(db, database_id)
    props = (
        db.query(Property)
        .filter(Property.database_id == obj.id)
        .order_by(Property.order.asc(), Property.created_at.asc())
        .all()
    )
    views = (
        db.query(View)
        .filter(View.database_id == obj.id)
        .order_by(View.is_default.desc(), View.created_at.asc())
        .all()
    )
    return DatabaseSchema(
        id=obj.id,
        workspace_id=obj.workspace_id,
        name=obj.name,
        properties=[PropertyOut.model_validate(p) for p in props],
        views=[ViewOut.from_row(v) for v in views],
    )
