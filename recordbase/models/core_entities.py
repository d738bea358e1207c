# File: /recordbase/models/core_entities.py | Version: 2.0 | Path: /recordbase/models/core_entities.py
from __future__ import annotations

from datetime import datetime, UTC
from typing import Any, List as TList, Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recordbase.db.base_class import Base


def gen_uuid() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class Database(Base):
    __tablename__ = "database"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    # Workspaces and memberships are owned by another service; only the id is kept here.
    workspace_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    properties: Mapped[TList["Property"]] = relationship(
        back_populates="database", cascade="all, delete-orphan", order_by="Property.order"
    )
    records: Mapped[TList["Record"]] = relationship(back_populates="database", cascade="all, delete-orphan")
    views: Mapped[TList["View"]] = relationship(  # noqa: F821
        "View", back_populates="database", cascade="all, delete-orphan"
    )


class Property(Base):
    __tablename__ = "property"
    __table_args__ = (UniqueConstraint("database_id", "name", name="uq_database_property_name"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    database_id: Mapped[str] = mapped_column(ForeignKey("database.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. 'text', 'select', 'relation'
    required: Mapped[bool] = mapped_column(Boolean, default=False)
    # Type-specific settings: select options, relation target, rollup definition, formula
    config: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    order: Mapped[int] = mapped_column(Integer, default=0)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    database: Mapped["Database"] = relationship(back_populates="properties")


class Record(Base):
    __tablename__ = "record"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    database_id: Mapped[str] = mapped_column(ForeignKey("database.id"), index=True, nullable=False)
    # Sparse map: property id -> stored value
    properties: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    order: Mapped[int] = mapped_column(Integer, default=0)
    created_by: Mapped[Optional[str]] = mapped_column(String)
    last_edited_by: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    deleted_by: Mapped[Optional[str]] = mapped_column(String)

    database: Mapped["Database"] = relationship(back_populates="records")


# Listing records of one database skips soft-deleted rows
Index("ix_record_database_id_is_deleted", Record.database_id, Record.is_deleted)
