# File: /recordbase/models/view.py | Version: 2.0 | Title: SQLAlchemy model for saved database views
from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from recordbase.db.base_class import Base


class View(Base):
    __tablename__ = "views"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    database_id = Column(String, ForeignKey("database.id"), nullable=False)

    name = Column(String, nullable=False)
    # "table" | "board" | "list" | "calendar" | "gallery" | "timeline"
    type = Column(String, nullable=False, server_default="table")

    filters_json = Column(JSON, nullable=True)
    sorts_json = Column(JSON, nullable=True)
    visible_properties_json = Column(JSON, nullable=True)
    group_by = Column(String, nullable=True)

    is_default = Column(Boolean, nullable=False, server_default="0")
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    database = relationship("Database", back_populates="views")

    __table_args__ = (Index("ix_views_database", "database_id"),)
