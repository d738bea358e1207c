# File: /recordbase/schemas/database.py | Version: 1.0 | Title: Database + resolved schema (properties & views)
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from recordbase.schemas._base import BaseSchema
from recordbase.schemas.properties import PropertyOut
from recordbase.schemas.view import ViewOut


class DatabaseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class DatabaseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class DatabaseOut(BaseSchema):
    id: str
    workspace_id: str
    name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DatabaseSchema(BaseModel):
    """Ordered properties plus named views of one database."""

    id: str
    workspace_id: str
    name: str
    properties: List[PropertyOut] = Field(default_factory=list)
    views: List[ViewOut] = Field(default_factory=list)

    def property_map(self) -> Dict[str, PropertyOut]:
        return {p.id: p for p in self.properties}

    def get_property(self, property_id: str) -> Optional[PropertyOut]:
        return self.property_map().get(property_id)

    def get_view(self, view_id: str) -> Optional[ViewOut]:
        return next((v for v in self.views if v.id == view_id), None)

    def default_view(self) -> Optional[ViewOut]:
        return next((v for v in self.views if v.is_default), None)
