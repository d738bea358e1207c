# File: /recordbase/schemas/view.py | Version: 2.0 | Title: Pydantic v2 schema for saved database views
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from recordbase.schemas.filters import FilterRule, SortRule

ViewType = Literal["table", "board", "list", "calendar", "gallery", "timeline"]


class ViewBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: ViewType = "table"
    filters: List[FilterRule] = Field(default_factory=list)
    sorts: List[SortRule] = Field(default_factory=list)
    visible_properties: Optional[List[str]] = None  # None = every visible property
    group_by: Optional[str] = None
    is_default: bool = False


class ViewCreate(ViewBase):
    pass


class ViewUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[ViewType] = None
    filters: Optional[List[FilterRule]] = None
    sorts: Optional[List[SortRule]] = None
    visible_properties: Optional[List[str]] = None
    group_by: Optional[str] = None
    is_default: Optional[bool] = None


class ViewOut(ViewBase):
    id: str
    database_id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_row(cls, v) -> "ViewOut":
        return cls(
            id=v.id,
            database_id=v.database_id,
            name=v.name,
            type=v.type or "table",
            filters=v.filters_json or [],
            sorts=v.sorts_json or [],
            visible_properties=v.visible_properties_json,
            group_by=v.group_by,
            is_default=bool(v.is_default),
            created_at=v.created_at,
        )
