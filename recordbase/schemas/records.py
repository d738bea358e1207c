# File: /recordbase/schemas/records.py | Version: 1.0 | Title: Record payloads, validation errors & paginated listing
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from recordbase.schemas._base import BaseSchema


class RecordCreate(BaseModel):
    properties: Dict[str, Any] = Field(default_factory=dict)
    order: Optional[int] = None


class RecordUpdate(BaseModel):
    # Patch semantics: keys present are replaced, a None value removes the key.
    properties: Dict[str, Any] = Field(default_factory=dict)
    order: Optional[int] = None


class RecordOut(BaseSchema):
    id: str
    database_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    created_by: Optional[str] = None
    last_edited_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FieldError(BaseModel):
    property_id: str
    property_name: str
    value: Any = None
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool = False
    has_prev: bool = False


class Aggregations(BaseModel):
    grouped_data: Dict[str, List[RecordOut]] = Field(default_factory=dict)


class AppliedView(BaseModel):
    id: str
    name: str


class RecordPage(BaseModel):
    records: List[RecordOut]
    pagination: Pagination
    aggregations: Optional[Aggregations] = None
    view: Optional[AppliedView] = None
    visible_properties: List[str] = Field(default_factory=list)


class BulkFailure(BaseModel):
    record_id: str
    error: str


class BulkOperationResult(BaseModel):
    success_count: int
    failed_count: int
    successful_records: List[str] = Field(default_factory=list)
    failed_records: List[BulkFailure] = Field(default_factory=list)
