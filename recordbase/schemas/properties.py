# File: /recordbase/schemas/properties.py | Version: 1.2 | Title: Property definitions (types + type-specific config)
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PropertyType(str, Enum):
    text = "text"
    number = "number"
    date = "date"
    checkbox = "checkbox"
    select = "select"
    multi_select = "multi_select"
    email = "email"
    phone = "phone"
    url = "url"
    file = "file"
    relation = "relation"
    formula = "formula"
    rollup = "rollup"
    created_time = "created_time"
    last_edited_time = "last_edited_time"
    created_by = "created_by"
    last_edited_by = "last_edited_by"


class RelationType(str, Enum):
    one_to_one = "one_to_one"
    one_to_many = "one_to_many"
    many_to_many = "many_to_many"


class RollupFunction(str, Enum):
    count = "count"
    count_values = "count_values"
    count_unique = "count_unique"
    count_empty = "count_empty"
    count_not_empty = "count_not_empty"
    percent_empty = "percent_empty"
    percent_not_empty = "percent_not_empty"
    sum = "sum"
    average = "average"
    median = "median"
    min = "min"
    max = "max"
    range = "range"
    earliest = "earliest"
    latest = "latest"
    checked = "checked"
    unchecked = "unchecked"
    percent_checked = "percent_checked"
    show_original = "show_original"


class SelectOption(BaseModel):
    id: Optional[str] = None  # generated when omitted
    name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = None


class RelationConfig(BaseModel):
    related_database_id: str
    relation_type: RelationType = RelationType.many_to_many


class RollupConfig(BaseModel):
    relation_property_id: str
    target_property_id: str
    function: RollupFunction = RollupFunction.count


class PropertyConfig(BaseModel):
    select_options: Optional[List[SelectOption]] = None
    relation_config: Optional[RelationConfig] = None
    rollup_config: Optional[RollupConfig] = None
    formula: Optional[str] = None


_CONFIG_REQUIRED = {
    PropertyType.relation: "relation_config",
    PropertyType.rollup: "rollup_config",
}


class PropertyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: PropertyType
    required: bool = False
    config: PropertyConfig = Field(default_factory=PropertyConfig)
    order: Optional[int] = None
    is_visible: bool = True
    description: Optional[str] = None

    @model_validator(mode="after")
    def config_matches_type(self) -> "PropertyCreate":
        needed = _CONFIG_REQUIRED.get(self.type)
        if needed and getattr(self.config, needed) is None:
            raise ValueError(f"{self.type.value} properties require config.{needed}")
        return self


class PropertyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[PropertyType] = None
    required: Optional[bool] = None
    config: Optional[PropertyConfig] = None
    order: Optional[int] = None
    is_visible: Optional[bool] = None
    description: Optional[str] = None


class PropertyOut(BaseModel):
    id: str
    database_id: str
    name: str
    type: PropertyType
    required: bool = False
    config: PropertyConfig = Field(default_factory=PropertyConfig)
    order: int = 0
    is_visible: bool = True
    is_system: bool = False
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _empty_config(cls, data: Any) -> Any:
        # ORM rows may carry config=None
        if isinstance(data, dict) and data.get("config") is None:
            data = {**data, "config": {}}
        elif not isinstance(data, dict) and getattr(data, "config", {}) is None:
            data = {
                k: getattr(data, k, None)
                for k in cls.model_fields
                if k != "config"
            }
            data["config"] = {}
        return data

    def option_ids(self) -> List[str]:
        return [o.id for o in (self.config.select_options or []) if o.id]

    def option_names(self) -> Dict[str, str]:
        return {o.id: o.name for o in (self.config.select_options or []) if o.id}
