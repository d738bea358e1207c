# File: /recordbase/schemas/filters.py | Version: 2.0 | Title: Filters, Sorts & Record Query Schemas
from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator


class FilterOperator(str, Enum):
    equals = "equals"
    not_equals = "not_equals"
    contains = "contains"
    does_not_contain = "does_not_contain"
    starts_with = "starts_with"
    ends_with = "ends_with"
    is_empty = "is_empty"
    is_not_empty = "is_not_empty"
    greater_than = "greater_than"
    less_than = "less_than"
    greater_than_or_equal = "greater_than_or_equal"
    less_than_or_equal = "less_than_or_equal"
    before = "before"
    after = "after"
    on_or_before = "on_or_before"
    on_or_after = "on_or_after"
    contains_all = "contains_all"
    is_any_of = "is_any_of"
    is_none_of = "is_none_of"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


class FilterRule(BaseModel):
    property_id: str = Field(validation_alias=AliasChoices("property_id", "propertyId"))
    operator: FilterOperator
    value: Optional[Any] = None


class SortRule(BaseModel):
    property_id: str = Field(validation_alias=AliasChoices("property_id", "propertyId"))
    direction: SortDirection = SortDirection.asc


def parse_sort_spec(spec: Optional[str]) -> List[SortRule]:
    """
    "score:desc,name" -> [SortRule(score, desc), SortRule(name, asc)]
    """
    rules: List[SortRule] = []
    if spec:
        for token in spec.split(","):
            token = token.strip()
            if not token:
                continue
            if ":" in token:
                f, d = token.split(":", 1)
            else:
                f, d = token, "asc"
            rules.append(
                SortRule(
                    property_id=f.strip(),
                    direction=SortDirection.desc if d.strip().lower() == "desc" else SortDirection.asc,
                )
            )
    return rules


class RecordQuery(BaseModel):
    """
    Caller-facing list contract. Fields left as None are "not given" and fall
    back to the selected view (or to the defaults); an explicit empty list
    overrides the view.
    """

    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=0)
    search: Optional[str] = None
    search_properties: Optional[List[str]] = Field(
        default=None, validation_alias=AliasChoices("search_properties", "searchProperties")
    )
    filters: Optional[List[FilterRule]] = None
    sorts: Optional[List[SortRule]] = None
    group_by: Optional[str] = Field(default=None, validation_alias=AliasChoices("group_by", "groupBy"))
    view_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("view_id", "viewId"))

    @model_validator(mode="before")
    @classmethod
    def _sort_spec_string(cls, data: Any) -> Any:
        # Also accept the compact form: {"sort": "score:desc,name:asc"}
        if isinstance(data, dict) and isinstance(data.get("sort"), str):
            data = dict(data)
            spec = data.pop("sort")
            if data.get("sorts") is None:
                data["sorts"] = [r.model_dump() for r in parse_sort_spec(spec)]
        return data
