import uuid
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field

class DataTableOut(BaseModel):
    id: uuid.UUID
    table_name: str
    label: str | None
    description: str | None
    row_count: int | None
    last_analyzed: datetime | None

    class Config:
        from_attributes = True

class DataFieldOut(BaseModel):
    id: uuid.UUID
    table_id: uuid.UUID
    field_name: str
    field_type: str
    nullable: bool
    is_primary_key: bool
    is_foreign_key: bool
    description: str | None

    class Config:
        from_attributes = True

class FilterIn(BaseModel):
    field: str = Field(..., min_length=1)
    operator: str = Field(..., min_length=1)
    value: Any = None

class KeyResultTarget(BaseModel):
    key_result_id: uuid.UUID
    update_type: str = Field(default="set_value", pattern="^(set_value|increment)$")

class QueryIn(BaseModel):
    table: str
    filters: list[FilterIn] = []
    aggregation: str = Field(default="count", pattern="^(count|sum|avg|min|max)$")
    aggregation_field: str | None = None
    limit: int = Field(default=1000, ge=1, le=1000)
    context: dict[str, Any] = {}
    update_key_result: KeyResultTarget | None = None

class QueryOut(BaseModel):
    result: Any
    table: str
    aggregation: str
    filter_count: int
    key_result_id: uuid.UUID | None = None

class RecordsIn(BaseModel):
    table: str
    filters: list[FilterIn] = []
    limit: int = Field(default=100, ge=1, le=1000)
    context: dict[str, Any] = {}

class RecordsOut(BaseModel):
    table: str
    count: int
    records: list[dict[str, Any]]
