import uuid
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field

TEMPLATE_STATUS = "^(active|draft|archived)$"

class EmailTemplateCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    subject: str = Field(..., min_length=1, max_length=500)
    html_body: str = Field(..., min_length=1)
    variables_manifest: dict[str, Any] | None = None
    status: str = Field(default="active", pattern=TEMPLATE_STATUS)

class EmailTemplateUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    subject: str | None = Field(default=None, min_length=1, max_length=500)
    html_body: str | None = Field(default=None, min_length=1)
    variables_manifest: dict[str, Any] | None = None
    status: str | None = Field(default=None, pattern=TEMPLATE_STATUS)

class EmailTemplateOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    subject: str
    html_body: str
    variables_manifest: dict[str, Any] | None
    status: str
    created_at: datetime
    updated_at: datetime | None

    class Config:
        from_attributes = True

class PreviewIn(BaseModel):
    variables: dict[str, Any] = {}

class PreviewOut(BaseModel):
    subject: str
    html: str
    unresolved_variables: list[str]
