import uuid
from datetime import datetime
from pydantic import BaseModel, Field

STATUS_PATTERN = "^(Planning|Ready|In Progress|Stuck|Completed|Archived)$"

class WorkItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    notes: str | None = None
    status: str = Field(default="Planning", pattern=STATUS_PATTERN)
    due_date: datetime | None = None
    owner_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    team_id: uuid.UUID | None = None
    key_result_task_id: uuid.UUID | None = None
    work_item_type: str | None = None
    workflow_metadata: dict | None = None

class WorkItemUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    notes: str | None = None
    status: str | None = Field(default=None, pattern=STATUS_PATTERN)
    due_date: datetime | None = None
    owner_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    team_id: uuid.UUID | None = None
    key_result_task_id: uuid.UUID | None = None
    work_item_type: str | None = None
    workflow_metadata: dict | None = None

class WorkItemOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    description: str | None
    notes: str | None
    status: str
    due_date: datetime | None
    owner_id: uuid.UUID | None
    assigned_to: uuid.UUID | None
    team_id: uuid.UUID | None
    key_result_task_id: uuid.UUID | None
    work_item_type: str | None
    workflow_metadata: dict | None
    created_at: datetime
    updated_at: datetime | None

    class Config:
        from_attributes = True

class BulkSet(BaseModel):
    status: str | None = Field(default=None, pattern=STATUS_PATTERN)
    assigned_to: uuid.UUID | None = None
    due_date: datetime | None = None
    team_id: uuid.UUID | None = None
    work_item_type: str | None = None
    workflow_metadata: dict | None = None

class BulkUpdate(BaseModel):
    ids: list[uuid.UUID] = Field(..., min_length=1)
    set: BulkSet

class BulkResult(BaseModel):
    updated: int

class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)
