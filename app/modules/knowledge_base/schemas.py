import uuid
from datetime import datetime
from pydantic import BaseModel, Field

DOC_STATUS = "^(draft|published|archived)$"
VISIBILITY = "^(public|internal|private)$"
ASSIGNMENT_STATUS = "^(assigned|in_progress|completed)$"
PRIORITY = "^(low|medium|high)$"

# ---- Documents ----

class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str | None = None
    summary: str | None = None
    categories: list[str] = []
    tags: list[str] = []
    status: str = Field(default="draft", pattern=DOC_STATUS)
    visibility: str = Field(default="internal", pattern=VISIBILITY)

class DocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = None
    summary: str | None = None
    categories: list[str] | None = None
    tags: list[str] | None = None
    status: str | None = Field(default=None, pattern=DOC_STATUS)
    visibility: str | None = Field(default=None, pattern=VISIBILITY)
    change_description: str | None = None

class DocumentOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    content: str | None
    summary: str | None
    categories: list[str] | None
    tags: list[str] | None
    status: str
    visibility: str
    author_id: uuid.UUID | None
    estimated_reading_time: int
    published_at: datetime | None
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime | None

    class Config:
        from_attributes = True

# ---- Versions ----

class VersionCreate(BaseModel):
    change_description: str | None = None

class VersionOut(BaseModel):
    id: uuid.UUID
    document_id: uuid.UUID
    version_number: int
    title: str
    content: str | None
    summary: str | None
    changed_by: uuid.UUID | None
    change_description: str | None
    created_at: datetime

    class Config:
        from_attributes = True

# ---- Categories ----

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    color: str | None = Field(default=None, max_length=16)
    parent_id: uuid.UUID | None = None
    sort_order: int = 0
    is_active: bool = True

class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    color: str | None = Field(default=None, max_length=16)
    parent_id: uuid.UUID | None = None
    sort_order: int | None = None
    is_active: bool | None = None

class CategoryOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    description: str | None
    color: str | None
    parent_id: uuid.UUID | None
    sort_order: int
    is_active: bool

    class Config:
        from_attributes = True

# ---- Assignments ----

class AssignmentCreate(BaseModel):
    user_id: uuid.UUID | None = None
    team_id: uuid.UUID | None = None
    priority: str = Field(default="medium", pattern=PRIORITY)
    due_date: datetime | None = None
    notes: str | None = None

class AssignmentUpdate(BaseModel):
    status: str | None = Field(default=None, pattern=ASSIGNMENT_STATUS)
    priority: str | None = Field(default=None, pattern=PRIORITY)
    due_date: datetime | None = None
    notes: str | None = None

class AssignmentOut(BaseModel):
    id: uuid.UUID
    document_id: uuid.UUID
    user_id: uuid.UUID | None
    team_id: uuid.UUID | None
    assigner_id: uuid.UUID | None
    status: str
    priority: str
    due_date: datetime | None
    completed_at: datetime | None
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True
