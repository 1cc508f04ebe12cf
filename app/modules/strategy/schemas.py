import uuid
from datetime import datetime
from pydantic import BaseModel, Field

OBJECTIVE_STATUS = "^(Draft|Active|On Track|At Risk|Off Track|Completed|Archived)$"
PRIORITY = "^(low|medium|high|critical)$"
KPI_TYPE = "^(Derived from Key Results|Manual Input)$"
KR_TYPE = "^(Numeric Target|Percentage KPI|Milestone)$"
KR_STATUS = "^(Not Started|On Track|At Risk|Stuck|Completed)$"
TASK_STATUS = "^(Not Started|On Track|Stuck|Completed)$"
FREQUENCY = "^(daily|weekly|monthly|quarterly)$"

# ---- Mission / vision ----

class MissionVisionIn(BaseModel):
    mission: str | None = None
    vision: str | None = None
    strategy_statement_html: str | None = None

class MissionVisionOut(MissionVisionIn):
    id: uuid.UUID
    org_id: uuid.UUID
    updated_by: uuid.UUID | None
    updated_at: datetime | None

    class Config:
        from_attributes = True

# ---- Objectives ----

class ObjectiveCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    primary_kpi: str | None = None
    category: str = "strategic"
    priority: str = Field(default="high", pattern=PRIORITY)
    status: str = Field(default="Draft", pattern=OBJECTIVE_STATUS)
    target_value: float | None = None
    current_value: float | None = 0
    kpi_type: str = Field(default="Derived from Key Results", pattern=KPI_TYPE)
    target_date: datetime | None = None
    owner_id: uuid.UUID | None = None
    team_id: uuid.UUID | None = None

class ObjectiveUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    primary_kpi: str | None = None
    category: str | None = None
    priority: str | None = Field(default=None, pattern=PRIORITY)
    status: str | None = Field(default=None, pattern=OBJECTIVE_STATUS)
    target_value: float | None = None
    current_value: float | None = None
    kpi_type: str | None = Field(default=None, pattern=KPI_TYPE)
    target_date: datetime | None = None
    owner_id: uuid.UUID | None = None
    team_id: uuid.UUID | None = None
    display_order: int | None = None

class ObjectiveOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    description: str | None
    primary_kpi: str | None
    category: str
    priority: str
    status: str
    target_value: float | None
    current_value: float | None
    kpi_type: str
    target_date: datetime | None
    owner_id: uuid.UUID | None
    team_id: uuid.UUID | None
    display_order: int
    created_at: datetime

    class Config:
        from_attributes = True

class ReorderRequest(BaseModel):
    ids: list[uuid.UUID] = Field(..., min_length=1)

# ---- Key results ----

class KeyResultCreate(BaseModel):
    objective_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_value: float | None = None
    current_value: float | None = 0
    type: str = Field(default="Numeric Target", pattern=KR_TYPE)
    status: str = Field(default="Not Started", pattern=KR_STATUS)
    team_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    owner_id: uuid.UUID | None = None
    knowledge_document_id: uuid.UUID | None = None

class KeyResultUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    target_value: float | None = None
    current_value: float | None = None
    type: str | None = Field(default=None, pattern=KR_TYPE)
    status: str | None = Field(default=None, pattern=KR_STATUS)
    team_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    owner_id: uuid.UUID | None = None
    knowledge_document_id: uuid.UUID | None = None

class KeyResultOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    objective_id: uuid.UUID
    title: str
    description: str | None
    target_value: float | None
    current_value: float | None
    type: str
    status: str
    team_id: uuid.UUID | None
    assigned_to: uuid.UUID | None
    owner_id: uuid.UUID | None
    knowledge_document_id: uuid.UUID | None
    created_at: datetime

    class Config:
        from_attributes = True

class ProgressUpdate(BaseModel):
    current_value: float
    notes: str | None = None

class KeyResultCommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)

class KeyResultCommentOut(BaseModel):
    id: uuid.UUID
    key_result_id: uuid.UUID
    user_id: uuid.UUID | None
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True

# ---- Key result tasks ----

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: str = Field(default="Not Started", pattern=TASK_STATUS)
    is_recurring: bool = False
    frequency: str | None = Field(default=None, pattern=FREQUENCY)
    team_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    next_due_date: datetime | None = None
    target_completion: int | None = Field(default=None, ge=0)

class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: str | None = Field(default=None, pattern=TASK_STATUS)
    is_recurring: bool | None = None
    frequency: str | None = Field(default=None, pattern=FREQUENCY)
    team_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    next_due_date: datetime | None = None
    target_completion: int | None = Field(default=None, ge=0)

class TaskOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    key_result_id: uuid.UUID
    title: str
    description: str | None
    status: str
    is_recurring: bool
    frequency: str | None
    team_id: uuid.UUID | None
    assigned_to: uuid.UUID | None
    next_due_date: datetime | None
    completed_count: int
    target_completion: int | None
    created_at: datetime

    class Config:
        from_attributes = True
