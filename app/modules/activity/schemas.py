import uuid
from datetime import datetime
from pydantic import BaseModel

ACTION_TYPES = (
    "creation", "status_change", "assignment", "comment", "kpi_update",
    "completion", "deletion", "generation", "update", "agent_action",
)

class ActivityOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    user_id: uuid.UUID | None
    action_type: str
    entity_type: str
    entity_id: str
    description: str | None
    meta: dict | None
    created_at: datetime

    class Config:
        from_attributes = True
