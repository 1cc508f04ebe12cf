import uuid
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field, computed_field

PLATFORM_TYPES = ("splynx", "xero", "firebase", "airtable", "vapi", "google_maps", "openai")
PLATFORM_TYPE = "^(" + "|".join(PLATFORM_TYPES) + ")$"

class IntegrationCreate(BaseModel):
    platform_type: str = Field(..., pattern=PLATFORM_TYPE)
    name: str = Field(..., min_length=1, max_length=120)
    connection_config: dict[str, Any] | None = None
    credentials: dict[str, Any] | None = None
    is_enabled: bool = False

class IntegrationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    connection_config: dict[str, Any] | None = None
    credentials: dict[str, Any] | None = None
    is_enabled: bool | None = None

class IntegrationOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    platform_type: str
    name: str
    connection_config: dict[str, Any] | None
    connection_status: str
    last_tested_at: datetime | None
    test_result: dict[str, Any] | None
    is_enabled: bool
    created_at: datetime
    updated_at: datetime | None
    credentials_encrypted: str | None = Field(default=None, exclude=True)

    @computed_field
    @property
    def has_credentials(self) -> bool:
        return bool(self.credentials_encrypted)

    class Config:
        from_attributes = True

class IntegrationTestOut(BaseModel):
    success: bool
    connection_status: str
    message: str
    tested_at: datetime
