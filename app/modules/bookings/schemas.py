import uuid
from datetime import date, datetime
from pydantic import BaseModel, Field

class TriggerConditions(BaseModel):
    ticketTypes: list[str] = []
    ticketLabels: list[str] = []

class BookableTaskTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    task_category: str | None = Field(default=None, max_length=64)
    default_duration: str = Field(default="2h 30m", pattern=r"^\s*(\d+h)?\s*(\d+m)?\s*$")
    default_travel_time_to: int = Field(default=0, ge=0)
    default_travel_time_from: int = Field(default=0, ge=0)
    splynx_project_id: int | None = None
    splynx_workflow_status_id: int | None = None
    trigger_conditions: TriggerConditions | None = None
    is_active: bool = True
    display_order: int = 0
    confirmation_message: str | None = None
    button_label: str | None = Field(default=None, max_length=64)

class BookableTaskTypeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    task_category: str | None = Field(default=None, max_length=64)
    default_duration: str | None = Field(default=None, pattern=r"^\s*(\d+h)?\s*(\d+m)?\s*$")
    default_travel_time_to: int | None = Field(default=None, ge=0)
    default_travel_time_from: int | None = Field(default=None, ge=0)
    splynx_project_id: int | None = None
    splynx_workflow_status_id: int | None = None
    trigger_conditions: TriggerConditions | None = None
    is_active: bool | None = None
    display_order: int | None = None
    confirmation_message: str | None = None
    button_label: str | None = Field(default=None, max_length=64)

class BookableTaskTypeOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    description: str | None
    task_category: str | None
    default_duration: str
    default_travel_time_to: int
    default_travel_time_from: int
    splynx_project_id: int | None
    splynx_workflow_status_id: int | None
    trigger_conditions: dict | None
    is_active: bool
    display_order: int
    confirmation_message: str | None
    button_label: str | None

    class Config:
        from_attributes = True

class CreateBookingIn(BaseModel):
    bookable_task_type_id: uuid.UUID

class CreateBookingOut(BaseModel):
    success: bool = True
    booking_token: str
    booking_url: str
    expires_at: datetime

class PublicBookingOut(BaseModel):
    customer_name: str | None
    service_address: str | None
    task_type_name: str
    task_category: str | None
    duration: str
    ticket_subject: str

class SlotsIn(BaseModel):
    start_date: date | None = None
    end_date: date | None = None

class SlotOut(BaseModel):
    datetime: str
    display_time: str
    display_date: str

class SlotsOut(BaseModel):
    slots: list[SlotOut]

class ConfirmIn(BaseModel):
    selected_datetime: datetime | None = None
    contact_number: str | None = Field(default=None, max_length=32)
    additional_notes: str | None = None

class ConfirmOut(BaseModel):
    success: bool = True
    splynx_task_id: str | None
    selected_datetime: datetime
    confirmation_message: str | None
