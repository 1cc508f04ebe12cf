import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON, Integer, TIMESTAMP, ForeignKey
from app.core.base import Base, TimestampedTenantMixin

class BookableTaskType(Base, TimestampedTenantMixin):
    __tablename__ = "bookable_task_type"

    name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    task_category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    default_duration: Mapped[str] = mapped_column(String(32), default="2h 30m")
    default_travel_time_to: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    default_travel_time_from: Mapped[int] = mapped_column(Integer, default=0)
    splynx_project_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    splynx_workflow_status_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # {"ticketTypes": [...], "ticketLabels": [...]}
    trigger_conditions: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    confirmation_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    button_label: Mapped[str | None] = mapped_column(String(64), nullable=True)

class BookingToken(Base, TimestampedTenantMixin):
    __tablename__ = "booking_token"

    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    work_item_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("work_item.id"), index=True)
    bookable_task_type_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("bookable_task_type.id"))
    customer_id: Mapped[str] = mapped_column(String(64))
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")  # pending | confirmed | expired
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    selected_datetime: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    splynx_task_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
