import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON, TIMESTAMP, ForeignKey
from app.core.base import Base, TimestampedTenantMixin

WORK_ITEM_STATUSES = ("Planning", "Ready", "In Progress", "Stuck", "Completed", "Archived")

class WorkItem(Base, TimestampedTenantMixin):
    __tablename__ = "work_item"

    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(24), default="Planning", index=True)
    due_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True, index=True)
    team_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("team.id"), nullable=True, index=True)
    key_result_task_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("key_result_task.id"), nullable=True)
    work_item_type: Mapped[str | None] = mapped_column(String(48), nullable=True)
    # customer context: customerId, customerName, customerEmail, address, ticketType, ticketLabels, bookedAppointment
    workflow_metadata: Mapped[dict | None] = mapped_column(JSON, nullable=True)
