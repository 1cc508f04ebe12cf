import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Float, Integer, TIMESTAMP, ForeignKey, UniqueConstraint
from app.core.base import Base, TimestampedTenantMixin

class MissionVision(Base, TimestampedTenantMixin):
    __tablename__ = "mission_vision"
    __table_args__ = (UniqueConstraint("org_id", name="uq_mission_vision_org"),)

    mission: Mapped[str | None] = mapped_column(Text, nullable=True)
    vision: Mapped[str | None] = mapped_column(Text, nullable=True)
    strategy_statement_html: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

class Objective(Base, TimestampedTenantMixin):
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_kpi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(48), default="strategic")
    priority: Mapped[str] = mapped_column(String(16), default="high")  # low | medium | high | critical
    status: Mapped[str] = mapped_column(String(24), default="Draft")
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_value: Mapped[float | None] = mapped_column(Float, nullable=True, default=0)
    kpi_type: Mapped[str] = mapped_column(String(32), default="Derived from Key Results")  # | Manual Input
    target_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    team_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("team.id"), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)

class KeyResult(Base, TimestampedTenantMixin):
    __tablename__ = "key_result"

    objective_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("objective.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_value: Mapped[float | None] = mapped_column(Float, nullable=True, default=0)
    type: Mapped[str] = mapped_column(String(24), default="Numeric Target")  # | Percentage KPI | Milestone
    status: Mapped[str] = mapped_column(String(24), default="Not Started")
    team_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("team.id"), nullable=True)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    knowledge_document_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

class KeyResultTask(Base, TimestampedTenantMixin):
    __tablename__ = "key_result_task"

    key_result_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("key_result.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(24), default="Not Started")  # Not Started | On Track | Stuck | Completed
    is_recurring: Mapped[bool] = mapped_column(default=False)
    frequency: Mapped[str | None] = mapped_column(String(16), nullable=True)  # daily | weekly | monthly | quarterly
    team_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("team.id"), nullable=True)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    next_due_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_count: Mapped[int] = mapped_column(Integer, default=0)
    target_completion: Mapped[int | None] = mapped_column(Integer, nullable=True)

class KeyResultComment(Base, TimestampedTenantMixin):
    __tablename__ = "key_result_comment"

    key_result_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("key_result.id"), index=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    comment: Mapped[str] = mapped_column(Text)
