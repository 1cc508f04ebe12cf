import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON
from app.core.base import Base, TimestampedTenantMixin

class ActivityLog(Base, TimestampedTenantMixin):
    # who
    user_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    # what happened
    action_type: Mapped[str] = mapped_column(String(32))  # creation | status_change | assignment | comment | kpi_update | completion | deletion | generation | update
    entity_type: Mapped[str] = mapped_column(String(48), index=True)  # work_item | objective | key_result | document | ...
    entity_id: Mapped[str] = mapped_column(String(64), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
