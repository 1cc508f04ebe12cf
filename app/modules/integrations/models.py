from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON, TIMESTAMP, UniqueConstraint
from app.core.base import Base, TimestampedTenantMixin

class Integration(Base, TimestampedTenantMixin):
    __tablename__ = "integration"
    __table_args__ = (UniqueConstraint("org_id", "platform_type", name="uq_integration_org_platform"),)

    platform_type: Mapped[str] = mapped_column(String(32), index=True)
    name: Mapped[str] = mapped_column(String(120))
    connection_config: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    credentials_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    connection_status: Mapped[str] = mapped_column(String(16), default="disconnected")  # disconnected | connected | error
    last_tested_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    test_result: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_enabled: Mapped[bool] = mapped_column(default=False)
