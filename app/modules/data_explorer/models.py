import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, TIMESTAMP, ForeignKey, UniqueConstraint
from app.core.base import Base, TimestampedTenantMixin

class DataTable(Base, TimestampedTenantMixin):
    __tablename__ = "data_table"
    __table_args__ = (UniqueConstraint("org_id", "table_name", name="uq_data_table_org_name"),)

    table_name: Mapped[str] = mapped_column(String(64))
    label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    row_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_analyzed: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

class DataField(Base, TimestampedTenantMixin):
    __tablename__ = "data_field"
    __table_args__ = (UniqueConstraint("table_id", "field_name", name="uq_data_field_table_name"),)

    table_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("data_table.id"), index=True)
    field_name: Mapped[str] = mapped_column(String(64))
    field_type: Mapped[str] = mapped_column(String(32))
    nullable: Mapped[bool] = mapped_column(default=True)
    is_primary_key: Mapped[bool] = mapped_column(default=False)
    is_foreign_key: Mapped[bool] = mapped_column(default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
