import uuid
from datetime import datetime, timezone
from sqlalchemy.orm import DeclarativeBase, declared_attr, Mapped, mapped_column
from sqlalchemy import text, TIMESTAMP

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Base(DeclarativeBase):
    pass

class TimestampedMixin:
    """UUID key, audit timestamps, soft delete and an optimistic version counter."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("CURRENT_TIMESTAMP"), onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(default=1)

    # load server-side timestamps right after INSERT (no lazy refresh under asyncio)
    __mapper_args__ = {"eager_defaults": True}

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    def bump_version(self) -> None:
        self.version = (self.version or 1) + 1

    def mark_deleted(self) -> None:
        self.deleted_at = utcnow()

class TimestampedTenantMixin(TimestampedMixin):
    """Rows owned by one organization; every query filters on org_id."""

    org_id: Mapped[uuid.UUID] = mapped_column(index=True)
