import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, JSON, ForeignKey, TIMESTAMP, Text, UniqueConstraint
from app.core.base import Base, TimestampedMixin, TimestampedTenantMixin

class Organization(Base, TimestampedMixin):
    name: Mapped[str] = mapped_column(String(160))
    domain: Mapped[str | None] = mapped_column(String(160), unique=True, nullable=True)
    subscription_tier: Mapped[str] = mapped_column(String(24), default="basic")  # basic | professional | enterprise
    is_active: Mapped[bool] = mapped_column(default=True)
    max_users: Mapped[int] = mapped_column(default=50)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(80), nullable=True)
    time_zone: Mapped[str] = mapped_column(String(64), default="UTC")
    currency: Mapped[str] = mapped_column(String(8), default="USD")
    settings: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    features: Mapped[dict | None] = mapped_column(JSON, nullable=True)

class User(Base, TimestampedTenantMixin):
    __table_args__ = (UniqueConstraint("org_id", "username", name="uq_user_org_username"),)

    username: Mapped[str] = mapped_column(String(80))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    role: Mapped[str] = mapped_column(String(24), default="team_member")
    is_active: Mapped[bool] = mapped_column(default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    can_assign_tickets: Mapped[bool] = mapped_column(default=False)
    splynx_admin_id: Mapped[int | None] = mapped_column(nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

class Team(Base, TimestampedTenantMixin):
    __table_args__ = (UniqueConstraint("org_id", "name", name="uq_team_org_name"),)

    name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_cadence: Mapped[str] = mapped_column(String(16), default="weekly")  # daily | weekly | bi_weekly | monthly
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")

class TeamMember(Base, TimestampedTenantMixin):
    __tablename__ = "team_member"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_teammember_team_user"),)

    team_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("team.id"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user.id"), index=True)
    role: Mapped[str] = mapped_column(String(16), default="Member")  # Leader | Member | Watcher
