from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON
from app.core.base import Base, TimestampedTenantMixin

class EmailTemplate(Base, TimestampedTenantMixin):
    __tablename__ = "email_template"

    title: Mapped[str] = mapped_column(String(256))
    subject: Mapped[str] = mapped_column(String(500))
    html_body: Mapped[str] = mapped_column(Text)
    variables_manifest: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="active", index=True)  # active | draft | archived
