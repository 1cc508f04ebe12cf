import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON, Integer, TIMESTAMP, ForeignKey, UniqueConstraint
from app.core.base import Base, TimestampedTenantMixin

class KnowledgeCategory(Base, TimestampedTenantMixin):
    __tablename__ = "knowledge_category"
    __table_args__ = (UniqueConstraint("org_id", "name", name="uq_knowledge_category_org_name"),)

    name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("knowledge_category.id"), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(default=True)

class KnowledgeDocument(Base, TimestampedTenantMixin):
    __tablename__ = "knowledge_document"

    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    categories: Mapped[list | None] = mapped_column(JSON, nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="draft", index=True)  # draft | published | archived
    visibility: Mapped[str] = mapped_column(String(16), default="internal")  # public | internal | private
    author_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True)
    estimated_reading_time: Mapped[int] = mapped_column(Integer, default=1)  # minutes
    published_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

class DocumentVersion(Base, TimestampedTenantMixin):
    __tablename__ = "document_version"
    __table_args__ = (UniqueConstraint("document_id", "version_number", name="uq_document_version_number"),)

    document_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("knowledge_document.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    change_description: Mapped[str | None] = mapped_column(Text, nullable=True)

class DocumentAssignment(Base, TimestampedTenantMixin):
    __tablename__ = "document_assignment"

    document_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("knowledge_document.id"), index=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("user.id"), nullable=True, index=True)
    team_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("team.id"), nullable=True)
    assigner_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="assigned")  # assigned | in_progress | completed
    priority: Mapped[str] = mapped_column(String(16), default="medium")  # low | medium | high
    due_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
