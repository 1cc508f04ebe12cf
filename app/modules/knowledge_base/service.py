import math
import re
import uuid
from datetime import datetime, timezone
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import BadRequestError, ConflictError
from app.core.security import Principal
from app.modules.admin.models import TeamMember
from app.modules.admin.repository import TeamMemberRepository
from app.modules.knowledge_base.models import KnowledgeCategory, KnowledgeDocument, DocumentVersion, DocumentAssignment
from app.modules.knowledge_base.repository import (
    CategoryRepository, DocumentRepository, VersionRepository, AssignmentRepository,
)
from app.modules.knowledge_base.schemas import (
    DocumentCreate, DocumentUpdate, CategoryCreate, CategoryUpdate, AssignmentCreate, AssignmentUpdate,
)
from app.modules.activity.service import ActivityService
from app.modules.events.outbox import OutboxService

WORDS_PER_MINUTE = 200
_TAG_RE = re.compile(r"<[^>]+>")

def reading_time_minutes(content: str | None) -> int:
    words = len(_TAG_RE.sub(" ", content or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))

def _now() -> datetime:
    return datetime.now(timezone.utc)

class KnowledgeBaseService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.categories = CategoryRepository(session)
        self.documents = DocumentRepository(session)
        self.versions = VersionRepository(session)
        self.assignments = AssignmentRepository(session)
        self.activity = ActivityService(session)

    # ---- Documents ----
    async def list_documents(self, org_id: uuid.UUID, **filters) -> Sequence[KnowledgeDocument]:
        return await self.documents.search(org_id, **filters)

    async def get_document(self, org_id: uuid.UUID, doc_id: uuid.UUID) -> KnowledgeDocument | None:
        return await self.documents.get(org_id, doc_id)

    async def search(self, org_id: uuid.UUID, q: str, limit: int = 20) -> Sequence[KnowledgeDocument]:
        if not q or not q.strip():
            raise BadRequestError("Search query is required")
        return await self.documents.search(org_id, q=q.strip(), include_archived=False, limit=limit)

    async def create_document(self, actor: Principal, payload: DocumentCreate) -> KnowledgeDocument:
        data = payload.model_dump()
        data["estimated_reading_time"] = reading_time_minutes(data.get("content"))
        if data["status"] == "published":
            data["published_at"] = _now()
        obj = await self.documents.create(actor.org_id, author_id=actor.user_id, **data)
        await self._snapshot(actor, obj, "Initial version")
        await self.activity.log(actor.org_id, actor.user_id, "creation", "document", obj.id, f"Created document: {obj.title}")
        await self.session.commit()
        return obj

    async def update_document(self, actor: Principal, doc_id: uuid.UUID, payload: DocumentUpdate) -> KnowledgeDocument | None:
        obj = await self.documents.get(actor.org_id, doc_id)
        if not obj:
            return None
        data = payload.model_dump(exclude_unset=True)
        change_description = data.pop("change_description", None)
        content_changed = ("content" in data and data["content"] != obj.content) or ("title" in data and data["title"] != obj.title)
        before_status = obj.status
        if "content" in data:
            data["estimated_reading_time"] = reading_time_minutes(data["content"])
        await self.documents.apply(obj, **data)
        if obj.status != before_status:
            if obj.status == "published" and obj.published_at is None:
                obj.published_at = _now()
            if obj.status == "archived":
                obj.archived_at = _now()
            elif before_status == "archived":
                obj.archived_at = None
            await self.activity.log(actor.org_id, actor.user_id, "status_change", "document", obj.id,
                                    f"Status changed from {before_status} to {obj.status}", {"from": before_status, "to": obj.status})
        if content_changed:
            await self._snapshot(actor, obj, change_description or "Content updated")
        await self.session.commit()
        return obj

    async def delete_document(self, actor: Principal, doc_id: uuid.UUID) -> KnowledgeDocument | None:
        obj = await self.documents.soft_delete(actor.org_id, doc_id)
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "document", obj.id, f"Deleted document: {obj.title}")
        await self.session.commit()
        return obj

    # ---- Versions ----
    async def _snapshot(self, actor: Principal, doc: KnowledgeDocument, change_description: str | None) -> DocumentVersion:
        number = await self.versions.latest_number(doc.id) + 1
        return await self.versions.create(
            actor.org_id,
            document_id=doc.id,
            version_number=number,
            title=doc.title,
            content=doc.content,
            summary=doc.summary,
            changed_by=actor.user_id,
            change_description=change_description,
        )

    async def create_version(self, actor: Principal, doc_id: uuid.UUID, change_description: str | None) -> DocumentVersion | None:
        doc = await self.documents.get(actor.org_id, doc_id)
        if not doc:
            return None
        version = await self._snapshot(actor, doc, change_description)
        await self.session.commit()
        return version

    async def list_versions(self, org_id: uuid.UUID, doc_id: uuid.UUID) -> Sequence[DocumentVersion] | None:
        if not await self.documents.get(org_id, doc_id):
            return None
        return await self.versions.list(org_id, DocumentVersion.document_id == doc_id, limit=None)

    async def restore_version(self, actor: Principal, doc_id: uuid.UUID, number: int) -> KnowledgeDocument | None:
        doc = await self.documents.get(actor.org_id, doc_id)
        if not doc:
            return None
        version = await self.versions.get_number(actor.org_id, doc_id, number)
        if not version:
            return None
        await self.documents.apply(doc, title=version.title, content=version.content, summary=version.summary,
                                   estimated_reading_time=reading_time_minutes(version.content))
        await self._snapshot(actor, doc, f"Restored from version {number}")
        await self.activity.log(actor.org_id, actor.user_id, "update", "document", doc.id, f"Restored version {number}")
        await self.session.commit()
        return doc

    # ---- Categories ----
    async def list_categories(self, org_id: uuid.UUID) -> Sequence[KnowledgeCategory]:
        return await self.categories.list(org_id, limit=None)

    async def create_category(self, actor: Principal, payload: CategoryCreate) -> KnowledgeCategory:
        if await self.categories.find_one(actor.org_id, KnowledgeCategory.name == payload.name):
            raise ConflictError("A category with this name already exists")
        if payload.parent_id and not await self.categories.get(actor.org_id, payload.parent_id):
            raise BadRequestError("Parent category not found")
        obj = await self.categories.create(actor.org_id, **payload.model_dump())
        await self.session.commit()
        return obj

    async def update_category(self, actor: Principal, category_id: uuid.UUID, payload: CategoryUpdate) -> KnowledgeCategory | None:
        obj = await self.categories.get(actor.org_id, category_id)
        if not obj:
            return None
        data = payload.model_dump(exclude_unset=True)
        if data.get("name") and data["name"] != obj.name and await self.categories.find_one(actor.org_id, KnowledgeCategory.name == data["name"]):
            raise ConflictError("A category with this name already exists")
        if data.get("parent_id"):
            await self._check_parent(actor.org_id, obj.id, data["parent_id"])
        await self.categories.apply(obj, **data)
        await self.session.commit()
        return obj

    async def _check_parent(self, org_id: uuid.UUID, category_id: uuid.UUID, parent_id: uuid.UUID) -> None:
        if parent_id == category_id:
            raise BadRequestError("A category cannot be its own parent")
        seen = {category_id}
        current = await self.categories.get(org_id, parent_id)
        if not current:
            raise BadRequestError("Parent category not found")
        # walk up the chain; reaching the category itself would close a loop
        while current.parent_id:
            if current.parent_id in seen:
                raise BadRequestError("Category parent would create a cycle")
            seen.add(current.id)
            current = await self.categories.get(org_id, current.parent_id)
            if not current:
                break

    async def delete_category(self, actor: Principal, category_id: uuid.UUID) -> KnowledgeCategory | None:
        obj = await self.categories.soft_delete(actor.org_id, category_id)
        if not obj:
            return None
        obj.name = f"{obj.name[:80]}#deleted-{obj.id.hex[:8]}"
        await self.session.commit()
        return obj

    # ---- Assignments ----
    async def list_assignments(self, org_id: uuid.UUID, doc_id: uuid.UUID) -> Sequence[DocumentAssignment] | None:
        if not await self.documents.get(org_id, doc_id):
            return None
        return await self.assignments.for_document(org_id, doc_id)

    async def my_assignments(self, actor: Principal) -> Sequence[DocumentAssignment]:
        memberships = await TeamMemberRepository(self.session).list(actor.org_id, TeamMember.user_id == actor.user_id, limit=None)
        return await self.assignments.for_user(actor.org_id, actor.user_id, [m.team_id for m in memberships])

    async def assign(self, actor: Principal, doc_id: uuid.UUID, payload: AssignmentCreate) -> DocumentAssignment | None:
        if not payload.user_id and not payload.team_id:
            raise BadRequestError("Either user_id or team_id is required")
        doc = await self.documents.get(actor.org_id, doc_id)
        if not doc:
            return None
        obj = await self.assignments.create(actor.org_id, document_id=doc_id, assigner_id=actor.user_id, **payload.model_dump())
        await self.activity.log(actor.org_id, actor.user_id, "assignment", "document", doc_id, f"Assigned document: {doc.title}",
                                {"user_id": str(payload.user_id) if payload.user_id else None,
                                 "team_id": str(payload.team_id) if payload.team_id else None})
        await OutboxService(self.session).enqueue(actor.org_id, "DOCUMENT_ASSIGNED", "document", doc_id, {"assignment_id": str(obj.id)})
        await self.session.commit()
        return obj

    async def update_assignment(self, actor: Principal, doc_id: uuid.UUID, assignment_id: uuid.UUID, payload: AssignmentUpdate) -> DocumentAssignment | None:
        obj = await self.assignments.get(actor.org_id, assignment_id)
        if not obj or obj.document_id != doc_id:
            return None
        data = payload.model_dump(exclude_unset=True)
        before = obj.status
        await self.assignments.apply(obj, **data)
        if obj.status != before:
            obj.completed_at = _now() if obj.status == "completed" else None
            if obj.status == "completed":
                await self.activity.log(actor.org_id, actor.user_id, "completion", "document", doc_id, "Completed document assignment",
                                        {"assignment_id": str(obj.id)})
        await self.session.commit()
        return obj

    async def remove_assignment(self, actor: Principal, doc_id: uuid.UUID, assignment_id: uuid.UUID) -> DocumentAssignment | None:
        obj = await self.assignments.get(actor.org_id, assignment_id)
        if not obj or obj.document_id != doc_id:
            return None
        await self.assignments.soft_delete(actor.org_id, assignment_id)
        await self.session.commit()
        return obj
