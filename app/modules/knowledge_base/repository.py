import uuid
from typing import Sequence
from sqlalchemy import select, func, or_, String
from app.core.repository import TenantRepository
from app.modules.knowledge_base.models import KnowledgeCategory, KnowledgeDocument, DocumentVersion, DocumentAssignment

class CategoryRepository(TenantRepository[KnowledgeCategory]):
    model = KnowledgeCategory
    default_order = (KnowledgeCategory.sort_order.asc(), KnowledgeCategory.name.asc())

class DocumentRepository(TenantRepository[KnowledgeDocument]):
    model = KnowledgeDocument
    default_order = (KnowledgeDocument.updated_at.desc(),)

    async def search(self, org_id: uuid.UUID, *, status: str | None = None, category: str | None = None,
                     q: str | None = None, include_archived: bool = True, limit: int = 50, offset: int = 0) -> Sequence[KnowledgeDocument]:
        conditions = []
        if status:
            conditions.append(KnowledgeDocument.status == status)
        elif not include_archived:
            conditions.append(KnowledgeDocument.status != "archived")
        if category:
            # JSON list stored as text: match the quoted element
            conditions.append(KnowledgeDocument.categories.cast(String).like(f'%"{category}"%'))
        if q:
            like = f"%{q}%"
            conditions.append(or_(
                KnowledgeDocument.title.ilike(like),
                KnowledgeDocument.summary.ilike(like),
                KnowledgeDocument.content.ilike(like),
            ))
        return await self.list(org_id, *conditions, limit=limit, offset=offset)

class VersionRepository(TenantRepository[DocumentVersion]):
    model = DocumentVersion
    default_order = (DocumentVersion.version_number.desc(),)

    async def latest_number(self, document_id: uuid.UUID) -> int:
        res = await self.session.execute(
            select(func.max(DocumentVersion.version_number)).where(DocumentVersion.document_id == document_id)
        )
        return res.scalar_one() or 0

    async def get_number(self, org_id: uuid.UUID, document_id: uuid.UUID, number: int) -> DocumentVersion | None:
        return await self.find_one(org_id, DocumentVersion.document_id == document_id, DocumentVersion.version_number == number)

class AssignmentRepository(TenantRepository[DocumentAssignment]):
    model = DocumentAssignment

    async def for_document(self, org_id: uuid.UUID, document_id: uuid.UUID) -> Sequence[DocumentAssignment]:
        return await self.list(org_id, DocumentAssignment.document_id == document_id, limit=None)

    async def for_user(self, org_id: uuid.UUID, user_id: uuid.UUID, team_ids: list[uuid.UUID]) -> Sequence[DocumentAssignment]:
        cond = DocumentAssignment.user_id == user_id
        if team_ids:
            cond = or_(cond, DocumentAssignment.team_id.in_(team_ids))
        return await self.list(org_id, cond, limit=None)
