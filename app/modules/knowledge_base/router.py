import uuid
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, MANAGERS
from app.modules.knowledge_base.schemas import (
    DOC_STATUS, DocumentCreate, DocumentUpdate, DocumentOut,
    VersionCreate, VersionOut,
    CategoryCreate, CategoryUpdate, CategoryOut,
    AssignmentCreate, AssignmentUpdate, AssignmentOut,
)
from app.modules.knowledge_base.service import KnowledgeBaseService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> KnowledgeBaseService:
    return KnowledgeBaseService(session)

# ---- Documents ----

@router.get("/documents", response_model=list[DocumentOut])
async def list_documents(
    status: str | None = Query(default=None, pattern=DOC_STATUS),
    category: str | None = None,
    q: str | None = None,
    limit: int = Query(50, ge=1, le=500), offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_principal),
    service: KnowledgeBaseService = Depends(svc),
):
    return await service.list_documents(principal.org_id, status=status, category=category, q=q, limit=limit, offset=offset)

@router.post("/documents", response_model=DocumentOut, status_code=201)
async def create_document(payload: DocumentCreate, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    return await service.create_document(principal, payload)

@router.get("/documents/{doc_id}", response_model=DocumentOut)
async def get_document(doc_id: uuid.UUID, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.get_document(principal.org_id, doc_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Document not found")
    return obj

@router.put("/documents/{doc_id}", response_model=DocumentOut)
async def update_document(doc_id: uuid.UUID, payload: DocumentUpdate, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.update_document(principal, doc_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Document not found")
    return obj

@router.delete("/documents/{doc_id}", status_code=204)
async def delete_document(doc_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: KnowledgeBaseService = Depends(svc)):
    if not await service.delete_document(principal, doc_id):
        raise HTTPException(status_code=404, detail="Document not found")

# ---- Versions ----

@router.get("/documents/{doc_id}/versions", response_model=list[VersionOut])
async def list_versions(doc_id: uuid.UUID, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    rows = await service.list_versions(principal.org_id, doc_id)
    if rows is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return rows

@router.post("/documents/{doc_id}/versions", response_model=VersionOut, status_code=201)
async def create_version(doc_id: uuid.UUID, payload: VersionCreate, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.create_version(principal, doc_id, payload.change_description)
    if not obj:
        raise HTTPException(status_code=404, detail="Document not found")
    return obj

@router.post("/documents/{doc_id}/versions/{version_number}/restore", response_model=DocumentOut)
async def restore_version(doc_id: uuid.UUID, version_number: int, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.restore_version(principal, doc_id, version_number)
    if not obj:
        raise HTTPException(status_code=404, detail="Document version not found")
    return obj

# ---- Search ----

@router.get("/search", response_model=list[DocumentOut])
async def search_documents(q: str = "", limit: int = Query(20, ge=1, le=100), principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    return await service.search(principal.org_id, q, limit=limit)

# ---- Categories ----

@router.get("/categories", response_model=list[CategoryOut])
async def list_categories(principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    return await service.list_categories(principal.org_id)

@router.post("/categories", response_model=CategoryOut, status_code=201)
async def create_category(payload: CategoryCreate, principal: Principal = Depends(require_roles(*MANAGERS)), service: KnowledgeBaseService = Depends(svc)):
    return await service.create_category(principal, payload)

@router.put("/categories/{category_id}", response_model=CategoryOut)
async def update_category(category_id: uuid.UUID, payload: CategoryUpdate, principal: Principal = Depends(require_roles(*MANAGERS)), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.update_category(principal, category_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Category not found")
    return obj

@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: KnowledgeBaseService = Depends(svc)):
    if not await service.delete_category(principal, category_id):
        raise HTTPException(status_code=404, detail="Category not found")

# ---- Assignments ----

@router.get("/assignments", response_model=list[AssignmentOut])
async def my_assignments(principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    return await service.my_assignments(principal)

@router.get("/documents/{doc_id}/assignments", response_model=list[AssignmentOut])
async def list_assignments(doc_id: uuid.UUID, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    rows = await service.list_assignments(principal.org_id, doc_id)
    if rows is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return rows

@router.post("/documents/{doc_id}/assignments", response_model=AssignmentOut, status_code=201)
async def assign_document(doc_id: uuid.UUID, payload: AssignmentCreate, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.assign(principal, doc_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Document not found")
    return obj

@router.patch("/documents/{doc_id}/assignments/{assignment_id}", response_model=AssignmentOut)
async def update_assignment(doc_id: uuid.UUID, assignment_id: uuid.UUID, payload: AssignmentUpdate, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    obj = await service.update_assignment(principal, doc_id, assignment_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return obj

@router.delete("/documents/{doc_id}/assignments/{assignment_id}", status_code=204)
async def remove_assignment(doc_id: uuid.UUID, assignment_id: uuid.UUID, principal: Principal = Depends(get_principal), service: KnowledgeBaseService = Depends(svc)):
    if not await service.remove_assignment(principal, doc_id, assignment_id):
        raise HTTPException(status_code=404, detail="Assignment not found")
