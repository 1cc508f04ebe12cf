import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, MANAGERS
from app.modules.activity.schemas import ActivityOut
from app.modules.work_items.schemas import (
    WorkItemCreate, WorkItemUpdate, WorkItemOut, BulkUpdate, BulkResult, CommentCreate,
)
from app.modules.work_items.service import WorkItemService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> WorkItemService:
    return WorkItemService(session)

@router.get("", response_model=list[WorkItemOut])
async def list_work_items(
    status: str | None = Query(default=None, description="Comma separated statuses"),
    team_id: uuid.UUID | None = None,
    assigned_to: uuid.UUID | None = None,
    owner_id: uuid.UUID | None = None,
    key_result_task_id: uuid.UUID | None = None,
    work_item_type: str | None = None,
    q: str | None = None,
    limit: int = Query(50, ge=1, le=500), offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_principal),
    service: WorkItemService = Depends(svc),
):
    statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
    return await service.list(principal.org_id, statuses=statuses, team_id=team_id, assigned_to=assigned_to,
                              owner_id=owner_id, key_result_task_id=key_result_task_id,
                              work_item_type=work_item_type, q=q, limit=limit, offset=offset)

@router.post("", response_model=WorkItemOut, status_code=201)
async def create_work_item(payload: WorkItemCreate, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    return await service.create(principal, payload)

@router.patch("/bulk", response_model=BulkResult)
async def bulk_update(payload: BulkUpdate, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    return BulkResult(updated=await service.bulk_update(principal, payload))

@router.get("/{item_id}", response_model=WorkItemOut)
async def get_work_item(item_id: uuid.UUID, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    obj = await service.get(principal.org_id, item_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Work item not found")
    return obj

@router.patch("/{item_id}", response_model=WorkItemOut)
async def update_work_item(item_id: uuid.UUID, payload: WorkItemUpdate, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    obj = await service.update(principal, item_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Work item not found")
    return obj

@router.delete("/{item_id}", status_code=204)
async def delete_work_item(item_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: WorkItemService = Depends(svc)):
    if not await service.delete(principal, item_id):
        raise HTTPException(status_code=404, detail="Work item not found")
    return Response(status_code=204)

# ---- Comments / activity ----

@router.post("/{item_id}/comments", response_model=ActivityOut, status_code=201)
async def add_comment(item_id: uuid.UUID, payload: CommentCreate, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    obj = await service.add_comment(principal, item_id, payload.comment)
    if not obj:
        raise HTTPException(status_code=404, detail="Work item not found")
    return obj

@router.get("/{item_id}/comments", response_model=list[ActivityOut])
async def list_comments(item_id: uuid.UUID, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    res = await service.list_activity(principal.org_id, item_id, action_type="comment")
    if res is None:
        raise HTTPException(status_code=404, detail="Work item not found")
    return res

@router.get("/{item_id}/activity", response_model=list[ActivityOut])
async def list_activity(item_id: uuid.UUID, principal: Principal = Depends(get_principal), service: WorkItemService = Depends(svc)):
    res = await service.list_activity(principal.org_id, item_id)
    if res is None:
        raise HTTPException(status_code=404, detail="Work item not found")
    return res
