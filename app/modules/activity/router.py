from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, Principal
from app.modules.activity.schemas import ActivityOut
from app.modules.activity.service import ActivityService

router = APIRouter()

@router.get("", response_model=list[ActivityOut])
async def list_activity(
    entity_type: str | None = None,
    entity_id: str | None = None,
    action_type: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    return await ActivityService(session).list(
        principal.org_id, entity_type=entity_type, entity_id=entity_id, action_type=action_type, limit=limit,
    )
