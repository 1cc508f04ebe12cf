import uuid
from fastapi import APIRouter, Depends, HTTPException, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import require_roles, Principal, ADMINS
from app.modules.integrations.schemas import (
    PLATFORM_TYPE, IntegrationCreate, IntegrationUpdate, IntegrationOut, IntegrationTestOut,
)
from app.modules.integrations.service import IntegrationService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> IntegrationService:
    return IntegrationService(session)

admin_only = require_roles(*ADMINS)

@router.get("", response_model=list[IntegrationOut])
async def list_integrations(principal: Principal = Depends(admin_only), service: IntegrationService = Depends(svc)):
    return await service.list(principal.org_id)

@router.post("", response_model=IntegrationOut, status_code=201)
async def create_integration(payload: IntegrationCreate, principal: Principal = Depends(admin_only), service: IntegrationService = Depends(svc)):
    return await service.create(principal, payload)

@router.patch("/{integration_id}", response_model=IntegrationOut)
async def update_integration(integration_id: uuid.UUID, payload: IntegrationUpdate, principal: Principal = Depends(admin_only), service: IntegrationService = Depends(svc)):
    obj = await service.update(principal, integration_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Integration not found")
    return obj

@router.get("/{platform_type}", response_model=IntegrationOut)
async def get_integration(platform_type: str = Path(..., pattern=PLATFORM_TYPE), principal: Principal = Depends(admin_only), service: IntegrationService = Depends(svc)):
    obj = await service.get(principal.org_id, platform_type)
    if not obj:
        raise HTTPException(status_code=404, detail="Integration not found")
    return obj

@router.post("/{platform_type}/test", response_model=IntegrationTestOut)
async def test_integration(platform_type: str = Path(..., pattern=PLATFORM_TYPE), principal: Principal = Depends(admin_only), service: IntegrationService = Depends(svc)):
    res = await service.test(principal, platform_type)
    if not res:
        raise HTTPException(status_code=404, detail="Integration not found")
    return res

@router.delete("/{platform_type}", status_code=204)
async def delete_integration(platform_type: str = Path(..., pattern=PLATFORM_TYPE), principal: Principal = Depends(admin_only), service: IntegrationService = Depends(svc)):
    if not await service.delete(principal, platform_type):
        raise HTTPException(status_code=404, detail="Integration not found")
    return Response(status_code=204)
