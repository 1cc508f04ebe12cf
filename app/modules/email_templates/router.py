import uuid
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, MANAGERS
from app.modules.email_templates.schemas import (
    TEMPLATE_STATUS, EmailTemplateCreate, EmailTemplateUpdate, EmailTemplateOut, PreviewIn, PreviewOut,
)
from app.modules.email_templates.service import EmailTemplateService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> EmailTemplateService:
    return EmailTemplateService(session)

@router.get("", response_model=list[EmailTemplateOut])
async def list_templates(
    status: str | None = Query(default=None, pattern=TEMPLATE_STATUS),
    principal: Principal = Depends(get_principal),
    service: EmailTemplateService = Depends(svc),
):
    return await service.list(principal.org_id, status=status)

@router.post("", response_model=EmailTemplateOut, status_code=201)
async def create_template(payload: EmailTemplateCreate, principal: Principal = Depends(require_roles(*MANAGERS)), service: EmailTemplateService = Depends(svc)):
    return await service.create(principal, payload)

@router.get("/{template_id}", response_model=EmailTemplateOut)
async def get_template(template_id: uuid.UUID, principal: Principal = Depends(get_principal), service: EmailTemplateService = Depends(svc)):
    obj = await service.get(principal.org_id, template_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Email template not found")
    return obj

@router.patch("/{template_id}", response_model=EmailTemplateOut)
async def update_template(template_id: uuid.UUID, payload: EmailTemplateUpdate, principal: Principal = Depends(require_roles(*MANAGERS)), service: EmailTemplateService = Depends(svc)):
    obj = await service.update(principal, template_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Email template not found")
    return obj

@router.delete("/{template_id}", status_code=204)
async def delete_template(template_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: EmailTemplateService = Depends(svc)):
    if not await service.delete(principal, template_id):
        raise HTTPException(status_code=404, detail="Email template not found")

@router.post("/{template_id}/preview", response_model=PreviewOut)
async def preview_template(template_id: uuid.UUID, payload: PreviewIn, principal: Principal = Depends(get_principal), service: EmailTemplateService = Depends(svc)):
    res = await service.preview(principal.org_id, template_id, payload.variables)
    if not res:
        raise HTTPException(status_code=404, detail="Email template not found")
    return res
