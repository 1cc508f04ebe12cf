import uuid
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.repository import TenantRepository
from app.core.security import Principal
from app.modules.activity.service import ActivityService
from app.modules.email_templates.models import EmailTemplate
from app.modules.email_templates.render import render_template
from app.modules.email_templates.schemas import EmailTemplateCreate, EmailTemplateUpdate, PreviewOut

class EmailTemplateRepository(TenantRepository[EmailTemplate]):
    model = EmailTemplate
    default_order = (EmailTemplate.title.asc(),)

class EmailTemplateService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.templates = EmailTemplateRepository(session)
        self.activity = ActivityService(session)

    async def list(self, org_id: uuid.UUID, status: str | None = None) -> Sequence[EmailTemplate]:
        conditions = [EmailTemplate.status == status] if status else []
        return await self.templates.list(org_id, *conditions, limit=None)

    async def get(self, org_id: uuid.UUID, template_id: uuid.UUID) -> EmailTemplate | None:
        return await self.templates.get(org_id, template_id)

    async def create(self, actor: Principal, payload: EmailTemplateCreate) -> EmailTemplate:
        obj = await self.templates.create(actor.org_id, **payload.model_dump())
        await self.activity.log(actor.org_id, actor.user_id, "creation", "email_template", obj.id, f"Created email template: {obj.title}")
        await self.session.commit()
        return obj

    async def update(self, actor: Principal, template_id: uuid.UUID, payload: EmailTemplateUpdate) -> EmailTemplate | None:
        obj = await self.templates.update_fields(actor.org_id, template_id, **payload.model_dump(exclude_unset=True))
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "update", "email_template", obj.id, f"Updated email template: {obj.title}")
        await self.session.commit()
        return obj

    async def delete(self, actor: Principal, template_id: uuid.UUID) -> EmailTemplate | None:
        obj = await self.templates.soft_delete(actor.org_id, template_id)
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "email_template", obj.id, f"Deleted email template: {obj.title}")
        await self.session.commit()
        return obj

    async def preview(self, org_id: uuid.UUID, template_id: uuid.UUID, variables: dict) -> PreviewOut | None:
        obj = await self.templates.get(org_id, template_id)
        if not obj:
            return None
        return PreviewOut(**render_template(obj.subject, obj.html_body, variables))
