import uuid
from typing import Sequence
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.activity.models import ActivityLog

class ActivityService:
    """Writes activity entries inside the caller's transaction; the caller commits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(self,
                  org_id: uuid.UUID,
                  user_id: uuid.UUID | None,
                  action_type: str,
                  entity_type: str,
                  entity_id: str | uuid.UUID,
                  description: str | None = None,
                  meta: dict | None = None) -> ActivityLog:
        ev = ActivityLog(
            org_id=org_id,
            user_id=user_id,
            action_type=action_type,
            entity_type=entity_type,
            entity_id=str(entity_id),
            description=description,
            meta=meta or {},
        )
        self.session.add(ev)
        await self.session.flush()
        return ev

    async def list(self, org_id: uuid.UUID, *, entity_type: str | None = None, entity_id: str | uuid.UUID | None = None,
                   action_type: str | None = None, limit: int = 50) -> Sequence[ActivityLog]:
        q = select(ActivityLog).where(ActivityLog.org_id == org_id, ActivityLog.deleted_at.is_(None))
        if entity_type:
            q = q.where(ActivityLog.entity_type == entity_type)
        if entity_id is not None:
            q = q.where(ActivityLog.entity_id == str(entity_id))
        if action_type:
            q = q.where(ActivityLog.action_type == action_type)
        q = q.order_by(desc(ActivityLog.created_at)).limit(limit)
        res = await self.session.execute(q)
        return res.scalars().all()
