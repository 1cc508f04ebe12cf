import uuid
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.security import Principal
from app.modules.work_items.models import WorkItem
from app.modules.work_items.repository import WorkItemRepository
from app.modules.work_items.schemas import WorkItemCreate, WorkItemUpdate, BulkUpdate
from app.modules.activity.models import ActivityLog
from app.modules.activity.service import ActivityService
from app.modules.events.outbox import OutboxService

class WorkItemService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.items = WorkItemRepository(session)
        self.activity = ActivityService(session)

    async def create(self, actor: Principal, payload: WorkItemCreate) -> WorkItem:
        data = payload.model_dump()
        if data.get("owner_id") is None:
            data["owner_id"] = actor.user_id
        obj = await self.items.create(actor.org_id, **data)
        await self.activity.log(actor.org_id, actor.user_id, "creation", "work_item", obj.id, f"Created work item: {obj.title}")
        await OutboxService(self.session).enqueue(actor.org_id, "WORK_ITEM_CREATED", "work_item", obj.id, {"status": obj.status, "type": obj.work_item_type})
        await self.session.commit()
        return obj

    async def get(self, org_id: uuid.UUID, item_id: uuid.UUID) -> WorkItem | None:
        return await self.items.get(org_id, item_id)

    async def list(self, org_id: uuid.UUID, **filters) -> Sequence[WorkItem]:
        return await self.items.search(org_id, **filters)

    async def update(self, actor: Principal, item_id: uuid.UUID, payload: WorkItemUpdate) -> WorkItem | None:
        obj = await self.items.get(actor.org_id, item_id)
        if not obj:
            return None
        before_status, before_assignee = obj.status, obj.assigned_to
        data = payload.model_dump(exclude_unset=True)
        await self.items.apply(obj, **data)
        await self._log_changes(actor, obj, before_status, before_assignee)
        await self.session.commit()
        return obj

    async def _log_changes(self, actor: Principal, obj: WorkItem, before_status: str, before_assignee: uuid.UUID | None):
        if obj.status != before_status:
            await self.activity.log(actor.org_id, actor.user_id, "status_change", "work_item", obj.id,
                                    f"Status changed from {before_status} to {obj.status}",
                                    {"from": before_status, "to": obj.status})
            await OutboxService(self.session).enqueue(actor.org_id, "WORK_ITEM_STATUS_CHANGED", "work_item", obj.id,
                                                      {"from": before_status, "to": obj.status})
        if obj.assigned_to != before_assignee:
            await self.activity.log(actor.org_id, actor.user_id, "assignment", "work_item", obj.id,
                                    "Assignee changed",
                                    {"from": str(before_assignee) if before_assignee else None,
                                     "to": str(obj.assigned_to) if obj.assigned_to else None})

    async def bulk_update(self, actor: Principal, payload: BulkUpdate) -> int:
        data = payload.set.model_dump(exclude_unset=True)
        items = await self.items.get_many(actor.org_id, payload.ids)
        for obj in items:
            before_status, before_assignee = obj.status, obj.assigned_to
            await self.items.apply(obj, **data)
            await self._log_changes(actor, obj, before_status, before_assignee)
        if items:
            await self.activity.log(actor.org_id, actor.user_id, "update", "work_item", items[0].id,
                                    f"Bulk updated {len(items)} work items",
                                    {"work_item_ids": [str(i.id) for i in items], "fields": sorted(data)})
        await self.session.commit()
        return len(items)

    async def delete(self, actor: Principal, item_id: uuid.UUID) -> WorkItem | None:
        obj = await self.items.soft_delete(actor.org_id, item_id)
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "work_item", obj.id, f"Deleted work item: {obj.title}")
        await self.session.commit()
        return obj

    # ---- Comments / activity ----
    async def add_comment(self, actor: Principal, item_id: uuid.UUID, comment: str) -> ActivityLog | None:
        obj = await self.items.get(actor.org_id, item_id)
        if not obj:
            return None
        entry = await self.activity.log(actor.org_id, actor.user_id, "comment", "work_item", obj.id, comment)
        await self.session.commit()
        return entry

    async def list_activity(self, org_id: uuid.UUID, item_id: uuid.UUID, *, action_type: str | None = None) -> Sequence[ActivityLog] | None:
        if not await self.items.get(org_id, item_id):
            return None
        return await self.activity.list(org_id, entity_type="work_item", entity_id=item_id, action_type=action_type, limit=200)
