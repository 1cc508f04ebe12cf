import uuid
from typing import Sequence
from sqlalchemy import select, or_
from app.core.repository import TenantRepository
from app.modules.work_items.models import WorkItem

class WorkItemRepository(TenantRepository[WorkItem]):
    model = WorkItem

    async def search(self, org_id: uuid.UUID, *, statuses: list[str] | None = None, team_id: uuid.UUID | None = None,
                     assigned_to: uuid.UUID | None = None, owner_id: uuid.UUID | None = None,
                     key_result_task_id: uuid.UUID | None = None, work_item_type: str | None = None,
                     q: str | None = None, limit: int = 50, offset: int = 0) -> Sequence[WorkItem]:
        conditions = []
        if statuses:           conditions.append(WorkItem.status.in_(statuses))
        if team_id:            conditions.append(WorkItem.team_id == team_id)
        if assigned_to:        conditions.append(WorkItem.assigned_to == assigned_to)
        if owner_id:           conditions.append(WorkItem.owner_id == owner_id)
        if key_result_task_id: conditions.append(WorkItem.key_result_task_id == key_result_task_id)
        if work_item_type:     conditions.append(WorkItem.work_item_type == work_item_type)
        if q:
            like = f"%{q}%"
            conditions.append(or_(WorkItem.title.ilike(like), WorkItem.description.ilike(like)))
        return await self.list(org_id, *conditions, limit=limit, offset=offset)

    async def get_many(self, org_id: uuid.UUID, ids: list[uuid.UUID]) -> Sequence[WorkItem]:
        res = await self.session.execute(
            select(WorkItem).where(WorkItem.id.in_(ids), *self._base_conditions(org_id))
        )
        return res.scalars().all()
