import uuid
from typing import Sequence
from sqlalchemy import select
from app.core.repository import TenantRepository
from app.modules.strategy.models import MissionVision, Objective, KeyResult, KeyResultTask, KeyResultComment

class MissionVisionRepository(TenantRepository[MissionVision]):
    model = MissionVision

    async def for_org(self, org_id: uuid.UUID) -> MissionVision | None:
        res = await self.session.execute(select(MissionVision).where(MissionVision.org_id == org_id))
        return res.scalar_one_or_none()

class ObjectiveRepository(TenantRepository[Objective]):
    model = Objective
    default_order = (Objective.display_order.asc(), Objective.created_at.asc())

    async def next_display_order(self, org_id: uuid.UUID) -> int:
        return await self.count(org_id)

class KeyResultRepository(TenantRepository[KeyResult]):
    model = KeyResult
    default_order = (KeyResult.created_at.asc(),)

    async def for_objective(self, org_id: uuid.UUID, objective_id: uuid.UUID) -> Sequence[KeyResult]:
        return await self.list(org_id, KeyResult.objective_id == objective_id, limit=None)

class KeyResultTaskRepository(TenantRepository[KeyResultTask]):
    model = KeyResultTask
    default_order = (KeyResultTask.created_at.asc(),)

    async def for_key_result(self, org_id: uuid.UUID, key_result_id: uuid.UUID) -> Sequence[KeyResultTask]:
        return await self.list(org_id, KeyResultTask.key_result_id == key_result_id, limit=None)

class KeyResultCommentRepository(TenantRepository[KeyResultComment]):
    model = KeyResultComment
    default_order = (KeyResultComment.created_at.asc(),)
