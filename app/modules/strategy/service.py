import uuid
import logging
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import BadRequestError
from app.core.security import Principal
from app.modules.strategy.models import MissionVision, Objective, KeyResult, KeyResultTask, KeyResultComment
from app.modules.strategy.repository import (
    MissionVisionRepository, ObjectiveRepository, KeyResultRepository,
    KeyResultTaskRepository, KeyResultCommentRepository,
)
from app.modules.strategy.schemas import (
    MissionVisionIn, ObjectiveCreate, ObjectiveUpdate, KeyResultCreate, KeyResultUpdate,
    TaskCreate, TaskUpdate,
)
from app.modules.strategy.progress import objective_completion, next_occurrence
from app.modules.activity.models import ActivityLog
from app.modules.activity.service import ActivityService
from app.modules.events.outbox import OutboxService
from app.modules.work_items.models import WorkItem
from app.modules.work_items.repository import WorkItemRepository

logger = logging.getLogger(__name__)

class StrategyService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.mission = MissionVisionRepository(session)
        self.objectives = ObjectiveRepository(session)
        self.key_results = KeyResultRepository(session)
        self.tasks = KeyResultTaskRepository(session)
        self.comments = KeyResultCommentRepository(session)
        self.activity = ActivityService(session)

    # ---- Mission / vision ----
    async def get_mission_vision(self, org_id: uuid.UUID) -> MissionVision | None:
        return await self.mission.for_org(org_id)

    async def upsert_mission_vision(self, actor: Principal, payload: MissionVisionIn) -> MissionVision:
        data = payload.model_dump(exclude_unset=True)
        obj = await self.mission.for_org(actor.org_id)
        if obj:
            await self.mission.apply(obj, updated_by=actor.user_id, **data)
        else:
            obj = await self.mission.create(actor.org_id, updated_by=actor.user_id, **data)
        await self.activity.log(actor.org_id, actor.user_id, "update", "mission_vision", obj.id, "Updated mission and vision")
        await self.session.commit()
        return obj

    # ---- Objectives ----
    async def list_objectives(self, org_id: uuid.UUID, *, status: str | None = None, team_id: uuid.UUID | None = None) -> Sequence[Objective]:
        conditions = []
        if status:  conditions.append(Objective.status == status)
        if team_id: conditions.append(Objective.team_id == team_id)
        return await self.objectives.list(org_id, *conditions, limit=None)

    async def get_objective(self, org_id: uuid.UUID, objective_id: uuid.UUID) -> Objective | None:
        return await self.objectives.get(org_id, objective_id)

    async def create_objective(self, actor: Principal, payload: ObjectiveCreate) -> Objective:
        data = payload.model_dump()
        if data.get("owner_id") is None:
            data["owner_id"] = actor.user_id
        data["display_order"] = await self.objectives.next_display_order(actor.org_id)
        obj = await self.objectives.create(actor.org_id, **data)
        await self.activity.log(actor.org_id, actor.user_id, "creation", "objective", obj.id, f"Created objective: {obj.title}")
        await OutboxService(self.session).enqueue(actor.org_id, "OBJECTIVE_CREATED", "objective", obj.id, {"status": obj.status})
        await self.session.commit()
        return obj

    async def update_objective(self, actor: Principal, objective_id: uuid.UUID, payload: ObjectiveUpdate) -> Objective | None:
        obj = await self.objectives.get(actor.org_id, objective_id)
        if not obj:
            return None
        before = obj.status
        await self.objectives.apply(obj, **payload.model_dump(exclude_unset=True))
        if obj.status != before:
            await self.activity.log(actor.org_id, actor.user_id, "status_change", "objective", obj.id,
                                    f"Status changed from {before} to {obj.status}", {"from": before, "to": obj.status})
        else:
            await self.activity.log(actor.org_id, actor.user_id, "update", "objective", obj.id, f"Updated objective: {obj.title}")
        await self.session.commit()
        return obj

    async def reorder_objectives(self, actor: Principal, ids: list[uuid.UUID]) -> Sequence[Objective]:
        if len(set(ids)) != len(ids):
            raise BadRequestError("Duplicate objective ids in reorder request")
        for position, objective_id in enumerate(ids):
            obj = await self.objectives.get(actor.org_id, objective_id)
            if not obj:
                raise BadRequestError(f"Unknown objective {objective_id}")
            obj.display_order = position
        await self.session.flush()
        await self.session.commit()
        return await self.objectives.list(actor.org_id, limit=None)

    async def delete_objective(self, actor: Principal, objective_id: uuid.UUID) -> Objective | None:
        obj = await self.objectives.soft_delete(actor.org_id, objective_id)
        if not obj:
            return None
        for kr in await self.key_results.for_objective(actor.org_id, objective_id):
            await self.key_results.soft_delete(actor.org_id, kr.id)
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "objective", obj.id, f"Deleted objective: {obj.title}")
        await self.session.commit()
        return obj

    async def objective_key_results(self, org_id: uuid.UUID, objective_id: uuid.UUID) -> Sequence[KeyResult] | None:
        if not await self.objectives.get(org_id, objective_id):
            return None
        return await self.key_results.for_objective(org_id, objective_id)

    async def entity_activity(self, org_id: uuid.UUID, entity_type: str, entity_id: uuid.UUID) -> Sequence[ActivityLog]:
        return await self.activity.list(org_id, entity_type=entity_type, entity_id=entity_id, limit=200)

    # ---- Key results ----
    async def list_key_results(self, org_id: uuid.UUID, *, objective_id: uuid.UUID | None = None) -> Sequence[KeyResult]:
        conditions = [KeyResult.objective_id == objective_id] if objective_id else []
        return await self.key_results.list(org_id, *conditions, limit=None)

    async def get_key_result(self, org_id: uuid.UUID, kr_id: uuid.UUID) -> KeyResult | None:
        return await self.key_results.get(org_id, kr_id)

    async def create_key_result(self, actor: Principal, payload: KeyResultCreate) -> KeyResult | None:
        if not await self.objectives.get(actor.org_id, payload.objective_id):
            return None
        data = payload.model_dump()
        if data.get("owner_id") is None:
            data["owner_id"] = actor.user_id
        obj = await self.key_results.create(actor.org_id, **data)
        await self.activity.log(actor.org_id, actor.user_id, "creation", "key_result", obj.id, f"Created key result: {obj.title}",
                                {"objective_id": str(obj.objective_id)})
        await self._recompute_objective(actor.org_id, obj.objective_id)
        await self.session.commit()
        return obj

    async def update_key_result(self, actor: Principal, kr_id: uuid.UUID, payload: KeyResultUpdate) -> KeyResult | None:
        obj = await self.key_results.get(actor.org_id, kr_id)
        if not obj:
            return None
        before = obj.status
        await self.key_results.apply(obj, **payload.model_dump(exclude_unset=True))
        if obj.status != before:
            action = "completion" if obj.status == "Completed" else "status_change"
            await self.activity.log(actor.org_id, actor.user_id, action, "key_result", obj.id,
                                    f"Status changed from {before} to {obj.status}", {"from": before, "to": obj.status})
        await self._recompute_objective(actor.org_id, obj.objective_id)
        await self.session.commit()
        return obj

    async def delete_key_result(self, actor: Principal, kr_id: uuid.UUID) -> KeyResult | None:
        obj = await self.key_results.soft_delete(actor.org_id, kr_id)
        if not obj:
            return None
        for task in await self.tasks.for_key_result(actor.org_id, kr_id):
            await self.tasks.soft_delete(actor.org_id, task.id)
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "key_result", obj.id, f"Deleted key result: {obj.title}")
        await self._recompute_objective(actor.org_id, obj.objective_id)
        await self.session.commit()
        return obj

    async def record_progress(self, org_id: uuid.UUID, user_id: uuid.UUID | None, kr_id: uuid.UUID, value: float,
                              *, notes: str | None = None, update_type: str = "set_value", source: str | None = None) -> KeyResult | None:
        """Sets or increments current_value; the caller commits."""
        obj = await self.key_results.get(org_id, kr_id)
        if not obj:
            return None
        old = obj.current_value or 0
        new = old + value if update_type == "increment" else value
        await self.key_results.apply(obj, current_value=new)
        meta = {"previous_value": old, "current_value": new, "notes": notes}
        if source:
            meta["source"] = source
        await self.activity.log(org_id, user_id, "kpi_update", "key_result", obj.id, f"Updated progress to {new:g}", meta)
        await OutboxService(self.session).enqueue(org_id, "KEY_RESULT_PROGRESS", "key_result", obj.id, {"from": old, "to": new})
        await self._recompute_objective(org_id, obj.objective_id)
        return obj

    async def update_progress(self, actor: Principal, kr_id: uuid.UUID, value: float, notes: str | None) -> KeyResult | None:
        obj = await self.record_progress(actor.org_id, actor.user_id, kr_id, value, notes=notes)
        if obj:
            await self.session.commit()
        return obj

    async def _recompute_objective(self, org_id: uuid.UUID, objective_id: uuid.UUID) -> None:
        objective = await self.objectives.get(org_id, objective_id)
        if not objective or objective.kpi_type != "Derived from Key Results":
            return
        objective.current_value = objective_completion(await self.key_results.for_objective(org_id, objective_id))
        await self.session.flush()

    # ---- Key result comments ----
    async def add_comment(self, actor: Principal, kr_id: uuid.UUID, comment: str) -> KeyResultComment | None:
        if not await self.key_results.get(actor.org_id, kr_id):
            return None
        obj = await self.comments.create(actor.org_id, key_result_id=kr_id, user_id=actor.user_id, comment=comment)
        await self.activity.log(actor.org_id, actor.user_id, "comment", "key_result", kr_id, comment)
        await self.session.commit()
        return obj

    async def list_comments(self, org_id: uuid.UUID, kr_id: uuid.UUID) -> Sequence[KeyResultComment] | None:
        if not await self.key_results.get(org_id, kr_id):
            return None
        return await self.comments.list(org_id, KeyResultComment.key_result_id == kr_id, limit=None)

    # ---- Key result tasks ----
    async def list_tasks(self, org_id: uuid.UUID, kr_id: uuid.UUID) -> Sequence[KeyResultTask] | None:
        if not await self.key_results.get(org_id, kr_id):
            return None
        return await self.tasks.for_key_result(org_id, kr_id)

    async def get_task(self, org_id: uuid.UUID, task_id: uuid.UUID) -> KeyResultTask | None:
        return await self.tasks.get(org_id, task_id)

    async def create_task(self, actor: Principal, kr_id: uuid.UUID, payload: TaskCreate) -> KeyResultTask | None:
        kr = await self.key_results.get(actor.org_id, kr_id)
        if not kr:
            return None
        if payload.is_recurring and not payload.frequency:
            raise BadRequestError("Recurring tasks need a frequency")
        data = payload.model_dump()
        if data.get("team_id") is None:
            data["team_id"] = kr.team_id
        obj = await self.tasks.create(actor.org_id, key_result_id=kr_id, **data)
        await self.activity.log(actor.org_id, actor.user_id, "creation", "key_result_task", obj.id, f"Created task: {obj.title}",
                                {"key_result_id": str(kr_id)})
        await self.session.commit()
        return obj

    async def update_task(self, actor: Principal, task_id: uuid.UUID, payload: TaskUpdate) -> KeyResultTask | None:
        obj = await self.tasks.get(actor.org_id, task_id)
        if not obj:
            return None
        before = obj.status
        data = payload.model_dump(exclude_unset=True)
        if data.get("is_recurring", obj.is_recurring) and not data.get("frequency", obj.frequency):
            raise BadRequestError("Recurring tasks need a frequency")
        await self.tasks.apply(obj, **data)
        if obj.status != before:
            if obj.status == "Completed":
                obj.completed_count = (obj.completed_count or 0) + 1
                if obj.is_recurring:
                    obj.next_due_date = next_occurrence(obj.next_due_date, obj.frequency)
                await self.activity.log(actor.org_id, actor.user_id, "completion", "key_result_task", obj.id,
                                        f"Completed task: {obj.title}", {"completed_count": obj.completed_count})
            else:
                await self.activity.log(actor.org_id, actor.user_id, "status_change", "key_result_task", obj.id,
                                        f"Status changed from {before} to {obj.status}", {"from": before, "to": obj.status})
        await self.session.commit()
        return obj

    async def delete_task(self, actor: Principal, task_id: uuid.UUID) -> KeyResultTask | None:
        obj = await self.tasks.soft_delete(actor.org_id, task_id)
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "key_result_task", obj.id, f"Deleted task: {obj.title}")
        await self.session.commit()
        return obj

    async def generate_work_item(self, actor: Principal, task_id: uuid.UUID) -> WorkItem | None:
        task = await self.tasks.get(actor.org_id, task_id)
        if not task:
            return None
        item = await WorkItemRepository(self.session).create(
            actor.org_id,
            title=task.title,
            description=task.description,
            status="Planning",
            due_date=task.next_due_date,
            owner_id=actor.user_id,
            assigned_to=task.assigned_to,
            team_id=task.team_id,
            key_result_task_id=task.id,
            work_item_type="key_result_task",
        )
        await self.activity.log(actor.org_id, actor.user_id, "generation", "key_result_task", task.id,
                                f"Generated work item: {item.title}", {"work_item_id": str(item.id)})
        await self.session.commit()
        logger.info(f"Generated work item {item.id} from task {task.id}")
        return item
