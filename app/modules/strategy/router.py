import uuid
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, ADMINS, MANAGERS
from app.modules.activity.schemas import ActivityOut
from app.modules.work_items.schemas import WorkItemOut
from app.modules.strategy.schemas import (
    MissionVisionIn, MissionVisionOut,
    ObjectiveCreate, ObjectiveUpdate, ObjectiveOut, ReorderRequest,
    KeyResultCreate, KeyResultUpdate, KeyResultOut, ProgressUpdate,
    KeyResultCommentCreate, KeyResultCommentOut,
    TaskCreate, TaskUpdate, TaskOut,
)
from app.modules.strategy.service import StrategyService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> StrategyService:
    return StrategyService(session)

# ---- Mission / vision ----

@router.get("/mission-vision", response_model=MissionVisionOut)
async def get_mission_vision(principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.get_mission_vision(principal.org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Mission and vision not set")
    return obj

@router.put("/mission-vision", response_model=MissionVisionOut)
async def put_mission_vision(payload: MissionVisionIn, principal: Principal = Depends(require_roles(*MANAGERS)), service: StrategyService = Depends(svc)):
    return await service.upsert_mission_vision(principal, payload)

# ---- Objectives ----

@router.get("/objectives", response_model=list[ObjectiveOut])
async def list_objectives(status: str | None = None, team_id: uuid.UUID | None = None,
                          principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    return await service.list_objectives(principal.org_id, status=status, team_id=team_id)

@router.post("/objectives", response_model=ObjectiveOut, status_code=201)
async def create_objective(payload: ObjectiveCreate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    return await service.create_objective(principal, payload)

@router.put("/objectives/reorder", response_model=list[ObjectiveOut])
async def reorder_objectives(payload: ReorderRequest, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    return await service.reorder_objectives(principal, payload.ids)

@router.get("/objectives/{objective_id}", response_model=ObjectiveOut)
async def get_objective(objective_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.get_objective(principal.org_id, objective_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Objective not found")
    return obj

@router.put("/objectives/{objective_id}", response_model=ObjectiveOut)
async def update_objective(objective_id: uuid.UUID, payload: ObjectiveUpdate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.update_objective(principal, objective_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Objective not found")
    return obj

@router.delete("/objectives/{objective_id}", status_code=204)
async def delete_objective(objective_id: uuid.UUID, principal: Principal = Depends(require_roles(*ADMINS)), service: StrategyService = Depends(svc)):
    if not await service.delete_objective(principal, objective_id):
        raise HTTPException(status_code=404, detail="Objective not found")
    return Response(status_code=204)

@router.get("/objectives/{objective_id}/key-results", response_model=list[KeyResultOut])
async def objective_key_results(objective_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    res = await service.objective_key_results(principal.org_id, objective_id)
    if res is None:
        raise HTTPException(status_code=404, detail="Objective not found")
    return res

@router.get("/objectives/{objective_id}/activity", response_model=list[ActivityOut])
async def objective_activity(objective_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    if not await service.get_objective(principal.org_id, objective_id):
        raise HTTPException(status_code=404, detail="Objective not found")
    return await service.entity_activity(principal.org_id, "objective", objective_id)

# ---- Key results ----

@router.get("/key-results", response_model=list[KeyResultOut])
async def list_key_results(objective_id: uuid.UUID | None = None, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    return await service.list_key_results(principal.org_id, objective_id=objective_id)

@router.post("/key-results", response_model=KeyResultOut, status_code=201)
async def create_key_result(payload: KeyResultCreate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.create_key_result(principal, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Objective not found")
    return obj

@router.get("/key-results/{kr_id}", response_model=KeyResultOut)
async def get_key_result(kr_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.get_key_result(principal.org_id, kr_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Key result not found")
    return obj

@router.put("/key-results/{kr_id}", response_model=KeyResultOut)
async def update_key_result(kr_id: uuid.UUID, payload: KeyResultUpdate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.update_key_result(principal, kr_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Key result not found")
    return obj

@router.delete("/key-results/{kr_id}", status_code=204)
async def delete_key_result(kr_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: StrategyService = Depends(svc)):
    if not await service.delete_key_result(principal, kr_id):
        raise HTTPException(status_code=404, detail="Key result not found")
    return Response(status_code=204)

@router.post("/key-results/{kr_id}/progress", response_model=KeyResultOut)
async def update_progress(kr_id: uuid.UUID, payload: ProgressUpdate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.update_progress(principal, kr_id, payload.current_value, payload.notes)
    if not obj:
        raise HTTPException(status_code=404, detail="Key result not found")
    return obj

@router.get("/key-results/{kr_id}/comments", response_model=list[KeyResultCommentOut])
async def list_kr_comments(kr_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    res = await service.list_comments(principal.org_id, kr_id)
    if res is None:
        raise HTTPException(status_code=404, detail="Key result not found")
    return res

@router.post("/key-results/{kr_id}/comments", response_model=KeyResultCommentOut, status_code=201)
async def add_kr_comment(kr_id: uuid.UUID, payload: KeyResultCommentCreate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.add_comment(principal, kr_id, payload.comment)
    if not obj:
        raise HTTPException(status_code=404, detail="Key result not found")
    return obj

@router.get("/key-results/{kr_id}/activity", response_model=list[ActivityOut])
async def key_result_activity(kr_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    if not await service.get_key_result(principal.org_id, kr_id):
        raise HTTPException(status_code=404, detail="Key result not found")
    return await service.entity_activity(principal.org_id, "key_result", kr_id)

# ---- Key result tasks ----

@router.get("/key-results/{kr_id}/tasks", response_model=list[TaskOut])
async def list_tasks(kr_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    res = await service.list_tasks(principal.org_id, kr_id)
    if res is None:
        raise HTTPException(status_code=404, detail="Key result not found")
    return res

@router.post("/key-results/{kr_id}/tasks", response_model=TaskOut, status_code=201)
async def create_task(kr_id: uuid.UUID, payload: TaskCreate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.create_task(principal, kr_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Key result not found")
    return obj

@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(task_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.get_task(principal.org_id, task_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Task not found")
    return obj

@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(task_id: uuid.UUID, payload: TaskUpdate, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.update_task(principal, task_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Task not found")
    return obj

@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    if not await service.delete_task(principal, task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return Response(status_code=204)

@router.post("/tasks/{task_id}/generate-work-item", response_model=WorkItemOut, status_code=201)
async def generate_work_item(task_id: uuid.UUID, principal: Principal = Depends(get_principal), service: StrategyService = Depends(svc)):
    obj = await service.generate_work_item(principal, task_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Task not found")
    return obj
