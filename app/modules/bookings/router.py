import uuid
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, MANAGERS
from app.modules.bookings.schemas import (
    BookableTaskTypeCreate, BookableTaskTypeUpdate, BookableTaskTypeOut,
    CreateBookingIn, CreateBookingOut, PublicBookingOut, SlotsIn, SlotsOut, ConfirmIn, ConfirmOut,
)
from app.modules.bookings.service import BookingService

router = APIRouter()
public_router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> BookingService:
    return BookingService(session)

# ---- Bookable task types ----

@router.get("/bookable-task-types", response_model=list[BookableTaskTypeOut])
async def list_task_types(principal: Principal = Depends(get_principal), service: BookingService = Depends(svc)):
    return await service.list_task_types(principal.org_id)

@router.post("/bookable-task-types", response_model=BookableTaskTypeOut, status_code=201)
async def create_task_type(payload: BookableTaskTypeCreate, principal: Principal = Depends(require_roles(*MANAGERS)), service: BookingService = Depends(svc)):
    return await service.create_task_type(principal, payload)

@router.patch("/bookable-task-types/{type_id}", response_model=BookableTaskTypeOut)
async def update_task_type(type_id: uuid.UUID, payload: BookableTaskTypeUpdate, principal: Principal = Depends(require_roles(*MANAGERS)), service: BookingService = Depends(svc)):
    obj = await service.update_task_type(principal, type_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Bookable task type not found")
    return obj

@router.delete("/bookable-task-types/{type_id}", status_code=204)
async def delete_task_type(type_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: BookingService = Depends(svc)):
    if not await service.delete_task_type(principal, type_id):
        raise HTTPException(status_code=404, detail="Bookable task type not found")
    return Response(status_code=204)

# ---- Work item bookings ----

@router.get("/work-items/{item_id}/available-bookings", response_model=list[BookableTaskTypeOut])
async def available_bookings(item_id: uuid.UUID, principal: Principal = Depends(get_principal), service: BookingService = Depends(svc)):
    rows = await service.available_for_work_item(principal.org_id, item_id)
    if rows is None:
        raise HTTPException(status_code=404, detail="Work item not found")
    return rows

@router.post("/work-items/{item_id}/create-booking", response_model=CreateBookingOut)
async def create_booking(item_id: uuid.UUID, payload: CreateBookingIn, principal: Principal = Depends(get_principal), service: BookingService = Depends(svc)):
    return await service.create_booking(principal, item_id, payload.bookable_task_type_id)

# ---- Public, token authenticated ----

@public_router.get("/{token}", response_model=PublicBookingOut)
async def public_booking(token: str, service: BookingService = Depends(svc)):
    return await service.public_details(token)

@public_router.post("/{token}/available-slots", response_model=SlotsOut)
async def public_slots(token: str, payload: SlotsIn, service: BookingService = Depends(svc)):
    return SlotsOut(slots=await service.available_slots(token, payload.start_date, payload.end_date))

@public_router.post("/{token}/confirm", response_model=ConfirmOut)
async def public_confirm(token: str, payload: ConfirmIn, service: BookingService = Depends(svc)):
    return await service.confirm(token, payload)
