from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, ADMINS
from app.modules.data_explorer.schemas import (
    DataTableOut, DataFieldOut, QueryIn, QueryOut, RecordsIn, RecordsOut,
)
from app.modules.data_explorer.service import DataExplorerService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> DataExplorerService:
    return DataExplorerService(session)

@router.get("/tables", response_model=list[DataTableOut])
async def list_tables(principal: Principal = Depends(get_principal), service: DataExplorerService = Depends(svc)):
    return await service.list_tables(principal.org_id)

@router.get("/fields/{table_name}", response_model=list[DataFieldOut])
async def list_fields(table_name: str, principal: Principal = Depends(get_principal), service: DataExplorerService = Depends(svc)):
    rows = await service.list_fields(principal.org_id, table_name)
    if rows is None:
        raise HTTPException(status_code=404, detail="Table not found")
    return rows

@router.post("/sync", response_model=list[DataTableOut])
async def sync_tables(principal: Principal = Depends(require_roles(*ADMINS)), service: DataExplorerService = Depends(svc)):
    return await service.sync(principal)

@router.post("/query", response_model=QueryOut)
async def run_query(payload: QueryIn, principal: Principal = Depends(get_principal), service: DataExplorerService = Depends(svc)):
    return await service.query(principal, payload)

@router.post("/records", response_model=RecordsOut)
async def list_records(payload: RecordsIn, principal: Principal = Depends(get_principal), service: DataExplorerService = Depends(svc)):
    return await service.records(principal.org_id, payload)
