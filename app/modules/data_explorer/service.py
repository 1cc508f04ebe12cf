import uuid
import logging
from datetime import datetime, timezone
from typing import Sequence
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import BadRequestError, NotFoundError
from app.core.repository import TenantRepository
from app.core.security import Principal
from app.modules.data_explorer.models import DataTable, DataField
from app.modules.data_explorer.query import build_filters, aggregate_expression, format_result
from app.modules.data_explorer.registry import TABLE_REGISTRY, RegisteredTable, columns, describe
from app.modules.data_explorer.schemas import QueryIn, QueryOut, RecordsIn, RecordsOut
from app.modules.strategy.service import StrategyService

log = logging.getLogger("data_explorer")

class DataTableRepository(TenantRepository[DataTable]):
    model = DataTable
    default_order = (DataTable.table_name.asc(),)

    async def get_by_name(self, org_id: uuid.UUID, table_name: str) -> DataTable | None:
        return await self.find_one(org_id, DataTable.table_name == table_name)

class DataFieldRepository(TenantRepository[DataField]):
    model = DataField
    default_order = (DataField.field_name.asc(),)

class DataExplorerService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.tables = DataTableRepository(session)
        self.fields = DataFieldRepository(session)

    async def list_tables(self, org_id: uuid.UUID) -> Sequence[DataTable]:
        return await self.tables.list(org_id, limit=None)

    async def list_fields(self, org_id: uuid.UUID, table_name: str) -> Sequence[DataField] | None:
        table = await self.tables.get_by_name(org_id, table_name)
        if not table:
            return None
        return await self.fields.list(org_id, DataField.table_id == table.id, limit=None)

    async def _row_count(self, org_id: uuid.UUID, model: type) -> int:
        q = select(func.count()).select_from(model).where(*build_filters(model, org_id, []))
        return int((await self.session.execute(q)).scalar_one())

    async def sync(self, actor: Principal) -> Sequence[DataTable]:
        now = datetime.now(timezone.utc)
        for name, entry in TABLE_REGISTRY.items():
            table = await self.tables.get_by_name(actor.org_id, name)
            row_count = await self._row_count(actor.org_id, entry.model)
            if table is None:
                table = await self.tables.create(actor.org_id, table_name=name, label=entry.label, description=entry.description,
                                                 row_count=row_count, last_analyzed=now)
            else:
                await self.tables.apply(table, label=entry.label, description=entry.description, row_count=row_count, last_analyzed=now)
            await self.session.execute(delete(DataField).where(DataField.table_id == table.id))
            for column in describe(entry.model):
                await self.fields.create(actor.org_id, table_id=table.id, **column)
        await self.session.commit()
        log.info("Synced %d data explorer tables for org %s", len(TABLE_REGISTRY), actor.org_id)
        return await self.tables.list(actor.org_id, limit=None)

    async def _resolve(self, org_id: uuid.UUID, table_name: str) -> RegisteredTable:
        entry = TABLE_REGISTRY.get(table_name)
        if entry is None or not await self.tables.get_by_name(org_id, table_name):
            raise BadRequestError(f"Table '{table_name}' is not available for queries")
        return entry

    async def query(self, actor: Principal, payload: QueryIn) -> QueryOut:
        entry = await self._resolve(actor.org_id, payload.table)
        filters = [f.model_dump() for f in payload.filters]
        conditions = build_filters(entry.model, actor.org_id, filters, payload.context)
        expr = aggregate_expression(entry.model, payload.aggregation, payload.aggregation_field)
        q = select(expr).select_from(entry.model).where(*conditions)
        raw = (await self.session.execute(q)).scalar_one()
        result = format_result(payload.aggregation, raw)

        out = QueryOut(result=result, table=payload.table, aggregation=payload.aggregation, filter_count=len(filters))
        if payload.update_key_result:
            try:
                value = float(result)
            except (TypeError, ValueError):
                raise BadRequestError("Query result is not numeric and cannot update a key result")
            target = payload.update_key_result
            kr = await StrategyService(self.session).record_progress(
                actor.org_id, actor.user_id, target.key_result_id, value,
                notes=f"{payload.aggregation} of {payload.table}", update_type=target.update_type, source="data_explorer",
            )
            if not kr:
                raise NotFoundError("Key result not found")
            await self.session.commit()
            out.key_result_id = kr.id
        return out

    async def records(self, org_id: uuid.UUID, payload: RecordsIn) -> RecordsOut:
        entry = await self._resolve(org_id, payload.table)
        conditions = build_filters(entry.model, org_id, [f.model_dump() for f in payload.filters], payload.context)
        q = select(entry.model).where(*conditions).order_by(entry.model.created_at.desc()).limit(payload.limit)
        rows = (await self.session.execute(q)).scalars().all()
        visible = list(columns(entry.model))
        records = [{key: getattr(row, key) for key in visible} for row in rows]
        return RecordsOut(table=payload.table, count=len(records), records=records)
