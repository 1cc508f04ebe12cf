import uuid
from typing import Any, Generic, Sequence, TypeVar
from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")

class TenantRepository(Generic[ModelT]):
    """CRUD over one org-scoped model; soft-deleted rows are invisible."""

    model: type[ModelT]
    default_order: tuple = ()

    def __init__(self, session: AsyncSession):
        self.session = session

    def _base_conditions(self, org_id: uuid.UUID) -> list:
        return [self.model.org_id == org_id, self.model.deleted_at.is_(None)]

    async def create(self, org_id: uuid.UUID, **data) -> ModelT:
        obj = self.model(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, obj_id: uuid.UUID) -> ModelT | None:
        q = select(self.model).where(self.model.id == obj_id, *self._base_conditions(org_id))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list(self, org_id: uuid.UUID, *conditions: Any, limit: int | None = 50, offset: int = 0, order_by: tuple | None = None) -> Sequence[ModelT]:
        order = order_by if order_by is not None else (self.default_order or (self.model.created_at.desc(),))
        q = select(self.model).where(and_(*self._base_conditions(org_id), *conditions)).order_by(*order).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def find_one(self, org_id: uuid.UUID, *conditions: Any) -> ModelT | None:
        q = select(self.model).where(*self._base_conditions(org_id), *conditions).limit(1)
        res = await self.session.execute(q)
        return res.scalars().first()

    async def count(self, org_id: uuid.UUID, *conditions: Any) -> int:
        q = select(func.count()).select_from(self.model).where(*self._base_conditions(org_id), *conditions)
        res = await self.session.execute(q)
        return int(res.scalar_one())

    async def update_fields(self, org_id: uuid.UUID, obj_id: uuid.UUID, **data) -> ModelT | None:
        obj = await self.get(org_id, obj_id)
        if not obj:
            return None
        return await self.apply(obj, **data)

    async def apply(self, obj: ModelT, **data) -> ModelT:
        for k, v in data.items():
            setattr(obj, k, v)
        obj.bump_version()
        await self.session.flush()
        return obj

    async def soft_delete(self, org_id: uuid.UUID, obj_id: uuid.UUID) -> ModelT | None:
        obj = await self.get(org_id, obj_id)
        if not obj:
            return None
        obj.mark_deleted()
        await self.session.flush()
        return obj
