import uuid
from typing import Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.repository import TenantRepository
from app.modules.admin.models import Organization, User, Team, TeamMember

class OrganizationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Organization:
        obj = Organization(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID) -> Organization | None:
        q = select(Organization).where(Organization.id == org_id, Organization.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_by_domain(self, domain: str) -> Organization | None:
        # soft-deleted organizations keep their domain reserved
        res = await self.session.execute(select(Organization).where(Organization.domain == domain))
        return res.scalars().first()

    async def list(self, *, is_active: bool | None = None, limit: int = 100, offset: int = 0) -> Sequence[Organization]:
        q = select(Organization).where(Organization.deleted_at.is_(None))
        if is_active is not None:
            q = q.where(Organization.is_active.is_(is_active))
        q = q.order_by(Organization.name.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

class UserRepository(TenantRepository[User]):
    model = User
    default_order = (User.username.asc(),)

    async def get_by_email(self, email: str) -> User | None:
        res = await self.session.execute(select(User).where(func.lower(User.email) == email.lower()))
        return res.scalars().first()

    async def get_any(self, user_id: uuid.UUID) -> User | None:
        res = await self.session.execute(select(User).where(User.id == user_id, User.deleted_at.is_(None)))
        return res.scalar_one_or_none()

    async def username_taken(self, org_id: uuid.UUID, username: str, exclude_id: uuid.UUID | None = None) -> bool:
        q = select(User.id).where(User.org_id == org_id, User.username == username)
        if exclude_id:
            q = q.where(User.id != exclude_id)
        res = await self.session.execute(q)
        return res.first() is not None

    async def count_active(self, org_id: uuid.UUID) -> int:
        return await self.count(org_id, User.is_active.is_(True))

class TeamRepository(TenantRepository[Team]):
    model = Team
    default_order = (Team.name.asc(),)

class TeamMemberRepository(TenantRepository[TeamMember]):
    model = TeamMember
    default_order = (TeamMember.created_at.asc(),)

    async def get_member(self, org_id: uuid.UUID, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamMember | None:
        return await self.find_one(org_id, TeamMember.team_id == team_id, TeamMember.user_id == user_id)

    async def remove(self, member: TeamMember) -> None:
        await self.session.delete(member)
        await self.session.flush()
