import uuid
import logging
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import BadRequestError, ConflictError, ForbiddenError
from app.core.security import Principal, hash_password
from app.modules.admin.models import Organization, User, Team, TeamMember
from app.modules.admin.repository import (
    OrganizationRepository, UserRepository, TeamRepository, TeamMemberRepository,
)
from app.modules.admin.schemas import (
    UserCreate, UserUpdate, TeamCreate, TeamUpdate, TeamMemberCreate,
    OrganizationCreate, OrganizationUpdate,
)
from app.modules.activity.service import ActivityService
from app.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

class AdminService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.orgs = OrganizationRepository(session)
        self.users = UserRepository(session)
        self.teams = TeamRepository(session)
        self.members = TeamMemberRepository(session)
        self.activity = ActivityService(session)

    # ---- Users ----
    async def list_users(self, org_id: uuid.UUID, *, role: str | None = None, is_active: bool | None = None, limit: int = 100, offset: int = 0) -> Sequence[User]:
        conditions = []
        if role:
            conditions.append(User.role == role)
        if is_active is not None:
            conditions.append(User.is_active.is_(is_active))
        return await self.users.list(org_id, *conditions, limit=limit, offset=offset)

    async def get_user(self, org_id: uuid.UUID, user_id: uuid.UUID) -> User | None:
        return await self.users.get(org_id, user_id)

    async def create_user(self, actor: Principal, payload: UserCreate) -> User:
        org_id = actor.org_id
        if payload.role == "super_admin" and not actor.is_super_admin:
            raise ForbiddenError("Only a super admin can grant super_admin")
        await self._ensure_unique_user(org_id, email=payload.email, username=payload.username)
        org = await self.orgs.get(org_id)
        if org and payload.is_active and await self.users.count_active(org_id) >= org.max_users:
            raise ConflictError(f"Organization user limit reached ({org.max_users})")

        data = payload.model_dump(exclude={"password"})
        data["email"] = payload.email.lower()
        data["password_hash"] = hash_password(payload.password) if payload.password else None
        obj = await self.users.create(org_id, **data)
        await self.activity.log(org_id, actor.user_id, "creation", "user", obj.id, f"Created user {obj.username}")
        await OutboxService(self.session).enqueue(org_id, "USER_CREATED", "user", obj.id, {"role": obj.role})
        await self.session.commit()
        return obj

    async def update_user(self, actor: Principal, user_id: uuid.UUID, payload: UserUpdate) -> User | None:
        obj = await self.users.get(actor.org_id, user_id)
        if not obj:
            return None
        data = payload.model_dump(exclude_unset=True)
        if data.get("email"):
            data["email"] = data["email"].lower()
        await self._ensure_unique_user(actor.org_id, email=data.get("email"), username=data.get("username"), exclude_id=obj.id)
        await self.users.apply(obj, **data)
        await self.activity.log(actor.org_id, actor.user_id, "update", "user", obj.id, f"Updated user {obj.username}", {"fields": sorted(data)})
        await self.session.commit()
        return obj

    async def change_role(self, actor: Principal, user_id: uuid.UUID, role: str) -> User | None:
        obj = await self.users.get(actor.org_id, user_id)
        if not obj:
            return None
        if "super_admin" in (role, obj.role) and not actor.is_super_admin:
            raise ForbiddenError("Only a super admin can grant or revoke super_admin")
        before = obj.role
        await self.users.apply(obj, role=role)
        await self.activity.log(actor.org_id, actor.user_id, "update", "user", obj.id,
                                f"Changed role from {before} to {role}", {"from": before, "to": role})
        await OutboxService(self.session).enqueue(actor.org_id, "USER_ROLE_CHANGED", "user", obj.id, {"from": before, "to": role})
        await self.session.commit()
        return obj

    async def delete_user(self, actor: Principal, user_id: uuid.UUID) -> User | None:
        if user_id == actor.user_id:
            raise BadRequestError("You cannot delete your own account")
        obj = await self.users.get(actor.org_id, user_id)
        if not obj:
            return None
        if obj.role == "super_admin" and not actor.is_super_admin:
            raise ForbiddenError("Only a super admin can delete a super admin")
        await self.users.soft_delete(actor.org_id, user_id)
        obj.is_active = False
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "user", obj.id, f"Deleted user {obj.username}")
        await self.session.commit()
        return obj

    async def set_password(self, actor: Principal, user_id: uuid.UUID, new_password: str) -> User | None:
        obj = await self.users.get(actor.org_id, user_id)
        if not obj:
            return None
        obj.password_hash = hash_password(new_password)
        await self.activity.log(actor.org_id, actor.user_id, "update", "user", obj.id, "Password reset by administrator")
        await self.session.commit()
        return obj

    async def _ensure_unique_user(self, org_id: uuid.UUID, *, email: str | None, username: str | None, exclude_id: uuid.UUID | None = None):
        if email:
            existing = await self.users.get_by_email(email)
            if existing and existing.id != exclude_id:
                raise ConflictError("A user with this email already exists")
        if username and await self.users.username_taken(org_id, username, exclude_id):
            raise ConflictError("A user with this username already exists")

    # ---- Teams ----
    async def list_teams(self, org_id: uuid.UUID) -> Sequence[Team]:
        return await self.teams.list(org_id, limit=None)

    async def get_team(self, org_id: uuid.UUID, team_id: uuid.UUID) -> Team | None:
        return await self.teams.get(org_id, team_id)

    async def create_team(self, actor: Principal, payload: TeamCreate) -> Team:
        if await self.teams.find_one(actor.org_id, Team.name == payload.name):
            raise ConflictError("A team with this name already exists")
        obj = await self.teams.create(actor.org_id, **payload.model_dump())
        await self.activity.log(actor.org_id, actor.user_id, "creation", "team", obj.id, f"Created team {obj.name}")
        await self.session.commit()
        return obj

    async def update_team(self, actor: Principal, team_id: uuid.UUID, payload: TeamUpdate) -> Team | None:
        obj = await self.teams.get(actor.org_id, team_id)
        if not obj:
            return None
        data = payload.model_dump(exclude_unset=True)
        if data.get("name") and data["name"] != obj.name and await self.teams.find_one(actor.org_id, Team.name == data["name"]):
            raise ConflictError("A team with this name already exists")
        await self.teams.apply(obj, **data)
        await self.session.commit()
        return obj

    async def delete_team(self, actor: Principal, team_id: uuid.UUID) -> Team | None:
        obj = await self.teams.soft_delete(actor.org_id, team_id)
        if not obj:
            return None
        # free the name for reuse
        obj.name = f"{obj.name[:80]}#deleted-{obj.id.hex[:8]}"
        for m in await self.members.list(actor.org_id, TeamMember.team_id == team_id, limit=None):
            await self.members.remove(m)
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "team", obj.id, "Deleted team")
        await self.session.commit()
        return obj

    # ---- Team members ----
    async def list_members(self, org_id: uuid.UUID, team_id: uuid.UUID) -> Sequence[TeamMember] | None:
        if not await self.teams.get(org_id, team_id):
            return None
        return await self.members.list(org_id, TeamMember.team_id == team_id, limit=None)

    async def add_member(self, actor: Principal, team_id: uuid.UUID, payload: TeamMemberCreate) -> TeamMember | None:
        team = await self.teams.get(actor.org_id, team_id)
        user = await self.users.get(actor.org_id, payload.user_id)
        if not team or not user:
            return None
        if await self.members.get_member(actor.org_id, team_id, payload.user_id):
            raise ConflictError("User is already a member of this team")
        obj = await self.members.create(actor.org_id, team_id=team_id, user_id=payload.user_id, role=payload.role)
        await self.activity.log(actor.org_id, actor.user_id, "assignment", "team", team_id,
                                f"Added {user.username} as {payload.role}", {"user_id": str(user.id)})
        await self.session.commit()
        return obj

    async def update_member(self, actor: Principal, team_id: uuid.UUID, user_id: uuid.UUID, role: str) -> TeamMember | None:
        obj = await self.members.get_member(actor.org_id, team_id, user_id)
        if not obj:
            return None
        await self.members.apply(obj, role=role)
        await self.session.commit()
        return obj

    async def remove_member(self, actor: Principal, team_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        obj = await self.members.get_member(actor.org_id, team_id, user_id)
        if not obj:
            return False
        await self.members.remove(obj)
        await self.activity.log(actor.org_id, actor.user_id, "assignment", "team", team_id,
                                "Removed team member", {"user_id": str(user_id)})
        await self.session.commit()
        return True

    # ---- Organizations ----
    async def list_organizations(self, actor: Principal) -> Sequence[Organization]:
        if actor.is_super_admin:
            return await self.orgs.list()
        org = await self.orgs.get(actor.org_id)
        return [org] if org else []

    async def get_organization(self, actor: Principal, org_id: uuid.UUID) -> Organization | None:
        if not actor.is_super_admin and org_id != actor.org_id:
            return None
        return await self.orgs.get(org_id)

    async def create_organization(self, actor: Principal, payload: OrganizationCreate) -> Organization:
        data = payload.model_dump()
        if data.get("domain"):
            data["domain"] = data["domain"].lower()
            if await self.orgs.get_by_domain(data["domain"]):
                raise ConflictError("An organization with this domain already exists")
        obj = await self.orgs.create(**data)
        await self.activity.log(obj.id, actor.user_id, "creation", "organization", obj.id, f"Created organization {obj.name}")
        await OutboxService(self.session).enqueue(obj.id, "ORGANIZATION_CREATED", "organization", obj.id, {"tier": obj.subscription_tier})
        await self.session.commit()
        logger.info(f"Organization created id={obj.id} name={obj.name}")
        return obj

    async def update_organization(self, actor: Principal, org_id: uuid.UUID, payload: OrganizationUpdate) -> Organization | None:
        obj = await self.get_organization(actor, org_id)
        if not obj:
            return None
        data = payload.model_dump(exclude_unset=True)
        if data.get("domain"):
            data["domain"] = data["domain"].lower()
            other = await self.orgs.get_by_domain(data["domain"])
            if other and other.id != obj.id:
                raise ConflictError("An organization with this domain already exists")
        for k, v in data.items():
            setattr(obj, k, v)
        await self.session.commit()
        return obj

    async def set_organization_active(self, actor: Principal, org_id: uuid.UUID, active: bool) -> Organization | None:
        obj = await self.orgs.get(org_id)
        if not obj:
            return None
        obj.is_active = active
        event = "ORGANIZATION_ACTIVATED" if active else "ORGANIZATION_SUSPENDED"
        await self.activity.log(obj.id, actor.user_id, "status_change", "organization", obj.id, event.split("_")[1].title())
        await OutboxService(self.session).enqueue(obj.id, event, "organization", obj.id, {})
        await self.session.commit()
        return obj

    async def delete_organization(self, actor: Principal, org_id: uuid.UUID) -> Organization | None:
        if org_id == actor.org_id:
            raise BadRequestError("You cannot delete your own organization")
        obj = await self.orgs.get(org_id)
        if not obj:
            return None
        obj.mark_deleted()
        obj.is_active = False
        await self.session.commit()
        return obj
