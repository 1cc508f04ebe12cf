import uuid
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_roles, Principal, ADMINS, MANAGERS
from app.modules.admin.schemas import (
    UserCreate, UserUpdate, UserRoleUpdate, AdminPasswordReset, UserOut,
    TeamCreate, TeamUpdate, TeamOut, TeamMemberCreate, TeamMemberUpdate, TeamMemberOut,
    OrganizationCreate, OrganizationUpdate, OrganizationOut,
)
from app.modules.admin.service import AdminService

router = APIRouter()
organizations_router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AdminService:
    return AdminService(session)

# ---- Users ----

@router.get("/users", response_model=list[UserOut])
async def list_users(
    role: str | None = None,
    is_active: bool | None = None,
    limit: int = 100, offset: int = 0,
    principal: Principal = Depends(get_principal),
    service: AdminService = Depends(svc),
):
    return await service.list_users(principal.org_id, role=role, is_active=is_active, limit=limit, offset=offset)

@router.get("/users/{user_id}", response_model=UserOut)
async def get_user(user_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AdminService = Depends(svc)):
    obj = await service.get_user(principal.org_id, user_id)
    if not obj:
        raise HTTPException(status_code=404, detail="User not found")
    return obj

@router.post("/users", response_model=UserOut, status_code=201)
async def create_user(payload: UserCreate, principal: Principal = Depends(require_roles(*ADMINS)), service: AdminService = Depends(svc)):
    return await service.create_user(principal, payload)

@router.patch("/users/{user_id}", response_model=UserOut)
async def update_user(user_id: uuid.UUID, payload: UserUpdate, principal: Principal = Depends(require_roles(*ADMINS)), service: AdminService = Depends(svc)):
    obj = await service.update_user(principal, user_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="User not found")
    return obj

@router.patch("/users/{user_id}/role", response_model=UserOut)
async def change_role(user_id: uuid.UUID, payload: UserRoleUpdate, principal: Principal = Depends(require_roles(*ADMINS)), service: AdminService = Depends(svc)):
    obj = await service.change_role(principal, user_id, payload.role)
    if not obj:
        raise HTTPException(status_code=404, detail="User not found")
    return obj

@router.delete("/users/{user_id}", status_code=204)
async def delete_user(user_id: uuid.UUID, principal: Principal = Depends(require_roles(*ADMINS)), service: AdminService = Depends(svc)):
    if not await service.delete_user(principal, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return Response(status_code=204)

@router.post("/users/{user_id}/reset-password")
async def reset_user_password(user_id: uuid.UUID, payload: AdminPasswordReset, principal: Principal = Depends(require_roles(*ADMINS)), service: AdminService = Depends(svc)):
    if not await service.set_password(principal, user_id, payload.new_password):
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "Password updated"}

# ---- Teams ----

@router.get("/teams", response_model=list[TeamOut])
async def list_teams(principal: Principal = Depends(get_principal), service: AdminService = Depends(svc)):
    return await service.list_teams(principal.org_id)

@router.get("/teams/{team_id}", response_model=TeamOut)
async def get_team(team_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AdminService = Depends(svc)):
    obj = await service.get_team(principal.org_id, team_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Team not found")
    return obj

@router.post("/teams", response_model=TeamOut, status_code=201)
async def create_team(payload: TeamCreate, principal: Principal = Depends(require_roles(*MANAGERS)), service: AdminService = Depends(svc)):
    return await service.create_team(principal, payload)

@router.patch("/teams/{team_id}", response_model=TeamOut)
async def update_team(team_id: uuid.UUID, payload: TeamUpdate, principal: Principal = Depends(require_roles(*MANAGERS)), service: AdminService = Depends(svc)):
    obj = await service.update_team(principal, team_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Team not found")
    return obj

@router.delete("/teams/{team_id}", status_code=204)
async def delete_team(team_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: AdminService = Depends(svc)):
    if not await service.delete_team(principal, team_id):
        raise HTTPException(status_code=404, detail="Team not found")
    return Response(status_code=204)

# ---- Team members ----

@router.get("/teams/{team_id}/members", response_model=list[TeamMemberOut])
async def list_members(team_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AdminService = Depends(svc)):
    members = await service.list_members(principal.org_id, team_id)
    if members is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return members

@router.post("/teams/{team_id}/members", response_model=TeamMemberOut, status_code=201)
async def add_member(team_id: uuid.UUID, payload: TeamMemberCreate, principal: Principal = Depends(require_roles(*MANAGERS)), service: AdminService = Depends(svc)):
    obj = await service.add_member(principal, team_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Team or user not found")
    return obj

@router.patch("/teams/{team_id}/members/{user_id}", response_model=TeamMemberOut)
async def update_member(team_id: uuid.UUID, user_id: uuid.UUID, payload: TeamMemberUpdate, principal: Principal = Depends(require_roles(*MANAGERS)), service: AdminService = Depends(svc)):
    obj = await service.update_member(principal, team_id, user_id, payload.role)
    if not obj:
        raise HTTPException(status_code=404, detail="Team member not found")
    return obj

@router.delete("/teams/{team_id}/members/{user_id}", status_code=204)
async def remove_member(team_id: uuid.UUID, user_id: uuid.UUID, principal: Principal = Depends(require_roles(*MANAGERS)), service: AdminService = Depends(svc)):
    if not await service.remove_member(principal, team_id, user_id):
        raise HTTPException(status_code=404, detail="Team member not found")
    return Response(status_code=204)

# ---- Organizations ----

@organizations_router.get("", response_model=list[OrganizationOut])
async def list_organizations(principal: Principal = Depends(get_principal), service: AdminService = Depends(svc)):
    return await service.list_organizations(principal)

@organizations_router.post("", response_model=OrganizationOut, status_code=201)
async def create_organization(payload: OrganizationCreate, principal: Principal = Depends(require_roles("super_admin")), service: AdminService = Depends(svc)):
    return await service.create_organization(principal, payload)

@organizations_router.get("/{org_id}", response_model=OrganizationOut)
async def get_organization(org_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AdminService = Depends(svc)):
    obj = await service.get_organization(principal, org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Organization not found")
    return obj

@organizations_router.patch("/{org_id}", response_model=OrganizationOut)
async def update_organization(org_id: uuid.UUID, payload: OrganizationUpdate, principal: Principal = Depends(require_roles(*ADMINS)), service: AdminService = Depends(svc)):
    obj = await service.update_organization(principal, org_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Organization not found")
    return obj

@organizations_router.delete("/{org_id}", status_code=204)
async def delete_organization(org_id: uuid.UUID, principal: Principal = Depends(require_roles("super_admin")), service: AdminService = Depends(svc)):
    if not await service.delete_organization(principal, org_id):
        raise HTTPException(status_code=404, detail="Organization not found")
    return Response(status_code=204)

@organizations_router.post("/{org_id}/activate", response_model=OrganizationOut)
async def activate_organization(org_id: uuid.UUID, principal: Principal = Depends(require_roles("super_admin")), service: AdminService = Depends(svc)):
    obj = await service.set_organization_active(principal, org_id, True)
    if not obj:
        raise HTTPException(status_code=404, detail="Organization not found")
    return obj

@organizations_router.post("/{org_id}/suspend", response_model=OrganizationOut)
async def suspend_organization(org_id: uuid.UUID, principal: Principal = Depends(require_roles("super_admin")), service: AdminService = Depends(svc)):
    obj = await service.set_organization_active(principal, org_id, False)
    if not obj:
        raise HTTPException(status_code=404, detail="Organization not found")
    return obj
