import uuid
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

ROLE_PATTERN = "^(super_admin|admin|manager|team_member|customer|dev)$"
CADENCE_PATTERN = "^(daily|weekly|bi_weekly|monthly)$"
MEMBER_ROLE_PATTERN = "^(Leader|Member|Watcher)$"

# ---- Users ----

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=80)
    email: EmailStr
    password: str | None = Field(default=None, min_length=8)
    full_name: str | None = None
    phone: str | None = None
    role: str = Field(default="team_member", pattern=ROLE_PATTERN)
    is_active: bool = True
    can_assign_tickets: bool = False
    splynx_admin_id: int | None = None
    avatar_url: str | None = None

class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=80)
    email: EmailStr | None = None
    full_name: str | None = None
    phone: str | None = None
    is_active: bool | None = None
    can_assign_tickets: bool | None = None
    splynx_admin_id: int | None = None
    avatar_url: str | None = None

class UserRoleUpdate(BaseModel):
    role: str = Field(..., pattern=ROLE_PATTERN)

class AdminPasswordReset(BaseModel):
    new_password: str = Field(..., min_length=8)

class UserOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    username: str
    email: str
    full_name: str | None
    phone: str | None
    role: str
    is_active: bool
    last_login_at: datetime | None
    can_assign_tickets: bool
    splynx_admin_id: int | None
    avatar_url: str | None
    created_at: datetime

    class Config:
        from_attributes = True

# ---- Teams ----

class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    default_cadence: str = Field(default="weekly", pattern=CADENCE_PATTERN)
    timezone: str = "UTC"

class TeamUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    default_cadence: str | None = Field(default=None, pattern=CADENCE_PATTERN)
    timezone: str | None = None

class TeamOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    description: str | None
    default_cadence: str
    timezone: str
    created_at: datetime

    class Config:
        from_attributes = True

class TeamMemberCreate(BaseModel):
    user_id: uuid.UUID
    role: str = Field(default="Member", pattern=MEMBER_ROLE_PATTERN)

class TeamMemberUpdate(BaseModel):
    role: str = Field(..., pattern=MEMBER_ROLE_PATTERN)

class TeamMemberOut(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    created_at: datetime

    class Config:
        from_attributes = True

# ---- Organizations ----

TIER_PATTERN = "^(basic|professional|enterprise)$"

class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    domain: str | None = Field(default=None, max_length=160)
    subscription_tier: str = Field(default="basic", pattern=TIER_PATTERN)
    max_users: int = Field(default=50, ge=1)
    contact_email: EmailStr | None = None
    contact_phone: str | None = None
    industry: str | None = None
    time_zone: str = "UTC"
    currency: str = Field(default="USD", min_length=3, max_length=8)
    settings: dict | None = None
    features: dict | None = None

class OrganizationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    domain: str | None = Field(default=None, max_length=160)
    subscription_tier: str | None = Field(default=None, pattern=TIER_PATTERN)
    max_users: int | None = Field(default=None, ge=1)
    contact_email: EmailStr | None = None
    contact_phone: str | None = None
    industry: str | None = None
    time_zone: str | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=8)
    settings: dict | None = None
    features: dict | None = None

class OrganizationOut(BaseModel):
    id: uuid.UUID
    name: str
    domain: str | None
    subscription_tier: str
    is_active: bool
    max_users: int
    contact_email: str | None
    contact_phone: str | None
    industry: str | None
    time_zone: str
    currency: str
    settings: dict | None
    features: dict | None
    created_at: datetime

    class Config:
        from_attributes = True
