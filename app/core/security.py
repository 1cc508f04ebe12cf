import uuid
from datetime import datetime, timedelta, timezone
import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.db import get_session

http_bearer = HTTPBearer(auto_error=False)

ROLES = ("super_admin", "admin", "manager", "team_member", "customer", "dev")
MANAGERS = ("admin", "manager")
ADMINS = ("admin",)

class Principal(BaseModel):
    user_id: uuid.UUID
    org_id: uuid.UUID
    role: str = "team_member"

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"

# ---- Passwords ----

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False

# ---- Tokens ----

def create_access_token(user_id: uuid.UUID, org_id: uuid.UUID, role: str) -> str:
    exp = datetime.now(timezone.utc) + timedelta(days=settings.JWT_EXPIRES_DAYS)
    claims = {"sub": str(user_id), "org_id": str(org_id), "role": role, "exp": exp}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def create_password_reset_token(user_id: uuid.UUID) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES)
    claims = {"sub": str(user_id), "purpose": "password_reset", "exp": exp}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_token(token: str) -> dict:
    """Raises JWTError on bad signature, expiry or malformed input."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])

def _decode_token(token: str) -> dict:
    try:
        return decode_token(token)
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")

# ---- Dependencies ----

async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    session: AsyncSession = Depends(get_session),
) -> Principal:
    # In local dev, allow missing token and use default org
    if creds is None and settings.ENV == "local":
        return Principal(user_id=uuid.uuid4(), org_id=uuid.UUID(settings.DEFAULT_ORG_ID), role="admin")
    if creds is None:
        raise HTTPException(status_code=401, detail="Missing token")

    data = _decode_token(creds.credentials)
    if data.get("purpose"):
        raise HTTPException(status_code=401, detail="Invalid token: wrong purpose")
    try:
        user_id = uuid.UUID(str(data.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: bad subject")

    from app.modules.admin.models import User, Organization
    user = await session.get(User, user_id)
    if user is None or user.deleted_at is not None:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="User account is inactive")
    if user.role != "super_admin":
        org = await session.get(Organization, user.org_id)
        if org is not None and not org.is_active:
            raise HTTPException(status_code=403, detail="Organization is suspended")
    return Principal(user_id=user.id, org_id=user.org_id, role=user.role)

def require_roles(*allowed: str):
    def dep(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.is_super_admin or principal.role in allowed:
            return principal
        raise HTTPException(status_code=403, detail="Insufficient role permissions")
    return dep
