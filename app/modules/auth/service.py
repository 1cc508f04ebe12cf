import uuid
import logging
from datetime import datetime, timezone
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import BadRequestError
from app.core.security import (
    hash_password, verify_password, create_access_token, create_password_reset_token, decode_token,
)
from app.modules.admin.models import User
from app.modules.admin.repository import UserRepository
from app.modules.activity.service import ActivityService
from app.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)

    async def login(self, email: str, password: str) -> tuple[str, User] | None:
        user = await self.users.get_by_email(email)
        if not user or user.deleted_at is not None or not user.password_hash:
            return None
        if not user.is_active or not verify_password(password, user.password_hash):
            logger.info(f"Rejected login for user_id={user.id}")
            return None
        user.last_login_at = datetime.now(timezone.utc)
        await self.session.commit()
        return create_access_token(user.id, user.org_id, user.role), user

    async def me(self, user_id: uuid.UUID) -> User | None:
        return await self.users.get_any(user_id)

    async def change_password(self, user_id: uuid.UUID, current_password: str, new_password: str) -> User | None:
        user = await self.users.get_any(user_id)
        if not user:
            return None
        if not verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        await ActivityService(self.session).log(user.org_id, user.id, "update", "user", user.id, "Changed password")
        await self.session.commit()
        return user

    async def request_password_reset(self, email: str) -> None:
        user = await self.users.get_by_email(email)
        if not user or user.deleted_at is not None or not user.is_active:
            # respond identically either way
            return
        token = create_password_reset_token(user.id)
        await OutboxService(self.session).enqueue(
            user.org_id, "PASSWORD_RESET_REQUESTED", "user", user.id,
            {"email": user.email, "reset_token": token},
        )
        await self.session.commit()

    async def reset_password(self, token: str, new_password: str) -> User:
        try:
            claims = decode_token(token)
        except JWTError:
            raise BadRequestError("Invalid or expired reset token")
        if claims.get("purpose") != "password_reset":
            raise BadRequestError("Invalid or expired reset token")
        try:
            user_id = uuid.UUID(str(claims.get("sub")))
        except ValueError:
            raise BadRequestError("Invalid or expired reset token")
        user = await self.users.get_any(user_id)
        if not user:
            raise BadRequestError("Invalid or expired reset token")
        user.password_hash = hash_password(new_password)
        await ActivityService(self.session).log(user.org_id, user.id, "update", "user", user.id, "Reset password via token")
        await self.session.commit()
        return user
