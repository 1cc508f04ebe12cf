import uuid
import logging
from datetime import datetime, timezone
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.crypto import encrypt_json, decrypt_json
from app.core.errors import BadRequestError, ConflictError
from app.core.repository import TenantRepository
from app.core.security import Principal
from app.modules.activity.service import ActivityService
from app.modules.integrations import clients
from app.modules.integrations.models import Integration
from app.modules.integrations.schemas import IntegrationCreate, IntegrationUpdate, IntegrationTestOut

log = logging.getLogger("integrations")

class IntegrationRepository(TenantRepository[Integration]):
    model = Integration
    default_order = (Integration.platform_type.asc(),)

    async def get_by_platform(self, org_id: uuid.UUID, platform_type: str) -> Integration | None:
        return await self.find_one(org_id, Integration.platform_type == platform_type)

class IntegrationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.integrations = IntegrationRepository(session)
        self.activity = ActivityService(session)

    async def list(self, org_id: uuid.UUID) -> Sequence[Integration]:
        return await self.integrations.list(org_id, limit=None)

    async def get(self, org_id: uuid.UUID, platform_type: str) -> Integration | None:
        return await self.integrations.get_by_platform(org_id, platform_type)

    async def credentials_for(self, org_id: uuid.UUID, platform_type: str, *, require_enabled: bool = True) -> dict | None:
        obj = await self.integrations.get_by_platform(org_id, platform_type)
        if not obj or not obj.credentials_encrypted or (require_enabled and not obj.is_enabled):
            return None
        try:
            return decrypt_json(obj.credentials_encrypted)
        except ValueError:
            log.error("Stored %s credentials for org %s cannot be decrypted", platform_type, org_id)
            return None

    async def create(self, actor: Principal, payload: IntegrationCreate) -> Integration:
        if await self.integrations.get_by_platform(actor.org_id, payload.platform_type):
            raise ConflictError(f"An integration for {payload.platform_type} already exists")
        data = payload.model_dump(exclude={"credentials"})
        if payload.credentials:
            data["credentials_encrypted"] = encrypt_json(payload.credentials)
        obj = await self.integrations.create(actor.org_id, **data)
        await self.activity.log(actor.org_id, actor.user_id, "creation", "integration", obj.id,
                                f"Created {obj.platform_type} integration", {"platform_type": obj.platform_type})
        await self.session.commit()
        return obj

    async def update(self, actor: Principal, integration_id: uuid.UUID, payload: IntegrationUpdate) -> Integration | None:
        obj = await self.integrations.get(actor.org_id, integration_id)
        if not obj:
            return None
        data = payload.model_dump(exclude_unset=True, exclude={"credentials"})
        if payload.credentials:
            data["credentials_encrypted"] = encrypt_json(payload.credentials)
            # new credentials have not been proven yet
            data["connection_status"] = "disconnected"
        await self.integrations.apply(obj, **data)
        await self.activity.log(actor.org_id, actor.user_id, "update", "integration", obj.id,
                                f"Updated {obj.platform_type} integration", {"platform_type": obj.platform_type})
        await self.session.commit()
        return obj

    async def test(self, actor: Principal, platform_type: str) -> IntegrationTestOut | None:
        obj = await self.integrations.get_by_platform(actor.org_id, platform_type)
        if not obj:
            return None
        if not obj.credentials_encrypted:
            raise BadRequestError("No credentials configured. Please enter credentials and save first.")
        try:
            credentials = decrypt_json(obj.credentials_encrypted)
        except ValueError:
            raise BadRequestError("Stored credentials cannot be decrypted; please re-enter them")

        success, message = await clients.check_connection(platform_type, credentials)
        now = datetime.now(timezone.utc)
        status = "connected" if success else "error"
        await self.integrations.apply(
            obj,
            connection_status=status,
            is_enabled=success or obj.is_enabled,
            last_tested_at=now,
            test_result={"success": success, "message": message, "tested_at": now.isoformat()},
        )
        await self.activity.log(actor.org_id, actor.user_id, "status_change", "integration", obj.id,
                                f"Tested {platform_type} connection: {status}",
                                {"platform_type": platform_type, "connection_status": status, "success": success})
        await self.session.commit()
        log.info("Integration test org=%s platform=%s status=%s", actor.org_id, platform_type, status)
        return IntegrationTestOut(success=success, connection_status=status, message=message, tested_at=now)

    async def delete(self, actor: Principal, platform_type: str) -> bool:
        obj = await self.integrations.get_by_platform(actor.org_id, platform_type)
        if not obj:
            return False
        # hard delete so the platform slot can be configured again
        await self.session.delete(obj)
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "integration", obj.id,
                                f"Deleted {platform_type} integration", {"platform_type": platform_type})
        await self.session.commit()
        return True
