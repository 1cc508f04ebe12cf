import uuid
import secrets
import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.errors import BadRequestError, GoneError, NotFoundError
from app.core.repository import TenantRepository
from app.core.security import Principal
from app.modules.activity.service import ActivityService
from app.modules.admin.repository import OrganizationRepository
from app.modules.bookings.models import BookableTaskType, BookingToken
from app.modules.bookings.schemas import (
    BookableTaskTypeCreate, BookableTaskTypeUpdate, CreateBookingOut, PublicBookingOut, ConfirmIn, ConfirmOut,
)
from app.modules.bookings.slots import calculate_available_slots
from app.modules.events.outbox import OutboxService
from app.modules.integrations.clients import SplynxClient, ConnectionCheckError
from app.modules.integrations.service import IntegrationService
from app.modules.work_items.models import WorkItem
from app.modules.work_items.repository import WorkItemRepository

log = logging.getLogger("bookings")

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive timestamps; they are stored as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def matches_trigger(conditions: dict | None, metadata: dict | None) -> bool:
    conditions = conditions or {}
    metadata = metadata or {}
    ticket_types = conditions.get("ticketTypes") or []
    ticket_labels = conditions.get("ticketLabels") or []
    if ticket_types:
        ticket_type = metadata.get("ticketType") or metadata.get("ticket_type")
        if ticket_type not in ticket_types:
            return False
    if ticket_labels:
        labels = metadata.get("ticketLabels") or metadata.get("labels") or []
        if not any(label in labels for label in ticket_labels):
            return False
    return True

async def splynx_client_for(session: AsyncSession, org_id: uuid.UUID) -> SplynxClient:
    credentials = await IntegrationService(session).credentials_for(org_id, "splynx")
    if not credentials:
        raise BadRequestError("Splynx integration is not configured")
    try:
        return SplynxClient.from_credentials(credentials)
    except ConnectionCheckError as e:
        raise BadRequestError(f"Splynx integration is misconfigured: {e}")

class BookableTaskTypeRepository(TenantRepository[BookableTaskType]):
    model = BookableTaskType
    default_order = (BookableTaskType.display_order.asc(), BookableTaskType.name.asc())

class BookingTokenRepository(TenantRepository[BookingToken]):
    model = BookingToken

    async def get_by_token(self, token: str) -> BookingToken | None:
        q = select(BookingToken).where(BookingToken.token == token, BookingToken.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

class BookingService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.task_types = BookableTaskTypeRepository(session)
        self.tokens = BookingTokenRepository(session)
        self.work_items = WorkItemRepository(session)
        self.activity = ActivityService(session)

    # ---- Bookable task types ----
    async def list_task_types(self, org_id: uuid.UUID) -> Sequence[BookableTaskType]:
        return await self.task_types.list(org_id, limit=None)

    async def create_task_type(self, actor: Principal, payload: BookableTaskTypeCreate) -> BookableTaskType:
        obj = await self.task_types.create(actor.org_id, **payload.model_dump())
        await self.activity.log(actor.org_id, actor.user_id, "creation", "bookable_task_type", obj.id,
                                f"Created bookable task type: {obj.name}")
        await self.session.commit()
        return obj

    async def update_task_type(self, actor: Principal, type_id: uuid.UUID, payload: BookableTaskTypeUpdate) -> BookableTaskType | None:
        data = payload.model_dump(exclude_unset=True)
        obj = await self.task_types.update_fields(actor.org_id, type_id, **data)
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "update", "bookable_task_type", obj.id,
                                f"Updated bookable task type: {obj.name}", {"fields": sorted(data)})
        await self.session.commit()
        return obj

    async def delete_task_type(self, actor: Principal, type_id: uuid.UUID) -> BookableTaskType | None:
        obj = await self.task_types.soft_delete(actor.org_id, type_id)
        if not obj:
            return None
        await self.activity.log(actor.org_id, actor.user_id, "deletion", "bookable_task_type", obj.id,
                                f"Deleted bookable task type: {obj.name}")
        await self.session.commit()
        return obj

    # ---- Staff side ----
    async def available_for_work_item(self, org_id: uuid.UUID, item_id: uuid.UUID) -> Sequence[BookableTaskType] | None:
        item = await self.work_items.get(org_id, item_id)
        if not item:
            return None
        types = await self.task_types.list(org_id, BookableTaskType.is_active.is_(True), limit=None)
        return [t for t in types if matches_trigger(t.trigger_conditions, item.workflow_metadata)]

    async def create_booking(self, actor: Principal, item_id: uuid.UUID, type_id: uuid.UUID) -> CreateBookingOut:
        item = await self.work_items.get(actor.org_id, item_id)
        if not item:
            raise NotFoundError("Work item not found")
        task_type = await self.task_types.get(actor.org_id, type_id)
        if not task_type:
            raise NotFoundError("Bookable task type not found")
        metadata = item.workflow_metadata or {}
        customer_id = metadata.get("customerId") or metadata.get("customer_id")
        if not customer_id:
            raise BadRequestError("Work item missing customer ID")

        token = secrets.token_hex(32)
        booking = await self.tokens.create(
            actor.org_id,
            token=token,
            work_item_id=item.id,
            bookable_task_type_id=task_type.id,
            customer_id=str(customer_id),
            customer_email=metadata.get("customerEmail") or metadata.get("email"),
            customer_name=metadata.get("customerName") or metadata.get("name"),
            service_address=metadata.get("address"),
            status="pending",
            expires_at=_now() + timedelta(days=settings.BOOKING_TOKEN_TTL_DAYS),
        )
        booking_url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/book/{token}"
        await self.activity.log(actor.org_id, actor.user_id, "generation", "booking_token", booking.id,
                                f"Generated booking link for {task_type.name}",
                                {"work_item_id": str(item.id), "booking_url": booking_url, "customer_name": booking.customer_name})
        await self.session.commit()
        return CreateBookingOut(booking_token=token, booking_url=booking_url, expires_at=booking.expires_at)

    # ---- Public side ----
    async def _load(self, token: str) -> tuple[BookingToken, BookableTaskType, WorkItem]:
        booking = await self.tokens.get_by_token(token)
        if not booking:
            raise NotFoundError("Booking not found")
        task_type = await self.task_types.get(booking.org_id, booking.bookable_task_type_id)
        item = await self.work_items.get(booking.org_id, booking.work_item_id)
        if not task_type or not item:
            raise NotFoundError("Booking not found")
        return booking, task_type, item

    def _ensure_open(self, booking: BookingToken) -> None:
        if booking.status == "confirmed":
            raise GoneError("Booking already confirmed")
        if _aware(booking.expires_at) < _now():
            raise GoneError("Booking link has expired")

    async def _org_tz(self, org_id: uuid.UUID) -> tzinfo:
        org = await OrganizationRepository(self.session).get(org_id)
        try:
            return ZoneInfo(org.time_zone) if org and org.time_zone else timezone.utc
        except (ZoneInfoNotFoundError, ValueError):
            log.warning("Unknown time zone %r for org %s; using UTC", org.time_zone, org_id)
            return timezone.utc

    async def public_details(self, token: str) -> PublicBookingOut:
        booking, task_type, item = await self._load(token)
        self._ensure_open(booking)
        return PublicBookingOut(
            customer_name=booking.customer_name,
            service_address=booking.service_address,
            task_type_name=task_type.name,
            task_category=task_type.task_category,
            duration=task_type.default_duration,
            ticket_subject=item.title,
        )

    async def available_slots(self, token: str, start_date: date | None, end_date: date | None) -> list[dict]:
        booking, task_type, _ = await self._load(token)
        self._ensure_open(booking)
        start_date = start_date or _now().date()
        end_date = end_date or start_date + timedelta(days=7)
        if end_date < start_date:
            raise BadRequestError("end_date must not be before start_date")
        client = await splynx_client_for(self.session, booking.org_id)
        tasks = await client.get_scheduling_tasks(
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            project_id=task_type.splynx_project_id,
        )
        return calculate_available_slots(
            start_date, end_date, tasks, task_type.default_duration,
            task_type.default_travel_time_to or 0, tz=await self._org_tz(booking.org_id),
        )

    async def confirm(self, token: str, payload: ConfirmIn) -> ConfirmOut:
        if payload.selected_datetime is None:
            raise BadRequestError("Selected datetime is required")
        booking, task_type, item = await self._load(token)
        if booking.status == "confirmed":
            raise BadRequestError("Booking already confirmed")
        if _aware(booking.expires_at) < _now():
            raise GoneError("Booking link has expired")
        if not task_type.splynx_project_id or not task_type.splynx_workflow_status_id:
            raise BadRequestError("Bookable task type is missing its Splynx project or workflow status")

        tz = await self._org_tz(booking.org_id)
        selected = payload.selected_datetime if payload.selected_datetime.tzinfo else payload.selected_datetime.replace(tzinfo=tz)
        description = "\n\n".join(p for p in (item.title, payload.additional_notes) if p)
        client = await splynx_client_for(self.session, booking.org_id)
        task = await client.create_task(
            title=f"{task_type.name} - {booking.customer_name or booking.customer_id}",
            project_id=task_type.splynx_project_id,
            workflow_status_id=task_type.splynx_workflow_status_id,
            customer_id=booking.customer_id,
            address=booking.service_address,
            description=description,
            scheduled_from=selected.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S"),
            duration=task_type.default_duration,
            travel_time_to=task_type.default_travel_time_to,
            travel_time_from=task_type.default_travel_time_from,
        )
        task_id = str(task.get("id")) if task.get("id") is not None else None
        now = _now()
        await self.tokens.apply(
            booking,
            status="confirmed",
            selected_datetime=selected,
            contact_number=payload.contact_number,
            additional_notes=payload.additional_notes,
            splynx_task_id=task_id,
            confirmed_at=now,
        )
        metadata = dict(item.workflow_metadata or {})
        metadata["bookedAppointment"] = {
            "taskId": task_id,
            "datetime": selected.isoformat(),
            "taskType": task_type.name,
            "confirmedAt": now.isoformat(),
        }
        await self.work_items.apply(item, workflow_metadata=metadata, status="In Progress")
        await self.activity.log(booking.org_id, None, "completion", "booking_token", booking.id,
                                f"Customer confirmed {task_type.name} for {selected.isoformat()}",
                                {"splynx_task_id": task_id, "work_item_id": str(item.id)})
        await OutboxService(self.session).enqueue(booking.org_id, "BOOKING_CONFIRMED", "work_item", item.id,
                                                  {"booking_id": str(booking.id), "splynx_task_id": task_id,
                                                   "selected_datetime": selected.isoformat()})
        await self.session.commit()
        log.info("Booking %s confirmed for work item %s", booking.id, item.id)
        return ConfirmOut(splynx_task_id=task_id, selected_datetime=selected,
                          confirmation_message=task_type.confirmation_message)
