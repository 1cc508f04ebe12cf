"""Appointment slot calculation against a technician calendar.

Slots start on the hour and half hour during working hours on weekdays. A
slot covers the job duration plus travel both ways, must finish by the end
of the working day and must not overlap anything already scheduled.
"""
import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable
from app.core.config import settings

DEFAULT_DURATION = "2h 30m"
DEFAULT_TASK_MINUTES = 60
SLOT_MINUTES = (0, 30)

_HOURS_RE = re.compile(r"(\d+)h")
_MINUTES_RE = re.compile(r"(\d+)m")

def parse_duration(duration: str | None) -> int:
    """``"2h 30m"`` -> 150. Unparseable input counts as zero minutes."""
    text = duration or ""
    hours = _HOURS_RE.search(text)
    minutes = _MINUTES_RE.search(text)
    return (int(hours.group(1)) * 60 if hours else 0) + (int(minutes.group(1)) if minutes else 0)

def _parse_task_time(value, tz: tzinfo) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    return dt if dt.tzinfo else dt.replace(tzinfo=tz)

def busy_periods(tasks: Iterable[dict], tz: tzinfo) -> list[tuple[datetime, datetime]]:
    periods = []
    for task in tasks:
        start = _parse_task_time(task.get("scheduled_from") or task.get("date_from"), tz)
        if start is None:
            continue
        end = _parse_task_time(task.get("scheduled_to") or task.get("date_to"), tz) or start + timedelta(minutes=DEFAULT_TASK_MINUTES)
        periods.append((start, end))
    return periods

def calculate_available_slots(
    start_date: date,
    end_date: date,
    existing_tasks: Iterable[dict],
    duration: str | None,
    travel_time: int = 0,
    *,
    tz: tzinfo = timezone.utc,
    now: datetime | None = None,
    work_start: int | None = None,
    work_end: int | None = None,
) -> list[dict]:
    work_start = settings.BOOKING_WORK_START_HOUR if work_start is None else work_start
    work_end = settings.BOOKING_WORK_END_HOUR if work_end is None else work_end
    now = now or datetime.now(timezone.utc)
    span = timedelta(minutes=parse_duration(duration or DEFAULT_DURATION) + 2 * (travel_time or 0))
    busy = busy_periods(existing_tasks, tz)

    slots: list[dict] = []
    day = start_date
    while day <= end_date:
        if day.weekday() < 5:
            day_end = datetime.combine(day, time(work_end), tzinfo=tz)
            for hour in range(work_start, work_end):
                for minute in SLOT_MINUTES:
                    slot_start = datetime.combine(day, time(hour, minute), tzinfo=tz)
                    slot_end = slot_start + span
                    if slot_end > day_end or slot_start <= now:
                        continue
                    if any(slot_start < b_end and slot_end > b_start for b_start, b_end in busy):
                        continue
                    slots.append({
                        "datetime": slot_start.isoformat(),
                        "display_time": slot_start.strftime("%I:%M %p").lstrip("0"),
                        "display_date": slot_start.strftime("%a, %b %d"),
                    })
        day += timedelta(days=1)
    return slots
