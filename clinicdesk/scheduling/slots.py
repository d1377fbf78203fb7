"""Hour slots offered on the calendar grid for one day."""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Protocol

from clinicdesk.scheduling.hours import DaySchedule
from clinicdesk.utils.time import ensure_utc


class HasStart(Protocol):
    starts_at: datetime


def _local_hour(starts_at: datetime, tz: tzinfo | None) -> int:
    if tz is None:
        return starts_at.hour
    return ensure_utc(starts_at).astimezone(tz).hour


def build_slots(
    window: DaySchedule,
    appointments: Iterable[HasStart],
    tz: tzinfo | None = None,
) -> list[int]:
    """Build the ordered hour buckets to show for a day.

    Every hour from the opening hour through the closing hour (inclusive)
    is offered when the day is enabled. The start hour of each existing
    appointment is always included, so bookings made before a day was
    closed, or outside nominal hours, stay visible.

    Args:
        window: Effective schedule for the day
        appointments: Appointments starting on that day
        tz: Clinic timezone used to read appointment start hours

    Returns:
        Distinct hours in ascending order; empty when the day is closed
        and nothing is booked
    """
    hours: set[int] = set()

    if window.enabled:
        hours.update(range(window.open.hour, window.close.hour + 1))

    for appointment in appointments:
        hours.add(_local_hour(appointment.starts_at, tz))

    return sorted(hours)


def is_slot_past(day: date, hour: int, now: datetime, tz: tzinfo) -> bool:
    """Whether the hour bucket has fully elapsed at ``now``."""
    slot_end = datetime.combine(day, time(hour), tzinfo=tz) + timedelta(hours=1)
    return slot_end <= ensure_utc(now)
