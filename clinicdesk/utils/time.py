"""Time and datetime utilities."""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clinicdesk.core.config import settings


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime.

    Naive values are treated as UTC; this is how timestamps come back
    from SQLite, which drops the offset on storage.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@lru_cache(maxsize=64)
def get_zone(name: str | None = None) -> ZoneInfo:
    """Resolve a clinic timezone name, defaulting to the configured zone.

    Raises:
        ValueError: If the zone name is unknown
    """
    zone_name = name or settings.clinic_timezone
    try:
        return ZoneInfo(zone_name)
    except ZoneInfoNotFoundError:
        raise ValueError(f"Unknown timezone: {zone_name}")


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the UTC [start, end) range covering a local calendar day."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_today(tz: ZoneInfo, now: datetime | None = None) -> date:
    """Return the local calendar date in ``tz``."""
    return (now or utc_now()).astimezone(tz).date()


def format_hhmm(dt: datetime, tz: ZoneInfo | None = None) -> str:
    """Format a timestamp as HH:MM, in ``tz`` when given."""
    if tz is not None:
        dt = ensure_utc(dt).astimezone(tz)
    return dt.strftime("%H:%M")
