"""Clinic working hours and date-specific overrides.

Weekly hours are stored on the clinic as a JSON object keyed by day name
(``monday`` .. ``sunday``), each holding ``{"open": "HH:MM", "close": "HH:MM",
"enabled": bool}``. Overrides are a sparse JSON list, unique by date, that
replace the weekday schedule for one calendar date.

Malformed schedule data is a defect, not a user error: parsing raises
MalformedScheduleError instead of guessing.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date, time
from enum import Enum
from typing import Any

from clinicdesk.utils.overrides import resolve_with_override


class MalformedScheduleError(ValueError):
    """Raised when stored working hours or overrides cannot be parsed."""

    pass


class DuplicateOverrideError(ValueError):
    """Raised when a second override is added for the same date."""

    pass


class DayOfWeek(str, Enum):
    """Day keys used in the clinic's weekly hours map."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def for_date(cls, day: date) -> "DayOfWeek":
        """Map a calendar date to its day key."""
        return ORDERED_DAYS[day.weekday()]


ORDERED_DAYS: list[DayOfWeek] = list(DayOfWeek)


@dataclass(frozen=True)
class DaySchedule:
    """Open/close window for one day."""

    open: time
    close: time
    enabled: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "open": format_time(self.open),
            "close": format_time(self.close),
            "enabled": self.enabled,
        }


@dataclass(frozen=True)
class DateOverride:
    """Schedule exception for a single calendar date."""

    date: date
    open: time
    close: time
    is_closed: bool
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "date": self.date.isoformat(),
            "open": format_time(self.open),
            "close": format_time(self.close),
            "is_closed": self.is_closed,
        }
        if self.note:
            data["note"] = self.note
        return data


WeeklyHours = dict[DayOfWeek, DaySchedule]


DEFAULT_WORKING_HOURS: dict[str, dict[str, Any]] = {
    "monday": {"open": "09:00", "close": "19:00", "enabled": True},
    "tuesday": {"open": "09:00", "close": "19:00", "enabled": True},
    "wednesday": {"open": "09:00", "close": "19:00", "enabled": True},
    "thursday": {"open": "09:00", "close": "19:00", "enabled": True},
    "friday": {"open": "09:00", "close": "19:00", "enabled": True},
    "saturday": {"open": "09:00", "close": "14:00", "enabled": False},
    "sunday": {"open": "09:00", "close": "14:00", "enabled": False},
}


def format_time(value: time) -> str:
    """Render a time of day as HH:MM."""
    return value.strftime("%H:%M")


def parse_time(value: Any) -> time:
    """Parse an ``HH:MM`` string.

    Raises:
        MalformedScheduleError: If the value is not a valid HH:MM string
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise MalformedScheduleError(f"Expected HH:MM string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise MalformedScheduleError(f"Unparsable time of day: {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise MalformedScheduleError(f"Time of day out of range: {value!r}")

    return time(hour, minute)


def parse_day_schedule(raw: Any, day: str) -> DaySchedule:
    """Parse one weekday entry."""
    if not isinstance(raw, Mapping):
        raise MalformedScheduleError(f"Schedule for {day} must be an object")

    missing = {"open", "close", "enabled"} - set(raw)
    if missing:
        raise MalformedScheduleError(
            f"Schedule for {day} is missing {', '.join(sorted(missing))}"
        )
    if not isinstance(raw["enabled"], bool):
        raise MalformedScheduleError(f"Schedule for {day} has non-boolean 'enabled'")

    return DaySchedule(
        open=parse_time(raw["open"]),
        close=parse_time(raw["close"]),
        enabled=raw["enabled"],
    )


def parse_weekly_hours(raw: Any) -> WeeklyHours:
    """Parse the stored weekly hours map.

    Every day key must be present; partial maps are rejected.

    Raises:
        MalformedScheduleError: On a missing day or an invalid entry
    """
    if not isinstance(raw, Mapping):
        raise MalformedScheduleError("Working hours must be an object keyed by day")

    missing = [d.value for d in ORDERED_DAYS if d.value not in raw]
    if missing:
        raise MalformedScheduleError(f"Working hours missing days: {', '.join(missing)}")

    return {day: parse_day_schedule(raw[day.value], day.value) for day in ORDERED_DAYS}


def parse_override(raw: Any) -> DateOverride:
    """Parse one stored override entry."""
    if not isinstance(raw, Mapping) or "date" not in raw:
        raise MalformedScheduleError("Override entry must be an object with a date")

    try:
        override_date = date.fromisoformat(str(raw["date"]))
    except ValueError:
        raise MalformedScheduleError(f"Unparsable override date: {raw['date']!r}")

    missing = {"open", "close", "is_closed"} - set(raw)
    if missing:
        raise MalformedScheduleError(
            f"Override for {override_date} is missing {', '.join(sorted(missing))}"
        )
    if not isinstance(raw["is_closed"], bool):
        raise MalformedScheduleError(f"Override for {override_date} has non-boolean 'is_closed'")

    note = raw.get("note")
    if note is not None and not isinstance(note, str):
        raise MalformedScheduleError(f"Override for {override_date} has a non-text note")

    return DateOverride(
        date=override_date,
        open=parse_time(raw["open"]),
        close=parse_time(raw["close"]),
        is_closed=raw["is_closed"],
        note=note or None,
    )


def parse_overrides(raw: Any) -> list[DateOverride]:
    """Parse the stored override list, enforcing one entry per date."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedScheduleError("Working hour overrides must be a list")

    overrides = [parse_override(item) for item in raw]
    dates = [o.date for o in overrides]
    if len(dates) != len(set(dates)):
        raise MalformedScheduleError("Working hour overrides contain duplicate dates")

    return sorted(overrides, key=lambda o: o.date)


def serialize_weekly_hours(weekly_hours: WeeklyHours) -> dict[str, dict[str, Any]]:
    """Convert weekly hours back to their stored JSON form."""
    return {day.value: weekly_hours[day].to_dict() for day in ORDERED_DAYS}


def serialize_overrides(overrides: Iterable[DateOverride]) -> list[dict[str, Any]]:
    """Convert overrides back to their stored JSON form, sorted by date."""
    return [o.to_dict() for o in sorted(overrides, key=lambda o: o.date)]


def find_override(overrides: Iterable[DateOverride], day: date) -> DateOverride | None:
    """Return the override for ``day``, if any."""
    for override in overrides:
        if override.date == day:
            return override
    return None


def apply_override(base: DaySchedule, override: DateOverride) -> DaySchedule:
    """Effective schedule once a date override replaces the weekday entry."""
    if override.is_closed:
        return replace(base, enabled=False)
    return DaySchedule(open=override.open, close=override.close, enabled=True)


def resolve_day_schedule(
    weekly_hours: WeeklyHours,
    overrides: Iterable[DateOverride],
    day: date,
) -> DaySchedule:
    """Resolve the effective window for a calendar date.

    An exact-date override wins: a closed override closes the day whatever
    the weekday says, an open one supplies its own hours. Without an
    override the weekday entry is returned unchanged.

    Raises:
        MalformedScheduleError: If the weekday entry is missing
    """
    day_key = DayOfWeek.for_date(day)
    try:
        base = weekly_hours[day_key]
    except KeyError:
        raise MalformedScheduleError(f"Working hours missing {day_key.value}")

    return resolve_with_override(base, find_override(overrides, day), apply_override)


def add_override(overrides: Iterable[DateOverride], new: DateOverride) -> list[DateOverride]:
    """Return a new sorted override list with ``new`` added.

    Raises:
        DuplicateOverrideError: If an override already exists for that date
    """
    current = list(overrides)
    if find_override(current, new.date) is not None:
        raise DuplicateOverrideError(f"An override already exists for {new.date.isoformat()}")
    return sorted([*current, new], key=lambda o: o.date)


def remove_override(overrides: Iterable[DateOverride], day: date) -> list[DateOverride]:
    """Return the override list without the entry for ``day``."""
    return [o for o in overrides if o.date != day]
