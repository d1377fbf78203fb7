"""Working hours resolution, calendar slots and booking conflicts."""

from clinicdesk.scheduling.conflicts import conflict_warning, find_conflicts, has_conflict
from clinicdesk.scheduling.hours import (
    DateOverride,
    DayOfWeek,
    DaySchedule,
    DuplicateOverrideError,
    MalformedScheduleError,
    parse_overrides,
    parse_weekly_hours,
    resolve_day_schedule,
)
from clinicdesk.scheduling.slots import build_slots, is_slot_past

__all__ = [
    "DayOfWeek",
    "DaySchedule",
    "DateOverride",
    "MalformedScheduleError",
    "DuplicateOverrideError",
    "parse_weekly_hours",
    "parse_overrides",
    "resolve_day_schedule",
    "build_slots",
    "is_slot_past",
    "has_conflict",
    "find_conflicts",
    "conflict_warning",
]
