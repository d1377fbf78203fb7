"""Clinic settings and calendar day view.

Working hours and their date overrides live as JSON on the clinic row.
Reads parse them strictly; writes validate the full map before storing it.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.core.logging import audit_logger
from clinicdesk.models.appointment import Appointment
from clinicdesk.models.clinic import Clinic
from clinicdesk.scheduling.hours import (
    DateOverride,
    DaySchedule,
    WeeklyHours,
    add_override,
    find_override,
    parse_overrides,
    parse_weekly_hours,
    remove_override,
    resolve_day_schedule,
    serialize_overrides,
    serialize_weekly_hours,
)
from clinicdesk.scheduling.slots import build_slots, is_slot_past
from clinicdesk.services.appointments import AppointmentService
from clinicdesk.utils.time import get_zone, utc_now


class ClinicNotFoundError(Exception):
    """Raised when the clinic does not exist or is inactive."""

    pass


class OverrideNotFoundError(Exception):
    """Raised when removing an override for a date that has none."""

    pass


@dataclass
class Slot:
    hour: int
    is_past: bool


@dataclass
class DayView:
    """Everything the calendar grid needs for one date."""

    day: date
    window: DaySchedule
    override: DateOverride | None
    slots: list[Slot]
    appointments: Sequence[Appointment]
    timezone: str
    doctor_names: dict[str, str] = field(default_factory=dict)
    patient_names: dict[str, str] = field(default_factory=dict)

    @property
    def is_day_off(self) -> bool:
        return not self.window.enabled


class ClinicService:
    """Service for clinic working hours and the calendar day view."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_clinic(self, clinic_id: str) -> Clinic:
        """Load an active clinic.

        Raises:
            ClinicNotFoundError: If no active clinic has that id
        """
        result = await self.session.execute(
            select(Clinic).where(Clinic.id == clinic_id, Clinic.is_active == True)
        )
        clinic = result.scalar_one_or_none()
        if not clinic:
            raise ClinicNotFoundError(f"Clinic {clinic_id} not found")
        return clinic

    @staticmethod
    def zone_for(clinic: Clinic) -> ZoneInfo:
        """Clinic timezone, or the configured default."""
        return get_zone(clinic.timezone)

    async def get_working_hours(self, clinic_id: str) -> tuple[WeeklyHours, list[DateOverride]]:
        """Parsed weekly hours and overrides of a clinic.

        Raises:
            ClinicNotFoundError: If the clinic does not exist
            MalformedScheduleError: If the stored data is invalid
        """
        clinic = await self.get_clinic(clinic_id)
        return (
            parse_weekly_hours(clinic.working_hours),
            parse_overrides(clinic.working_hours_overrides),
        )

    async def update_working_hours(
        self,
        clinic_id: str,
        raw_hours: Mapping[str, Any],
        actor_id: str,
    ) -> WeeklyHours:
        """Replace the weekly hours map.

        The whole map is validated before anything is written; partial maps
        are rejected.

        Args:
            clinic_id: Clinic to update
            raw_hours: Day name to ``{open, close, enabled}``
            actor_id: Staff user making the change

        Returns:
            The stored weekly hours

        Raises:
            MalformedScheduleError: If the map is incomplete or unparsable
        """
        weekly_hours = parse_weekly_hours(raw_hours)

        clinic = await self.get_clinic(clinic_id)
        clinic.working_hours = serialize_weekly_hours(weekly_hours)
        await self.session.commit()

        audit_logger.log(
            action="working_hours_updated",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="clinic",
            entity_id=clinic_id,
        )
        return weekly_hours

    async def add_override(
        self,
        clinic_id: str,
        override: DateOverride,
        actor_id: str,
    ) -> list[DateOverride]:
        """Add a date override.

        Raises:
            DuplicateOverrideError: If the date already has an override
        """
        clinic = await self.get_clinic(clinic_id)
        overrides = add_override(parse_overrides(clinic.working_hours_overrides), override)

        clinic.working_hours_overrides = serialize_overrides(overrides)
        await self.session.commit()

        audit_logger.log(
            action="working_hours_override_added",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="clinic",
            entity_id=clinic_id,
            metadata={"date": override.date.isoformat(), "is_closed": override.is_closed},
        )
        return overrides

    async def remove_override(
        self,
        clinic_id: str,
        day: date,
        actor_id: str,
    ) -> list[DateOverride]:
        """Remove the override for a date.

        Raises:
            OverrideNotFoundError: If the date has no override
        """
        clinic = await self.get_clinic(clinic_id)
        current = parse_overrides(clinic.working_hours_overrides)
        if find_override(current, day) is None:
            raise OverrideNotFoundError(f"No override for {day.isoformat()}")

        overrides = remove_override(current, day)
        clinic.working_hours_overrides = serialize_overrides(overrides)
        await self.session.commit()

        audit_logger.log(
            action="working_hours_override_removed",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="clinic",
            entity_id=clinic_id,
            metadata={"date": day.isoformat()},
        )
        return overrides

    async def get_day_view(
        self,
        clinic_id: str,
        day: date,
        now: datetime | None = None,
    ) -> DayView:
        """Resolve the effective window, slots and appointments for a date.

        Args:
            clinic_id: Clinic to show
            day: Calendar date in clinic time
            now: Reference time for past-slot flags, captured once

        Returns:
            DayView for the calendar grid
        """
        now = now or utc_now()
        clinic = await self.get_clinic(clinic_id)
        tz = self.zone_for(clinic)

        weekly_hours = parse_weekly_hours(clinic.working_hours)
        overrides = parse_overrides(clinic.working_hours_overrides)
        window = resolve_day_schedule(weekly_hours, overrides, day)

        appointment_service = AppointmentService(self.session)
        appointments = await appointment_service.list_for_day(clinic_id, day, tz)
        hours = build_slots(window, appointments, tz)
        patient_names, doctor_names = await appointment_service.load_names(clinic_id, appointments)

        return DayView(
            day=day,
            window=window,
            override=find_override(overrides, day),
            slots=[Slot(hour=h, is_past=is_slot_past(day, h, now, tz)) for h in hours],
            appointments=appointments,
            timezone=tz.key,
            doctor_names=doctor_names,
            patient_names=patient_names,
        )
