"""Appointment booking and lifecycle.

Double-booking a doctor is allowed: create and update report a conflict
warning alongside the saved appointment instead of refusing the write.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.core.logging import audit_logger, get_logger
from clinicdesk.models.appointment import (
    INACTIVE_STATUSES,
    Appointment,
    AppointmentChannel,
    AppointmentStatus,
)
from clinicdesk.models.patient import Patient
from clinicdesk.models.user import LEGACY_ROLE_ALIASES, User, UserRole
from clinicdesk.scheduling.conflicts import conflict_warning
from clinicdesk.utils.time import ensure_utc, local_day_bounds, local_today, utc_now

logger = get_logger(__name__)

DEFAULT_PATIENT_NAME = "Patient"
UNASSIGNED_DOCTOR_LABEL = "Doctor not assigned"

DOCTOR_ROLE_VALUES = [UserRole.DOCTOR.value] + [
    alias for alias, role in LEGACY_ROLE_ALIASES.items() if role == UserRole.DOCTOR
]

# Fields a full appointment edit may change
EDITABLE_FIELDS = frozenset(
    {
        "patient_id",
        "doctor_id",
        "starts_at",
        "ends_at",
        "status",
        "channel",
        "treatment_type",
        "treatment_note",
        "patient_note",
        "internal_note",
        "estimated_amount",
        "tags",
    }
)

# Editable fields that may be cleared
CLEARABLE_FIELDS = frozenset(
    {
        "doctor_id",
        "treatment_type",
        "treatment_note",
        "patient_note",
        "internal_note",
        "estimated_amount",
    }
)


class InvalidAppointmentError(Exception):
    """Raised when appointment data breaks a booking invariant."""

    pass


class AppointmentNotFoundError(Exception):
    """Raised when the appointment does not exist in the clinic."""

    pass


class DoctorNotFoundError(Exception):
    """Raised when the doctor is not an active doctor of the clinic."""

    pass


class PatientNotFoundError(Exception):
    """Raised when the patient does not belong to the clinic."""

    pass


@dataclass
class BookingResult:
    """Saved appointment plus the double-booking warning, if any."""

    appointment: Appointment
    conflict_warning: str | None = None


class AppointmentService:
    """Service for booking and managing clinic appointments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Reads ---

    async def get_appointment(self, clinic_id: str, appointment_id: str) -> Appointment:
        """Load an appointment of the clinic.

        Raises:
            AppointmentNotFoundError: If not found in this clinic
        """
        result = await self.session.execute(
            select(Appointment).where(
                Appointment.id == appointment_id,
                Appointment.clinic_id == clinic_id,
            )
        )
        appointment = result.scalar_one_or_none()
        if not appointment:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    async def list_between(
        self,
        clinic_id: str,
        start: datetime,
        end: datetime,
    ) -> Sequence[Appointment]:
        """Appointments starting in [start, end), earliest first."""
        result = await self.session.execute(
            select(Appointment)
            .where(
                Appointment.clinic_id == clinic_id,
                Appointment.starts_at >= ensure_utc(start),
                Appointment.starts_at < ensure_utc(end),
            )
            .order_by(Appointment.starts_at)
        )
        return result.scalars().all()

    async def list_for_day(self, clinic_id: str, day: date, tz: ZoneInfo) -> Sequence[Appointment]:
        """Appointments starting on a local calendar day."""
        start, end = local_day_bounds(day, tz)
        return await self.list_between(clinic_id, start, end)

    async def list_upcoming(
        self,
        clinic_id: str,
        day: date,
        tz: ZoneInfo,
        now: datetime | None = None,
    ) -> list[Appointment]:
        """Appointments of a day still ahead of the clinic.

        Completed appointments are left out. For today only appointments
        starting after ``now`` are returned.
        """
        now = ensure_utc(now or utc_now())
        appointments = await self.list_for_day(clinic_id, day, tz)
        is_today = day == local_today(tz, now)

        return [
            appointment
            for appointment in appointments
            if appointment.status != AppointmentStatus.COMPLETED
            and (not is_today or ensure_utc(appointment.starts_at) > now)
        ]

    async def list_doctors(self, clinic_id: str) -> Sequence[User]:
        """Active doctors of the clinic, by name."""
        result = await self.session.execute(
            select(User)
            .where(
                User.clinic_id == clinic_id,
                User.role.in_(DOCTOR_ROLE_VALUES),
                User.is_active == True,
            )
            .order_by(User.full_name)
        )
        return result.scalars().all()

    async def load_names(
        self,
        clinic_id: str,
        appointments: Iterable[Appointment],
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Patient and doctor display names for a batch of appointments.

        Returns:
            (patient names by patient id, doctor names by doctor id)
        """
        appointments = list(appointments)
        patient_ids = {a.patient_id for a in appointments if a.patient_id}

        patient_names: dict[str, str] = {}
        if patient_ids:
            result = await self.session.execute(
                select(Patient.id, Patient.full_name).where(
                    Patient.clinic_id == clinic_id,
                    Patient.id.in_(patient_ids),
                )
            )
            patient_names = {row.id: row.full_name for row in result}

        doctor_names = {
            doctor.id: doctor.full_name or doctor.email
            for doctor in await self.list_doctors(clinic_id)
        }
        return patient_names, doctor_names

    # --- Validation ---

    async def _require_patient(self, clinic_id: str, patient_id: str) -> Patient:
        result = await self.session.execute(
            select(Patient).where(Patient.id == patient_id, Patient.clinic_id == clinic_id)
        )
        patient = result.scalar_one_or_none()
        if not patient:
            raise PatientNotFoundError(f"Patient {patient_id} not found")
        return patient

    async def _require_doctor(self, clinic_id: str, doctor_id: str) -> User:
        result = await self.session.execute(
            select(User).where(
                User.id == doctor_id,
                User.clinic_id == clinic_id,
                User.role.in_(DOCTOR_ROLE_VALUES),
                User.is_active == True,
            )
        )
        doctor = result.scalar_one_or_none()
        if not doctor:
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found in clinic")
        return doctor

    @staticmethod
    def _check_interval(starts_at: datetime, ends_at: datetime) -> None:
        if ensure_utc(ends_at) <= ensure_utc(starts_at):
            raise InvalidAppointmentError("Appointment must end after it starts")

    async def _conflict_warning(
        self,
        clinic_id: str,
        doctor_id: str | None,
        starts_at: datetime,
        ends_at: datetime,
        exclude_id: str | None = None,
    ) -> str | None:
        if not doctor_id:
            return None

        result = await self.session.execute(
            select(Appointment).where(
                Appointment.clinic_id == clinic_id,
                Appointment.doctor_id == doctor_id,
                Appointment.starts_at < ensure_utc(ends_at),
                Appointment.ends_at > ensure_utc(starts_at),
                Appointment.status.not_in([s.value for s in INACTIVE_STATUSES]),
            )
        )
        return conflict_warning(
            doctor_id,
            starts_at,
            ends_at,
            result.scalars().all(),
            exclude_id=exclude_id,
        )

    # --- Writes ---

    async def create_appointment(
        self,
        clinic_id: str,
        actor_id: str,
        patient_id: str,
        starts_at: datetime,
        ends_at: datetime,
        doctor_id: str | None = None,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        channel: AppointmentChannel = AppointmentChannel.WEB,
        treatment_type: str | None = None,
        treatment_note: str | None = None,
        patient_note: str | None = None,
        internal_note: str | None = None,
        estimated_amount: Decimal | None = None,
        tags: list[str] | None = None,
    ) -> BookingResult:
        """Book an appointment.

        Args:
            clinic_id: Clinic the appointment belongs to
            actor_id: Staff user booking it
            patient_id: Patient of the clinic
            starts_at: Start time
            ends_at: End time, after start
            doctor_id: Optional doctor of the same clinic

        Returns:
            BookingResult with the saved appointment and any conflict warning

        Raises:
            InvalidAppointmentError: If the interval is empty or reversed
            PatientNotFoundError: If the patient is not in the clinic
            DoctorNotFoundError: If the doctor is not in the clinic
        """
        self._check_interval(starts_at, ends_at)
        await self._require_patient(clinic_id, patient_id)
        if doctor_id:
            await self._require_doctor(clinic_id, doctor_id)

        warning = await self._conflict_warning(clinic_id, doctor_id, starts_at, ends_at)

        appointment = Appointment(
            clinic_id=clinic_id,
            patient_id=patient_id,
            doctor_id=doctor_id or None,
            starts_at=ensure_utc(starts_at),
            ends_at=ensure_utc(ends_at),
            status=AppointmentStatus(status).value,
            channel=AppointmentChannel(channel).value,
            treatment_type=treatment_type,
            treatment_note=treatment_note,
            patient_note=patient_note,
            internal_note=internal_note,
            estimated_amount=estimated_amount,
            tags=list(tags or []),
            created_by=actor_id,
        )
        self.session.add(appointment)
        await self.session.commit()
        await self.session.refresh(appointment)

        audit_logger.log(
            action="appointment_created",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="appointment",
            entity_id=appointment.id,
            metadata={"doctor_id": doctor_id, "conflict": warning is not None},
        )
        if warning:
            logger.info(
                f"Appointment {appointment.id} double-books doctor {doctor_id}",
                extra={"clinic_id": clinic_id, "appointment_id": appointment.id},
            )

        return BookingResult(appointment=appointment, conflict_warning=warning)

    async def update_appointment(
        self,
        clinic_id: str,
        appointment_id: str,
        actor_id: str,
        **changes,
    ) -> BookingResult:
        """Edit an appointment, re-checking the doctor's calendar.

        The appointment being edited never conflicts with itself.

        Raises:
            AppointmentNotFoundError: If not found in this clinic
            InvalidAppointmentError: On an unknown field or an invalid interval
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InvalidAppointmentError(f"Cannot edit fields: {', '.join(sorted(unknown))}")
        changes = {
            name: value
            for name, value in changes.items()
            if value is not None or name in CLEARABLE_FIELDS
        }

        appointment = await self.get_appointment(clinic_id, appointment_id)

        starts_at = changes.get("starts_at") or appointment.starts_at
        ends_at = changes.get("ends_at") or appointment.ends_at
        self._check_interval(starts_at, ends_at)

        if changes.get("patient_id"):
            await self._require_patient(clinic_id, changes["patient_id"])
        if "doctor_id" in changes:
            changes["doctor_id"] = changes["doctor_id"] or None
            if changes["doctor_id"]:
                await self._require_doctor(clinic_id, changes["doctor_id"])
        if changes.get("status") is not None:
            changes["status"] = AppointmentStatus(changes["status"]).value
        if changes.get("channel") is not None:
            changes["channel"] = AppointmentChannel(changes["channel"]).value
        if changes.get("tags") is not None:
            changes["tags"] = list(changes["tags"])

        doctor_id = changes.get("doctor_id", appointment.doctor_id)
        warning = await self._conflict_warning(
            clinic_id, doctor_id, starts_at, ends_at, exclude_id=appointment.id
        )

        for name, value in changes.items():
            if name in ("starts_at", "ends_at"):
                value = ensure_utc(value) if value else getattr(appointment, name)
            setattr(appointment, name, value)

        await self.session.commit()
        await self.session.refresh(appointment)

        audit_logger.log(
            action="appointment_updated",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="appointment",
            entity_id=appointment.id,
            metadata={"fields": sorted(changes), "conflict": warning is not None},
        )
        return BookingResult(appointment=appointment, conflict_warning=warning)

    async def update_status(
        self,
        clinic_id: str,
        appointment_id: str,
        status: AppointmentStatus,
        actor_id: str,
    ) -> Appointment:
        """Change the lifecycle status of an appointment."""
        appointment = await self.get_appointment(clinic_id, appointment_id)
        previous = appointment.status
        appointment.status = AppointmentStatus(status).value

        await self.session.commit()
        await self.session.refresh(appointment)

        audit_logger.log(
            action="appointment_status_changed",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="appointment",
            entity_id=appointment.id,
            metadata={"from": str(previous), "to": appointment.status},
        )
        return appointment

    async def assign_doctor(
        self,
        clinic_id: str,
        appointment_id: str,
        doctor_id: str,
        actor_id: str,
    ) -> BookingResult:
        """Assign a doctor of the clinic to an appointment.

        Raises:
            AppointmentNotFoundError: If not found in this clinic
            DoctorNotFoundError: If the doctor is not in the clinic
        """
        appointment = await self.get_appointment(clinic_id, appointment_id)
        await self._require_doctor(clinic_id, doctor_id)

        warning = await self._conflict_warning(
            clinic_id,
            doctor_id,
            appointment.starts_at,
            appointment.ends_at,
            exclude_id=appointment.id,
        )
        appointment.doctor_id = doctor_id

        await self.session.commit()
        await self.session.refresh(appointment)

        audit_logger.log(
            action="appointment_doctor_assigned",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="appointment",
            entity_id=appointment.id,
            metadata={"doctor_id": doctor_id},
        )
        return BookingResult(appointment=appointment, conflict_warning=warning)

    async def delete_appointment(
        self,
        clinic_id: str,
        appointment_id: str,
        actor_id: str,
    ) -> None:
        """Hard-delete an appointment."""
        appointment = await self.get_appointment(clinic_id, appointment_id)
        await self.session.delete(appointment)
        await self.session.commit()

        audit_logger.log(
            action="appointment_deleted",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="appointment",
            entity_id=appointment_id,
        )
