"""Dashboard reads: attention list and upcoming appointments."""

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.control.builder import ControlItem, build_control_items
from clinicdesk.control.gate import ViewerContext
from clinicdesk.control.rules import AppointmentView
from clinicdesk.core.logging import get_logger
from clinicdesk.models.appointment import Appointment
from clinicdesk.services.appointments import (
    DEFAULT_PATIENT_NAME,
    UNASSIGNED_DOCTOR_LABEL,
    AppointmentService,
)
from clinicdesk.services.clinic import ClinicService
from clinicdesk.services.payments import PaymentService
from clinicdesk.services.task_settings import TaskSettingsService
from clinicdesk.utils.time import ensure_utc, utc_now

logger = get_logger(__name__)


class DataUnavailableError(Exception):
    """Raised when dashboard data could not be read from the store."""

    pass


@dataclass
class UpcomingAppointment:
    appointment: Appointment
    patient_name: str
    doctor_name: str


class DashboardService:
    """Service assembling the clinic dashboard for one viewer."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.appointments = AppointmentService(session)
        self.clinics = ClinicService(session)

    async def get_control_items(
        self,
        clinic_id: str,
        viewer: ViewerContext,
        day: date,
        now: datetime | None = None,
    ) -> list[ControlItem]:
        """Attention list of a day for the viewer.

        Args:
            clinic_id: Clinic scope
            viewer: Dashboard viewer
            day: Calendar date in clinic time
            now: Evaluation time; read once when omitted

        Returns:
            Control items, most recently relevant first

        Raises:
            DataUnavailableError: If the store could not be read
        """
        now = ensure_utc(now or utc_now())

        try:
            clinic = await self.clinics.get_clinic(clinic_id)
            tz = self.clinics.zone_for(clinic)
            appointments = await self.appointments.list_for_day(clinic_id, day, tz)
            patient_names, _ = await self.appointments.load_names(clinic_id, appointments)
            paid_ids = await PaymentService(self.session).appointment_ids_with_payments(
                clinic_id, [a.id for a in appointments]
            )
            gate = await TaskSettingsService(self.session).get_gate(clinic_id)
        except SQLAlchemyError as e:
            logger.error(
                f"Control items unavailable for {day.isoformat()}: {e}",
                extra={"clinic_id": clinic_id},
            )
            raise DataUnavailableError("No data available for this view") from e

        views = [
            AppointmentView(
                id=appointment.id,
                patient_name=patient_names.get(appointment.patient_id) or DEFAULT_PATIENT_NAME,
                starts_at=appointment.starts_at,
                ends_at=appointment.ends_at,
                status=appointment.status,
                doctor_id=appointment.doctor_id,
                treatment_type=appointment.treatment_type,
                treatment_note=appointment.treatment_note,
            )
            for appointment in appointments
        ]
        return build_control_items(views, paid_ids, gate, viewer, now, tz)

    async def get_upcoming_appointments(
        self,
        clinic_id: str,
        day: date,
        now: datetime | None = None,
    ) -> list[UpcomingAppointment]:
        """Not yet completed appointments of a day; for today only those still ahead.

        Raises:
            DataUnavailableError: If the store could not be read
        """
        try:
            clinic = await self.clinics.get_clinic(clinic_id)
            tz = self.clinics.zone_for(clinic)
            appointments = await self.appointments.list_upcoming(clinic_id, day, tz, now)
            patient_names, doctor_names = await self.appointments.load_names(
                clinic_id, appointments
            )
        except SQLAlchemyError as e:
            logger.error(
                f"Upcoming appointments unavailable for {day.isoformat()}: {e}",
                extra={"clinic_id": clinic_id},
            )
            raise DataUnavailableError("No data available for this view") from e

        return [
            UpcomingAppointment(
                appointment=appointment,
                patient_name=patient_names.get(appointment.patient_id) or DEFAULT_PATIENT_NAME,
                # Doctors missing from the clinic's doctor list count as unassigned
                doctor_name=doctor_names.get(appointment.doctor_id or "", UNASSIGNED_DOCTOR_LABEL),
            )
            for appointment in appointments
        ]
