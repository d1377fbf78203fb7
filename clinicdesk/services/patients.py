"""Patient records of a clinic."""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.core.logging import audit_logger
from clinicdesk.models.appointment import Appointment
from clinicdesk.models.patient import Patient
from clinicdesk.models.payment import Payment
from clinicdesk.services.appointments import PatientNotFoundError

# Fields that may be cleared by sending null
CLEARABLE_FIELDS = frozenset({"email", "birth_date", "allergies", "medical_alerts", "notes"})


class PatientService:
    """Service for clinic patient records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_patients(
        self,
        clinic_id: str,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Patient]:
        """Patients of the clinic, newest first.

        Args:
            clinic_id: Clinic scope
            search: Case-insensitive match on name or phone
            limit: Page size
            offset: Rows to skip
        """
        query = select(Patient).where(Patient.clinic_id == clinic_id)
        term = (search or "").strip()
        if term:
            pattern = f"%{term}%"
            query = query.where(
                or_(Patient.full_name.ilike(pattern), Patient.phone.ilike(pattern))
            )

        result = await self.session.execute(
            query.order_by(Patient.created_at.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all()

    async def get_patient(self, clinic_id: str, patient_id: str) -> Patient:
        """Load a patient of the clinic.

        Raises:
            PatientNotFoundError: If not found in this clinic
        """
        result = await self.session.execute(
            select(Patient).where(Patient.id == patient_id, Patient.clinic_id == clinic_id)
        )
        patient = result.scalar_one_or_none()
        if not patient:
            raise PatientNotFoundError(f"Patient {patient_id} not found")
        return patient

    async def create_patient(self, clinic_id: str, actor_id: str, **fields: Any) -> Patient:
        patient = Patient(clinic_id=clinic_id, **fields)
        self.session.add(patient)
        await self.session.commit()
        await self.session.refresh(patient)

        audit_logger.log(
            action="patient_created",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="patient",
            entity_id=patient.id,
        )
        return patient

    async def update_patient(
        self,
        clinic_id: str,
        patient_id: str,
        actor_id: str,
        **changes: Any,
    ) -> Patient:
        """Apply a partial edit. ``None`` clears optional fields and is ignored otherwise."""
        patient = await self.get_patient(clinic_id, patient_id)
        changes = {
            name: value
            for name, value in changes.items()
            if value is not None or name in CLEARABLE_FIELDS
        }
        for name, value in changes.items():
            setattr(patient, name, value)

        await self.session.commit()
        await self.session.refresh(patient)

        audit_logger.log(
            action="patient_updated",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="patient",
            entity_id=patient.id,
            metadata={"fields": sorted(changes)},
        )
        return patient

    async def delete_patient(self, clinic_id: str, patient_id: str, actor_id: str) -> None:
        """Delete a patient together with their appointments and payments."""
        patient = await self.get_patient(clinic_id, patient_id)
        appointment_ids = select(Appointment.id).where(
            Appointment.clinic_id == clinic_id,
            Appointment.patient_id == patient.id,
        )

        await self.session.execute(
            delete(Payment)
            .where(Payment.appointment_id.in_(appointment_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Appointment)
            .where(Appointment.clinic_id == clinic_id, Appointment.patient_id == patient.id)
            .execution_options(synchronize_session=False)
        )
        await self.session.delete(patient)
        await self.session.commit()

        audit_logger.log(
            action="patient_deleted",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="patient",
            entity_id=patient_id,
        )
