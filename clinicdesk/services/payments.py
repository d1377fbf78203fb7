"""Payments recorded against appointments."""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.core.logging import audit_logger
from clinicdesk.models.payment import Payment, PaymentStatus
from clinicdesk.services.appointments import AppointmentService

EDITABLE_FIELDS = frozenset({"amount", "status", "method", "due_date", "note"})


class InvalidPaymentError(Exception):
    """Raised when payment data is not acceptable."""

    pass


class PaymentNotFoundError(Exception):
    """Raised when the payment does not exist in the clinic."""

    pass


class PaymentService:
    """Service for recording and listing payments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_payments(
        self,
        clinic_id: str,
        appointment_id: str | None = None,
    ) -> Sequence[Payment]:
        """Payments of the clinic, optionally for one appointment, newest first."""
        query = select(Payment).where(Payment.clinic_id == clinic_id)
        if appointment_id:
            query = query.where(Payment.appointment_id == appointment_id)

        result = await self.session.execute(query.order_by(Payment.created_at.desc()))
        return result.scalars().all()

    async def appointment_ids_with_payments(
        self,
        clinic_id: str,
        appointment_ids: Iterable[str],
    ) -> set[str]:
        """Subset of ``appointment_ids`` that have at least one payment row."""
        ids = set(appointment_ids)
        if not ids:
            return set()

        result = await self.session.execute(
            select(Payment.appointment_id)
            .where(Payment.clinic_id == clinic_id, Payment.appointment_id.in_(ids))
            .distinct()
        )
        return set(result.scalars().all())

    async def create_payment(
        self,
        clinic_id: str,
        actor_id: str,
        appointment_id: str,
        amount: Decimal,
        status: PaymentStatus = PaymentStatus.PLANNED,
        method: str | None = None,
        due_date: date | None = None,
        note: str | None = None,
    ) -> Payment:
        """Record a payment for an appointment of the clinic.

        Args:
            clinic_id: Clinic scope
            actor_id: Staff user recording the payment
            appointment_id: Appointment paid for
            amount: Positive amount

        Returns:
            Created Payment

        Raises:
            AppointmentNotFoundError: If the appointment is not in the clinic
            InvalidPaymentError: If the amount is not positive
        """
        if amount <= 0:
            raise InvalidPaymentError("Payment amount must be positive")

        appointment = await AppointmentService(self.session).get_appointment(
            clinic_id, appointment_id
        )

        payment = Payment(
            clinic_id=clinic_id,
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            amount=amount,
            status=PaymentStatus(status).value,
            method=method,
            due_date=due_date,
            note=note,
        )
        self.session.add(payment)
        await self.session.commit()
        await self.session.refresh(payment)

        audit_logger.log(
            action="payment_created",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="payment",
            entity_id=payment.id,
            metadata={"appointment_id": appointment.id, "amount": str(amount)},
        )
        return payment

    async def get_payment(self, clinic_id: str, payment_id: str) -> Payment:
        """Load a payment of the clinic.

        Raises:
            PaymentNotFoundError: If not found in this clinic
        """
        result = await self.session.execute(
            select(Payment).where(Payment.id == payment_id, Payment.clinic_id == clinic_id)
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise PaymentNotFoundError(f"Payment {payment_id} not found")
        return payment

    async def update_payment(
        self,
        clinic_id: str,
        payment_id: str,
        actor_id: str,
        **changes: Any,
    ) -> Payment:
        """Edit amount, status, method, due date or note of a payment.

        Raises:
            PaymentNotFoundError: If not found in this clinic
            InvalidPaymentError: On an unknown field or a non-positive amount
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InvalidPaymentError(f"Cannot edit fields: {', '.join(sorted(unknown))}")
        if "amount" in changes and (changes["amount"] is None or changes["amount"] <= 0):
            raise InvalidPaymentError("Payment amount must be positive")
        if changes.get("status") is None:
            changes.pop("status", None)
        else:
            changes["status"] = PaymentStatus(changes["status"]).value

        payment = await self.get_payment(clinic_id, payment_id)
        for name, value in changes.items():
            setattr(payment, name, value)

        await self.session.commit()
        await self.session.refresh(payment)

        audit_logger.log(
            action="payment_updated",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="payment",
            entity_id=payment.id,
            metadata={"fields": sorted(changes)},
        )
        return payment

    async def delete_payment(self, clinic_id: str, payment_id: str, actor_id: str) -> None:
        payment = await self.get_payment(clinic_id, payment_id)
        appointment_id = payment.appointment_id
        await self.session.delete(payment)
        await self.session.commit()

        audit_logger.log(
            action="payment_deleted",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="payment",
            entity_id=payment_id,
            metadata={"appointment_id": appointment_id},
        )
