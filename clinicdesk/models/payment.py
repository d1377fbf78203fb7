"""Payment model."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from clinicdesk.db.base import Base, ClinicScopedMixin, TimestampMixin


class PaymentStatus(str, Enum):
    """Collection status of a payment."""

    PLANNED = "planned"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELLED = "cancelled"


class Payment(Base, TimestampMixin, ClinicScopedMixin):
    """Payment recorded against an appointment."""

    __tablename__ = "payments"

    appointment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    patient_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        default=PaymentStatus.PLANNED,
        nullable=False,
    )
    method: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )
    due_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )
    note: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Payment {self.amount} status={self.status}>"
