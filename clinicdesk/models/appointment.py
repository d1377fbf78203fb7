"""Appointment model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from clinicdesk.db.base import Base, ClinicScopedMixin, TimestampMixin


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    COMPLETED = "completed"


class AppointmentChannel(str, Enum):
    """Channel the booking came in through."""

    WHATSAPP = "whatsapp"
    WEB = "web"
    PHONE = "phone"
    WALK_IN = "walk_in"


# Statuses that no longer occupy the doctor's time
INACTIVE_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})

# Statuses that need no further status update once the appointment is over
CLOSED_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


class Appointment(Base, TimestampMixin, ClinicScopedMixin):
    """Booked visit of a patient, optionally assigned to a doctor."""

    __tablename__ = "appointments"

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    doctor_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    starts_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    ends_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        String(20),
        default=AppointmentStatus.CONFIRMED,
        nullable=False,
        index=True,
    )
    channel: Mapped[AppointmentChannel] = mapped_column(
        String(20),
        default=AppointmentChannel.WEB,
        nullable=False,
    )
    treatment_type: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    treatment_note: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    patient_note: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    internal_note: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    estimated_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )
    tags: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Appointment {self.id[:8]}... {self.starts_at} status={self.status}>"
