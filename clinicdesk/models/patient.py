"""Patient model."""

from datetime import date

from sqlalchemy import Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clinicdesk.db.base import Base, ClinicScopedMixin, TimestampMixin


class Patient(Base, TimestampMixin, ClinicScopedMixin):
    """Patient record owned by one clinic."""

    __tablename__ = "patients"

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    birth_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )
    allergies: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    medical_alerts: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Patient {self.full_name}>"
