"""Appointment schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from clinicdesk.models.appointment import AppointmentChannel, AppointmentStatus
from clinicdesk.utils.time import ensure_utc


class AppointmentBase(BaseModel):
    """Fields shared by appointment create and read."""

    patient_id: str
    doctor_id: str | None = None
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    channel: AppointmentChannel = AppointmentChannel.WEB
    treatment_type: str | None = Field(default=None, max_length=100)
    treatment_note: str | None = None
    patient_note: str | None = None
    internal_note: str | None = None
    estimated_amount: Decimal | None = Field(default=None, ge=0)
    tags: list[str] = []

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        # Naive timestamps are taken as UTC
        return ensure_utc(v)


class CreateAppointmentRequest(AppointmentBase):
    """Request to book an appointment."""

    pass


class UpdateAppointmentRequest(BaseModel):
    """Partial edit of an appointment; only fields sent are changed."""

    patient_id: str | None = None
    doctor_id: str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    status: AppointmentStatus | None = None
    channel: AppointmentChannel | None = None
    treatment_type: str | None = Field(default=None, max_length=100)
    treatment_note: str | None = None
    patient_note: str | None = None
    internal_note: str | None = None
    estimated_amount: Decimal | None = Field(default=None, ge=0)
    tags: list[str] | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v else v


class UpdateStatusRequest(BaseModel):
    """Request to change an appointment's status."""

    status: AppointmentStatus


class AssignDoctorRequest(BaseModel):
    """Request to assign a doctor."""

    doctor_id: str = Field(min_length=1)


class AppointmentResponse(AppointmentBase):
    """Appointment response."""

    model_config = {"from_attributes": True}

    id: str
    clinic_id: str
    patient_name: str | None = None
    doctor_name: str | None = None


class BookingResponse(BaseModel):
    """Saved appointment with an optional double-booking warning."""

    appointment: AppointmentResponse
    conflict_warning: str | None = None
