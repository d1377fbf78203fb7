"""Database models for ClinicDesk."""

from clinicdesk.models.appointment import (
    Appointment,
    AppointmentChannel,
    AppointmentStatus,
)
from clinicdesk.models.clinic import Clinic
from clinicdesk.models.patient import Patient
from clinicdesk.models.payment import Payment, PaymentStatus
from clinicdesk.models.task import ClinicTaskConfig, DashboardTaskDefinition
from clinicdesk.models.user import UnknownRoleError, User, UserRole, normalize_role

__all__ = [
    # Tenancy
    "Clinic",
    # Staff
    "User",
    "UserRole",
    "UnknownRoleError",
    "normalize_role",
    # Patients
    "Patient",
    # Scheduling
    "Appointment",
    "AppointmentStatus",
    "AppointmentChannel",
    # Payments
    "Payment",
    "PaymentStatus",
    # Dashboard tasks
    "DashboardTaskDefinition",
    "ClinicTaskConfig",
]
