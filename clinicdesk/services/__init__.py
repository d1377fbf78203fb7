"""Business logic services."""

from clinicdesk.services.appointments import AppointmentService
from clinicdesk.services.auth import AuthService
from clinicdesk.services.clinic import ClinicService
from clinicdesk.services.dashboard import DashboardService
from clinicdesk.services.payments import PaymentService
from clinicdesk.services.rbac import RBACService
from clinicdesk.services.task_settings import TaskSettingsService

__all__ = [
    "AuthService",
    "RBACService",
    "ClinicService",
    "AppointmentService",
    "PaymentService",
    "DashboardService",
    "TaskSettingsService",
]
