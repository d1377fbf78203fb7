"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from clinicdesk.api.v1 import (
    auth_staff,
    clinic_settings,
    dashboard,
    health,
    patients,
    payments,
    scheduling,
    task_settings,
)

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Authentication
api_router.include_router(
    auth_staff.router,
    prefix="/auth/staff",
    tags=["auth-staff"],
)

# Clinic working hours
api_router.include_router(
    clinic_settings.router,
    prefix="/clinic",
    tags=["clinic"],
)

# Patient records
api_router.include_router(
    patients.router,
    prefix="/patients",
    tags=["patients"],
)

# Calendar and appointments
api_router.include_router(
    scheduling.router,
    prefix="/scheduling",
    tags=["scheduling"],
)

# Staff dashboard
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["dashboard"],
)

# Dashboard task settings
api_router.include_router(
    task_settings.router,
    prefix="/settings",
    tags=["settings"],
)

# Payments
api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["payments"],
)
