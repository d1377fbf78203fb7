"""Staff dashboard endpoints."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from clinicdesk.api.deps import ClinicId, DbSession, Viewer, require_permissions
from clinicdesk.schemas.appointment import AppointmentResponse
from clinicdesk.services.clinic import ClinicNotFoundError
from clinicdesk.services.dashboard import DashboardService, DataUnavailableError
from clinicdesk.services.rbac import Permission

router = APIRouter()


# ============================================================================
# Request/Response Schemas
# ============================================================================


class ControlItemResponse(BaseModel):
    """An appointment needing staff action."""

    id: str
    type: str
    tone: str
    tone_label: str
    appointment_id: str
    patient_name: str
    time_label: str
    treatment_label: str
    action_label: str
    sort_time: datetime


class ControlListResponse(BaseModel):
    """Attention list of a day."""

    date: date
    items: list[ControlItemResponse]
    total: int


class UpcomingAppointmentsResponse(BaseModel):
    """Upcoming appointments of a day."""

    date: date
    appointments: list[AppointmentResponse]
    total: int


def _unavailable(e: DataUnavailableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/control-items",
    response_model=ControlListResponse,
    dependencies=[Depends(require_permissions(Permission.DASHBOARD_READ))],
)
async def get_control_items(
    viewer: Viewer,
    session: DbSession,
    clinic_id: ClinicId,
    day: date = Query(..., alias="date"),
) -> ControlListResponse:
    """Attention list of a day, filtered by the viewer's task assignments."""
    service = DashboardService(session)

    try:
        items = await service.get_control_items(clinic_id, viewer, day)
    except ClinicNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DataUnavailableError as e:
        raise _unavailable(e)

    return ControlListResponse(
        date=day,
        items=[ControlItemResponse(**item.to_dict()) for item in items],
        total=len(items),
    )


@router.get(
    "/appointments",
    response_model=UpcomingAppointmentsResponse,
    dependencies=[Depends(require_permissions(Permission.DASHBOARD_READ))],
)
async def get_upcoming_appointments(
    session: DbSession,
    clinic_id: ClinicId,
    day: date = Query(..., alias="date"),
) -> UpcomingAppointmentsResponse:
    """Appointments of a day not yet completed; for today only those still ahead."""
    service = DashboardService(session)

    try:
        upcoming = await service.get_upcoming_appointments(clinic_id, day)
    except ClinicNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DataUnavailableError as e:
        raise _unavailable(e)

    appointments = []
    for entry in upcoming:
        response = AppointmentResponse.model_validate(entry.appointment)
        response.patient_name = entry.patient_name
        response.doctor_name = entry.doctor_name
        appointments.append(response)

    return UpcomingAppointmentsResponse(date=day, appointments=appointments, total=len(appointments))
