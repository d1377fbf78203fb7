"""Scheduling API endpoints: calendar day view, doctors and appointments."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from clinicdesk.api.deps import ClinicId, CurrentUser, DbSession, require_permissions
from clinicdesk.models.appointment import Appointment
from clinicdesk.schemas.appointment import (
    AppointmentResponse,
    AssignDoctorRequest,
    BookingResponse,
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
    UpdateStatusRequest,
)
from clinicdesk.scheduling.hours import MalformedScheduleError, format_time
from clinicdesk.services.appointments import (
    UNASSIGNED_DOCTOR_LABEL,
    AppointmentNotFoundError,
    AppointmentService,
    BookingResult,
    DoctorNotFoundError,
    InvalidAppointmentError,
    PatientNotFoundError,
)
from clinicdesk.services.clinic import ClinicNotFoundError, ClinicService
from clinicdesk.services.rbac import Permission

router = APIRouter()


# ============================================================================
# Request/Response Schemas
# ============================================================================


class WindowResponse(BaseModel):
    """Effective opening window of the day."""

    open: str
    close: str
    enabled: bool


class SlotResponse(BaseModel):
    """Hour bucket of the calendar grid."""

    hour: int
    is_past: bool


class DayViewResponse(BaseModel):
    """Calendar grid data for one date."""

    date: date
    timezone: str
    window: WindowResponse
    is_day_off: bool
    override_note: str | None = None
    slots: list[SlotResponse]
    appointments: list[AppointmentResponse]


class DoctorResponse(BaseModel):
    """Doctor of the clinic."""

    model_config = {"from_attributes": True}

    id: str
    full_name: str | None
    email: str


def _appointment_response(
    appointment: Appointment,
    patient_name: str | None = None,
    doctor_name: str | None = None,
) -> AppointmentResponse:
    response = AppointmentResponse.model_validate(appointment)
    response.patient_name = patient_name
    response.doctor_name = doctor_name
    return response


def _booking_response(result: BookingResult) -> BookingResponse:
    return BookingResponse(
        appointment=_appointment_response(result.appointment),
        conflict_warning=result.conflict_warning,
    )


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _unprocessable(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


# ============================================================================
# Calendar
# ============================================================================


@router.get(
    "/day",
    response_model=DayViewResponse,
    dependencies=[Depends(require_permissions(Permission.SCHEDULE_READ))],
)
async def get_day(
    session: DbSession,
    clinic_id: ClinicId,
    day: date = Query(..., alias="date"),
) -> DayViewResponse:
    """Effective hours, hour slots and appointments of a date."""
    service = ClinicService(session)

    try:
        view = await service.get_day_view(clinic_id, day)
    except ClinicNotFoundError as e:
        raise _not_found(e)
    except MalformedScheduleError as e:
        # Stored hours are broken; the calendar cannot be drawn
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Clinic working hours are invalid: {e}",
        )

    return DayViewResponse(
        date=view.day,
        timezone=view.timezone,
        window=WindowResponse(
            open=format_time(view.window.open),
            close=format_time(view.window.close),
            enabled=view.window.enabled,
        ),
        is_day_off=view.is_day_off,
        override_note=view.override.note if view.override else None,
        slots=[SlotResponse(hour=s.hour, is_past=s.is_past) for s in view.slots],
        appointments=[
            _appointment_response(
                a,
                patient_name=view.patient_names.get(a.patient_id),
                doctor_name=view.doctor_names.get(a.doctor_id or "", UNASSIGNED_DOCTOR_LABEL),
            )
            for a in view.appointments
        ],
    )


@router.get(
    "/doctors",
    response_model=list[DoctorResponse],
    dependencies=[Depends(require_permissions(Permission.SCHEDULE_READ))],
)
async def list_doctors(
    session: DbSession,
    clinic_id: ClinicId,
) -> list[DoctorResponse]:
    """Active doctors of the clinic."""
    doctors = await AppointmentService(session).list_doctors(clinic_id)
    return [DoctorResponse.model_validate(d) for d in doctors]


# ============================================================================
# Appointments
# ============================================================================


@router.post(
    "/appointments",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_WRITE))],
)
async def create_appointment(
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: CreateAppointmentRequest,
) -> BookingResponse:
    """Book an appointment.

    A doctor double-booking is saved and reported in ``conflict_warning``.
    """
    service = AppointmentService(session)

    try:
        result = await service.create_appointment(
            clinic_id=clinic_id,
            actor_id=user.id,
            **request.model_dump(),
        )
    except (InvalidAppointmentError, PatientNotFoundError, DoctorNotFoundError) as e:
        raise _unprocessable(e)

    return _booking_response(result)


@router.put(
    "/appointments/{appointment_id}",
    response_model=BookingResponse,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_WRITE))],
)
async def update_appointment(
    appointment_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: UpdateAppointmentRequest,
) -> BookingResponse:
    """Edit an appointment; the doctor's calendar is checked again."""
    service = AppointmentService(session)

    try:
        result = await service.update_appointment(
            clinic_id,
            appointment_id,
            actor_id=user.id,
            **request.model_dump(exclude_unset=True),
        )
    except AppointmentNotFoundError as e:
        raise _not_found(e)
    except (InvalidAppointmentError, PatientNotFoundError, DoctorNotFoundError) as e:
        raise _unprocessable(e)

    return _booking_response(result)


@router.patch(
    "/appointments/{appointment_id}/status",
    response_model=AppointmentResponse,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_STATUS))],
)
async def update_appointment_status(
    appointment_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: UpdateStatusRequest,
) -> AppointmentResponse:
    """Change an appointment's status."""
    service = AppointmentService(session)

    try:
        appointment = await service.update_status(
            clinic_id, appointment_id, request.status, actor_id=user.id
        )
    except AppointmentNotFoundError as e:
        raise _not_found(e)

    return _appointment_response(appointment)


@router.patch(
    "/appointments/{appointment_id}/doctor",
    response_model=BookingResponse,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_ASSIGN))],
)
async def assign_appointment_doctor(
    appointment_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: AssignDoctorRequest,
) -> BookingResponse:
    """Assign a doctor of the clinic to an appointment."""
    service = AppointmentService(session)

    try:
        result = await service.assign_doctor(
            clinic_id, appointment_id, request.doctor_id, actor_id=user.id
        )
    except AppointmentNotFoundError as e:
        raise _not_found(e)
    except DoctorNotFoundError as e:
        raise _unprocessable(e)

    return _booking_response(result)


@router.delete(
    "/appointments/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_DELETE))],
)
async def delete_appointment(
    appointment_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
) -> Response:
    """Delete an appointment."""
    service = AppointmentService(session)

    try:
        await service.delete_appointment(clinic_id, appointment_id, actor_id=user.id)
    except AppointmentNotFoundError as e:
        raise _not_found(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
