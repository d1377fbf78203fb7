"""Clinic working hours endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from clinicdesk.api.deps import ClinicId, CurrentUser, DbSession, require_permissions
from clinicdesk.scheduling.hours import (
    DateOverride,
    DayOfWeek,
    DuplicateOverrideError,
    MalformedScheduleError,
    WeeklyHours,
    parse_time,
    serialize_overrides,
    serialize_weekly_hours,
)
from clinicdesk.services.clinic import ClinicNotFoundError, ClinicService, OverrideNotFoundError
from clinicdesk.services.rbac import Permission

router = APIRouter()


# ============================================================================
# Request/Response Schemas
# ============================================================================


class DayScheduleSchema(BaseModel):
    """Opening window of one weekday."""

    open: str = Field(description="HH:MM format", examples=["09:00"])
    close: str = Field(description="HH:MM format", examples=["19:00"])
    enabled: bool


class DateOverrideSchema(BaseModel):
    """Exception to the weekly hours for one date.

    An open override must give both times. A closed override may omit
    them, in which case the weekday's stored times are kept.
    """

    date: date
    open: str | None = Field(default=None, description="HH:MM format")
    close: str | None = Field(default=None, description="HH:MM format")
    is_closed: bool = False
    note: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def times_required_when_open(self) -> "DateOverrideSchema":
        if not self.is_closed and (self.open is None or self.close is None):
            raise ValueError("open and close are required unless the day is closed")
        return self


class WorkingHoursResponse(BaseModel):
    """Weekly hours and date overrides of the clinic."""

    working_hours: dict[str, DayScheduleSchema]
    overrides: list[DateOverrideSchema]


class UpdateWorkingHoursRequest(BaseModel):
    """Full replacement of the weekly hours; all seven days required."""

    working_hours: dict[str, DayScheduleSchema]


def _response(weekly_hours: WeeklyHours, overrides: list[DateOverride]) -> WorkingHoursResponse:
    return WorkingHoursResponse(
        working_hours=serialize_weekly_hours(weekly_hours),
        overrides=serialize_overrides(overrides),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/working-hours",
    response_model=WorkingHoursResponse,
    dependencies=[Depends(require_permissions(Permission.CLINIC_SETTINGS_READ))],
)
async def get_working_hours(
    session: DbSession,
    clinic_id: ClinicId,
) -> WorkingHoursResponse:
    """Get the clinic's weekly hours and overrides."""
    service = ClinicService(session)

    try:
        weekly_hours, overrides = await service.get_working_hours(clinic_id)
    except ClinicNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Clinic not found",
        )

    return _response(weekly_hours, overrides)


@router.put(
    "/working-hours",
    response_model=WorkingHoursResponse,
    dependencies=[Depends(require_permissions(Permission.CLINIC_SETTINGS_WRITE))],
)
async def update_working_hours(
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: UpdateWorkingHoursRequest,
) -> WorkingHoursResponse:
    """Replace the clinic's weekly hours (admin only)."""
    service = ClinicService(session)

    try:
        await service.update_working_hours(
            clinic_id,
            {day: schedule.model_dump() for day, schedule in request.working_hours.items()},
            actor_id=user.id,
        )
        weekly_hours, overrides = await service.get_working_hours(clinic_id)
    except ClinicNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Clinic not found",
        )
    except MalformedScheduleError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return _response(weekly_hours, overrides)


@router.post(
    "/working-hours/overrides",
    response_model=WorkingHoursResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions(Permission.CLINIC_SETTINGS_WRITE))],
)
async def add_working_hours_override(
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: DateOverrideSchema,
) -> WorkingHoursResponse:
    """Add a date override (admin only). One override per date."""
    service = ClinicService(session)

    try:
        weekly_hours, _ = await service.get_working_hours(clinic_id)
        weekday = weekly_hours[DayOfWeek.for_date(request.date)]
        override = DateOverride(
            date=request.date,
            open=weekday.open if request.open is None else parse_time(request.open),
            close=weekday.close if request.close is None else parse_time(request.close),
            is_closed=request.is_closed,
            note=request.note or None,
        )
        await service.add_override(clinic_id, override, actor_id=user.id)
        weekly_hours, overrides = await service.get_working_hours(clinic_id)
    except ClinicNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Clinic not found",
        )
    except DuplicateOverrideError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    except MalformedScheduleError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return _response(weekly_hours, overrides)


@router.delete(
    "/working-hours/overrides/{override_date}",
    response_model=WorkingHoursResponse,
    dependencies=[Depends(require_permissions(Permission.CLINIC_SETTINGS_WRITE))],
)
async def remove_working_hours_override(
    override_date: date,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
) -> WorkingHoursResponse:
    """Remove the override for a date (admin only)."""
    service = ClinicService(session)

    try:
        await service.remove_override(clinic_id, override_date, actor_id=user.id)
        weekly_hours, overrides = await service.get_working_hours(clinic_id)
    except (ClinicNotFoundError, OverrideNotFoundError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    return _response(weekly_hours, overrides)
