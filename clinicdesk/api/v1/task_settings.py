"""Dashboard task settings endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from clinicdesk.api.deps import ClinicId, CurrentUser, DbSession, require_permissions
from clinicdesk.models.user import UnknownRoleError
from clinicdesk.services.rbac import Permission
from clinicdesk.services.task_settings import (
    TaskDefinitionNotFoundError,
    TaskSetting,
    TaskSettingsService,
    TaskSettingUpdate,
)

router = APIRouter()


# ============================================================================
# Request/Response Schemas
# ============================================================================


class TaskSettingResponse(BaseModel):
    """A dashboard task with the clinic's effective assignment."""

    code: str
    title: str
    description: str | None
    default_role: str
    assigned_role: str | None
    is_enabled: bool
    is_customized: bool


class TaskSettingItem(BaseModel):
    """New role and state of one task."""

    code: str = Field(min_length=1, max_length=50)
    assigned_role: str = Field(min_length=1, max_length=30)
    is_enabled: bool = True


class UpdateTaskSettingsRequest(BaseModel):
    """Batch of task setting changes."""

    tasks: list[TaskSettingItem] = Field(min_length=1)


def _responses(settings: list[TaskSetting]) -> list[TaskSettingResponse]:
    return [TaskSettingResponse(**vars(s)) for s in settings]


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/tasks",
    response_model=list[TaskSettingResponse],
    dependencies=[Depends(require_permissions(Permission.TASK_SETTINGS_WRITE))],
)
async def get_task_settings(
    session: DbSession,
    clinic_id: ClinicId,
) -> list[TaskSettingResponse]:
    """Every dashboard task with its role and state for the clinic (admin only)."""
    service = TaskSettingsService(session)
    return _responses(await service.get_task_settings(clinic_id))


@router.put(
    "/tasks",
    response_model=list[TaskSettingResponse],
    dependencies=[Depends(require_permissions(Permission.TASK_SETTINGS_WRITE))],
)
async def update_task_settings(
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: UpdateTaskSettingsRequest,
) -> list[TaskSettingResponse]:
    """Reassign or toggle dashboard tasks for the clinic (admin only)."""
    service = TaskSettingsService(session)

    try:
        settings = await service.update_task_settings(
            clinic_id,
            [
                TaskSettingUpdate(
                    code=item.code,
                    assigned_role=item.assigned_role,
                    is_enabled=item.is_enabled,
                )
                for item in request.tasks
            ],
            actor_id=user.id,
        )
    except TaskDefinitionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UnknownRoleError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return _responses(settings)
