"""Patient record endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from clinicdesk.api.deps import ClinicId, CurrentUser, DbSession, require_permissions
from clinicdesk.schemas.patient import PatientCreate, PatientRead, PatientUpdate
from clinicdesk.services.appointments import PatientNotFoundError
from clinicdesk.services.patients import PatientService
from clinicdesk.services.rbac import Permission

router = APIRouter()


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get(
    "",
    response_model=list[PatientRead],
    dependencies=[Depends(require_permissions(Permission.PATIENTS_READ))],
)
async def list_patients(
    session: DbSession,
    clinic_id: ClinicId,
    search: str | None = Query(None, max_length=100, description="Name or phone fragment"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> list[PatientRead]:
    """Patients of the clinic, newest first."""
    patients = await PatientService(session).list_patients(
        clinic_id, search=search, limit=limit, offset=offset
    )
    return [PatientRead.model_validate(p) for p in patients]


@router.get(
    "/{patient_id}",
    response_model=PatientRead,
    dependencies=[Depends(require_permissions(Permission.PATIENTS_READ))],
)
async def get_patient(patient_id: str, session: DbSession, clinic_id: ClinicId) -> PatientRead:
    try:
        patient = await PatientService(session).get_patient(clinic_id, patient_id)
    except PatientNotFoundError as e:
        raise _not_found(e)
    return PatientRead.model_validate(patient)


@router.post(
    "",
    response_model=PatientRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions(Permission.PATIENTS_WRITE))],
)
async def create_patient(
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: PatientCreate,
) -> PatientRead:
    patient = await PatientService(session).create_patient(
        clinic_id, actor_id=user.id, **request.model_dump()
    )
    return PatientRead.model_validate(patient)


@router.put(
    "/{patient_id}",
    response_model=PatientRead,
    dependencies=[Depends(require_permissions(Permission.PATIENTS_WRITE))],
)
async def update_patient(
    patient_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: PatientUpdate,
) -> PatientRead:
    """Edit a patient. Only the fields sent are changed."""
    try:
        patient = await PatientService(session).update_patient(
            clinic_id, patient_id, actor_id=user.id, **request.model_dump(exclude_unset=True)
        )
    except PatientNotFoundError as e:
        raise _not_found(e)
    return PatientRead.model_validate(patient)


@router.delete(
    "/{patient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permissions(Permission.PATIENTS_DELETE))],
)
async def delete_patient(
    patient_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
) -> Response:
    """Delete a patient with their appointments and payments."""
    try:
        await PatientService(session).delete_patient(clinic_id, patient_id, actor_id=user.id)
    except PatientNotFoundError as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
