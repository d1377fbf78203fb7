"""Payment endpoints."""

from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from clinicdesk.api.deps import ClinicId, CurrentUser, DbSession, require_permissions
from clinicdesk.models.payment import PaymentStatus
from clinicdesk.services.appointments import AppointmentNotFoundError
from clinicdesk.services.payments import InvalidPaymentError, PaymentNotFoundError, PaymentService
from clinicdesk.services.rbac import Permission

router = APIRouter()


# ============================================================================
# Request/Response Schemas
# ============================================================================


class CreatePaymentRequest(BaseModel):
    """Request to record a payment."""

    appointment_id: str
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    status: PaymentStatus = PaymentStatus.PLANNED
    method: str | None = Field(default=None, max_length=30)
    due_date: date | None = None
    note: str | None = Field(default=None, max_length=1000)


class UpdatePaymentRequest(BaseModel):
    """Partial edit of a payment; only fields sent are changed."""

    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    status: PaymentStatus | None = None
    method: str | None = Field(default=None, max_length=30)
    due_date: date | None = None
    note: str | None = Field(default=None, max_length=1000)


class PaymentResponse(BaseModel):
    """Payment response."""

    model_config = {"from_attributes": True}

    id: str
    appointment_id: str
    patient_id: str | None
    amount: Decimal
    status: PaymentStatus
    method: str | None
    due_date: date | None
    note: str | None
    created_at: datetime


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[PaymentResponse],
    dependencies=[Depends(require_permissions(Permission.PAYMENTS_READ))],
)
async def list_payments(
    session: DbSession,
    clinic_id: ClinicId,
    appointment_id: str | None = Query(None),
) -> list[PaymentResponse]:
    """Payments of the clinic, optionally for one appointment."""
    payments = await PaymentService(session).list_payments(clinic_id, appointment_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions(Permission.PAYMENTS_WRITE))],
)
async def create_payment(
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: CreatePaymentRequest,
) -> PaymentResponse:
    """Record a payment against an appointment."""
    service = PaymentService(session)

    try:
        payment = await service.create_payment(
            clinic_id=clinic_id,
            actor_id=user.id,
            **request.model_dump(),
        )
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidPaymentError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return PaymentResponse.model_validate(payment)


@router.put(
    "/{payment_id}",
    response_model=PaymentResponse,
    dependencies=[Depends(require_permissions(Permission.PAYMENTS_WRITE))],
)
async def update_payment(
    payment_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
    request: UpdatePaymentRequest,
) -> PaymentResponse:
    """Edit a payment. Only the fields sent are changed."""
    service = PaymentService(session)

    try:
        payment = await service.update_payment(
            clinic_id,
            payment_id,
            actor_id=user.id,
            **request.model_dump(exclude_unset=True),
        )
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidPaymentError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return PaymentResponse.model_validate(payment)


@router.delete(
    "/{payment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permissions(Permission.PAYMENTS_WRITE))],
)
async def delete_payment(
    payment_id: str,
    user: CurrentUser,
    session: DbSession,
    clinic_id: ClinicId,
) -> Response:
    try:
        await PaymentService(session).delete_payment(clinic_id, payment_id, actor_id=user.id)
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return Response(status_code=status.HTTP_204_NO_CONTENT)
