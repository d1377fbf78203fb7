"""Staff sign-in endpoints."""

from fastapi import APIRouter, HTTPException, status

from clinicdesk.api.deps import CurrentUser, DbSession
from clinicdesk.core.config import settings
from clinicdesk.core.logging import audit_logger, get_logger
from clinicdesk.models.user import normalize_role
from clinicdesk.schemas.auth import StaffLoginRequest, StaffUserResponse, TokenResponse
from clinicdesk.services.auth import AuthService
from clinicdesk.services.rbac import RBACService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse, summary="Staff login")
async def staff_login(credentials: StaffLoginRequest, session: DbSession) -> TokenResponse:
    """Exchange staff credentials for a bearer token.

    The token carries the canonical role, so legacy role names stored on
    older accounts never reach the task gate.

    Raises:
        HTTPException: 401 for bad credentials, disabled accounts or
            accounts with an unrecognised role
    """
    auth_service = AuthService(session)
    user = await auth_service.authenticate_staff(
        email=credentials.email,
        password=credentials.password,
    )
    if user is None:
        logger.warning(f"Failed staff login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = await auth_service.create_staff_token(user)
    audit_logger.log(
        action="staff_login",
        actor_id=user.id,
        clinic_id=user.clinic_id,
        entity_type="user",
        entity_id=user.id,
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
        role=normalize_role(user.role).value,
        clinic_id=user.clinic_id,
    )


@router.get("/me", response_model=StaffUserResponse, summary="Current staff user")
async def get_me(user: CurrentUser) -> StaffUserResponse:
    return StaffUserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=normalize_role(user.role).value,
        clinic_id=user.clinic_id,
        is_admin=user.is_admin,
        permissions=sorted(p.value for p in RBACService.get_permissions(user.role)),
    )
