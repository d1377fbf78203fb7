"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.control.gate import ViewerContext
from clinicdesk.core.security import STAFF_ACTOR, decode_access_token
from clinicdesk.db.session import get_db
from clinicdesk.models.user import UnknownRoleError, User, UserRole, normalize_role
from clinicdesk.services.auth import AuthService
from clinicdesk.services.rbac import Permission, RBACService

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """Extract and decode the current JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Decoded token payload or None
    """
    if not credentials:
        return None

    return decode_access_token(credentials.credentials)


async def get_current_user(
    token: Annotated[dict | None, Depends(get_current_token)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated staff user.

    Args:
        token: Decoded JWT token
        session: Database session

    Returns:
        Authenticated User

    Raises:
        HTTPException: If not authenticated or not a staff user
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if token.get("actor_type") != STAFF_ACTOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff authentication required",
        )

    auth_service = AuthService(session)
    user = await auth_service.get_staff_by_id(token["sub"])

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_permissions(*permissions: Permission):
    """Create a dependency that requires specific permissions.

    Usage:
        @router.get("/", dependencies=[Depends(require_permissions(Permission.DASHBOARD_READ))])

    Args:
        permissions: Required permissions (user must have all)

    Returns:
        Dependency function
    """

    async def permission_checker(
        user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not RBACService.has_all_permissions(user.role, list(permissions)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


async def get_viewer(
    user: Annotated[User, Depends(get_current_user)],
) -> ViewerContext:
    """Viewer identity for dashboard task visibility.

    Raises:
        HTTPException: If the account carries a role the system does not know
    """
    try:
        role = normalize_role(user.role)
    except UnknownRoleError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid role",
        )
    return ViewerContext(user_id=user.id, role=role, clinic_id=user.clinic_id)


async def get_clinic_id(
    viewer: Annotated[ViewerContext, Depends(get_viewer)],
    clinic_id: Annotated[
        str | None,
        Query(description="Target clinic; required for platform super admins"),
    ] = None,
) -> str:
    """Resolve the clinic a request operates on.

    Staff are bound to their own clinic. Super admins have none and must
    name one explicitly.

    Raises:
        HTTPException: If the clinic cannot be determined or is not the user's
    """
    if viewer.role == UserRole.SUPER_ADMIN:
        if not clinic_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="clinic_id is required for super admins",
            )
        return clinic_id

    if not viewer.clinic_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not assigned to a clinic",
        )

    if clinic_id and clinic_id != viewer.clinic_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access to this clinic is not allowed",
        )

    return viewer.clinic_id


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
Viewer = Annotated[ViewerContext, Depends(get_viewer)]
ClinicId = Annotated[str, Depends(get_clinic_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
