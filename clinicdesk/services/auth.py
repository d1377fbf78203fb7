"""Staff sign-in."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.core.logging import get_logger
from clinicdesk.core.security import create_staff_token, verify_password
from clinicdesk.models.user import UnknownRoleError, User, normalize_role

logger = get_logger(__name__)


class AuthService:
    """Service for authenticating clinic staff."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def authenticate_staff(self, email: str, password: str) -> User | None:
        """Check staff credentials.

        Disabled accounts and accounts whose stored role is no longer
        recognised cannot sign in.

        Args:
            email: Login email, matched case-insensitively
            password: Plain text password

        Returns:
            The user when the credentials are valid, otherwise None
        """
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        user = result.scalar_one_or_none()

        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None

        try:
            normalize_role(user.role)
        except UnknownRoleError:
            logger.warning(
                f"Refusing login for {user.id}: unknown role {user.role!r}",
                extra={"user_id": user.id, "clinic_id": user.clinic_id},
            )
            return None

        return user

    async def create_staff_token(self, user: User) -> str:
        """Access token for an authenticated user, with the role in canonical form."""
        return create_staff_token(
            user_id=user.id,
            role=normalize_role(user.role).value,
            clinic_id=user.clinic_id,
            email=user.email,
        )

    async def get_staff_by_id(self, user_id: str) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
