"""Staff user model and roles."""

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from clinicdesk.db.base import Base, TimestampMixin


class UserRole(str, Enum):
    """Staff user roles for RBAC."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    RECEPTION = "RECEPTION"
    FINANCE = "FINANCE"


ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})

# Spellings found in older clinic data
LEGACY_ROLE_ALIASES: dict[str, UserRole] = {
    "DOKTOR": UserRole.DOCTOR,
    "SEKRETER": UserRole.RECEPTION,
    "FINANS": UserRole.FINANCE,
}


class UnknownRoleError(ValueError):
    """Raised when a role string maps to no known role."""

    pass


def normalize_role(role: "str | UserRole") -> UserRole:
    """Map a stored or submitted role string onto UserRole.

    Args:
        role: Role value, case-insensitive, legacy spellings accepted

    Returns:
        The matching UserRole

    Raises:
        UnknownRoleError: If the string names no role
    """
    if isinstance(role, UserRole):
        return role

    key = str(role or "").strip().upper()
    if key in LEGACY_ROLE_ALIASES:
        return LEGACY_ROLE_ALIASES[key]
    try:
        return UserRole(key)
    except ValueError as e:
        raise UnknownRoleError(f"Unknown role: {role!r}") from e


class User(Base, TimestampMixin):
    """Staff account.

    Every role except SUPER_ADMIN belongs to exactly one clinic.
    """

    __tablename__ = "users"

    clinic_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    full_name: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        String(30),
        default=UserRole.RECEPTION,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        """Clinic and platform admins see every enabled dashboard task."""
        return self.role in ADMIN_ROLES

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
