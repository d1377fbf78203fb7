"""Password hashing and staff access tokens."""

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from clinicdesk.core.config import settings
from clinicdesk.utils.time import utc_now

STAFF_ACTOR = "staff"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a JWT for ``subject``.

    Args:
        subject: User id stored in ``sub``
        claims: Extra claims merged into the payload
        expires_delta: Lifetime; defaults to ``access_token_expire_minutes``

    Returns:
        Encoded token
    """
    issued_at = utc_now()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    payload: dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + lifetime,
        **(claims or {}),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def create_staff_token(
    user_id: str,
    role: str,
    clinic_id: str | None,
    email: str,
) -> str:
    """Access token carrying the staff member's role and clinic."""
    return create_access_token(
        subject=user_id,
        claims={
            "actor_type": STAFF_ACTOR,
            "role": role,
            "clinic_id": clinic_id,
            "email": email,
        },
    )


def decode_access_token(token: str) -> dict | None:
    """Verify a token and return its payload, or None when invalid or expired."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
