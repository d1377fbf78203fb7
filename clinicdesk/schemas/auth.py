"""Staff sign-in payloads."""

from pydantic import BaseModel, Field, field_validator


class StaffLoginRequest(BaseModel):
    """Credentials posted by the staff panel.

    Emails are compared lower-cased; ``.local`` addresses used by demo
    clinics are accepted.
    """

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, sep, domain = v.partition("@")
        if not sep or not local or "." not in domain or " " in v:
            raise ValueError("Invalid email address")
        return v


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    role: str
    clinic_id: str | None


class StaffUserResponse(BaseModel):
    """Signed-in user as the panel renders it."""

    model_config = {"from_attributes": True}

    id: str
    email: str
    full_name: str | None
    role: str
    clinic_id: str | None
    is_admin: bool
    permissions: list[str] = []
