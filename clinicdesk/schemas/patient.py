"""Patient record schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class PatientBase(BaseModel):
    """Fields staff enter on the patient card."""

    full_name: str = Field(min_length=2, max_length=200)
    phone: str = Field(min_length=10, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    birth_date: date | None = None
    allergies: str | None = None
    medical_alerts: str | None = None
    notes: str | None = None

    @field_validator("email", "allergies", "medical_alerts", "notes")
    @classmethod
    def empty_as_null(cls, v: str | None) -> str | None:
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str | None) -> str | None:
        if v is not None and "@" not in v:
            raise ValueError("Invalid email address")
        return v.lower() if v else v


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseModel):
    """Partial edit of a patient; only fields sent are changed."""

    full_name: str | None = Field(default=None, min_length=2, max_length=200)
    phone: str | None = Field(default=None, min_length=10, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    birth_date: date | None = None
    allergies: str | None = None
    medical_alerts: str | None = None
    notes: str | None = None

    @field_validator("email", "allergies", "medical_alerts", "notes")
    @classmethod
    def empty_as_null(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class PatientRead(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    full_name: str
    phone: str | None
    email: str | None
    birth_date: date | None
    allergies: str | None
    medical_alerts: str | None
    notes: str | None
    created_at: datetime
