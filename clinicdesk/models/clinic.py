"""Clinic (tenant) model."""

import copy
from typing import Any

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from clinicdesk.db.base import Base, TimestampMixin
from clinicdesk.scheduling.hours import DEFAULT_WORKING_HOURS


class Clinic(Base, TimestampMixin):
    """A clinic and its opening hours.

    ``working_hours`` holds the full seven-day map; ``working_hours_overrides``
    holds date-specific exceptions, at most one per date.
    """

    __tablename__ = "clinics"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )
    phone: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )
    # IANA zone name; falls back to the configured default when empty
    timezone: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )
    working_hours: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=lambda: copy.deepcopy(DEFAULT_WORKING_HOURS),
        nullable=False,
    )
    working_hours_overrides: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Clinic {self.slug}>"
