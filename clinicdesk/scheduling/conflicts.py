"""Doctor double-booking detection.

Conflicts are informational: the booking flow reports a warning and saves
the appointment anyway.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from clinicdesk.models.appointment import INACTIVE_STATUSES
from clinicdesk.utils.time import ensure_utc

CONFLICT_WARNING = "Another appointment exists for the selected doctor in this time range."


class BookedInterval(Protocol):
    id: str
    doctor_id: str | None
    starts_at: datetime
    ends_at: datetime
    status: str


def intervals_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Half-open interval overlap: [a) and [b) share at least one instant."""
    return ensure_utc(start_a) < ensure_utc(end_b) and ensure_utc(start_b) < ensure_utc(end_a)


def find_conflicts(
    doctor_id: str | None,
    proposed_start: datetime,
    proposed_end: datetime,
    existing: Iterable[BookedInterval],
    exclude_id: str | None = None,
) -> list[BookedInterval]:
    """Return existing appointments of the same doctor overlapping the proposal.

    Cancelled and no-show appointments never conflict, and the appointment
    being edited (``exclude_id``) is ignored.
    """
    if not doctor_id:
        return []

    return [
        appointment
        for appointment in existing
        if appointment.doctor_id == doctor_id
        and appointment.id != exclude_id
        and appointment.status not in INACTIVE_STATUSES
        and intervals_overlap(
            proposed_start, proposed_end, appointment.starts_at, appointment.ends_at
        )
    ]


def has_conflict(
    doctor_id: str | None,
    proposed_start: datetime,
    proposed_end: datetime,
    existing: Iterable[BookedInterval],
    exclude_id: str | None = None,
) -> bool:
    """Whether the proposed range overlaps another booking of the same doctor."""
    return bool(find_conflicts(doctor_id, proposed_start, proposed_end, existing, exclude_id))


def conflict_warning(
    doctor_id: str | None,
    proposed_start: datetime,
    proposed_end: datetime,
    existing: Iterable[BookedInterval],
    exclude_id: str | None = None,
) -> str | None:
    """Warning text to show next to the booking form, or None."""
    if has_conflict(doctor_id, proposed_start, proposed_end, existing, exclude_id):
        return CONFLICT_WARNING
    return None
