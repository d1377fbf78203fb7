"""Tests for doctor double-booking detection."""

from dataclasses import dataclass
from datetime import datetime, timezone

from clinicdesk.scheduling.conflicts import (
    CONFLICT_WARNING,
    conflict_warning,
    find_conflicts,
    has_conflict,
    intervals_overlap,
)

UTC = timezone.utc


def t(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute, tzinfo=UTC)


@dataclass
class Booked:
    id: str
    doctor_id: str | None
    starts_at: datetime
    ends_at: datetime
    status: str = "confirmed"


EXISTING = Booked(id="a", doctor_id="d1", starts_at=t(10), ends_at=t(10, 30))


class TestIntervalsOverlap:
    """Tests for half-open interval overlap."""

    def test_partial_overlap(self) -> None:
        assert intervals_overlap(t(10), t(10, 30), t(10, 15), t(10, 45))

    def test_touching_intervals_do_not_overlap(self) -> None:
        assert not intervals_overlap(t(10), t(10, 30), t(10, 30), t(11))
        assert not intervals_overlap(t(10, 30), t(11), t(10), t(10, 30))

    def test_mixed_naive_and_aware(self) -> None:
        naive = datetime(2030, 1, 7, 10, 15)

        assert intervals_overlap(t(10), t(10, 30), naive, t(11))


class TestHasConflict:
    """Tests for has_conflict."""

    def test_same_doctor_overlap_conflicts(self) -> None:
        """D1 10:00-10:30 vs a proposal for D1 at 10:15-10:45."""
        assert has_conflict("d1", t(10, 15), t(10, 45), [EXISTING]) is True

    def test_other_doctor_does_not_conflict(self) -> None:
        assert has_conflict("d2", t(10, 15), t(10, 45), [EXISTING]) is False

    def test_existing_inside_proposal_detected(self) -> None:
        assert has_conflict("d1", t(9), t(12), [EXISTING]) is True

    def test_proposal_inside_existing_detected(self) -> None:
        assert has_conflict("d1", t(10, 5), t(10, 10), [EXISTING]) is True

    def test_cancelled_and_no_show_ignored(self) -> None:
        cancelled = Booked(id="b", doctor_id="d1", starts_at=t(10), ends_at=t(11), status="cancelled")
        no_show = Booked(id="c", doctor_id="d1", starts_at=t(10), ends_at=t(11), status="no_show")

        assert has_conflict("d1", t(10), t(11), [cancelled, no_show]) is False

    def test_edited_appointment_excluded(self) -> None:
        """The appointment being edited never conflicts with itself."""
        assert has_conflict("d1", t(10), t(10, 30), [EXISTING], exclude_id="a") is False

    def test_no_doctor_never_conflicts(self) -> None:
        unassigned = Booked(id="u", doctor_id=None, starts_at=t(10), ends_at=t(11))

        assert has_conflict(None, t(10), t(11), [unassigned]) is False
        assert has_conflict("", t(10), t(11), [EXISTING]) is False

    def test_adjacent_booking_does_not_conflict(self) -> None:
        assert has_conflict("d1", t(10, 30), t(11), [EXISTING]) is False

    def test_find_conflicts_returns_overlapping_bookings(self) -> None:
        other = Booked(id="b", doctor_id="d1", starts_at=t(12), ends_at=t(13))

        assert find_conflicts("d1", t(10), t(12, 30), [EXISTING, other]) == [EXISTING, other]


class TestConflictWarning:
    def test_warning_text_on_conflict(self) -> None:
        assert conflict_warning("d1", t(10, 15), t(10, 45), [EXISTING]) == CONFLICT_WARNING

    def test_no_warning_without_conflict(self) -> None:
        assert conflict_warning("d2", t(10, 15), t(10, 45), [EXISTING]) is None
