"""Rules that flag appointments needing staff action.

Each rule is a registry entry; the builder iterates them uniformly, so a
new rule is one more ``ControlRule`` in ``CONTROL_RULES``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from clinicdesk.models.appointment import CLOSED_STATUSES, AppointmentStatus
from clinicdesk.utils.time import ensure_utc


class ControlItemType(str, Enum):
    STATUS = "status"
    APPROVAL = "approval"
    DOCTOR = "doctor"
    PAYMENT = "payment"
    NOTE = "note"


class ControlTone(str, Enum):
    """Severity of a control item, highest first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class AppointmentView:
    """The appointment fields the control rules read."""

    id: str
    patient_name: str
    starts_at: datetime
    ends_at: datetime
    status: str
    doctor_id: str | None = None
    treatment_type: str | None = None
    treatment_note: str | None = None


@dataclass(frozen=True)
class RuleContext:
    """Facts shared by all rules for one appointment in one pass."""

    now: datetime
    has_payment: bool


@dataclass(frozen=True)
class ControlRule:
    code: str
    type: ControlItemType
    tone: ControlTone
    tone_label: str
    action_label: str
    predicate: Callable[[AppointmentView, RuleContext], bool]
    anchor: Callable[[AppointmentView], datetime]

    @property
    def suffix(self) -> str:
        return self.type.value


def _starts_at(appointment: AppointmentView) -> datetime:
    return ensure_utc(appointment.starts_at)


def _ends_at(appointment: AppointmentView) -> datetime:
    return ensure_utc(appointment.ends_at)


def is_status_stale(appointment: AppointmentView, context: RuleContext) -> bool:
    """Appointment is over but still open."""
    return _ends_at(appointment) < ensure_utc(context.now) and appointment.status not in CLOSED_STATUSES


def is_pending_approval(appointment: AppointmentView, context: RuleContext) -> bool:
    return appointment.status == AppointmentStatus.PENDING


def is_missing_doctor(appointment: AppointmentView, context: RuleContext) -> bool:
    return not appointment.doctor_id


def is_missing_payment(appointment: AppointmentView, context: RuleContext) -> bool:
    return appointment.status == AppointmentStatus.COMPLETED and not context.has_payment


def is_missing_treatment_note(appointment: AppointmentView, context: RuleContext) -> bool:
    return appointment.status == AppointmentStatus.COMPLETED and not (
        appointment.treatment_note or ""
    ).strip()


CONTROL_RULES: tuple[ControlRule, ...] = (
    ControlRule(
        code="STATUS_UPDATE",
        type=ControlItemType.STATUS,
        tone=ControlTone.CRITICAL,
        tone_label="Urgent",
        action_label="Status update pending.",
        predicate=is_status_stale,
        anchor=_ends_at,
    ),
    ControlRule(
        code="PENDING_APPROVAL",
        type=ControlItemType.APPROVAL,
        tone=ControlTone.MEDIUM,
        tone_label="Approval",
        action_label="Approval pending.",
        predicate=is_pending_approval,
        anchor=_starts_at,
    ),
    ControlRule(
        code="MISSING_DOCTOR",
        type=ControlItemType.DOCTOR,
        tone=ControlTone.LOW,
        tone_label="Doctor",
        action_label="Doctor assignment pending.",
        predicate=is_missing_doctor,
        anchor=_starts_at,
    ),
    ControlRule(
        code="MISSING_PAYMENT",
        type=ControlItemType.PAYMENT,
        tone=ControlTone.HIGH,
        tone_label="Payment",
        action_label="Payment entry pending.",
        predicate=is_missing_payment,
        anchor=_ends_at,
    ),
    ControlRule(
        code="MISSING_TREATMENT_NOTE",
        type=ControlItemType.NOTE,
        tone=ControlTone.MEDIUM,
        tone_label="Note",
        action_label="Treatment note pending.",
        predicate=is_missing_treatment_note,
        anchor=_ends_at,
    ),
)

RULES_BY_CODE: dict[str, ControlRule] = {rule.code: rule for rule in CONTROL_RULES}
