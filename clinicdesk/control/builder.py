"""Attention list for the clinic dashboard."""

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import datetime, tzinfo
from typing import Any

from clinicdesk.control.gate import TaskGate, ViewerContext
from clinicdesk.control.rules import CONTROL_RULES, AppointmentView, ControlRule, RuleContext
from clinicdesk.utils.time import ensure_utc, format_hhmm

logger = logging.getLogger(__name__)

DEFAULT_TREATMENT_LABEL = "General examination"


@dataclass(frozen=True)
class ControlItem:
    """One action a staff member should take on an appointment."""

    id: str
    type: str
    tone: str
    tone_label: str
    appointment_id: str
    patient_name: str
    time_label: str
    treatment_label: str
    action_label: str
    sort_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def time_label(appointment: AppointmentView, tz: tzinfo | None = None) -> str:
    """``HH:MM - HH:MM`` span of an appointment in clinic time."""
    return f"{format_hhmm(appointment.starts_at, tz)} - {format_hhmm(appointment.ends_at, tz)}"


def treatment_label(appointment: AppointmentView) -> str:
    return (appointment.treatment_type or "").strip() or DEFAULT_TREATMENT_LABEL


def _items_for_appointment(
    appointment: AppointmentView,
    rules: Sequence[ControlRule],
    context: RuleContext,
    gate: TaskGate,
    viewer: ViewerContext,
    tz: tzinfo | None,
) -> list[ControlItem]:
    items: list[ControlItem] = []
    labels: tuple[str, str] | None = None

    for rule in rules:
        try:
            if not rule.predicate(appointment, context):
                continue
            if not gate.is_visible(rule.code, viewer, appointment.doctor_id):
                continue

            if labels is None:
                labels = (time_label(appointment, tz), treatment_label(appointment))

            items.append(
                ControlItem(
                    id=f"{appointment.id}-{rule.suffix}",
                    type=rule.type.value,
                    tone=rule.tone.value,
                    tone_label=rule.tone_label,
                    appointment_id=appointment.id,
                    patient_name=appointment.patient_name,
                    time_label=labels[0],
                    treatment_label=labels[1],
                    action_label=rule.action_label,
                    sort_time=rule.anchor(appointment),
                )
            )
        except Exception:
            logger.exception(
                f"Skipping {rule.code} for appointment {getattr(appointment, 'id', '?')}",
                extra={"appointment_id": getattr(appointment, "id", None)},
            )
    return items


def build_control_items(
    appointments: Iterable[AppointmentView],
    payment_appointment_ids: Collection[str],
    gate: TaskGate,
    viewer: ViewerContext,
    now: datetime,
    tz: tzinfo | None = None,
    rules: Sequence[ControlRule] = CONTROL_RULES,
) -> list[ControlItem]:
    """Evaluate every rule against every appointment of a day.

    A rule produces an item when its condition holds and the task gate lets
    the viewer see that task code. A rule that fails on an appointment's
    data is logged and dropped for that appointment only; other rules and
    the rest of the day are still evaluated.

    Args:
        appointments: Appointments of the selected day
        payment_appointment_ids: Ids of appointments with at least one payment
        gate: Task visibility for the viewer's clinic
        viewer: Dashboard viewer
        now: Evaluation time, shared by the whole pass
        tz: Clinic timezone for the time labels
        rules: Rule registry to evaluate

    Returns:
        Control items, most recently relevant first
    """
    now = ensure_utc(now)
    items: list[ControlItem] = []

    for appointment in appointments:
        context = RuleContext(now=now, has_payment=appointment.id in payment_appointment_ids)
        items.extend(_items_for_appointment(appointment, rules, context, gate, viewer, tz))

    items.sort(key=lambda item: item.sort_time, reverse=True)
    return items
