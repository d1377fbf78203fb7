"""Dashboard task gate and attention list."""

from clinicdesk.control.builder import ControlItem, build_control_items
from clinicdesk.control.gate import TaskAssignment, TaskGate, ViewerContext, is_visible
from clinicdesk.control.rules import CONTROL_RULES, AppointmentView, ControlRule

__all__ = [
    "TaskAssignment",
    "TaskGate",
    "ViewerContext",
    "is_visible",
    "CONTROL_RULES",
    "ControlRule",
    "AppointmentView",
    "ControlItem",
    "build_control_items",
]
