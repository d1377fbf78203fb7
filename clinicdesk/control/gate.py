"""Per-clinic visibility of dashboard tasks.

Each task code has a catalog default role. A clinic may store a config row
that reassigns the role or disables the task. Admins see every enabled
task, and doctors always see doctor-assigned tasks on their own
appointments.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from clinicdesk.models.user import ADMIN_ROLES, UnknownRoleError, UserRole, normalize_role
from clinicdesk.utils.overrides import resolve_with_override

logger = logging.getLogger(__name__)


class TaskDefinitionLike(Protocol):
    id: str
    code: str
    default_role: str


class TaskConfigLike(Protocol):
    task_definition_id: str
    assigned_role: str
    is_enabled: bool


@dataclass(frozen=True)
class TaskAssignment:
    """Effective role and on/off state of a task for one clinic."""

    role: UserRole | None
    enabled: bool


@dataclass(frozen=True)
class ViewerContext:
    """Identity of the staff member looking at the dashboard."""

    user_id: str
    role: UserRole
    clinic_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def _stored_role(value: str, source: str) -> UserRole | None:
    # Stored data with a role we no longer know is only visible to admins
    try:
        return normalize_role(value)
    except UnknownRoleError:
        logger.warning(f"Ignoring unknown role {value!r} on {source}")
        return None


def apply_task_config(base: TaskAssignment, config: TaskConfigLike) -> TaskAssignment:
    """Effective assignment once a clinic config replaces the catalog default."""
    return TaskAssignment(
        role=_stored_role(config.assigned_role, f"task config {config.task_definition_id}"),
        enabled=bool(config.is_enabled),
    )


def resolve_task_assignments(
    definitions: Iterable[TaskDefinitionLike],
    configs: Iterable[TaskConfigLike],
) -> dict[str, TaskAssignment]:
    """Resolve the effective assignment of every catalog task for a clinic.

    Args:
        definitions: Task catalog rows
        configs: The clinic's config rows; tasks without one keep the
            catalog default role and stay enabled

    Returns:
        Mapping of task code to effective assignment
    """
    configs_by_definition = {config.task_definition_id: config for config in configs}

    assignments: dict[str, TaskAssignment] = {}
    for definition in definitions:
        default = TaskAssignment(
            role=_stored_role(definition.default_role, f"task definition {definition.code}"),
            enabled=True,
        )
        assignments[definition.code] = resolve_with_override(
            default,
            configs_by_definition.get(definition.id),
            apply_task_config,
        )
    return assignments


def assignment_allows(
    assignment: TaskAssignment | None,
    viewer_role: UserRole,
    is_admin: bool,
    viewer_user_id: str | None,
    appointment_doctor_id: str | None,
) -> bool:
    """Decide visibility of one resolved task for one viewer and appointment."""
    if assignment is None or not assignment.enabled:
        return False
    if is_admin:
        return True
    if (
        assignment.role == UserRole.DOCTOR
        and appointment_doctor_id is not None
        and appointment_doctor_id == viewer_user_id
    ):
        return True
    return assignment.role is not None and assignment.role == viewer_role


class TaskGate:
    """Task visibility for one clinic, resolved once per request."""

    def __init__(
        self,
        definitions: Iterable[TaskDefinitionLike],
        configs: Iterable[TaskConfigLike],
    ) -> None:
        self.assignments = resolve_task_assignments(definitions, configs)

    def assignment(self, code: str) -> TaskAssignment | None:
        """Effective assignment for a task code, None when the code is not in the catalog."""
        return self.assignments.get(code)

    def is_visible(
        self,
        code: str,
        viewer: ViewerContext,
        appointment_doctor_id: str | None = None,
    ) -> bool:
        """Whether ``viewer`` should see task ``code`` for an appointment.

        Args:
            code: Task code, e.g. ``MISSING_DOCTOR``
            viewer: Viewer identity and role
            appointment_doctor_id: Doctor assigned to the appointment, if any

        Returns:
            True if the task is enabled and targeted at the viewer
        """
        return assignment_allows(
            self.assignment(code),
            viewer_role=viewer.role,
            is_admin=viewer.is_admin,
            viewer_user_id=viewer.user_id,
            appointment_doctor_id=appointment_doctor_id,
        )


def is_visible(
    code: str,
    task_configs: Iterable[TaskConfigLike],
    task_definitions: Iterable[TaskDefinitionLike],
    viewer_role: str | UserRole,
    is_admin: bool,
    viewer_user_id: str | None,
    appointment_doctor_id: str | None,
) -> bool:
    """One-shot visibility check without building a TaskGate.

    Raises:
        UnknownRoleError: If ``viewer_role`` names no known role
    """
    role = normalize_role(viewer_role)
    assignments = resolve_task_assignments(task_definitions, task_configs)
    return assignment_allows(
        assignments.get(code),
        viewer_role=role,
        is_admin=is_admin,
        viewer_user_id=viewer_user_id,
        appointment_doctor_id=appointment_doctor_id,
    )
