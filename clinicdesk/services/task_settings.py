"""Per-clinic dashboard task settings."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.control.gate import TaskGate, resolve_task_assignments
from clinicdesk.core.logging import audit_logger
from clinicdesk.models.task import ClinicTaskConfig, DashboardTaskDefinition
from clinicdesk.models.user import UserRole, normalize_role


class TaskDefinitionNotFoundError(Exception):
    """Raised when a task code is not in the catalog."""

    pass


@dataclass
class TaskSetting:
    """A catalog task with the clinic's effective assignment."""

    code: str
    title: str
    description: str | None
    default_role: str
    assigned_role: str | None
    is_enabled: bool
    is_customized: bool


@dataclass
class TaskSettingUpdate:
    code: str
    assigned_role: str | UserRole
    is_enabled: bool = True


class TaskSettingsService:
    """Service for reading and changing a clinic's task assignments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_definitions(self) -> Sequence[DashboardTaskDefinition]:
        result = await self.session.execute(
            select(DashboardTaskDefinition).order_by(DashboardTaskDefinition.code)
        )
        return result.scalars().all()

    async def list_configs(self, clinic_id: str) -> Sequence[ClinicTaskConfig]:
        result = await self.session.execute(
            select(ClinicTaskConfig).where(ClinicTaskConfig.clinic_id == clinic_id)
        )
        return result.scalars().all()

    async def get_gate(self, clinic_id: str) -> TaskGate:
        """Task gate for one clinic, built from the catalog and its configs."""
        return TaskGate(await self.list_definitions(), await self.list_configs(clinic_id))

    async def get_task_settings(self, clinic_id: str) -> list[TaskSetting]:
        """Every catalog task with the clinic's effective role and state."""
        definitions = await self.list_definitions()
        configs = await self.list_configs(clinic_id)
        assignments = resolve_task_assignments(definitions, configs)
        customized = {config.task_definition_id for config in configs}

        return [
            TaskSetting(
                code=definition.code,
                title=definition.title,
                description=definition.description,
                default_role=definition.default_role,
                assigned_role=(
                    assignments[definition.code].role.value
                    if assignments[definition.code].role
                    else None
                ),
                is_enabled=assignments[definition.code].enabled,
                is_customized=definition.id in customized,
            )
            for definition in definitions
        ]

    async def update_task_settings(
        self,
        clinic_id: str,
        updates: Iterable[TaskSettingUpdate],
        actor_id: str,
    ) -> list[TaskSetting]:
        """Upsert the clinic's config rows for the given task codes.

        All updates are validated before any row is written.

        Raises:
            TaskDefinitionNotFoundError: If a code is not in the catalog
            UnknownRoleError: If a role names no known role
        """
        definitions = {d.code: d for d in await self.list_definitions()}
        updates = list(updates)

        resolved: list[tuple[DashboardTaskDefinition, UserRole, bool]] = []
        for update in updates:
            definition = definitions.get(update.code)
            if definition is None:
                raise TaskDefinitionNotFoundError(f"Unknown task code: {update.code}")
            resolved.append((definition, normalize_role(update.assigned_role), update.is_enabled))

        existing = {config.task_definition_id: config for config in await self.list_configs(clinic_id)}

        for definition, role, enabled in resolved:
            config = existing.get(definition.id)
            if config is None:
                config = ClinicTaskConfig(
                    clinic_id=clinic_id,
                    task_definition_id=definition.id,
                    assigned_role=role.value,
                    is_enabled=enabled,
                )
                self.session.add(config)
                existing[definition.id] = config
            else:
                config.assigned_role = role.value
                config.is_enabled = enabled

        await self.session.commit()

        audit_logger.log(
            action="task_settings_updated",
            actor_id=actor_id,
            clinic_id=clinic_id,
            entity_type="clinic",
            entity_id=clinic_id,
            metadata={
                definition.code: {"role": role.value, "enabled": enabled}
                for definition, role, enabled in resolved
            },
        )
        return await self.get_task_settings(clinic_id)
