"""Dashboard task catalog and per-clinic task settings."""

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from clinicdesk.db.base import Base, ClinicScopedMixin, TimestampMixin


class DashboardTaskDefinition(Base, TimestampMixin):
    """One control-list rule type, shared by all clinics."""

    __tablename__ = "dashboard_task_definitions"

    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    default_role: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<DashboardTaskDefinition {self.code}>"


class ClinicTaskConfig(Base, TimestampMixin, ClinicScopedMixin):
    """Clinic-level override of a task's role and visibility.

    A missing row means the definition's default role, enabled.
    """

    __tablename__ = "clinic_task_configs"
    __table_args__ = (
        UniqueConstraint("clinic_id", "task_definition_id", name="uq_clinic_task_configs_clinic_task"),
    )

    task_definition_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("dashboard_task_definitions.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_role: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )
    is_enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ClinicTaskConfig {self.task_definition_id} role={self.assigned_role}>"
