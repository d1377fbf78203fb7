"""Initial schema: clinics, staff, patients, appointments, payments, dashboard tasks.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create initial database schema."""

    # Clinics (tenants) with working hours JSON
    op.create_table(
        "clinics",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("working_hours", sa.JSON(), nullable=False),
        sa.Column("working_hours_overrides", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, default=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_clinics"),
    )
    op.create_index("ix_clinics_slug", "clinics", ["slug"], unique=True)

    # Staff users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, default=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["clinic_id"],
            ["clinics.id"],
            name="fk_users_clinic_id_clinics",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_clinic_id", "users", ["clinic_id"])

    # Patients
    op.create_table(
        "patients",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("allergies", sa.Text(), nullable=True),
        sa.Column("medical_alerts", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["clinic_id"],
            ["clinics.id"],
            name="fk_patients_clinic_id_clinics",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_patients"),
    )
    op.create_index("ix_patients_clinic_id", "patients", ["clinic_id"])
    op.create_index("ix_patients_phone", "patients", ["phone"])

    # Appointments
    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("channel", sa.String(20), nullable=False),
        sa.Column("treatment_type", sa.String(100), nullable=True),
        sa.Column("treatment_note", sa.Text(), nullable=True),
        sa.Column("patient_note", sa.Text(), nullable=True),
        sa.Column("internal_note", sa.Text(), nullable=True),
        sa.Column("estimated_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["clinic_id"],
            ["clinics.id"],
            name="fk_appointments_clinic_id_clinics",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name="fk_appointments_patient_id_patients",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["doctor_id"],
            ["users.id"],
            name="fk_appointments_doctor_id_users",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint("ends_at > starts_at", name="ck_appointments_ends_after_start"),
        sa.PrimaryKeyConstraint("id", name="pk_appointments"),
    )
    op.create_index("ix_appointments_clinic_id", "appointments", ["clinic_id"])
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index("ix_appointments_starts_at", "appointments", ["starts_at"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    # Payments
    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("appointment_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("method", sa.String(30), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["clinic_id"],
            ["clinics.id"],
            name="fk_payments_clinic_id_clinics",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["appointment_id"],
            ["appointments.id"],
            name="fk_payments_appointment_id_appointments",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name="fk_payments_patient_id_patients",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
    )
    op.create_index("ix_payments_clinic_id", "payments", ["clinic_id"])
    op.create_index("ix_payments_appointment_id", "payments", ["appointment_id"])

    # Dashboard task catalog
    op.create_table(
        "dashboard_task_definitions",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("title", sa.String(150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("default_role", sa.String(30), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_dashboard_task_definitions"),
    )
    op.create_index(
        "ix_dashboard_task_definitions_code",
        "dashboard_task_definitions",
        ["code"],
        unique=True,
    )

    # Per-clinic task settings
    op.create_table(
        "clinic_task_configs",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("task_definition_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("assigned_role", sa.String(30), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, default=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["clinic_id"],
            ["clinics.id"],
            name="fk_clinic_task_configs_clinic_id_clinics",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["task_definition_id"],
            ["dashboard_task_definitions.id"],
            name="fk_clinic_task_configs_task_definition_id_dashboard_task_definitions",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_clinic_task_configs"),
        sa.UniqueConstraint(
            "clinic_id",
            "task_definition_id",
            name="uq_clinic_task_configs_clinic_task",
        ),
    )
    op.create_index("ix_clinic_task_configs_clinic_id", "clinic_task_configs", ["clinic_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("clinic_task_configs")
    op.drop_table("dashboard_task_definitions")
    op.drop_table("payments")
    op.drop_table("appointments")
    op.drop_table("patients")
    op.drop_table("users")
    op.drop_table("clinics")
