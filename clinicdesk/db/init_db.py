"""Database initialization: schema, task catalog and first platform admin."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.core.config import settings
from clinicdesk.core.security import hash_password
from clinicdesk.db.base import Base
from clinicdesk.db.session import engine
from clinicdesk.models.task import DashboardTaskDefinition
from clinicdesk.models.user import User, UserRole

logger = logging.getLogger(__name__)

# code -> (title, description, default role)
DEFAULT_TASK_DEFINITIONS: dict[str, tuple[str, str, UserRole]] = {
    "STATUS_UPDATE": (
        "Status update",
        "Appointment has ended but its status was never closed.",
        UserRole.RECEPTION,
    ),
    "PENDING_APPROVAL": (
        "Pending approval",
        "Appointment request is waiting for confirmation.",
        UserRole.RECEPTION,
    ),
    "MISSING_DOCTOR": (
        "Doctor assignment",
        "Appointment has no doctor assigned.",
        UserRole.RECEPTION,
    ),
    "MISSING_PAYMENT": (
        "Payment entry",
        "Completed appointment has no payment recorded.",
        UserRole.FINANCE,
    ),
    "MISSING_TREATMENT_NOTE": (
        "Treatment note",
        "Completed appointment has no treatment note.",
        UserRole.DOCTOR,
    ),
}


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def seed_task_definitions(session: AsyncSession) -> list[DashboardTaskDefinition]:
    """Insert catalog tasks that are missing; existing rows are left as they are.

    Args:
        session: Database session

    Returns:
        Newly created task definitions
    """
    result = await session.execute(select(DashboardTaskDefinition.code))
    existing = set(result.scalars().all())

    created = []
    for code, (title, description, role) in DEFAULT_TASK_DEFINITIONS.items():
        if code in existing:
            continue
        definition = DashboardTaskDefinition(
            code=code,
            title=title,
            description=description,
            default_role=role.value,
        )
        session.add(definition)
        created.append(definition)

    if created:
        await session.commit()
        logger.info(f"Seeded {len(created)} dashboard task definitions")
    return created


async def create_initial_admin(session: AsyncSession) -> User | None:
    """Create the platform super admin if none exists.

    Args:
        session: Database session

    Returns:
        Created admin user or None if one already exists
    """
    result = await session.execute(
        select(User).where(User.role == UserRole.SUPER_ADMIN.value).limit(1)
    )
    if result.scalar_one_or_none():
        logger.info("Super admin already exists, skipping creation")
        return None

    admin = User(
        email=settings.bootstrap_admin_email.lower(),
        hashed_password=hash_password(settings.bootstrap_admin_password),
        role=UserRole.SUPER_ADMIN.value,
        full_name="Platform Admin",
        clinic_id=None,
        is_active=True,
    )
    session.add(admin)
    await session.commit()
    await session.refresh(admin)

    logger.warning(
        "Created initial super admin with the bootstrap password. "
        "CHANGE THE PASSWORD IMMEDIATELY!"
    )
    return admin


async def init_db(session: AsyncSession) -> None:
    """Initialize database with required data.

    Args:
        session: Database session
    """
    await seed_task_definitions(session)
    await create_initial_admin(session)
    logger.info("Database initialization complete")
