"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clinicdesk.core.security import create_staff_token, hash_password
from clinicdesk.db.base import Base
from clinicdesk.db.init_db import seed_task_definitions
from clinicdesk.db.session import get_db
from clinicdesk.main import app
from clinicdesk.models.clinic import Clinic
from clinicdesk.models.patient import Patient
from clinicdesk.models.task import DashboardTaskDefinition
from clinicdesk.models.user import User, UserRole

# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def client(async_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an HTTP client bound to the app with the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def clinic(async_session: AsyncSession) -> Clinic:
    """Create a clinic on UTC with default working hours."""
    clinic = Clinic(name="Test Clinic", slug="test-clinic", timezone="UTC")
    async_session.add(clinic)
    await async_session.commit()
    await async_session.refresh(clinic)
    return clinic


@pytest.fixture
async def other_clinic(async_session: AsyncSession) -> Clinic:
    """Create a second clinic for tenant isolation checks."""
    clinic = Clinic(name="Other Clinic", slug="other-clinic", timezone="UTC")
    async_session.add(clinic)
    await async_session.commit()
    await async_session.refresh(clinic)
    return clinic


async def _create_user(
    session: AsyncSession,
    email: str,
    role: UserRole,
    clinic_id: str | None,
    full_name: str,
) -> User:
    user = User(
        clinic_id=clinic_id,
        email=email,
        hashed_password=hash_password("testpassword123"),
        full_name=full_name,
        role=role.value,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def admin_user(async_session: AsyncSession, clinic: Clinic) -> User:
    """Clinic admin."""
    return await _create_user(async_session, "admin@test.local", UserRole.ADMIN, clinic.id, "Admin User")


@pytest.fixture
async def doctor_user(async_session: AsyncSession, clinic: Clinic) -> User:
    """Clinic doctor."""
    return await _create_user(async_session, "doctor@test.local", UserRole.DOCTOR, clinic.id, "Dr Test")


@pytest.fixture
async def second_doctor(async_session: AsyncSession, clinic: Clinic) -> User:
    """Another doctor of the same clinic."""
    return await _create_user(async_session, "doctor2@test.local", UserRole.DOCTOR, clinic.id, "Dr Second")


@pytest.fixture
async def reception_user(async_session: AsyncSession, clinic: Clinic) -> User:
    """Clinic receptionist."""
    return await _create_user(
        async_session, "reception@test.local", UserRole.RECEPTION, clinic.id, "Front Desk"
    )


@pytest.fixture
async def finance_user(async_session: AsyncSession, clinic: Clinic) -> User:
    """Clinic finance staff."""
    return await _create_user(async_session, "finance@test.local", UserRole.FINANCE, clinic.id, "Accounts")


@pytest.fixture
async def super_admin(async_session: AsyncSession) -> User:
    """Platform super admin without a clinic."""
    return await _create_user(
        async_session, "root@test.local", UserRole.SUPER_ADMIN, None, "Platform Admin"
    )


@pytest.fixture
async def patient(async_session: AsyncSession, clinic: Clinic) -> Patient:
    """Create a test patient."""
    patient = Patient(clinic_id=clinic.id, full_name="Test Patient", phone="+900000000")
    async_session.add(patient)
    await async_session.commit()
    await async_session.refresh(patient)
    return patient


@pytest.fixture
async def task_definitions(async_session: AsyncSession) -> list[DashboardTaskDefinition]:
    """Seed the dashboard task catalog."""
    return await seed_task_definitions(async_session)


def make_auth_headers(user: User) -> dict[str, str]:
    """Bearer headers for a staff user."""
    token = create_staff_token(
        user_id=user.id,
        role=user.role,
        clinic_id=user.clinic_id,
        email=user.email,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return make_auth_headers(admin_user)


@pytest.fixture
def doctor_headers(doctor_user: User) -> dict[str, str]:
    return make_auth_headers(doctor_user)


@pytest.fixture
def reception_headers(reception_user: User) -> dict[str, str]:
    return make_auth_headers(reception_user)


@pytest.fixture
def finance_headers(finance_user: User) -> dict[str, str]:
    return make_auth_headers(finance_user)


@pytest.fixture
def super_admin_headers(super_admin: User) -> dict[str, str]:
    return make_auth_headers(super_admin)
