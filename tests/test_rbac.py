"""Tests for RBAC (Role-Based Access Control)."""

import pytest
from httpx import AsyncClient

from clinicdesk.models.user import UnknownRoleError, UserRole, normalize_role
from clinicdesk.services.rbac import Permission, RBACService


class TestNormalizeRole:
    """Tests for role normalization."""

    def test_canonical_names(self) -> None:
        assert normalize_role("ADMIN") == UserRole.ADMIN
        assert normalize_role(UserRole.FINANCE) == UserRole.FINANCE

    def test_case_and_whitespace_ignored(self) -> None:
        assert normalize_role("  reception ") == UserRole.RECEPTION

    def test_legacy_aliases(self) -> None:
        """Legacy role names map onto the current roles."""
        assert normalize_role("DOKTOR") == UserRole.DOCTOR
        assert normalize_role("SEKRETER") == UserRole.RECEPTION
        assert normalize_role("FINANS") == UserRole.FINANCE

    def test_unknown_role_raises(self) -> None:
        with pytest.raises(UnknownRoleError):
            normalize_role("JANITOR")


class TestRBACService:
    """Tests for RBACService class."""

    def test_admin_has_all_permissions(self) -> None:
        """Test that admin role has all permissions."""
        permissions = RBACService.get_permissions(UserRole.ADMIN)

        assert permissions == set(Permission)

    def test_super_admin_matches_admin(self) -> None:
        assert RBACService.get_permissions(UserRole.SUPER_ADMIN) == RBACService.get_permissions(
            UserRole.ADMIN
        )

    def test_doctor_permissions(self) -> None:
        """Doctors book and update appointments but do not manage the clinic."""
        permissions = RBACService.get_permissions(UserRole.DOCTOR)

        assert Permission.SCHEDULE_READ in permissions
        assert Permission.APPOINTMENTS_WRITE in permissions
        assert Permission.APPOINTMENTS_DELETE not in permissions
        assert Permission.CLINIC_SETTINGS_WRITE not in permissions
        assert Permission.PAYMENTS_WRITE not in permissions
        assert Permission.PATIENTS_WRITE in permissions
        assert Permission.PATIENTS_DELETE not in permissions

    def test_finance_cannot_touch_appointments(self) -> None:
        permissions = RBACService.get_permissions(UserRole.FINANCE)

        assert Permission.PAYMENTS_WRITE in permissions
        assert Permission.APPOINTMENTS_WRITE not in permissions
        assert Permission.PATIENTS_READ in permissions
        assert Permission.PATIENTS_WRITE not in permissions

    def test_legacy_role_string_resolved(self) -> None:
        assert RBACService.has_permission("SEKRETER", Permission.APPOINTMENTS_ASSIGN) is True

    def test_unknown_role_has_no_permissions(self) -> None:
        assert RBACService.get_permissions("JANITOR") == set()
        assert RBACService.has_permission("JANITOR", Permission.SCHEDULE_READ) is False

    def test_has_any_permission(self) -> None:
        assert RBACService.has_any_permission(
            UserRole.RECEPTION,
            [Permission.ADMIN_ALL, Permission.SCHEDULE_READ],
        ) is True
        assert RBACService.has_any_permission(
            UserRole.FINANCE,
            [Permission.ADMIN_ALL, Permission.TASK_SETTINGS_WRITE],
        ) is False

    def test_has_all_permissions(self) -> None:
        assert RBACService.has_all_permissions(
            UserRole.RECEPTION,
            [Permission.APPOINTMENTS_WRITE, Permission.APPOINTMENTS_ASSIGN],
        ) is True
        assert RBACService.has_all_permissions(
            UserRole.DOCTOR,
            [Permission.APPOINTMENTS_WRITE, Permission.APPOINTMENTS_ASSIGN],
        ) is False


class TestRBACEndpoints:
    """Tests for RBAC enforcement on API endpoints."""

    async def test_unauthenticated_request_rejected(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/scheduling/doctors")

        assert response.status_code == 401

    async def test_finance_cannot_book(
        self, client: AsyncClient, finance_headers, patient
    ) -> None:
        response = await client.post(
            "/api/v1/scheduling/appointments",
            headers=finance_headers,
            json={
                "patient_id": patient.id,
                "starts_at": "2030-01-07T10:00:00Z",
                "ends_at": "2030-01-07T10:30:00Z",
            },
        )

        assert response.status_code == 403

    async def test_doctor_cannot_change_working_hours(
        self, client: AsyncClient, doctor_headers
    ) -> None:
        response = await client.post(
            "/api/v1/clinic/working-hours/overrides",
            headers=doctor_headers,
            json={"date": "2030-01-07", "is_closed": True},
        )

        assert response.status_code == 403
