"""Staff authentication tests."""

from httpx import AsyncClient

from clinicdesk.core.security import create_access_token, decode_access_token, hash_password
from clinicdesk.models.user import User


class TestStaffLogin:
    async def test_login_returns_token(self, client: AsyncClient, reception_user) -> None:
        response = await client.post(
            "/api/v1/auth/staff/login",
            json={"email": "reception@test.local", "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["role"] == "RECEPTION"
        assert data["clinic_id"] == reception_user.clinic_id

    async def test_wrong_password_rejected(self, client: AsyncClient, reception_user) -> None:
        response = await client.post(
            "/api/v1/auth/staff/login",
            json={"email": "reception@test.local", "password": "not-the-password"},
        )

        assert response.status_code == 401

    async def test_unknown_stored_role_cannot_log_in(
        self, client: AsyncClient, async_session, clinic
    ) -> None:
        async_session.add(
            User(
                clinic_id=clinic.id,
                email="janitor@test.local",
                hashed_password=hash_password("testpassword123"),
                role="JANITOR",
            )
        )
        await async_session.commit()

        response = await client.post(
            "/api/v1/auth/staff/login",
            json={"email": "janitor@test.local", "password": "testpassword123"},
        )

        assert response.status_code == 401

    async def test_legacy_role_token_is_canonical(
        self, client: AsyncClient, async_session, clinic
    ) -> None:
        async_session.add(
            User(
                clinic_id=clinic.id,
                email="sekreter@test.local",
                hashed_password=hash_password("testpassword123"),
                role="SEKRETER",
            )
        )
        await async_session.commit()

        login = await client.post(
            "/api/v1/auth/staff/login",
            json={"email": "sekreter@test.local", "password": "testpassword123"},
        )

        assert decode_access_token(login.json()["access_token"])["role"] == "RECEPTION"

    async def test_token_from_login_authenticates(self, client: AsyncClient, doctor_user) -> None:
        login = await client.post(
            "/api/v1/auth/staff/login",
            json={"email": "doctor@test.local", "password": "testpassword123"},
        )
        token = login.json()["access_token"]

        response = await client.get(
            "/api/v1/auth/staff/me",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json()["id"] == doctor_user.id


class TestMe:
    async def test_me_lists_role_and_permissions(self, client: AsyncClient, doctor_headers) -> None:
        response = await client.get("/api/v1/auth/staff/me", headers=doctor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "DOCTOR"
        assert data["is_admin"] is False
        assert "schedule:read" in data["permissions"]
        assert "clinic:settings:write" not in data["permissions"]

    async def test_me_requires_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/staff/me")

        assert response.status_code == 401

    async def test_non_staff_token_rejected(self, client: AsyncClient, doctor_user) -> None:
        token = create_access_token(subject=doctor_user.id, claims={"actor_type": "patient"})

        response = await client.get(
            "/api/v1/auth/staff/me",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 403
