"""Tests for appointment booking endpoints."""

from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from clinicdesk.models.patient import Patient
from clinicdesk.scheduling.conflicts import CONFLICT_WARNING
from clinicdesk.services.appointments import AppointmentService

APPOINTMENTS_URL = "/api/v1/scheduling/appointments"


def booking(patient_id: str, start: str, end: str, doctor_id: str | None = None, **extra) -> dict:
    body = {
        "patient_id": patient_id,
        "starts_at": f"2030-01-07T{start}:00Z",
        "ends_at": f"2030-01-07T{end}:00Z",
        **extra,
    }
    if doctor_id:
        body["doctor_id"] = doctor_id
    return body


class TestCreateAppointment:
    """Tests for booking."""

    async def test_create_appointment(
        self, client: AsyncClient, reception_headers, patient, doctor_user
    ) -> None:
        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:00", "10:30", doctor_user.id, treatment_type="Cleaning"),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["conflict_warning"] is None
        assert data["appointment"]["doctor_id"] == doctor_user.id
        assert data["appointment"]["status"] == "confirmed"
        assert data["appointment"]["starts_at"].startswith("2030-01-07T10:00:00")

    async def test_double_booking_saved_with_warning(
        self, client: AsyncClient, reception_headers, patient, doctor_user
    ) -> None:
        """Overlapping booking for the same doctor is stored and flagged."""
        await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:00", "10:30", doctor_user.id),
        )

        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:15", "10:45", doctor_user.id),
        )

        assert response.status_code == 201
        assert response.json()["conflict_warning"] == CONFLICT_WARNING

        day = await client.get(
            "/api/v1/scheduling/day", headers=reception_headers, params={"date": "2030-01-07"}
        )
        assert len(day.json()["appointments"]) == 2

    async def test_other_doctor_no_warning(
        self, client: AsyncClient, reception_headers, patient, doctor_user, second_doctor
    ) -> None:
        await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:00", "10:30", doctor_user.id),
        )

        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:15", "10:45", second_doctor.id),
        )

        assert response.json()["conflict_warning"] is None

    async def test_cancelled_booking_does_not_conflict(
        self, client: AsyncClient, reception_headers, patient, doctor_user
    ) -> None:
        await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:00", "10:30", doctor_user.id, status="cancelled"),
        )

        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:00", "10:30", doctor_user.id),
        )

        assert response.json()["conflict_warning"] is None

    async def test_end_before_start_rejected(
        self, client: AsyncClient, reception_headers, patient
    ) -> None:
        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "11:00", "10:00"),
        )

        assert response.status_code == 422

    async def test_unknown_doctor_rejected(
        self, client: AsyncClient, reception_headers, patient, finance_user
    ) -> None:
        """Only doctors of the clinic can be booked."""
        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(patient.id, "10:00", "10:30", finance_user.id),
        )

        assert response.status_code == 422

    async def test_unknown_patient_rejected(self, client: AsyncClient, reception_headers) -> None:
        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking("missing-patient", "10:00", "10:30"),
        )

        assert response.status_code == 422


class TestUpdateAppointment:
    """Tests for edits, status changes and doctor assignment."""

    async def _book(self, client, headers, patient_id, start, end, doctor_id=None) -> str:
        response = await client.post(
            APPOINTMENTS_URL,
            headers=headers,
            json=booking(patient_id, start, end, doctor_id),
        )
        return response.json()["appointment"]["id"]

    async def test_edit_does_not_conflict_with_itself(
        self, client: AsyncClient, reception_headers, patient, doctor_user
    ) -> None:
        appointment_id = await self._book(
            client, reception_headers, patient.id, "10:00", "10:30", doctor_user.id
        )

        response = await client.put(
            f"{APPOINTMENTS_URL}/{appointment_id}",
            headers=reception_headers,
            json={"ends_at": "2030-01-07T10:45:00Z", "treatment_note": "Scaling"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["conflict_warning"] is None
        assert data["appointment"]["treatment_note"] == "Scaling"
        assert data["appointment"]["ends_at"].startswith("2030-01-07T10:45:00")

    async def test_edit_into_overlap_warns(
        self, client: AsyncClient, reception_headers, patient, doctor_user
    ) -> None:
        await self._book(client, reception_headers, patient.id, "10:00", "10:30", doctor_user.id)
        other_id = await self._book(
            client, reception_headers, patient.id, "11:00", "11:30", doctor_user.id
        )

        response = await client.put(
            f"{APPOINTMENTS_URL}/{other_id}",
            headers=reception_headers,
            json={"starts_at": "2030-01-07T10:20:00Z"},
        )

        assert response.json()["conflict_warning"] == CONFLICT_WARNING

    async def test_update_status(
        self, client: AsyncClient, doctor_headers, reception_headers, patient
    ) -> None:
        appointment_id = await self._book(client, reception_headers, patient.id, "10:00", "10:30")

        response = await client.patch(
            f"{APPOINTMENTS_URL}/{appointment_id}/status",
            headers=doctor_headers,
            json={"status": "completed"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    async def test_invalid_status_rejected(
        self, client: AsyncClient, reception_headers, patient
    ) -> None:
        appointment_id = await self._book(client, reception_headers, patient.id, "10:00", "10:30")

        response = await client.patch(
            f"{APPOINTMENTS_URL}/{appointment_id}/status",
            headers=reception_headers,
            json={"status": "archived"},
        )

        assert response.status_code == 422

    async def test_assign_doctor(
        self, client: AsyncClient, reception_headers, patient, doctor_user
    ) -> None:
        appointment_id = await self._book(client, reception_headers, patient.id, "10:00", "10:30")

        response = await client.patch(
            f"{APPOINTMENTS_URL}/{appointment_id}/doctor",
            headers=reception_headers,
            json={"doctor_id": doctor_user.id},
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["doctor_id"] == doctor_user.id

    async def test_doctor_cannot_assign(
        self, client: AsyncClient, reception_headers, doctor_headers, patient, doctor_user
    ) -> None:
        appointment_id = await self._book(client, reception_headers, patient.id, "10:00", "10:30")

        response = await client.patch(
            f"{APPOINTMENTS_URL}/{appointment_id}/doctor",
            headers=doctor_headers,
            json={"doctor_id": doctor_user.id},
        )

        assert response.status_code == 403

    async def test_delete_appointment(
        self, client: AsyncClient, reception_headers, patient
    ) -> None:
        appointment_id = await self._book(client, reception_headers, patient.id, "10:00", "10:30")

        response = await client.delete(f"{APPOINTMENTS_URL}/{appointment_id}", headers=reception_headers)
        assert response.status_code == 204

        response = await client.delete(f"{APPOINTMENTS_URL}/{appointment_id}", headers=reception_headers)
        assert response.status_code == 404

    async def test_missing_appointment(self, client: AsyncClient, reception_headers) -> None:
        response = await client.patch(
            f"{APPOINTMENTS_URL}/does-not-exist/status",
            headers=reception_headers,
            json={"status": "completed"},
        )

        assert response.status_code == 404


class TestClinicScope:
    """Tests for tenant isolation."""

    async def test_other_clinic_query_forbidden(
        self, client: AsyncClient, reception_headers, other_clinic
    ) -> None:
        response = await client.get(
            "/api/v1/scheduling/doctors",
            headers=reception_headers,
            params={"clinic_id": other_clinic.id},
        )

        assert response.status_code == 403

    async def test_super_admin_needs_clinic_id(
        self, client: AsyncClient, super_admin_headers
    ) -> None:
        response = await client.get("/api/v1/scheduling/doctors", headers=super_admin_headers)

        assert response.status_code == 400

    async def test_super_admin_with_clinic_id(
        self, client: AsyncClient, super_admin_headers, clinic, doctor_user
    ) -> None:
        response = await client.get(
            "/api/v1/scheduling/doctors",
            headers=super_admin_headers,
            params={"clinic_id": clinic.id},
        )

        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == [doctor_user.id]

    async def test_patient_of_other_clinic_rejected(
        self, client: AsyncClient, reception_headers, async_session, other_clinic
    ) -> None:
        outsider = Patient(clinic_id=other_clinic.id, full_name="Outsider")
        async_session.add(outsider)
        await async_session.commit()

        response = await client.post(
            APPOINTMENTS_URL,
            headers=reception_headers,
            json=booking(outsider.id, "10:00", "10:30"),
        )

        assert response.status_code == 422


class TestStoreFailure:
    async def test_store_outage_is_503(self, client: AsyncClient, reception_headers) -> None:
        failing = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))
        with patch.object(AppointmentService, "list_doctors", failing):
            response = await client.get("/api/v1/scheduling/doctors", headers=reception_headers)

        assert response.status_code == 503
        assert response.json()["detail"] == "Clinic data is temporarily unavailable"
