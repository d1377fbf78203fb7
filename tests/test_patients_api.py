"""Tests for patient record endpoints."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from httpx import AsyncClient
from sqlalchemy import select

from clinicdesk.models.appointment import Appointment
from clinicdesk.models.patient import Patient
from clinicdesk.models.payment import Payment

PATIENTS_URL = "/api/v1/patients"

NEW_PATIENT = {
    "full_name": "Ayse Demir",
    "phone": "+905551234567",
    "email": "Ayse@Example.com",
    "allergies": "Penicillin",
}


class TestPatientRecords:
    async def test_create_and_read(self, client: AsyncClient, reception_headers) -> None:
        response = await client.post(PATIENTS_URL, headers=reception_headers, json=NEW_PATIENT)

        assert response.status_code == 201
        created = response.json()
        assert created["full_name"] == "Ayse Demir"
        assert created["email"] == "ayse@example.com"

        fetched = await client.get(f"{PATIENTS_URL}/{created['id']}", headers=reception_headers)
        assert fetched.status_code == 200
        assert fetched.json()["allergies"] == "Penicillin"

    async def test_created_patient_can_be_booked(
        self, client: AsyncClient, reception_headers
    ) -> None:
        created = await client.post(PATIENTS_URL, headers=reception_headers, json=NEW_PATIENT)

        response = await client.post(
            "/api/v1/scheduling/appointments",
            headers=reception_headers,
            json={
                "patient_id": created.json()["id"],
                "starts_at": "2030-01-07T10:00:00Z",
                "ends_at": "2030-01-07T10:30:00Z",
            },
        )

        assert response.status_code == 201

    async def test_invalid_input_rejected(self, client: AsyncClient, reception_headers) -> None:
        short_name = await client.post(
            PATIENTS_URL, headers=reception_headers, json={**NEW_PATIENT, "full_name": "A"}
        )
        short_phone = await client.post(
            PATIENTS_URL, headers=reception_headers, json={**NEW_PATIENT, "phone": "555"}
        )

        assert short_name.status_code == 422
        assert short_phone.status_code == 422

    async def test_blank_optional_fields_stored_as_null(
        self, client: AsyncClient, reception_headers
    ) -> None:
        response = await client.post(
            PATIENTS_URL, headers=reception_headers, json={**NEW_PATIENT, "email": "", "notes": "  "}
        )

        assert response.json()["email"] is None
        assert response.json()["notes"] is None

    async def test_search_by_name_or_phone(
        self, client: AsyncClient, reception_headers, patient
    ) -> None:
        await client.post(PATIENTS_URL, headers=reception_headers, json=NEW_PATIENT)

        by_name = await client.get(PATIENTS_URL, headers=reception_headers, params={"search": "demir"})
        by_phone = await client.get(PATIENTS_URL, headers=reception_headers, params={"search": "+9000"})
        everyone = await client.get(PATIENTS_URL, headers=reception_headers)

        assert [p["full_name"] for p in by_name.json()] == ["Ayse Demir"]
        assert [p["id"] for p in by_phone.json()] == [patient.id]
        assert len(everyone.json()) == 2

    async def test_update_changes_only_sent_fields(
        self, client: AsyncClient, reception_headers, patient
    ) -> None:
        response = await client.put(
            f"{PATIENTS_URL}/{patient.id}",
            headers=reception_headers,
            json={"medical_alerts": "Diabetic", "full_name": None},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["medical_alerts"] == "Diabetic"
        assert data["full_name"] == "Test Patient"
        assert data["phone"] == "+900000000"

    async def test_update_clears_optional_field(
        self, client: AsyncClient, reception_headers, async_session, patient
    ) -> None:
        patient.notes = "Call before visit"
        await async_session.commit()

        response = await client.put(
            f"{PATIENTS_URL}/{patient.id}", headers=reception_headers, json={"notes": None}
        )

        assert response.json()["notes"] is None

    async def test_delete_removes_appointments_and_payments(
        self, client: AsyncClient, reception_headers, async_session, clinic, patient
    ) -> None:
        start = datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)
        appointment = Appointment(
            clinic_id=clinic.id,
            patient_id=patient.id,
            starts_at=start,
            ends_at=start + timedelta(minutes=30),
            status="completed",
        )
        async_session.add(appointment)
        await async_session.commit()
        async_session.add(
            Payment(
                clinic_id=clinic.id,
                appointment_id=appointment.id,
                patient_id=patient.id,
                amount=Decimal("50.00"),
                status="paid",
            )
        )
        await async_session.commit()

        response = await client.delete(f"{PATIENTS_URL}/{patient.id}", headers=reception_headers)

        assert response.status_code == 204
        assert (await client.get(f"{PATIENTS_URL}/{patient.id}", headers=reception_headers)).status_code == 404
        remaining = await async_session.execute(
            select(Appointment.id).where(Appointment.patient_id == patient.id)
        )
        assert remaining.scalars().all() == []
        payments = await async_session.execute(select(Payment.id))
        assert payments.scalars().all() == []

    async def test_missing_patient(self, client: AsyncClient, reception_headers) -> None:
        fetched = await client.get(f"{PATIENTS_URL}/missing", headers=reception_headers)
        updated = await client.put(
            f"{PATIENTS_URL}/missing", headers=reception_headers, json={"notes": "x"}
        )
        deleted = await client.delete(f"{PATIENTS_URL}/missing", headers=reception_headers)

        assert fetched.status_code == 404
        assert updated.status_code == 404
        assert deleted.status_code == 404


class TestPatientAccess:
    async def test_other_clinic_patients_hidden(
        self, client: AsyncClient, reception_headers, async_session, other_clinic
    ) -> None:
        outsider = Patient(clinic_id=other_clinic.id, full_name="Outsider", phone="+901111111111")
        async_session.add(outsider)
        await async_session.commit()

        listed = await client.get(PATIENTS_URL, headers=reception_headers)
        fetched = await client.get(f"{PATIENTS_URL}/{outsider.id}", headers=reception_headers)
        deleted = await client.delete(f"{PATIENTS_URL}/{outsider.id}", headers=reception_headers)

        assert outsider.id not in [p["id"] for p in listed.json()]
        assert fetched.status_code == 404
        assert deleted.status_code == 404

    async def test_finance_reads_but_cannot_edit(
        self, client: AsyncClient, finance_headers, patient
    ) -> None:
        listed = await client.get(PATIENTS_URL, headers=finance_headers)
        created = await client.post(PATIENTS_URL, headers=finance_headers, json=NEW_PATIENT)

        assert listed.status_code == 200
        assert created.status_code == 403

    async def test_doctor_cannot_delete(self, client: AsyncClient, doctor_headers, patient) -> None:
        response = await client.delete(f"{PATIENTS_URL}/{patient.id}", headers=doctor_headers)

        assert response.status_code == 403
