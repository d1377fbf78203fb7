"""Tests for clinic working hours endpoints and the calendar day view."""

import copy
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from clinicdesk.models.appointment import Appointment
from clinicdesk.scheduling.hours import DEFAULT_WORKING_HOURS

HOURS_URL = "/api/v1/clinic/working-hours"
DAY_URL = "/api/v1/scheduling/day"


class TestWorkingHours:
    """Tests for reading and replacing weekly hours."""

    async def test_get_default_hours(self, client: AsyncClient, reception_headers) -> None:
        response = await client.get(HOURS_URL, headers=reception_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["working_hours"]["monday"] == {"open": "09:00", "close": "19:00", "enabled": True}
        assert data["overrides"] == []

    async def test_replace_full_week(self, client: AsyncClient, admin_headers) -> None:
        hours = copy.deepcopy(DEFAULT_WORKING_HOURS)
        hours["saturday"] = {"open": "10:00", "close": "13:00", "enabled": True}

        response = await client.put(HOURS_URL, headers=admin_headers, json={"working_hours": hours})

        assert response.status_code == 200
        assert response.json()["working_hours"]["saturday"]["enabled"] is True

    async def test_partial_week_rejected(self, client: AsyncClient, admin_headers) -> None:
        """A map missing a weekday is refused, not merged."""
        hours = copy.deepcopy(DEFAULT_WORKING_HOURS)
        del hours["friday"]

        response = await client.put(HOURS_URL, headers=admin_headers, json={"working_hours": hours})

        assert response.status_code == 422
        assert "friday" in response.json()["detail"]

    async def test_bad_time_rejected(self, client: AsyncClient, admin_headers) -> None:
        hours = copy.deepcopy(DEFAULT_WORKING_HOURS)
        hours["monday"]["open"] = "9 o'clock"

        response = await client.put(HOURS_URL, headers=admin_headers, json={"working_hours": hours})

        assert response.status_code == 422

    async def test_reception_cannot_replace_hours(self, client: AsyncClient, reception_headers) -> None:
        response = await client.put(
            HOURS_URL,
            headers=reception_headers,
            json={"working_hours": DEFAULT_WORKING_HOURS},
        )

        assert response.status_code == 403


class TestOverrides:
    """Tests for date overrides."""

    async def test_add_and_remove_override(self, client: AsyncClient, admin_headers) -> None:
        response = await client.post(
            f"{HOURS_URL}/overrides",
            headers=admin_headers,
            json={"date": "2030-01-07", "is_closed": True, "note": "Holiday"},
        )

        assert response.status_code == 201
        overrides = response.json()["overrides"]
        assert [o["date"] for o in overrides] == ["2030-01-07"]
        assert overrides[0]["note"] == "Holiday"

        response = await client.delete(f"{HOURS_URL}/overrides/2030-01-07", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["overrides"] == []

    async def test_duplicate_override_conflicts(self, client: AsyncClient, admin_headers) -> None:
        body = {"date": "2030-01-07", "open": "10:00", "close": "12:00"}
        await client.post(f"{HOURS_URL}/overrides", headers=admin_headers, json=body)

        response = await client.post(f"{HOURS_URL}/overrides", headers=admin_headers, json=body)

        assert response.status_code == 409

    async def test_open_override_requires_times(self, client: AsyncClient, admin_headers) -> None:
        """An open override without times is rejected, not given made-up hours."""
        response = await client.post(
            f"{HOURS_URL}/overrides",
            headers=admin_headers,
            json={"date": "2030-01-12", "open": "10:00"},
        )

        assert response.status_code == 422

        current = await client.get(HOURS_URL, headers=admin_headers)
        assert current.json()["overrides"] == []

    async def test_closed_override_keeps_weekday_times(
        self, client: AsyncClient, admin_headers
    ) -> None:
        response = await client.post(
            f"{HOURS_URL}/overrides",
            headers=admin_headers,
            json={"date": "2030-01-12", "is_closed": True},
        )

        assert response.status_code == 201
        (override,) = response.json()["overrides"]
        assert (override["open"], override["close"]) == ("09:00", "14:00")
        assert override["is_closed"] is True

    async def test_remove_missing_override(self, client: AsyncClient, admin_headers) -> None:
        response = await client.delete(f"{HOURS_URL}/overrides/2030-01-07", headers=admin_headers)

        assert response.status_code == 404


class TestDayView:
    """Tests for the calendar day view."""

    @pytest.fixture
    async def late_appointment(self, async_session: AsyncSession, clinic, patient) -> Appointment:
        appointment = Appointment(
            clinic_id=clinic.id,
            patient_id=patient.id,
            starts_at=datetime(2030, 1, 7, 20, 0, tzinfo=timezone.utc),
            ends_at=datetime(2030, 1, 7, 20, 30, tzinfo=timezone.utc),
            status="confirmed",
        )
        async_session.add(appointment)
        await async_session.commit()
        return appointment

    async def test_open_day_slots(self, client: AsyncClient, reception_headers) -> None:
        response = await client.get(DAY_URL, headers=reception_headers, params={"date": "2030-01-07"})

        assert response.status_code == 200
        data = response.json()
        assert data["timezone"] == "UTC"
        assert data["is_day_off"] is False
        assert [s["hour"] for s in data["slots"]] == list(range(9, 20))
        assert all(s["is_past"] is False for s in data["slots"])

    async def test_booking_after_close_adds_slot(
        self, client: AsyncClient, reception_headers, late_appointment
    ) -> None:
        response = await client.get(DAY_URL, headers=reception_headers, params={"date": "2030-01-07"})

        data = response.json()
        assert [s["hour"] for s in data["slots"]] == list(range(9, 21))
        assert data["appointments"][0]["id"] == late_appointment.id
        assert data["appointments"][0]["patient_name"] == "Test Patient"
        assert data["appointments"][0]["doctor_name"] == "Doctor not assigned"

    async def test_closed_day_has_no_slots(self, client: AsyncClient, reception_headers) -> None:
        response = await client.get(DAY_URL, headers=reception_headers, params={"date": "2030-01-06"})

        data = response.json()
        assert data["is_day_off"] is True
        assert data["slots"] == []

    async def test_closed_override_shows_note(
        self, client: AsyncClient, admin_headers
    ) -> None:
        await client.post(
            f"{HOURS_URL}/overrides",
            headers=admin_headers,
            json={"date": "2030-01-08", "is_closed": True, "note": "Staff training"},
        )

        response = await client.get(DAY_URL, headers=admin_headers, params={"date": "2030-01-08"})

        data = response.json()
        assert data["is_day_off"] is True
        assert data["override_note"] == "Staff training"
        assert data["slots"] == []

    async def test_malformed_stored_hours_fail_loudly(
        self, client: AsyncClient, async_session: AsyncSession, clinic, reception_headers
    ) -> None:
        hours = copy.deepcopy(DEFAULT_WORKING_HOURS)
        del hours["monday"]
        clinic.working_hours = hours
        await async_session.commit()

        response = await client.get(DAY_URL, headers=reception_headers, params={"date": "2030-01-07"})

        assert response.status_code == 500
        assert "monday" in response.json()["detail"]
