"""Create a demo clinic with staff, patients and a day of appointments."""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from clinicdesk.core.security import hash_password
from clinicdesk.db.init_db import create_tables, init_db
from clinicdesk.db.session import AsyncSessionLocal
from clinicdesk.models.appointment import Appointment, AppointmentStatus
from clinicdesk.models.clinic import Clinic
from clinicdesk.models.patient import Patient
from clinicdesk.models.user import User, UserRole

DEMO_SLUG = "demo-dental"
DEMO_PASSWORD = "demo-password"

STAFF = [
    ("admin@demo-dental.local", "Demo Admin", UserRole.ADMIN),
    ("doctor@demo-dental.local", "Dr Demo", UserRole.DOCTOR),
    ("reception@demo-dental.local", "Front Desk", UserRole.RECEPTION),
    ("finance@demo-dental.local", "Accounts", UserRole.FINANCE),
]

PATIENTS = ["Ayse Demir", "Mehmet Kaya", "Elif Sahin"]


async def seed_demo_clinic():
    """Create the demo clinic unless it already exists."""
    await create_tables()

    async with AsyncSessionLocal() as session:
        await init_db(session)

        result = await session.execute(select(Clinic).where(Clinic.slug == DEMO_SLUG))
        if result.scalar_one_or_none():
            print("Demo clinic already exists, skipping...")
            return

        clinic = Clinic(name="Demo Dental", slug=DEMO_SLUG)
        session.add(clinic)
        await session.flush()

        users = {}
        for email, name, role in STAFF:
            user = User(
                clinic_id=clinic.id,
                email=email,
                full_name=name,
                role=role.value,
                hashed_password=hash_password(DEMO_PASSWORD),
            )
            session.add(user)
            users[role] = user

        patients = [Patient(clinic_id=clinic.id, full_name=name) for name in PATIENTS]
        session.add_all(patients)
        await session.flush()

        # Today's 09:00 UTC: one overdue, one unassigned, one completed without payment
        start = datetime.now(timezone.utc).replace(hour=9, minute=0, second=0, microsecond=0)
        session.add_all(
            [
                Appointment(
                    clinic_id=clinic.id,
                    patient_id=patients[0].id,
                    doctor_id=users[UserRole.DOCTOR].id,
                    starts_at=start,
                    ends_at=start + timedelta(minutes=30),
                    status=AppointmentStatus.PENDING.value,
                    treatment_type="Cleaning",
                ),
                Appointment(
                    clinic_id=clinic.id,
                    patient_id=patients[1].id,
                    starts_at=start + timedelta(hours=2),
                    ends_at=start + timedelta(hours=2, minutes=45),
                    status=AppointmentStatus.CONFIRMED.value,
                ),
                Appointment(
                    clinic_id=clinic.id,
                    patient_id=patients[2].id,
                    doctor_id=users[UserRole.DOCTOR].id,
                    starts_at=start + timedelta(hours=4),
                    ends_at=start + timedelta(hours=5),
                    status=AppointmentStatus.COMPLETED.value,
                    treatment_type="Filling",
                ),
            ]
        )

        await session.commit()

        print("\n=== Summary ===")
        print(f"Clinic ID: {clinic.id}")
        for email, _, role in STAFF:
            print(f"{role.value:<10} {email} / {DEMO_PASSWORD}")
        print("Demo clinic setup complete!")


if __name__ == "__main__":
    asyncio.run(seed_demo_clinic())
