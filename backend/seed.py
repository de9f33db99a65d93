"""Seed database with demo clinicians and queries. Drop-and-recreate tables on each run."""

from __future__ import annotations

import asyncio
import datetime

from medverify.database import async_session, engine
from medverify.models.orm import Base, ClinicianProfile, Query
from medverify.services.rating_service import recompute_clinician_rating

NOW = datetime.datetime.now(datetime.UTC)


def _ago(**kwargs) -> datetime.datetime:
    return NOW - datetime.timedelta(**kwargs)


CLINICIANS = [
    ClinicianProfile(
        clinician_id="clin-lee",
        full_name="Dr. Lee",
        specialization="Cardiology",
        license_number="MD-104233",
        hospital="St. Mary's General",
        years_of_experience=14,
    ),
    ClinicianProfile(
        clinician_id="clin-okafor",
        full_name="Dr. Okafor",
        specialization="Geriatric Medicine",
        license_number="MD-208817",
        hospital="Riverside Clinic",
        years_of_experience=9,
    ),
]

QUERIES = [
    Query(
        question="What is a normal resting heart rate?",
        answer=(
            "For most adults, a normal resting heart rate is between 60 and 100 "
            "beats per minute. Active people often have a lower rate."
        ),
        user_id="patient-maria",
        verified=True,
        clinician_id="clin-lee",
        clinician_name="Dr. Lee",
        rating=1,
        timestamp=_ago(days=3),
        verified_at=_ago(days=2),
    ),
    Query(
        question="Is it safe to take ibuprofen with my blood pressure pills?",
        answer=(
            "Ibuprofen can raise blood pressure and make some blood pressure "
            "medicines work less well. Please ask your doctor or pharmacist "
            "before taking it regularly."
        ),
        user_id="patient-maria",
        verified=True,
        clinician_id="clin-lee",
        clinician_name="Dr. Lee",
        rating=0,
        timestamp=_ago(days=2),
        verified_at=_ago(days=1),
    ),
    Query(
        question="How much water should I drink each day?",
        answer=(
            "Many older adults need about 6 to 8 glasses of fluid a day, but "
            "your needs depend on your health and medicines."
        ),
        user_id="patient-james",
        verified=True,
        clinician_id="clin-okafor",
        clinician_name="Dr. Okafor",
        timestamp=_ago(days=1),
        verified_at=_ago(hours=20),
    ),
    Query(
        question="Why do my ankles swell in the evening?",
        answer=(
            "Ankle swelling late in the day is common and is often caused by "
            "fluid collecting after sitting or standing for a long time."
        ),
        user_id="patient-james",
        timestamp=_ago(hours=5),
    ),
    Query(
        question="Should I get a flu shot every year?",
        answer=(
            "Yes, a yearly flu shot is recommended for most adults, "
            "especially those over 65."
        ),
        timestamp=_ago(hours=1),
    ),
]


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        session.add_all(CLINICIANS)
        session.add_all(QUERIES)
        await session.commit()

        for clinician in CLINICIANS:
            score = await recompute_clinician_rating(session, clinician.clinician_id)
            print(
                f"{clinician.full_name}: rating={score.rating:.1f} "
                f"verified_responses={score.verified_responses}"
            )

    print(f"Seeded {len(CLINICIANS)} clinicians and {len(QUERIES)} queries.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
