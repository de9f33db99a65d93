"""Clinician profile data access service."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medverify.errors import (
    ClinicianExistsError,
    ClinicianNotFoundError,
    InputError,
    StorageError,
)
from medverify.models.orm import ClinicianProfile
from medverify.models.schemas import ClinicianCreate, ClinicianUpdate
from medverify.services.rating_service import DEFAULT_SCORE

logger = logging.getLogger(__name__)


async def get_profile(session: AsyncSession, clinician_id: str) -> ClinicianProfile:
    result = await session.execute(
        select(ClinicianProfile)
        .where(ClinicianProfile.clinician_id == clinician_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise ClinicianNotFoundError(clinician_id)
    return profile


async def create_profile(
    session: AsyncSession, data: ClinicianCreate
) -> ClinicianProfile:
    """Onboard a clinician with the default score and no verified responses."""
    for field in ("full_name", "specialization"):
        if not getattr(data, field).strip():
            raise InputError(f"{field} cannot be blank")
    if await session.get(ClinicianProfile, data.clinician_id) is not None:
        raise ClinicianExistsError(
            f"Clinician with ID {data.clinician_id} already exists"
        )

    profile = ClinicianProfile(
        **data.model_dump(),
        rating=DEFAULT_SCORE,
        verified_responses=0,
    )
    try:
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Creating clinician %s failed", data.clinician_id)
        raise StorageError("Failed to save clinician details") from e

    logger.info(
        "Onboarded clinician %s (%s)", profile.clinician_id, profile.specialization
    )
    return profile


async def update_profile(
    session: AsyncSession, clinician_id: str, data: ClinicianUpdate
) -> ClinicianProfile:
    """Edit identity fields.

    Names already snapshotted onto verified queries are left as they were.
    """
    changes = data.model_dump(exclude_unset=True)
    # full_name and specialization cannot be cleared
    for field in ("full_name", "specialization"):
        if field not in changes:
            continue
        if changes[field] is None:
            del changes[field]
        elif not changes[field].strip():
            raise InputError(f"{field} cannot be blank")

    profile = await get_profile(session, clinician_id)
    for field, value in changes.items():
        setattr(profile, field, value)
    try:
        await session.commit()
        await session.refresh(profile)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Updating clinician %s failed", clinician_id)
        raise StorageError("Failed to update clinician details") from e
    return profile
