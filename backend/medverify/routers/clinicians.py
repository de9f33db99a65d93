"""Clinician API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medverify.database import get_session
from medverify.errors import PortalError
from medverify.models.schemas import (
    ClinicianCreate,
    ClinicianResponse,
    ClinicianScore,
    ClinicianUpdate,
    QueryResponse,
)
from medverify.services.clinician_service import (
    create_profile,
    get_profile,
    update_profile,
)
from medverify.services.query_service import list_verified_by
from medverify.services.rating_service import recompute_clinician_rating

router = APIRouter(prefix="/api/v1/clinicians", tags=["clinicians"])


@router.post("", response_model=ClinicianResponse, status_code=201)
async def onboard_clinician(
    body: ClinicianCreate,
    session: AsyncSession = Depends(get_session),
) -> ClinicianResponse:
    try:
        profile = await create_profile(session, body)
    except PortalError as e:
        raise e.to_http()
    return ClinicianResponse.model_validate(profile)


@router.get("/{clinician_id}", response_model=ClinicianResponse)
async def get_clinician(
    clinician_id: str,
    session: AsyncSession = Depends(get_session),
) -> ClinicianResponse:
    try:
        profile = await get_profile(session, clinician_id)
    except PortalError as e:
        raise e.to_http()
    return ClinicianResponse.model_validate(profile)


@router.patch("/{clinician_id}", response_model=ClinicianResponse)
async def edit_clinician(
    clinician_id: str,
    body: ClinicianUpdate,
    session: AsyncSession = Depends(get_session),
) -> ClinicianResponse:
    try:
        profile = await update_profile(session, clinician_id, body)
    except PortalError as e:
        raise e.to_http()
    return ClinicianResponse.model_validate(profile)


@router.get("/{clinician_id}/queries", response_model=list[QueryResponse])
async def list_verified_queries(
    clinician_id: str,
    session: AsyncSession = Depends(get_session),
) -> list[QueryResponse]:
    try:
        queries = await list_verified_by(session, clinician_id)
    except PortalError as e:
        raise e.to_http()
    return [QueryResponse.model_validate(q) for q in queries]


@router.post("/{clinician_id}/rating", response_model=ClinicianScore)
async def recompute_rating(
    clinician_id: str,
    session: AsyncSession = Depends(get_session),
) -> ClinicianScore:
    try:
        return await recompute_clinician_rating(session, clinician_id)
    except PortalError as e:
        raise e.to_http()
