"""Pydantic request/response/error schemas."""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Query schemas ---


class PriorExchange(BaseModel):
    """One earlier question/answer pair replayed as conversation context."""

    question: str
    answer: str


class SubmitQueryRequest(BaseModel):
    question: str
    user_id: str | None = None
    # Most-recent-first. None asks the server to rebuild it from stored queries.
    history: list[PriorExchange] | None = None


class SubmitQueryResponse(BaseModel):
    answer: str
    query_id: int | None = None
    warning: str | None = None


class QueryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    answer: str
    user_id: str | None
    verified: bool
    clinician_id: str | None
    clinician_name: str | None
    rating: int | None
    timestamp: datetime.datetime
    verified_at: datetime.datetime | None


class VerifyRequest(BaseModel):
    answer: str
    clinician_id: str | None = None
    clinician_name: str | None = None


class RateRequest(BaseModel):
    rating: Literal[0, 1]
    clinician_id: str | None = None


class RateResponse(BaseModel):
    query_id: int
    rating: int
    clinician_id: str | None
    clinician_rating: float | None


# --- Clinician schemas ---


class ClinicianCreate(BaseModel):
    clinician_id: str
    full_name: str
    specialization: str
    license_number: str | None = None
    hospital: str | None = None
    years_of_experience: int | None = Field(default=None, ge=0)


class ClinicianUpdate(BaseModel):
    full_name: str | None = None
    specialization: str | None = None
    license_number: str | None = None
    hospital: str | None = None
    years_of_experience: int | None = Field(default=None, ge=0)


class ClinicianResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    clinician_id: str
    full_name: str
    specialization: str
    license_number: str | None
    hospital: str | None
    years_of_experience: int | None
    rating: float
    verified_responses: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class ClinicianScore(BaseModel):
    """Result of a reputation recomputation."""

    clinician_id: str
    rating: float
    verified_responses: int
    total_rated: int
    positive: int


# --- Error schema ---


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict = {}
