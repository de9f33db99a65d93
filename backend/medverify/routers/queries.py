"""Query lifecycle API endpoints: submit, review queue, verify, rate."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medverify.database import get_session
from medverify.errors import PortalError, StorageError
from medverify.models.schemas import (
    QueryResponse,
    RateRequest,
    RateResponse,
    SubmitQueryRequest,
    SubmitQueryResponse,
    VerifyRequest,
)
from medverify.services.generation_service import AnswerGenerator, get_answer_generator
from medverify.services.query_service import (
    get_conversation_context,
    get_query,
    list_by_user,
    list_pending,
    submit_query,
)
from medverify.services.rating_service import rate_query
from medverify.services.verification_service import verify_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/queries", tags=["queries"])


@router.post("", response_model=SubmitQueryResponse)
async def create_query(
    body: SubmitQueryRequest,
    session: AsyncSession = Depends(get_session),
    generator: AnswerGenerator = Depends(get_answer_generator),
) -> SubmitQueryResponse:
    history = body.history
    if (
        history is None
        and body.user_id
        and body.question.strip()
        and generator.configured
    ):
        try:
            history = await get_conversation_context(session, body.user_id)
        except StorageError:
            logger.warning(
                "Could not load history for %s, sending none", body.user_id
            )
            history = []
    try:
        return await submit_query(
            session, generator, body.question, body.user_id, history
        )
    except PortalError as e:
        logger.warning("Query submission failed: %s (%s)", e.code, e.message)
        raise e.to_http()


@router.get("", response_model=list[QueryResponse])
async def list_user_queries(
    user_id: str,
    session: AsyncSession = Depends(get_session),
) -> list[QueryResponse]:
    try:
        queries = await list_by_user(session, user_id)
    except PortalError as e:
        raise e.to_http()
    return [QueryResponse.model_validate(q) for q in queries]


@router.get("/pending", response_model=list[QueryResponse])
async def list_pending_queries(
    session: AsyncSession = Depends(get_session),
) -> list[QueryResponse]:
    try:
        queries = await list_pending(session)
    except PortalError as e:
        raise e.to_http()
    return [QueryResponse.model_validate(q) for q in queries]


@router.get("/{query_id}", response_model=QueryResponse)
async def read_query(
    query_id: int,
    session: AsyncSession = Depends(get_session),
) -> QueryResponse:
    try:
        return QueryResponse.model_validate(await get_query(session, query_id))
    except PortalError as e:
        raise e.to_http()


@router.post("/{query_id}/verify", response_model=QueryResponse)
async def verify(
    query_id: int,
    body: VerifyRequest,
    session: AsyncSession = Depends(get_session),
) -> QueryResponse:
    try:
        query = await verify_query(
            session, query_id, body.answer, body.clinician_id, body.clinician_name
        )
    except PortalError as e:
        logger.warning("Verification of query %d failed: %s", query_id, e.code)
        raise e.to_http()
    return QueryResponse.model_validate(query)


@router.post("/{query_id}/rating", response_model=RateResponse)
async def rate(
    query_id: int,
    body: RateRequest,
    session: AsyncSession = Depends(get_session),
) -> RateResponse:
    try:
        return await rate_query(session, query_id, body.rating, body.clinician_id)
    except PortalError as e:
        logger.warning("Rating of query %d failed: %s", query_id, e.code)
        raise e.to_http()
