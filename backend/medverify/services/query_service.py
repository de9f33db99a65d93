"""Query submission and read views."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medverify.errors import InputError, QueryNotFoundError, StorageError
from medverify.models.orm import Query
from medverify.models.schemas import PriorExchange, SubmitQueryResponse
from medverify.services.generation_service import MAX_HISTORY, AnswerGenerator

logger = logging.getLogger(__name__)

STORAGE_WARNING = (
    "Your question was answered, but we couldn't save it. Please try again."
)


async def submit_query(
    session: AsyncSession,
    generator: AnswerGenerator,
    question: str,
    user_id: str | None = None,
    history: Sequence[PriorExchange] | None = None,
) -> SubmitQueryResponse:
    """Generate a draft answer and store the question as pending.

    A storage failure does not fail the call: the answer is still returned
    with a warning.
    """
    if not question or not question.strip():
        raise InputError("Query is required")
    generator.ensure_configured()

    answer = await generator.generate(question, history)

    query = Query(
        question=question,
        answer=answer,
        user_id=user_id or None,
        verified=False,
        clinician_id=None,
        clinician_name=None,
        rating=None,
    )
    try:
        session.add(query)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to store query for user %s", user_id)
        return SubmitQueryResponse(answer=answer, warning=STORAGE_WARNING)

    logger.info("Stored pending query %d for user %s", query.id, user_id)
    return SubmitQueryResponse(answer=answer, query_id=query.id)


async def _fetch(session: AsyncSession, stmt) -> Sequence[Query]:
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as e:
        logger.exception("Query listing failed")
        raise StorageError("Failed to load queries") from e
    return result.scalars().all()


def _newest_first(stmt):
    return stmt.order_by(Query.timestamp.desc(), Query.id.desc())


async def list_pending(session: AsyncSession) -> Sequence[Query]:
    """All unverified queries, visible to every clinician."""
    stmt = select(Query).where(Query.verified.is_(False))
    return await _fetch(session, _newest_first(stmt))


async def list_verified_by(session: AsyncSession, clinician_id: str) -> Sequence[Query]:
    stmt = select(Query).where(
        Query.clinician_id == clinician_id, Query.verified.is_(True)
    )
    return await _fetch(session, _newest_first(stmt))


async def list_by_user(
    session: AsyncSession, user_id: str, limit: int | None = None
) -> Sequence[Query]:
    stmt = _newest_first(select(Query).where(Query.user_id == user_id))
    if limit is not None:
        stmt = stmt.limit(limit)
    return await _fetch(session, stmt)


async def get_query(session: AsyncSession, query_id: int) -> Query:
    try:
        result = await session.execute(
            select(Query)
            .where(Query.id == query_id)
            .execution_options(populate_existing=True)
        )
    except SQLAlchemyError as e:
        logger.exception("Loading query %d failed", query_id)
        raise StorageError(f"Failed to load query {query_id}") from e
    query = result.scalar_one_or_none()
    if query is None:
        raise QueryNotFoundError(query_id)
    return query


async def get_conversation_context(
    session: AsyncSession, user_id: str
) -> list[PriorExchange]:
    """Most recent prior exchanges for a patient, most-recent-first."""
    queries = await list_by_user(session, user_id, limit=MAX_HISTORY)
    return [PriorExchange(question=q.question, answer=q.answer) for q in queries]
