"""Clinician verification of pending queries."""

from __future__ import annotations

import datetime
import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medverify.errors import AlreadyVerifiedError, InputError, StorageError
from medverify.models.orm import Query
from medverify.services.query_service import get_query

logger = logging.getLogger(__name__)


async def verify_query(
    session: AsyncSession,
    query_id: int,
    answer: str,
    clinician_id: str | None,
    clinician_name: str | None,
) -> Query:
    """Mark a pending query verified, recording the clinician and final answer.

    The update only applies while the query is still pending, so a second
    clinician cannot overwrite an earlier verification.
    """
    if not (clinician_id and clinician_id.strip()) or not (
        clinician_name and clinician_name.strip()
    ):
        raise InputError("Clinician information is missing")
    if not answer or not answer.strip():
        raise InputError("Answer is required")

    stmt = (
        update(Query)
        .where(Query.id == query_id, Query.verified.is_(False))
        .values(
            verified=True,
            clinician_id=clinician_id,
            clinician_name=clinician_name,
            answer=answer,
            verified_at=datetime.datetime.now(datetime.UTC),
        )
        .execution_options(synchronize_session=False)
    )
    try:
        result = await session.execute(stmt)
        updated = result.rowcount
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Verification of query %d failed", query_id)
        raise StorageError(f"Failed to verify query {query_id}, please retry") from e

    if updated == 0:
        # Raises QueryNotFoundError when the id does not exist.
        existing = await get_query(session, query_id)
        logger.warning(
            "Query %d already verified by %s, rejecting %s",
            query_id,
            existing.clinician_id,
            clinician_id,
        )
        raise AlreadyVerifiedError(
            f"Query {query_id} was already verified by {existing.clinician_name}",
            details={"clinician_id": existing.clinician_id},
        )

    logger.info("Query %d verified by clinician %s", query_id, clinician_id)
    return await get_query(session, query_id)
