"""Patient ratings and clinician reputation scores."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medverify.errors import (
    AlreadyRatedError,
    ClinicianNotFoundError,
    InputError,
    QueryNotVerifiedError,
    ScoreRecomputeError,
    StorageError,
)
from medverify.models.orm import ClinicianProfile, Query
from medverify.models.schemas import ClinicianScore, RateResponse
from medverify.services.query_service import get_query

logger = logging.getLogger(__name__)

HELPFUL = 1
NOT_HELPFUL = 0
DEFAULT_SCORE = 5.0


def compute_reputation_score(positive: int, total_rated: int) -> float:
    """Map the helpful ratio onto the 1.0 to 5.0 display scale."""
    if total_rated == 0:
        return DEFAULT_SCORE
    return 1.0 + (positive / total_rated) * 4.0


async def recompute_clinician_rating(
    session: AsyncSession, clinician_id: str
) -> ClinicianScore:
    """Rebuild a clinician's score from all of their verified queries.

    Safe to re-run at any time; the result depends only on stored queries.
    """
    try:
        result = await session.execute(
            select(Query.rating).where(
                Query.clinician_id == clinician_id, Query.verified.is_(True)
            )
        )
        ratings = result.scalars().all()
    except SQLAlchemyError as e:
        logger.exception("Loading ratings for clinician %s failed", clinician_id)
        raise StorageError(f"Failed to load ratings for {clinician_id}") from e

    rated = [r for r in ratings if r is not None]
    positive = sum(1 for r in rated if r == HELPFUL)
    score = compute_reputation_score(positive, len(rated))

    try:
        result = await session.execute(
            update(ClinicianProfile)
            .where(ClinicianProfile.clinician_id == clinician_id)
            .values(rating=score, verified_responses=len(ratings))
            .execution_options(synchronize_session=False)
        )
        updated = result.rowcount
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Saving score for clinician %s failed", clinician_id)
        raise StorageError(f"Failed to save score for {clinician_id}") from e

    if updated == 0:
        raise ClinicianNotFoundError(clinician_id)

    logger.info(
        "Clinician %s score=%.2f (%d/%d helpful, %d verified)",
        clinician_id,
        score,
        positive,
        len(rated),
        len(ratings),
    )
    return ClinicianScore(
        clinician_id=clinician_id,
        rating=score,
        verified_responses=len(ratings),
        total_rated=len(rated),
        positive=positive,
    )


async def rate_query(
    session: AsyncSession,
    query_id: int,
    rating: int,
    clinician_id: str | None = None,
) -> RateResponse:
    """Record a patient's one-time rating and refresh the clinician's score."""
    if rating not in (HELPFUL, NOT_HELPFUL):
        raise InputError("Rating must be 1 (helpful) or 0 (not helpful)")

    query = await get_query(session, query_id)
    if not query.verified:
        raise QueryNotVerifiedError(f"Query {query_id} has not been verified yet")
    if query.rating is not None:
        raise AlreadyRatedError(f"Query {query_id} has already been rated")

    owner = query.clinician_id
    if clinician_id and clinician_id != owner:
        logger.warning(
            "Rating for query %d named clinician %s, query belongs to %s",
            query_id,
            clinician_id,
            owner,
        )

    try:
        result = await session.execute(
            update(Query)
            .where(
                Query.id == query_id,
                Query.verified.is_(True),
                Query.rating.is_(None),
            )
            .values(rating=rating)
            .execution_options(synchronize_session=False)
        )
        updated = result.rowcount
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Saving rating for query %d failed", query_id)
        raise StorageError(f"Failed to save rating for query {query_id}") from e

    if updated == 0:
        raise AlreadyRatedError(f"Query {query_id} has already been rated")
    logger.info("Query %d rated %d", query_id, rating)

    clinician_rating = None
    if owner:
        try:
            score = await recompute_clinician_rating(session, owner)
            clinician_rating = score.rating
        except ClinicianNotFoundError:
            logger.warning("No profile for clinician %s, score not updated", owner)
        except StorageError as e:
            raise ScoreRecomputeError(
                "Rating recorded, but the clinician score could not be updated",
                details={"query_id": query_id, "rating_recorded": True},
            ) from e

    return RateResponse(
        query_id=query_id,
        rating=rating,
        clinician_id=owner,
        clinician_rating=clinician_rating,
    )
