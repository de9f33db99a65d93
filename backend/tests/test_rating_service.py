"""Unit tests for ratings and reputation scores."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from medverify.errors import (
    AlreadyRatedError,
    ClinicianNotFoundError,
    InputError,
    QueryNotVerifiedError,
    ScoreRecomputeError,
    StorageError,
)
from medverify.services.rating_service import (
    compute_reputation_score,
    rate_query,
    recompute_clinician_rating,
)


async def _verified(make_query, clinician_id: str = "clin-lee", rating=None):
    return await make_query(
        verified=True,
        clinician_id=clinician_id,
        clinician_name="Dr. Lee",
        rating=rating,
    )


# --- Score formula ---


@pytest.mark.parametrize(
    ("positive", "total", "expected"),
    [
        (0, 0, 5.0),
        (0, 3, 1.0),
        (3, 3, 5.0),
        (3, 4, 4.0),
        (1, 2, 3.0),
        (1, 4, 2.0),
    ],
)
def test_compute_reputation_score(positive: int, total: int, expected: float) -> None:
    assert compute_reputation_score(positive, total) == expected


def test_score_is_monotonic_in_helpful_ratio() -> None:
    scores = [compute_reputation_score(p, 10) for p in range(11)]
    assert scores == sorted(scores)
    assert scores[0] == 1.0
    assert scores[-1] == 5.0


# --- Recompute ---


class TestRecompute:
    async def test_no_ratings_gives_default(
        self, session, seed_clinician, make_query, fetch_profile
    ) -> None:
        await _verified(make_query)
        await _verified(make_query)

        score = await recompute_clinician_rating(session, "clin-lee")

        assert score.rating == 5.0
        assert score.total_rated == 0
        assert score.verified_responses == 2
        profile = await fetch_profile("clin-lee")
        assert profile.rating == 5.0
        assert profile.verified_responses == 2

    async def test_counts_all_verified_but_scores_rated_only(
        self, session, seed_clinician, make_query, fetch_profile
    ) -> None:
        for rating in (1, 1, 1, 0, None):
            await _verified(make_query, rating=rating)
        # Pending and other clinicians' queries are ignored
        await make_query()
        await _verified(make_query, clinician_id="clin-okafor", rating=0)

        score = await recompute_clinician_rating(session, "clin-lee")

        assert score.positive == 3
        assert score.total_rated == 4
        assert score.rating == 4.0
        profile = await fetch_profile("clin-lee")
        assert profile.rating == 4.0
        assert profile.verified_responses == 5

    async def test_is_idempotent(self, session, seed_clinician, make_query) -> None:
        await _verified(make_query, rating=1)
        await _verified(make_query, rating=0)
        await _verified(make_query, rating=0)

        first = await recompute_clinician_rating(session, "clin-lee")
        second = await recompute_clinician_rating(session, "clin-lee")

        assert first == second
        assert first.rating == pytest.approx(1.0 + (1 / 3) * 4.0)

    async def test_unknown_clinician(self, session) -> None:
        with pytest.raises(ClinicianNotFoundError):
            await recompute_clinician_rating(session, "clin-nobody")


# --- Rating ---


class TestRateQuery:
    async def test_rate_verified_query(
        self, session, verified_query, fetch_query, fetch_profile
    ) -> None:
        result = await rate_query(session, verified_query.id, 1)

        assert result.rating == 1
        assert result.clinician_id == "clin-lee"
        assert result.clinician_rating == 5.0
        stored = await fetch_query(verified_query.id)
        assert stored.rating == 1
        profile = await fetch_profile("clin-lee")
        assert profile.verified_responses == 1

    async def test_unhelpful_rating_lowers_score(
        self, session, verified_query, fetch_profile
    ) -> None:
        result = await rate_query(session, verified_query.id, 0)

        assert result.clinician_rating == 1.0
        profile = await fetch_profile("clin-lee")
        assert profile.rating == 1.0

    async def test_rate_pending_query_rejected(
        self, session, pending_query, fetch_query
    ) -> None:
        with pytest.raises(QueryNotVerifiedError):
            await rate_query(session, pending_query.id, 1)

        stored = await fetch_query(pending_query.id)
        assert stored.rating is None

    async def test_rate_twice_rejected(
        self, session, verified_query, fetch_query
    ) -> None:
        await rate_query(session, verified_query.id, 1)

        with pytest.raises(AlreadyRatedError):
            await rate_query(session, verified_query.id, 0)

        stored = await fetch_query(verified_query.id)
        assert stored.rating == 1

    async def test_invalid_rating_value(self, session, verified_query) -> None:
        with pytest.raises(InputError):
            await rate_query(session, verified_query.id, 5)

    async def test_stored_clinician_is_authoritative(
        self, session, verified_query
    ) -> None:
        result = await rate_query(session, verified_query.id, 1, "clin-someone-else")

        assert result.clinician_id == "clin-lee"

    async def test_clinician_without_profile(
        self, session, make_query, fetch_query
    ) -> None:
        query = await _verified(make_query, clinician_id="clin-unregistered")

        result = await rate_query(session, query.id, 1)

        assert result.clinician_rating is None
        stored = await fetch_query(query.id)
        assert stored.rating == 1

    async def test_rating_storage_failure_leaves_rating_unset(
        self, session, verified_query, fetch_query, fetch_profile, mocker
    ) -> None:
        mocker.patch.object(
            session,
            "commit",
            side_effect=OperationalError(
                "UPDATE", {}, Exception("database is locked")
            ),
        )

        with pytest.raises(StorageError):
            await rate_query(session, verified_query.id, 1)

        stored = await fetch_query(verified_query.id)
        assert stored.rating is None
        profile = await fetch_profile("clin-lee")
        assert profile.verified_responses == 0

    async def test_recompute_failure_keeps_rating(
        self, session, verified_query, fetch_query, mocker
    ) -> None:
        mocker.patch(
            "medverify.services.rating_service.recompute_clinician_rating",
            new_callable=AsyncMock,
            side_effect=StorageError("Failed to save score"),
        )

        with pytest.raises(ScoreRecomputeError) as exc_info:
            await rate_query(session, verified_query.id, 1)

        assert exc_info.value.details["rating_recorded"] is True
        stored = await fetch_query(verified_query.id)
        assert stored.rating == 1
