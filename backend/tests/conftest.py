"""Test fixtures and configuration."""

from __future__ import annotations

import datetime
from collections.abc import AsyncIterator, Iterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from medverify.database import get_session
from medverify.main import app
from medverify.models.orm import Base, ClinicianProfile, Query
from medverify.services.generation_service import AnswerGenerator, get_answer_generator

test_engine = create_async_engine("sqlite+aiosqlite://", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

GENERATED_ANSWER = (
    "A normal resting heart rate for adults is between 60 and 100 beats per minute."
)


async def override_get_session() -> AsyncIterator[AsyncSession]:
    async with test_session_factory() as session:
        yield session


app.dependency_overrides[get_session] = override_get_session


def text_response(text: str) -> SimpleNamespace:
    """Minimal stand-in for an Anthropic Messages API response."""
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


@pytest.fixture(autouse=True)
async def setup_database() -> AsyncIterator[None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session() -> AsyncIterator[AsyncSession]:
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_llm() -> MagicMock:
    llm = MagicMock()
    llm.messages.create = AsyncMock(return_value=text_response(GENERATED_ANSWER))
    return llm


@pytest.fixture
def generator(fake_llm) -> Iterator[AnswerGenerator]:
    gen = AnswerGenerator(
        api_key="test-key",
        model="test-model",
        max_tokens=256,
        temperature=0.2,
        client=fake_llm,
    )
    app.dependency_overrides[get_answer_generator] = lambda: gen
    yield gen
    app.dependency_overrides.pop(get_answer_generator, None)


@pytest.fixture
async def client(generator) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _add_query(**fields) -> Query:
    """Insert a query directly, bypassing generation."""
    values = {
        "question": "What is a normal resting heart rate?",
        "answer": GENERATED_ANSWER,
        "user_id": "patient-1",
    }
    values.update(fields)
    async with test_session_factory() as session:
        query = Query(**values)
        session.add(query)
        await session.commit()
        await session.refresh(query)
        return query


async def _load_query(query_id: int) -> Query:
    async with test_session_factory() as session:
        return await session.get(Query, query_id)


async def _load_profile(clinician_id: str) -> ClinicianProfile:
    async with test_session_factory() as session:
        return await session.get(ClinicianProfile, clinician_id)


@pytest.fixture
async def seed_clinician() -> ClinicianProfile:
    async with test_session_factory() as session:
        profile = ClinicianProfile(
            clinician_id="clin-lee",
            full_name="Dr. Lee",
            specialization="Cardiology",
            license_number="MD-104233",
            hospital="St. Mary's General",
            years_of_experience=14,
        )
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        return profile


@pytest.fixture
async def pending_query() -> Query:
    return await _add_query()


@pytest.fixture
async def verified_query(seed_clinician) -> Query:
    return await _add_query(
        verified=True,
        clinician_id=seed_clinician.clinician_id,
        clinician_name=seed_clinician.full_name,
        verified_at=datetime.datetime(2024, 1, 15, 12, 0, tzinfo=datetime.UTC),
    )


@pytest.fixture
def make_query():
    return _add_query


@pytest.fixture
def fetch_query():
    return _load_query


@pytest.fixture
def fetch_profile():
    return _load_profile
