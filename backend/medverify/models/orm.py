"""SQLAlchemy ORM models."""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Query(Base):
    """A patient question with its current answer and review state."""

    __tablename__ = "queries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)
    user_id: Mapped[str | None] = mapped_column(String(128), index=True, default=None)
    verified: Mapped[bool] = mapped_column(default=False, index=True)
    clinician_id: Mapped[str | None] = mapped_column(
        String(128), index=True, default=None
    )
    # Snapshot of the display name at verification time; not kept in sync
    # with later profile edits.
    clinician_name: Mapped[str | None] = mapped_column(String(200), default=None)
    # 1 = helpful, 0 = not helpful, NULL = no feedback yet
    rating: Mapped[int | None] = mapped_column(default=None)
    timestamp: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    verified_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )


class ClinicianProfile(Base):
    __tablename__ = "clinician_details"

    clinician_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200))
    specialization: Mapped[str] = mapped_column(String(200))
    license_number: Mapped[str | None] = mapped_column(String(100), default=None)
    hospital: Mapped[str | None] = mapped_column(String(200), default=None)
    years_of_experience: Mapped[int | None] = mapped_column(default=None)
    rating: Mapped[float] = mapped_column(default=5.0)
    verified_responses: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
