"""SQLAlchemy ORM models for IndexPilot.

This module defines all database tables using SQLAlchemy 2.0 ORM style.
Uses async support via asyncpg driver.

Usage:
    from indexpilot.database.orm import ConstituentScore

    async with database.session() as session:
        score = await session.get(ConstituentScore, score_id)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import (
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from indexpilot.domain.states import ConstituentState, Direction, RunStatus


# Naming convention for constraints and indexes (deterministic names for migrations)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _enum(enum_cls: type, name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=16,
        values_callable=lambda members: [m.value for m in members],
    )


# =============================================================================
# SECURITIES & SCORES
# =============================================================================


class Security(Base):
    """Tradable instrument known to the scoring pipeline."""
    __tablename__ = "securities"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticker: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    sector: Mapped[Optional[str]] = mapped_column(String(100))
    industry: Mapped[Optional[str]] = mapped_column(String(100))
    lot_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ScoreRun(Base):
    """Ad-hoc batch scoring run over a list of tickers."""
    __tablename__ = "score_runs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[RunStatus] = mapped_column(
        _enum(RunStatus, "run_status"), nullable=False, default=RunStatus.PENDING
    )
    params: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)


class Score(Base):
    """One oracle score for a ticker within a run.

    ``run_id`` is either a ScoreRun id or an IndexScoreRun id, so it carries
    no foreign key.
    """
    __tablename__ = "scores"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    ticker: Mapped[str] = mapped_column(String(20), nullable=False)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    direction: Mapped[Direction] = mapped_column(_enum(Direction, "direction"), nullable=False)
    horizon_days: Mapped[int] = mapped_column(Integer, nullable=False)
    rationale: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    risks: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    input_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        UniqueConstraint("ticker", "run_id", name="uq_scores_ticker_run"),
        Index("idx_scores_ticker_hash_ts", "ticker", "input_hash", "ts"),
        Index("idx_scores_run", "run_id"),
    )


# =============================================================================
# INDEX RUNS & APPROVAL
# =============================================================================


class IndexScoreRun(Base):
    """Scoring of every constituent of one index for one effective date."""
    __tablename__ = "index_score_runs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    index_id: Mapped[str] = mapped_column(String(50), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[RunStatus] = mapped_column(
        _enum(RunStatus, "run_status"), nullable=False, default=RunStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    constituent_scores: Mapped[list[ConstituentScore]] = relationship(
        back_populates="index_run", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_index_runs_index_date", "index_id", "effective_date"),
    )


class ConstituentScore(Base):
    """Score of one index constituent awaiting human review."""
    __tablename__ = "constituent_scores"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    index_run_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("index_score_runs.id", ondelete="CASCADE"), nullable=False
    )
    index_id: Mapped[str] = mapped_column(String(50), nullable=False)
    ticker: Mapped[str] = mapped_column(String(20), nullable=False)
    sector: Mapped[Optional[str]] = mapped_column(String(100))
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    direction: Mapped[Direction] = mapped_column(_enum(Direction, "direction"), nullable=False)
    news_sentiment: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB)
    state: Mapped[ConstituentState] = mapped_column(
        _enum(ConstituentState, "constituent_state"),
        nullable=False,
        default=ConstituentState.PENDING,
    )
    approved_by: Mapped[Optional[str]] = mapped_column(String(255))
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    comments: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    index_run: Mapped[IndexScoreRun] = relationship(back_populates="constituent_scores")

    __table_args__ = (
        Index("idx_constituent_scores_date_state", "effective_date", "state"),
        Index("idx_constituent_scores_run", "index_run_id"),
    )


# =============================================================================
# SIGNATURES & CUSTOM INDEXES
# =============================================================================


class Signature(Base):
    """Named sector allocation used to build custom indexes."""
    __tablename__ = "signatures"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    composition: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)  # [{sector, percentage}]
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    custom_indexes: Mapped[list[CustomIndex]] = relationship(back_populates="signature")


class CustomIndex(Base):
    """Immutable selection of approved constituents for a signature."""
    __tablename__ = "custom_indexes"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    signature_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("signatures.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sectors_used: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    constituents_selected: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    signature: Mapped[Signature] = relationship(back_populates="custom_indexes")

    __table_args__ = (
        Index("idx_custom_indexes_signature", "signature_id"),
    )
