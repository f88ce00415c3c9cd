"""Typed results passed between scoring, approval and index services."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from indexpilot.domain.states import Direction, RunStatus, Sentiment

# Allowed distance of a composition total from 100
PERCENTAGE_TOLERANCE = 0.01


class NewsSentiment(BaseModel):
    """News digest stored alongside a constituent score."""

    summary: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL
    post_url: Optional[str] = None
    blog_url: Optional[str] = None


class ScoreSnapshot(BaseModel):
    """Read model of a persisted Score row."""

    id: UUID
    run_id: UUID
    ticker: str
    ts: datetime
    score: float
    confidence: float
    direction: Direction
    horizon_days: int
    rationale: dict
    risks: dict
    model: str
    input_hash: str

    model_config = {"from_attributes": True}


class IndexRunSummary(BaseModel):
    """Outcome of scoring every constituent of one index for one date."""

    index_run_id: UUID
    index_id: str
    effective_date: date
    status: RunStatus
    attempted: int = 0
    succeeded: int = 0
    failed_tickers: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_tickers)


class ApprovalSummary(BaseModel):
    """Constituent score counts by approval state for one effective date."""

    effective_date: date
    total_pending: int = 0
    approved: int = 0
    rejected: int = 0
    on_hold: int = 0

    @property
    def total(self) -> int:
        return self.total_pending + self.approved + self.rejected + self.on_hold


class BatchStatus(BaseModel):
    """Progress of an ad-hoc ScoreRun."""

    run_id: UUID
    status: RunStatus
    total: int
    completed: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    scores: list[ScoreSnapshot] = Field(default_factory=list)


class CompositionEntry(BaseModel):
    """One sector allocation inside a signature."""

    sector: str = Field(..., min_length=1, description="Sector name")
    percentage: float = Field(
        ..., ge=0, le=100 + PERCENTAGE_TOLERANCE, description="Share of the index"
    )

    @field_validator("sector")
    @classmethod
    def strip_sector(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("sector must not be blank")
        return stripped
