"""Pytest configuration, in-memory repositories and factories."""

from __future__ import annotations

import json
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from indexpilot.database.orm import (
    ConstituentScore,
    CustomIndex,
    IndexScoreRun,
    Score,
    ScoreRun,
    Signature,
)
from indexpilot.domain.market import EnrichedInput, NewsArticle, PriceBar
from indexpilot.domain.states import ConstituentState, Direction, RunStatus
from indexpilot.services.oracle.schemas import ScoringResult


NOW = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


# =============================================================================
# FACTORIES
# =============================================================================


def scoring_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "score": 0.65,
        "confidence": 0.8,
        "direction": "up",
        "rationale": {
            "summary": "Earnings beat with rising volume.",
            "factors": ["earnings beat", "volume above average"],
            "sentiment": "positive",
        },
        "risks": {"market": "Rate volatility", "specific": "Supply chain"},
        "horizon_days": 30,
    }
    payload.update(overrides)
    return payload


def scoring_json(**overrides: Any) -> str:
    return json.dumps(scoring_payload(**overrides))


def make_result(**overrides: Any) -> ScoringResult:
    return ScoringResult.model_validate_json(scoring_json(**overrides))


def make_bars(closes: list[float], start: datetime = NOW, volume: int = 1_000) -> list[PriceBar]:
    """Daily bars, most recent first, one per close."""
    return [
        PriceBar(
            ts=start - timedelta(days=i),
            open=close,
            high=close + 1,
            low=max(close - 1, 0),
            close=close,
            volume=volume,
        )
        for i, close in enumerate(closes)
    ]


def make_article(title: str = "Company beats earnings", url: str = "https://news.example/a", **kwargs) -> NewsArticle:
    return NewsArticle(
        title=title,
        url=url,
        summary=kwargs.pop("summary", "Quarterly results ahead of estimates."),
        source=kwargs.pop("source", "Reuters"),
        ts=kwargs.pop("ts", NOW - timedelta(hours=2)),
        relevance_score=kwargs.pop("relevance_score", 1.5),
    )


def make_enriched(ticker: str = "AAPL", closes: Optional[list[float]] = None, news=None) -> EnrichedInput:
    return EnrichedInput(
        ticker=ticker,
        prices=make_bars(closes if closes is not None else [101.0, 100.0, 99.0]),
        news=news if news is not None else [make_article()],
    )


def make_constituent_score(
    ticker: str,
    sector: Optional[str],
    score: float,
    state: ConstituentState = ConstituentState.APPROVED,
    effective_date: date = date(2025, 1, 2),
) -> ConstituentScore:
    return ConstituentScore(
        id=uuid.uuid4(),
        index_run_id=uuid.uuid4(),
        index_id="TEST",
        ticker=ticker,
        sector=sector,
        effective_date=effective_date,
        score=score,
        confidence=0.7,
        direction=Direction.FLAT,
        news_sentiment=None,
        state=state,
    )


# =============================================================================
# IN-MEMORY REPOSITORIES
# =============================================================================


class FakeSecurityRepository:
    def __init__(self):
        self.tickers: list[str] = []

    async def ensure_exists(self, ticker: str) -> None:
        if ticker not in self.tickers:
            self.tickers.append(ticker)


class FakeScoreRepository:
    def __init__(self):
        self.rows: list[Score] = []

    async def create(self, **fields: Any) -> Score:
        if any(r.ticker == fields["ticker"] and r.run_id == fields["run_id"] for r in self.rows):
            raise RuntimeError("duplicate key value violates unique constraint uq_scores_ticker_run")
        row = Score(id=uuid.uuid4(), **fields)
        self.rows.append(row)
        return row

    async def find_latest_by_hash(self, ticker: str, input_hash: str) -> Optional[Score]:
        matches = [r for r in self.rows if r.ticker == ticker and r.input_hash == input_hash]
        return max(matches, key=lambda r: r.ts, default=None)

    async def latest_for_ticker(self, ticker: str) -> Optional[Score]:
        matches = [r for r in self.rows if r.ticker == ticker]
        return max(matches, key=lambda r: r.ts, default=None)

    async def list_for_run(self, run_id: uuid.UUID) -> list[Score]:
        return sorted((r for r in self.rows if r.run_id == run_id), key=lambda r: r.ticker)

    async def count_for_run(self, run_id: uuid.UUID) -> int:
        return len(await self.list_for_run(run_id))


class FakeScoreRunRepository:
    def __init__(self):
        self.runs: dict[uuid.UUID, ScoreRun] = {}

    async def create(self, *, total: int, params: dict, run_id: Optional[uuid.UUID] = None) -> ScoreRun:
        run = ScoreRun(
            id=run_id or uuid.uuid4(),
            started_at=NOW,
            total=total,
            completed=0,
            status=RunStatus.PENDING,
            params=params,
        )
        self.runs[run.id] = run
        return run

    async def get(self, run_id: uuid.UUID) -> Optional[ScoreRun]:
        return self.runs.get(run_id)

    async def transition(self, run_id, current, target, *, completed=None, completed_at=None):
        run = self.runs.get(run_id)
        if run is None or run.status != current:
            return None
        run.status = target
        if completed is not None:
            run.completed = completed
        if completed_at is not None:
            run.completed_at = completed_at
        return run


class FakeIndexRunRepository:
    def __init__(self):
        self.runs: dict[uuid.UUID, IndexScoreRun] = {}
        self.history: list[tuple[RunStatus, RunStatus]] = []

    async def create(self, *, index_id: str, effective_date: date, run_id: Optional[uuid.UUID] = None) -> IndexScoreRun:
        run = IndexScoreRun(
            id=run_id or uuid.uuid4(),
            index_id=index_id,
            effective_date=effective_date,
            status=RunStatus.PENDING,
        )
        self.runs[run.id] = run
        return run

    async def get(self, run_id: uuid.UUID) -> Optional[IndexScoreRun]:
        return self.runs.get(run_id)

    async def transition(self, run_id, current, target, *, completed_at=None):
        run = self.runs.get(run_id)
        if run is None or run.status != current:
            return None
        self.history.append((current, target))
        run.status = target
        if completed_at is not None:
            run.completed_at = completed_at
        return run


class FakeConstituentScoreRepository:
    def __init__(self, rows: Optional[list[ConstituentScore]] = None):
        self.rows: list[ConstituentScore] = list(rows or [])

    async def create(self, **fields: Any) -> ConstituentScore:
        row = ConstituentScore(id=uuid.uuid4(), state=ConstituentState.PENDING, **fields)
        self.rows.append(row)
        return row

    async def get(self, score_id: uuid.UUID) -> Optional[ConstituentScore]:
        return next((r for r in self.rows if r.id == score_id), None)

    async def list_by_effective_date(self, effective_date, state=None) -> list[ConstituentScore]:
        return sorted(
            (
                r for r in self.rows
                if r.effective_date == effective_date and (state is None or r.state == state)
            ),
            key=lambda r: r.ticker,
        )

    async def list_for_run(self, index_run_id: uuid.UUID) -> list[ConstituentScore]:
        return [r for r in self.rows if r.index_run_id == index_run_id]

    async def latest_effective_date(self) -> Optional[date]:
        return max((r.effective_date for r in self.rows), default=None)

    async def transition(self, score_id, current, target, *, approved_by, approved_at, comments=None):
        row = await self.get(score_id)
        if row is None or row.state != current:
            return None
        row.state = target
        row.approved_by = approved_by
        row.approved_at = approved_at
        row.comments = comments
        return row


class FakeSignatureRepository:
    def __init__(self):
        self.rows: dict[uuid.UUID, Signature] = {}

    async def create(self, *, name, composition, created_by, description=None) -> Signature:
        signature = Signature(
            id=uuid.uuid4(),
            name=name,
            description=description,
            composition=composition,
            created_by=created_by,
            created_at=NOW,
        )
        self.rows[signature.id] = signature
        return signature

    async def get(self, signature_id: uuid.UUID) -> Optional[Signature]:
        return self.rows.get(signature_id)

    async def list_all(self) -> list[Signature]:
        return list(self.rows.values())


class FakeCustomIndexRepository:
    def __init__(self):
        self.rows: dict[uuid.UUID, CustomIndex] = {}

    async def create(self, *, signature_id, name, sectors_used, constituents_selected) -> CustomIndex:
        index = CustomIndex(
            id=uuid.uuid4(),
            signature_id=signature_id,
            name=name,
            sectors_used=sectors_used,
            constituents_selected=constituents_selected,
            created_at=NOW,
        )
        self.rows[index.id] = index
        return index

    async def get(self, index_id: uuid.UUID) -> Optional[CustomIndex]:
        return self.rows.get(index_id)

    async def list_all(self, signature_id=None) -> list[CustomIndex]:
        return [i for i in self.rows.values() if signature_id is None or i.signature_id == signature_id]


class FakeEnrichment:
    """Returns canned EnrichedInput per ticker; raises for tickers in ``failing``."""

    def __init__(self, inputs: Optional[dict[str, EnrichedInput]] = None, failing: Optional[set[str]] = None):
        self.inputs = inputs or {}
        self.failing = failing or set()
        self.calls: list[str] = []

    async def enrich(self, ticker: str) -> EnrichedInput:
        self.calls.append(ticker)
        if ticker in self.failing:
            raise RuntimeError(f"enrichment unavailable for {ticker}")
        return self.inputs.get(ticker) or make_enriched(ticker)


class FakeOracle:
    """Scoring oracle returning a fixed result and counting calls."""

    def __init__(self, result: Optional[ScoringResult] = None, model: str = "test-model"):
        self.result = result or make_result()
        self.model = model
        self.prompts: list[str] = []

    async def score(self, prompt: str) -> ScoringResult:
        self.prompts.append(prompt)
        return self.result


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def score_repo() -> FakeScoreRepository:
    return FakeScoreRepository()


@pytest.fixture
def security_repo() -> FakeSecurityRepository:
    return FakeSecurityRepository()


@pytest.fixture
def constituent_repo() -> FakeConstituentScoreRepository:
    return FakeConstituentScoreRepository()


@pytest.fixture
def index_run_repo() -> FakeIndexRunRepository:
    return FakeIndexRunRepository()


@pytest.fixture
def score_run_repo() -> FakeScoreRunRepository:
    return FakeScoreRunRepository()


@pytest.fixture
def signature_repo() -> FakeSignatureRepository:
    return FakeSignatureRepository()


@pytest.fixture
def custom_index_repo() -> FakeCustomIndexRepository:
    return FakeCustomIndexRepository()
