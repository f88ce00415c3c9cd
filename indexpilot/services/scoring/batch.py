"""
Ad-hoc batch scoring runs.

A ScoreRun scores an arbitrary list of tickers sequentially. The run is
``complete`` when every ticker produced a score and ``failed`` otherwise.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from indexpilot.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from indexpilot.core.logging import get_logger, run_id_var
from indexpilot.database.orm import Score, ScoreRun
from indexpilot.domain.scoring import BatchStatus, ScoreSnapshot
from indexpilot.domain.states import RunStatus, ensure_run_transition
from indexpilot.repositories.score_runs_orm import ScoreRunRepository
from indexpilot.repositories.scores_orm import ScoreRepository
from indexpilot.services.scoring.service import ScoringService

logger = get_logger("scoring.batch")


def normalize_tickers(tickers: Iterable[str]) -> list[str]:
    """Upper-case, strip and de-duplicate tickers, keeping first-seen order."""
    seen: dict[str, None] = {}
    for ticker in tickers:
        cleaned = ticker.strip().upper()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class ScoreBatchService:
    def __init__(
        self,
        runs: ScoreRunRepository,
        scores: ScoreRepository,
        scoring: ScoringService,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._runs = runs
        self._scores = scores
        self._scoring = scoring
        self._clock = clock

    async def create_batch(
        self, tickers: Iterable[str], run_id: Optional[uuid.UUID] = None
    ) -> ScoreRun:
        """Register a pending run for ``tickers``."""
        normalized = normalize_tickers(tickers)
        if not normalized:
            raise ValidationError(message="A batch needs at least one ticker")

        run = await self._runs.create(
            total=len(normalized),
            params={"tickers": normalized},
            run_id=run_id,
        )
        logger.info(f"Created score run {run.id} for {len(normalized)} tickers")
        return run

    async def _require_run(self, run_id: uuid.UUID) -> ScoreRun:
        run = await self._runs.get(run_id)
        if run is None:
            raise NotFoundError(message=f"Score run {run_id} not found")
        return run

    async def _transition(self, run: ScoreRun, target: RunStatus, **fields) -> ScoreRun:
        ensure_run_transition(run.status, target)
        updated = await self._runs.transition(run.id, run.status, target, **fields)
        if updated is None:
            latest = await self._require_run(run.id)
            raise InvalidTransitionError("score run", latest.status, target)
        return updated

    async def process_batch(self, run_id: uuid.UUID) -> ScoreRun:
        """Score every ticker of a pending run and record the outcome."""
        run = await self._require_run(run_id)
        tickers = list(run.params.get("tickers", []))
        run = await self._transition(run, RunStatus.RUNNING)

        token = run_id_var.set(str(run_id))
        try:
            for ticker in tickers:
                try:
                    await self._scoring.score_security(ticker, run_id)
                except Exception as e:
                    logger.exception(f"Error scoring {ticker} in run {run_id}: {e}")

            completed = await self._scores.count_for_run(run_id)
            target = RunStatus.COMPLETE if completed == run.total else RunStatus.FAILED
            run = await self._transition(
                run,
                target,
                completed=completed,
                completed_at=self._clock(),
            )
            logger.info(
                f"Score run {run_id} finished {target.value}: {completed}/{run.total} scored"
            )
            return run
        finally:
            run_id_var.reset(token)

    async def get_batch_status(self, run_id: uuid.UUID) -> BatchStatus:
        run = await self._require_run(run_id)
        scores = await self._scores.list_for_run(run_id)
        return BatchStatus(
            run_id=run.id,
            status=run.status,
            total=run.total,
            completed=len(scores),
            started_at=run.started_at,
            completed_at=run.completed_at,
            scores=[ScoreSnapshot.model_validate(score) for score in scores],
        )

    async def get_ticker_score(self, ticker: str) -> Score:
        """Latest score recorded for ``ticker`` in any run."""
        score = await self._scores.latest_for_ticker(ticker.strip().upper())
        if score is None:
            raise NotFoundError(message=f"No score found for {ticker}")
        return score
