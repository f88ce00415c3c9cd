"""
Index scoring orchestrator.

Scores every constituent of an index for one effective date under a single
IndexScoreRun:

    pending -> running -> complete
    pending | running -> failed   (only when the orchestration itself breaks)

A constituent that fails to score is logged and left out of the run; it
never aborts the other constituents.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import date, datetime, timezone
from typing import Callable, Optional

from indexpilot.core.exceptions import InvalidTransitionError
from indexpilot.core.logging import get_logger, run_id_var
from indexpilot.domain.market import EnrichedInput, IndexConstituent
from indexpilot.domain.scoring import IndexRunSummary, NewsSentiment
from indexpilot.domain.states import RunStatus, Sentiment, ensure_run_transition, is_terminal_run
from indexpilot.repositories.constituent_scores_orm import ConstituentScoreRepository
from indexpilot.repositories.index_runs_orm import IndexRunRepository
from indexpilot.services.index.membership import IndexMembershipProvider
from indexpilot.services.scoring.service import ScoringService

logger = get_logger("index.orchestrator")


def normalize_sentiment(text: str | None) -> Sentiment:
    """Map free-text sentiment to positive, negative or neutral."""
    lowered = (text or "").lower()
    if "positive" in lowered:
        return Sentiment.POSITIVE
    if "negative" in lowered:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def extract_news_sentiment(
    enriched: EnrichedInput, rationale_sentiment: str | None
) -> Optional[NewsSentiment]:
    """Digest of the top two news articles plus the model's sentiment.

    Returns None when there is no news for the ticker.
    """
    if not enriched.news:
        return None

    top = enriched.news[0]
    second = enriched.news[1] if len(enriched.news) > 1 else None
    return NewsSentiment(
        summary=top.summary or top.title,
        sentiment=normalize_sentiment(rationale_sentiment),
        post_url=top.url or None,
        blog_url=(second.url or None) if second else None,
    )


class IndexRunOrchestrator:
    """Drives ScoringService across the constituents of an index."""

    def __init__(
        self,
        membership: IndexMembershipProvider,
        scoring: ScoringService,
        runs: IndexRunRepository,
        constituent_scores: ConstituentScoreRepository,
        max_concurrency: int = 4,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._membership = membership
        self._scoring = scoring
        self._runs = runs
        self._constituent_scores = constituent_scores
        self.max_concurrency = max(1, max_concurrency)
        self._clock = clock

    async def _advance(
        self,
        run_id: uuid.UUID,
        current: RunStatus,
        target: RunStatus,
        completed_at: Optional[datetime] = None,
    ) -> RunStatus:
        ensure_run_transition(current, target)
        updated = await self._runs.transition(run_id, current, target, completed_at=completed_at)
        if updated is None:
            raise InvalidTransitionError("index run", current, target)
        return target

    async def _score_constituent(
        self,
        run_id: uuid.UUID,
        index_id: str,
        effective_date: date,
        constituent: IndexConstituent,
        semaphore: asyncio.Semaphore,
    ) -> bool:
        async with semaphore:
            try:
                scored = await self._scoring.score_security(constituent.ticker, run_id)
                sentiment = extract_news_sentiment(
                    scored.enriched, scored.result.rationale.sentiment
                )
                await self._constituent_scores.create(
                    index_run_id=run_id,
                    index_id=index_id,
                    ticker=constituent.ticker,
                    sector=constituent.sector,
                    effective_date=effective_date,
                    score=scored.result.score,
                    confidence=scored.result.confidence,
                    direction=scored.result.direction,
                    news_sentiment=sentiment.model_dump(mode="json") if sentiment else None,
                )
                return True
            except Exception as e:
                logger.exception(f"Error scoring constituent {constituent.ticker}: {e}")
                return False

    async def score_index(
        self,
        index_id: str,
        effective_date: date,
        run_id: Optional[uuid.UUID] = None,
    ) -> IndexRunSummary:
        """Score every constituent of ``index_id`` for ``effective_date``."""
        constituents = await self._membership.constituents(index_id)
        run = await self._runs.create(
            index_id=index_id,
            effective_date=effective_date,
            run_id=run_id,
        )
        status = RunStatus.PENDING
        token = run_id_var.set(str(run.id))
        logger.info(
            f"Starting index run {run.id} for {index_id} on {effective_date.isoformat()}: "
            f"{len(constituents)} constituents"
        )

        try:
            status = await self._advance(run.id, status, RunStatus.RUNNING)

            semaphore = asyncio.Semaphore(self.max_concurrency)
            outcomes = await asyncio.gather(
                *(
                    self._score_constituent(run.id, index_id, effective_date, c, semaphore)
                    for c in constituents
                )
            )
            failed = [c.ticker for c, ok in zip(constituents, outcomes) if not ok]

            status = await self._advance(
                run.id, status, RunStatus.COMPLETE, completed_at=self._clock()
            )
        except Exception:
            logger.exception(f"Index run {run.id} aborted while {status.value}")
            if not is_terminal_run(status):
                await self._runs.transition(
                    run.id, status, RunStatus.FAILED, completed_at=self._clock()
                )
            raise
        finally:
            run_id_var.reset(token)

        summary = IndexRunSummary(
            index_run_id=run.id,
            index_id=index_id,
            effective_date=effective_date,
            status=status,
            attempted=len(constituents),
            succeeded=len(constituents) - len(failed),
            failed_tickers=failed,
        )
        logger.info(
            f"Index run {run.id} complete: {summary.succeeded}/{summary.attempted} "
            f"constituents scored, failed={failed}"
        )
        return summary
