"""
Per-ticker scoring pipeline.

enrich -> fingerprint -> reuse check -> score or copy -> persist

Usage:
    service = ScoringService(securities, scores, enrichment, oracle, cache)
    scored = await service.score_security("AAPL", run_id)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from indexpilot.core.logging import get_logger
from indexpilot.database.orm import Score
from indexpilot.domain.market import EnrichedInput
from indexpilot.repositories.scores_orm import ScoreRepository
from indexpilot.repositories.securities_orm import SecurityRepository
from indexpilot.services.enrichment import EnrichmentProvider
from indexpilot.services.oracle.client import ScoringOracleClient
from indexpilot.services.oracle.prompts import build_scoring_prompt
from indexpilot.services.oracle.schemas import ScoringResult
from indexpilot.services.scoring.deduplication import ScoreCache
from indexpilot.services.scoring.fingerprint import fingerprint

logger = get_logger("scoring.service")


@dataclass
class ScoredSecurity:
    """Result of scoring one ticker within a run."""

    ticker: str
    result: ScoringResult
    input_hash: str
    model: str
    reused: bool
    enriched: EnrichedInput
    score_id: uuid.UUID | None = None

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def confidence(self) -> float:
        return self.result.confidence

    @property
    def direction(self):
        return self.result.direction


def result_from_score(score: Score) -> ScoringResult:
    """Rebuild the validated oracle result stored on a Score row."""
    return ScoringResult.model_validate(
        {
            "score": float(score.score),
            "confidence": float(score.confidence),
            "direction": score.direction,
            "rationale": score.rationale,
            "risks": score.risks,
            "horizon_days": score.horizon_days,
        },
        strict=False,
    )


class ScoringService:
    """Scores a single security, reusing a fresh score for identical input."""

    def __init__(
        self,
        securities: SecurityRepository,
        scores: ScoreRepository,
        enrichment: EnrichmentProvider,
        oracle: ScoringOracleClient,
        cache: ScoreCache,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._securities = securities
        self._scores = scores
        self._enrichment = enrichment
        self._oracle = oracle
        self._cache = cache
        self._clock = clock

    async def score_security(self, ticker: str, run_id: uuid.UUID) -> ScoredSecurity:
        """
        Score ``ticker`` for ``run_id`` and persist the result.

        Raises whatever enrichment, fingerprinting, the oracle or persistence
        raise; callers decide whether a failure is fatal.
        """
        await self._securities.ensure_exists(ticker)

        enriched = await self._enrichment.enrich(ticker)
        input_hash = fingerprint(enriched)
        now = self._clock()

        existing = await self._cache.find_reusable(ticker, input_hash, now)
        if existing is not None:
            logger.info(f"Reusing score {existing.id} for {ticker} (input {input_hash[:12]})")
            copy = await self._scores.create(
                run_id=run_id,
                ticker=ticker,
                ts=now,
                score=existing.score,
                confidence=existing.confidence,
                direction=existing.direction,
                horizon_days=existing.horizon_days,
                rationale=existing.rationale,
                risks=existing.risks,
                model=existing.model,
                input_hash=input_hash,
            )
            return ScoredSecurity(
                ticker=ticker,
                result=result_from_score(existing),
                input_hash=input_hash,
                model=existing.model,
                reused=True,
                enriched=enriched,
                score_id=copy.id,
            )

        prompt = build_scoring_prompt(enriched)
        result = await self._oracle.score(prompt)

        row = await self._scores.create(
            run_id=run_id,
            ticker=ticker,
            ts=now,
            score=result.score,
            confidence=result.confidence,
            direction=result.direction,
            horizon_days=result.horizon_days,
            rationale=result.rationale.model_dump(),
            risks=result.risks.model_dump(),
            model=self._oracle.model,
            input_hash=input_hash,
        )
        logger.info(
            f"Scored {ticker}: score={result.score:.2f} "
            f"confidence={result.confidence:.2f} direction={result.direction.value}"
        )
        return ScoredSecurity(
            ticker=ticker,
            result=result,
            input_hash=input_hash,
            model=self._oracle.model,
            reused=False,
            enriched=enriched,
            score_id=row.id,
        )
