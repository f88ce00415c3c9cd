"""
Human review of constituent scores.

Every constituent score starts ``pending``. A reviewer moves it exactly once
to ``approved``, ``rejected`` or ``on_hold``; re-review needs a score from a
later run. Only approved scores feed custom indexes.
"""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import date, datetime, timezone
from typing import Callable, Optional

from indexpilot.core.exceptions import InvalidTransitionError, NotFoundError, UnknownScoreError
from indexpilot.core.logging import get_logger
from indexpilot.database.orm import ConstituentScore
from indexpilot.domain.scoring import ApprovalSummary
from indexpilot.domain.states import ConstituentState, ensure_constituent_transition
from indexpilot.repositories.constituent_scores_orm import ConstituentScoreRepository

logger = get_logger("approval")


class ApprovalService:
    def __init__(
        self,
        constituent_scores: ConstituentScoreRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._scores = constituent_scores
        self._clock = clock

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_pending_scores(self, effective_date: date) -> list[ConstituentScore]:
        return await self._scores.list_by_effective_date(
            effective_date, ConstituentState.PENDING
        )

    async def get_all_scores_by_effective_date(
        self, effective_date: date
    ) -> list[ConstituentScore]:
        return await self._scores.list_by_effective_date(effective_date)

    async def get_score(self, score_id: uuid.UUID) -> ConstituentScore:
        score = await self._scores.get(score_id)
        if score is None:
            raise NotFoundError(message=f"Constituent score {score_id} not found")
        return score

    async def get_approval_summary(self, effective_date: date) -> ApprovalSummary:
        """Count scores for ``effective_date`` by approval state."""
        scores = await self._scores.list_by_effective_date(effective_date)
        counts = Counter(score.state for score in scores)
        return ApprovalSummary(
            effective_date=effective_date,
            total_pending=counts[ConstituentState.PENDING],
            approved=counts[ConstituentState.APPROVED],
            rejected=counts[ConstituentState.REJECTED],
            on_hold=counts[ConstituentState.ON_HOLD],
        )

    # =========================================================================
    # DECISIONS
    # =========================================================================

    async def _decide(
        self,
        score_id: uuid.UUID,
        target: ConstituentState,
        reviewer: str,
        comments: Optional[str],
    ) -> ConstituentScore:
        score = await self._scores.get(score_id)
        if score is None:
            raise UnknownScoreError(score_id)

        ensure_constituent_transition(score.state, target)

        updated = await self._scores.transition(
            score_id,
            ConstituentState.PENDING,
            target,
            approved_by=reviewer,
            approved_at=self._clock(),
            comments=comments or None,
        )
        if updated is None:
            # Another reviewer decided between our read and the update
            latest = await self._scores.get(score_id)
            current = latest.state if latest is not None else score.state
            raise InvalidTransitionError("constituent score", current, target)

        logger.info(f"{reviewer} marked {updated.ticker} score {score_id} {target.value}")
        return updated

    async def approve_score(
        self, score_id: uuid.UUID, approved_by: str, comments: Optional[str] = None
    ) -> ConstituentScore:
        return await self._decide(score_id, ConstituentState.APPROVED, approved_by, comments)

    async def reject_score(
        self, score_id: uuid.UUID, approved_by: str, comments: Optional[str] = None
    ) -> ConstituentScore:
        return await self._decide(score_id, ConstituentState.REJECTED, approved_by, comments)

    async def hold_score(
        self, score_id: uuid.UUID, approved_by: str, comments: Optional[str] = None
    ) -> ConstituentScore:
        return await self._decide(score_id, ConstituentState.ON_HOLD, approved_by, comments)
