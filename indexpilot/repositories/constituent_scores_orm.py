"""Constituent scores repository using SQLAlchemy ORM.

Approval updates are conditional on the row still being in the expected
state, so concurrent reviewers cannot both move the same score.

Usage:
    repo = ConstituentScoreRepository(database)
    pending = await repo.list_by_effective_date(date(2025, 1, 2), ConstituentState.PENDING)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import and_, func, select, update

from indexpilot.database.connection import Database
from indexpilot.database.orm import ConstituentScore
from indexpilot.domain.states import ConstituentState, Direction


class ConstituentScoreRepository:
    def __init__(self, database: Database):
        self._db = database

    async def create(
        self,
        *,
        index_run_id: uuid.UUID,
        index_id: str,
        ticker: str,
        sector: Optional[str],
        effective_date: date,
        score: float,
        confidence: float,
        direction: Direction,
        news_sentiment: Optional[dict[str, Any]],
    ) -> ConstituentScore:
        async with self._db.session() as session:
            row = ConstituentScore(
                index_run_id=index_run_id,
                index_id=index_id,
                ticker=ticker,
                sector=sector,
                effective_date=effective_date,
                score=score,
                confidence=confidence,
                direction=direction,
                news_sentiment=news_sentiment,
                state=ConstituentState.PENDING,
            )
            session.add(row)
            await session.commit()
            return row

    async def get(self, score_id: uuid.UUID) -> Optional[ConstituentScore]:
        async with self._db.session() as session:
            return await session.get(ConstituentScore, score_id)

    async def list_by_effective_date(
        self,
        effective_date: date,
        state: Optional[ConstituentState] = None,
    ) -> list[ConstituentScore]:
        async with self._db.session() as session:
            conditions = [ConstituentScore.effective_date == effective_date]
            if state is not None:
                conditions.append(ConstituentScore.state == state)
            result = await session.execute(
                select(ConstituentScore)
                .where(and_(*conditions))
                .order_by(ConstituentScore.ticker)
            )
            return list(result.scalars().all())

    async def list_for_run(self, index_run_id: uuid.UUID) -> list[ConstituentScore]:
        async with self._db.session() as session:
            result = await session.execute(
                select(ConstituentScore)
                .where(ConstituentScore.index_run_id == index_run_id)
                .order_by(ConstituentScore.ticker)
            )
            return list(result.scalars().all())

    async def latest_effective_date(self) -> Optional[date]:
        async with self._db.session() as session:
            result = await session.execute(select(func.max(ConstituentScore.effective_date)))
            return result.scalar()

    async def transition(
        self,
        score_id: uuid.UUID,
        current: ConstituentState,
        target: ConstituentState,
        *,
        approved_by: str,
        approved_at: datetime,
        comments: Optional[str] = None,
    ) -> Optional[ConstituentScore]:
        """Apply a review decision if the score is still in ``current``."""
        async with self._db.session() as session:
            result = await session.execute(
                update(ConstituentScore)
                .where(
                    and_(
                        ConstituentScore.id == score_id,
                        ConstituentScore.state == current,
                    )
                )
                .values(
                    state=target,
                    approved_by=approved_by,
                    approved_at=approved_at,
                    comments=comments,
                )
                .returning(ConstituentScore)
            )
            row = result.scalar_one_or_none()
            await session.commit()
            return row
