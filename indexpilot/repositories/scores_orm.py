"""Scores repository using SQLAlchemy ORM.

Scores are append-only: rows are inserted and read, never updated.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import and_, func, select

from indexpilot.database.connection import Database
from indexpilot.database.orm import Score
from indexpilot.domain.states import Direction


class ScoreRepository:
    def __init__(self, database: Database):
        self._db = database

    async def create(
        self,
        *,
        run_id: uuid.UUID,
        ticker: str,
        ts: datetime,
        score: float,
        confidence: float,
        direction: Direction,
        horizon_days: int,
        rationale: dict[str, Any],
        risks: dict[str, Any],
        model: str,
        input_hash: str,
    ) -> Score:
        async with self._db.session() as session:
            row = Score(
                run_id=run_id,
                ticker=ticker,
                ts=ts,
                score=score,
                confidence=confidence,
                direction=direction,
                horizon_days=horizon_days,
                rationale=rationale,
                risks=risks,
                model=model,
                input_hash=input_hash,
            )
            session.add(row)
            await session.commit()
            return row

    async def find_latest_by_hash(self, ticker: str, input_hash: str) -> Optional[Score]:
        """Most recent score for ``ticker`` computed from ``input_hash``."""
        async with self._db.session() as session:
            result = await session.execute(
                select(Score)
                .where(and_(Score.ticker == ticker, Score.input_hash == input_hash))
                .order_by(Score.ts.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def latest_for_ticker(self, ticker: str) -> Optional[Score]:
        async with self._db.session() as session:
            result = await session.execute(
                select(Score)
                .where(Score.ticker == ticker)
                .order_by(Score.ts.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def list_for_run(self, run_id: uuid.UUID) -> Sequence[Score]:
        async with self._db.session() as session:
            result = await session.execute(
                select(Score).where(Score.run_id == run_id).order_by(Score.ticker)
            )
            return result.scalars().all()

    async def count_for_run(self, run_id: uuid.UUID) -> int:
        async with self._db.session() as session:
            result = await session.execute(
                select(func.count()).select_from(Score).where(Score.run_id == run_id)
            )
            return result.scalar() or 0
