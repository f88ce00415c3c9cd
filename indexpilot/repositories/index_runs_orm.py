"""Index score run repository using SQLAlchemy ORM."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import and_, update

from indexpilot.database.connection import Database
from indexpilot.database.orm import IndexScoreRun
from indexpilot.domain.states import RunStatus


class IndexRunRepository:
    def __init__(self, database: Database):
        self._db = database

    async def create(
        self,
        *,
        index_id: str,
        effective_date: date,
        run_id: Optional[uuid.UUID] = None,
    ) -> IndexScoreRun:
        async with self._db.session() as session:
            run = IndexScoreRun(
                id=run_id or uuid.uuid4(),
                index_id=index_id,
                effective_date=effective_date,
                status=RunStatus.PENDING,
            )
            session.add(run)
            await session.commit()
            return run

    async def get(self, run_id: uuid.UUID) -> Optional[IndexScoreRun]:
        async with self._db.session() as session:
            return await session.get(IndexScoreRun, run_id)

    async def transition(
        self,
        run_id: uuid.UUID,
        current: RunStatus,
        target: RunStatus,
        *,
        completed_at: Optional[datetime] = None,
    ) -> Optional[IndexScoreRun]:
        """Move the run from ``current`` to ``target``; None if it moved already."""
        values: dict[str, Any] = {"status": target}
        if completed_at is not None:
            values["completed_at"] = completed_at

        async with self._db.session() as session:
            result = await session.execute(
                update(IndexScoreRun)
                .where(and_(IndexScoreRun.id == run_id, IndexScoreRun.status == current))
                .values(**values)
                .returning(IndexScoreRun)
            )
            run = result.scalar_one_or_none()
            await session.commit()
            return run
