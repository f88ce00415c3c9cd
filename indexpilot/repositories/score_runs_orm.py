"""Score run repository using SQLAlchemy ORM."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, update

from indexpilot.database.connection import Database
from indexpilot.database.orm import ScoreRun
from indexpilot.domain.states import RunStatus


class ScoreRunRepository:
    def __init__(self, database: Database):
        self._db = database

    async def create(
        self,
        *,
        total: int,
        params: dict[str, Any],
        run_id: Optional[uuid.UUID] = None,
    ) -> ScoreRun:
        async with self._db.session() as session:
            run = ScoreRun(
                id=run_id or uuid.uuid4(),
                total=total,
                completed=0,
                status=RunStatus.PENDING,
                params=params,
            )
            session.add(run)
            await session.commit()
            await session.refresh(run)
            return run

    async def get(self, run_id: uuid.UUID) -> Optional[ScoreRun]:
        async with self._db.session() as session:
            return await session.get(ScoreRun, run_id)

    async def transition(
        self,
        run_id: uuid.UUID,
        current: RunStatus,
        target: RunStatus,
        *,
        completed: Optional[int] = None,
        completed_at: Optional[datetime] = None,
    ) -> Optional[ScoreRun]:
        """Move the run from ``current`` to ``target``.

        Returns None when the run is no longer in ``current``.
        """
        values: dict[str, Any] = {"status": target}
        if completed is not None:
            values["completed"] = completed
        if completed_at is not None:
            values["completed_at"] = completed_at

        async with self._db.session() as session:
            result = await session.execute(
                update(ScoreRun)
                .where(and_(ScoreRun.id == run_id, ScoreRun.status == current))
                .values(**values)
                .returning(ScoreRun)
            )
            run = result.scalar_one_or_none()
            await session.commit()
            return run
