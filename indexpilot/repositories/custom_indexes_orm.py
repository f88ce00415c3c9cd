"""Custom indexes repository using SQLAlchemy ORM."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select

from indexpilot.database.connection import Database
from indexpilot.database.orm import CustomIndex


class CustomIndexRepository:
    def __init__(self, database: Database):
        self._db = database

    async def create(
        self,
        *,
        signature_id: uuid.UUID,
        name: str,
        sectors_used: list[str],
        constituents_selected: list[str],
    ) -> CustomIndex:
        async with self._db.session() as session:
            index = CustomIndex(
                signature_id=signature_id,
                name=name,
                sectors_used=sectors_used,
                constituents_selected=constituents_selected,
            )
            session.add(index)
            await session.commit()
            await session.refresh(index)
            return index

    async def get(self, index_id: uuid.UUID) -> Optional[CustomIndex]:
        async with self._db.session() as session:
            return await session.get(CustomIndex, index_id)

    async def list_all(self, signature_id: Optional[uuid.UUID] = None) -> list[CustomIndex]:
        async with self._db.session() as session:
            stmt = select(CustomIndex).order_by(CustomIndex.created_at.desc())
            if signature_id is not None:
                stmt = stmt.where(CustomIndex.signature_id == signature_id)
            result = await session.execute(stmt)
            return list(result.scalars().all())
