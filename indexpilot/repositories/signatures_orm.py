"""Signatures repository using SQLAlchemy ORM."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select

from indexpilot.database.connection import Database
from indexpilot.database.orm import Signature


class SignatureRepository:
    def __init__(self, database: Database):
        self._db = database

    async def create(
        self,
        *,
        name: str,
        composition: list[dict[str, Any]],
        created_by: str,
        description: Optional[str] = None,
    ) -> Signature:
        async with self._db.session() as session:
            signature = Signature(
                name=name,
                description=description,
                composition=composition,
                created_by=created_by,
            )
            session.add(signature)
            await session.commit()
            await session.refresh(signature)
            return signature

    async def get(self, signature_id: uuid.UUID) -> Optional[Signature]:
        async with self._db.session() as session:
            return await session.get(Signature, signature_id)

    async def list_all(self) -> list[Signature]:
        async with self._db.session() as session:
            result = await session.execute(
                select(Signature).order_by(Signature.created_at.desc())
            )
            return list(result.scalars().all())
