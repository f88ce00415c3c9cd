"""Securities repository using SQLAlchemy ORM."""

from __future__ import annotations

from sqlalchemy.dialects.postgresql import insert

from indexpilot.core.logging import get_logger
from indexpilot.database.connection import Database
from indexpilot.database.orm import Security

logger = get_logger("repositories.securities_orm")


class SecurityRepository:
    def __init__(self, database: Database):
        self._db = database

    async def ensure_exists(self, ticker: str) -> None:
        """Insert a stub security for ``ticker`` unless one already exists."""
        async with self._db.session() as session:
            stmt = insert(Security).values(
                ticker=ticker,
                name=ticker,
                currency="USD",
                lot_size=1,
            ).on_conflict_do_nothing(index_elements=["ticker"])
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount:
                logger.info(f"Registered new security {ticker}")

