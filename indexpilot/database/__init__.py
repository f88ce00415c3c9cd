"""Database package: ORM models and async connection handling."""

from indexpilot.database.connection import Database, get_async_database_url
from indexpilot.database.orm import (
    Base,
    ConstituentScore,
    CustomIndex,
    IndexScoreRun,
    Score,
    ScoreRun,
    Security,
    Signature,
)

__all__ = [
    "Base",
    "ConstituentScore",
    "CustomIndex",
    "Database",
    "IndexScoreRun",
    "Score",
    "ScoreRun",
    "Security",
    "Signature",
    "get_async_database_url",
]
