"""Reuse gate for recent scores computed from identical input."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Protocol

from indexpilot.database.orm import Score


DEFAULT_FRESHNESS_WINDOW = timedelta(hours=6)


class ScoreLookup(Protocol):
    async def find_latest_by_hash(self, ticker: str, input_hash: str) -> Optional[Score]: ...


class ScoreCache:
    """Decides whether an existing score can stand in for a new oracle call.

    A score is reusable when it was computed for the same ticker from the
    same fingerprint no more than ``freshness_window`` ago. The cache only
    reads; it never stores or evicts.
    """

    def __init__(
        self,
        scores: ScoreLookup,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
    ):
        self._scores = scores
        self.freshness_window = freshness_window

    def is_fresh(self, score: Score, now: datetime) -> bool:
        return now - score.ts <= self.freshness_window

    async def find_reusable(
        self, ticker: str, input_hash: str, now: datetime
    ) -> Optional[Score]:
        latest = await self._scores.find_latest_by_hash(ticker, input_hash)
        if latest is None or not self.is_fresh(latest, now):
            return None
        return latest

    async def should_reuse(self, ticker: str, input_hash: str, now: datetime) -> bool:
        return await self.find_reusable(ticker, input_hash, now) is not None
