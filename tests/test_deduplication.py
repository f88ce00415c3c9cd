"""
Tests for the score reuse gate.
"""

import uuid
from datetime import timedelta

import pytest

from indexpilot.domain.states import Direction
from indexpilot.services.scoring.deduplication import ScoreCache
from tests.conftest import NOW, FakeScoreRepository


async def _add_score(repo: FakeScoreRepository, ticker: str, input_hash: str, age: timedelta):
    return await repo.create(
        run_id=uuid.uuid4(),
        ticker=ticker,
        ts=NOW - age,
        score=0.5,
        confidence=0.5,
        direction=Direction.FLAT,
        horizon_days=30,
        rationale={"summary": "s", "factors": [], "sentiment": "neutral"},
        risks={"market": "m", "specific": "s"},
        model="test-model",
        input_hash=input_hash,
    )


class TestScoreCache:
    """Tests for ScoreCache."""

    @pytest.mark.asyncio
    async def test_no_prior_score(self, score_repo):
        cache = ScoreCache(score_repo)
        assert await cache.should_reuse("AAPL", "h1", NOW) is False

    @pytest.mark.asyncio
    async def test_recent_matching_score_is_reused(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(hours=1))
        cache = ScoreCache(score_repo)
        assert await cache.should_reuse("AAPL", "h1", NOW) is True

    @pytest.mark.asyncio
    async def test_exactly_six_hours_is_still_fresh(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(hours=6))
        assert await ScoreCache(score_repo).should_reuse("AAPL", "h1", NOW) is True

    @pytest.mark.asyncio
    async def test_older_than_window_is_not_reused(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(hours=6, seconds=1))
        assert await ScoreCache(score_repo).should_reuse("AAPL", "h1", NOW) is False

    @pytest.mark.asyncio
    async def test_different_hash_is_not_reused(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(minutes=5))
        assert await ScoreCache(score_repo).should_reuse("AAPL", "h2", NOW) is False

    @pytest.mark.asyncio
    async def test_different_ticker_is_not_reused(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(minutes=5))
        assert await ScoreCache(score_repo).should_reuse("MSFT", "h1", NOW) is False

    @pytest.mark.asyncio
    async def test_find_reusable_returns_most_recent_match(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(hours=3))
        newest = await _add_score(score_repo, "AAPL", "h1", timedelta(hours=1))
        await _add_score(score_repo, "AAPL", "other", timedelta(minutes=1))

        found = await ScoreCache(score_repo).find_reusable("AAPL", "h1", NOW)
        assert found is newest

    @pytest.mark.asyncio
    async def test_custom_window(self, score_repo):
        await _add_score(score_repo, "AAPL", "h1", timedelta(hours=2))
        cache = ScoreCache(score_repo, freshness_window=timedelta(hours=1))
        assert await cache.should_reuse("AAPL", "h1", NOW) is False
