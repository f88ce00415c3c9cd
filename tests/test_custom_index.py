"""
Tests for custom index construction.
"""

import uuid
from datetime import date

import pytest

from indexpilot.core.exceptions import NotFoundError
from indexpilot.domain.scoring import CompositionEntry
from indexpilot.domain.states import ConstituentState
from indexpilot.services.custom_index import (
    CustomIndexBuilder,
    sector_quota,
    select_constituents,
)
from indexpilot.services.signature import SignatureService
from tests.conftest import FakeConstituentScoreRepository, make_constituent_score


def composition(*pairs):
    return [CompositionEntry(sector=sector, percentage=pct) for sector, pct in pairs]


# =============================================================================
# QUOTAS AND SELECTION
# =============================================================================


class TestSectorQuota:
    @pytest.mark.parametrize(
        "percentage,expected",
        [(60, 6), (40, 4), (30, 3), (70, 7), (25, 3), (5, 1), (0.1, 1), (0, 0), (100, 10)],
    )
    def test_quota_for_ten(self, percentage, expected):
        assert sector_quota(percentage) == expected

    def test_quota_for_other_size(self):
        assert sector_quota(50, target_size=5) == 3


class TestSelectConstituents:
    def test_takes_top_scores_per_sector(self):
        approved = [
            make_constituent_score("T1", "Technology", 0.9),
            make_constituent_score("T2", "Technology", 0.8),
            make_constituent_score("T3", "Technology", 0.7),
            make_constituent_score("F1", "Finance", 0.5),
        ]

        selection = select_constituents(
            composition(("Technology", 20), ("Finance", 80)), approved
        )

        assert selection.sectors_used == ["Technology", "Finance"]
        assert selection.constituents == ["T1", "T2", "F1"]

    def test_ties_broken_by_ticker(self):
        approved = [
            make_constituent_score("ZZZ", "Energy", 0.5),
            make_constituent_score("AAA", "Energy", 0.5),
            make_constituent_score("MMM", "Energy", 0.5),
        ]

        selection = select_constituents(composition(("Energy", 20)), approved)

        assert selection.constituents == ["AAA", "MMM"]

    def test_sector_without_candidates_not_used(self):
        approved = [make_constituent_score("T1", "Technology", 0.9)]

        selection = select_constituents(
            composition(("Technology", 50), ("Utilities", 50)), approved
        )

        assert selection.sectors_used == ["Technology"]
        assert selection.constituents == ["T1"]

    def test_empty_selection_is_valid(self):
        selection = select_constituents(composition(("Technology", 100)), [])
        assert selection.sectors_used == []
        assert selection.constituents == []

    def test_ticker_picked_once_across_sectors(self):
        approved = [
            make_constituent_score("DUP", "Technology", 0.9),
            make_constituent_score("DUP", "Technology", 0.8),
            make_constituent_score("T2", "Technology", 0.7),
        ]

        selection = select_constituents(
            composition(("Technology", 50), ("Technology", 50)), approved
        )

        assert selection.constituents == ["DUP", "T2"]

    def test_sector_match_is_exact(self):
        approved = [make_constituent_score("T1", "technology", 0.9)]

        selection = select_constituents(composition(("Technology", 100)), approved)

        assert selection.constituents == []


# =============================================================================
# BUILDER
# =============================================================================


LATEST = date(2025, 1, 3)
EARLIER = date(2025, 1, 2)


class TestCustomIndexBuilder:
    @pytest.fixture
    def rows(self):
        return [
            make_constituent_score("T1", "Technology", 0.9, effective_date=LATEST),
            make_constituent_score("T2", "Technology", 0.8, effective_date=LATEST),
            make_constituent_score("T3", "Technology", 0.95, ConstituentState.REJECTED, LATEST),
            make_constituent_score("T4", "Technology", 0.99, ConstituentState.PENDING, LATEST),
            make_constituent_score("F1", "Finance", 0.6, effective_date=LATEST),
            make_constituent_score("OLD", "Technology", 1.0, effective_date=EARLIER),
        ]

    @pytest.fixture
    def signatures(self, signature_repo):
        return SignatureService(signature_repo)

    @pytest.fixture
    def builder(self, signatures, rows, custom_index_repo):
        return CustomIndexBuilder(
            signatures, FakeConstituentScoreRepository(rows), custom_index_repo
        )

    @pytest.mark.asyncio
    async def test_uses_only_approved_scores_for_latest_date(self, builder, signatures):
        signature = await signatures.create_signature(
            "Tilt",
            [{"sector": "Technology", "percentage": 60}, {"sector": "Finance", "percentage": 40}],
            "alice",
        )

        index = await builder.create_custom_index(signature.id, "Tilt Jan")

        assert index.signature_id == signature.id
        assert index.name == "Tilt Jan"
        assert index.sectors_used == ["Technology", "Finance"]
        assert index.constituents_selected == ["T1", "T2", "F1"]

    @pytest.mark.asyncio
    async def test_get_and_list(self, builder, signatures):
        signature = await signatures.create_signature(
            "All tech", [{"sector": "Technology", "percentage": 100}], "alice"
        )
        index = await builder.create_custom_index(signature.id, "First")

        assert await builder.get_custom_index(index.id) is index
        assert await builder.list_custom_indexes(signature.id) == [index]
        assert await builder.list_custom_indexes(uuid.uuid4()) == []

    @pytest.mark.asyncio
    async def test_unknown_signature(self, builder):
        with pytest.raises(NotFoundError):
            await builder.create_custom_index(uuid.uuid4(), "Nope")

    @pytest.mark.asyncio
    async def test_no_scored_dates(self, signatures, custom_index_repo):
        builder = CustomIndexBuilder(
            signatures, FakeConstituentScoreRepository(), custom_index_repo
        )
        signature = await signatures.create_signature(
            "All tech", [{"sector": "Technology", "percentage": 100}], "alice"
        )

        with pytest.raises(NotFoundError) as exc_info:
            await builder.create_custom_index(signature.id, "Empty")

        assert "score an index first" in exc_info.value.message
        assert custom_index_repo.rows == {}

    @pytest.mark.asyncio
    async def test_unknown_custom_index(self, builder):
        with pytest.raises(NotFoundError):
            await builder.get_custom_index(uuid.uuid4())


def test_even_split_takes_what_is_available():
    approved = [
        make_constituent_score("MSFT", "Technology", 0.8),
        make_constituent_score("AAPL", "Technology", 0.7),
        make_constituent_score("XOM", "Energy", 0.6),
    ]

    selection = select_constituents(
        composition(("Technology", 50), ("Energy", 50)), approved
    )

    assert selection.sectors_used == ["Technology", "Energy"]
    assert selection.constituents == ["MSFT", "AAPL", "XOM"]
