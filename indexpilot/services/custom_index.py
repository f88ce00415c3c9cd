"""
Custom index construction from a signature and approved scores.

Each composition entry claims ``ceil(percentage / 100 * target_size)``
tickers from its sector, best score first, ties broken by ticker. Only
scores approved for the latest scored effective date are eligible.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from indexpilot.core.exceptions import NotFoundError
from indexpilot.core.logging import get_logger
from indexpilot.database.orm import CustomIndex
from indexpilot.domain.scoring import CompositionEntry
from indexpilot.domain.states import ConstituentState
from indexpilot.repositories.constituent_scores_orm import ConstituentScoreRepository
from indexpilot.repositories.custom_indexes_orm import CustomIndexRepository
from indexpilot.services.signature import SignatureService

logger = get_logger("custom_index")

DEFAULT_TARGET_SIZE = 10


class ScoredTicker(Protocol):
    ticker: str
    sector: Optional[str]
    score: float


@dataclass
class Selection:
    sectors_used: list[str] = field(default_factory=list)
    constituents: list[str] = field(default_factory=list)


def sector_quota(percentage: float, target_size: int = DEFAULT_TARGET_SIZE) -> int:
    # rounded first so 30% of 10 is 3, not 4 via 3.0000000000000004
    return math.ceil(round(percentage * target_size / 100, 9))


def select_constituents(
    composition: Iterable[CompositionEntry],
    approved: Iterable[ScoredTicker],
    target_size: int = DEFAULT_TARGET_SIZE,
) -> Selection:
    """Pick tickers per sector in composition order.

    A ticker already picked for an earlier entry is skipped. A sector counts
    as used only when it contributed at least one ticker.
    """
    candidates = list(approved)
    selection = Selection()
    taken: set[str] = set()

    for entry in composition:
        quota = sector_quota(entry.percentage, target_size)
        ranked = sorted(
            (c for c in candidates if c.sector == entry.sector and c.ticker not in taken),
            key=lambda c: (-float(c.score), c.ticker),
        )
        picked: list[str] = []
        for candidate in ranked:
            if len(picked) >= quota:
                break
            if candidate.ticker not in picked:
                picked.append(candidate.ticker)

        if picked:
            selection.sectors_used.append(entry.sector)
            selection.constituents.extend(picked)
            taken.update(picked)

    return selection


class CustomIndexBuilder:
    def __init__(
        self,
        signatures: SignatureService,
        constituent_scores: ConstituentScoreRepository,
        custom_indexes: CustomIndexRepository,
        target_size: int = DEFAULT_TARGET_SIZE,
    ):
        self._signatures = signatures
        self._scores = constituent_scores
        self._indexes = custom_indexes
        self.target_size = target_size

    async def create_custom_index(self, signature_id: uuid.UUID, name: str) -> CustomIndex:
        """
        Build and persist a custom index for ``signature_id``.

        Raises:
            NotFoundError: unknown signature, or no index has been scored yet.
        """
        signature = await self._signatures.get_signature(signature_id)

        effective_date = await self._scores.latest_effective_date()
        if effective_date is None:
            raise NotFoundError(message="No effective date found. Please score an index first.")

        approved = await self._scores.list_by_effective_date(
            effective_date, ConstituentState.APPROVED
        )
        composition = [CompositionEntry.model_validate(item) for item in signature.composition]
        selection = select_constituents(composition, approved, self.target_size)

        index = await self._indexes.create(
            signature_id=signature.id,
            name=name,
            sectors_used=selection.sectors_used,
            constituents_selected=selection.constituents,
        )
        logger.info(
            f"Built custom index {index.id} '{name}' from {len(approved)} approved scores "
            f"for {effective_date.isoformat()}: {len(selection.constituents)} constituents "
            f"across {len(selection.sectors_used)} sectors"
        )
        return index

    async def get_custom_index(self, index_id: uuid.UUID) -> CustomIndex:
        index = await self._indexes.get(index_id)
        if index is None:
            raise NotFoundError(message=f"Custom index {index_id} not found")
        return index

    async def list_custom_indexes(
        self, signature_id: Optional[uuid.UUID] = None
    ) -> list[CustomIndex]:
        return await self._indexes.list_all(signature_id)
