"""
Application wiring.

``Container`` builds every client, repository and service from ``Settings``
and owns their lifecycle. Nothing in the package creates clients at import
time.

Usage:
    async with Container(get_settings()) as container:
        summary = await container.orchestrator.score_index("US_TOP5", date.today())
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import httpx
from openai import AsyncOpenAI

from indexpilot.core.config import Settings
from indexpilot.core.logging import get_logger
from indexpilot.database.connection import Database
from indexpilot.repositories import (
    ConstituentScoreRepository,
    CustomIndexRepository,
    IndexRunRepository,
    ScoreRepository,
    ScoreRunRepository,
    SecurityRepository,
    SignatureRepository,
)
from indexpilot.services.approval import ApprovalService
from indexpilot.services.custom_index import CustomIndexBuilder
from indexpilot.services.enrichment import AlphaVantageEnrichmentProvider, EnrichmentProvider
from indexpilot.services.index.membership import (
    IndexMembershipProvider,
    StaticIndexMembershipProvider,
)
from indexpilot.services.index.orchestrator import IndexRunOrchestrator
from indexpilot.services.oracle.client import ScoringOracleClient, create_openai_client
from indexpilot.services.scoring.batch import ScoreBatchService
from indexpilot.services.scoring.deduplication import ScoreCache
from indexpilot.services.scoring.service import ScoringService
from indexpilot.services.signature import SignatureService

logger = get_logger("container")


class Container:
    """Object graph for one process."""

    def __init__(
        self,
        settings: Settings,
        database: Optional[Database] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        enrichment: Optional[EnrichmentProvider] = None,
        membership: Optional[IndexMembershipProvider] = None,
    ):
        self.settings = settings
        self.database = database or Database.from_settings(settings)
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.external_api_timeout
        )
        self.openai_client = openai_client or create_openai_client(settings)

        # Repositories
        self.securities = SecurityRepository(self.database)
        self.scores = ScoreRepository(self.database)
        self.score_runs = ScoreRunRepository(self.database)
        self.index_runs = IndexRunRepository(self.database)
        self.constituent_scores = ConstituentScoreRepository(self.database)
        self.signature_repo = SignatureRepository(self.database)
        self.custom_index_repo = CustomIndexRepository(self.database)

        # Collaborators
        self.enrichment = enrichment or AlphaVantageEnrichmentProvider.from_settings(
            self.http_client, settings
        )
        self.membership = membership or StaticIndexMembershipProvider()
        self.oracle = ScoringOracleClient.from_settings(self.openai_client, settings)
        self.cache = ScoreCache(
            self.scores,
            freshness_window=timedelta(hours=settings.score_freshness_hours),
        )

        # Services
        self.scoring = ScoringService(
            self.securities, self.scores, self.enrichment, self.oracle, self.cache
        )
        self.batches = ScoreBatchService(self.score_runs, self.scores, self.scoring)
        self.orchestrator = IndexRunOrchestrator(
            self.membership,
            self.scoring,
            self.index_runs,
            self.constituent_scores,
            max_concurrency=settings.orchestrator_max_concurrency,
        )
        self.approvals = ApprovalService(self.constituent_scores)
        self.signatures = SignatureService(self.signature_repo)
        self.custom_indexes = CustomIndexBuilder(
            self.signatures,
            self.constituent_scores,
            self.custom_index_repo,
            target_size=settings.custom_index_target_size,
        )

    async def aclose(self) -> None:
        await self.oracle.close()
        await self.http_client.aclose()
        await self.database.close()
        logger.debug("Container closed")

    async def __aenter__(self) -> Container:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
