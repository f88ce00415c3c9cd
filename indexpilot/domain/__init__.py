"""Domain models for strongly-typed data throughout the application.

Usage:
    from indexpilot.domain import EnrichedInput, RunStatus, ConstituentState

    enriched = EnrichedInput(ticker="AAPL", prices=bars, news=articles)
"""

from indexpilot.domain.market import (
    EnrichedInput,
    IndexConstituent,
    NewsArticle,
    PriceBar,
)
from indexpilot.domain.scoring import (
    ApprovalSummary,
    BatchStatus,
    CompositionEntry,
    IndexRunSummary,
    NewsSentiment,
    ScoreSnapshot,
)
from indexpilot.domain.states import (
    CONSTITUENT_TRANSITIONS,
    RUN_TRANSITIONS,
    ConstituentState,
    Direction,
    RunStatus,
    Sentiment,
    ensure_constituent_transition,
    ensure_run_transition,
)

__all__ = [
    # Market inputs
    "EnrichedInput",
    "IndexConstituent",
    "NewsArticle",
    "PriceBar",
    # Results
    "ApprovalSummary",
    "BatchStatus",
    "CompositionEntry",
    "IndexRunSummary",
    "NewsSentiment",
    "ScoreSnapshot",
    # States
    "CONSTITUENT_TRANSITIONS",
    "RUN_TRANSITIONS",
    "ConstituentState",
    "Direction",
    "RunStatus",
    "Sentiment",
    "ensure_constituent_transition",
    "ensure_run_transition",
]
