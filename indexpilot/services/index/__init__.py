"""Index membership and index-wide scoring runs."""

from indexpilot.services.index.membership import (
    IndexMembershipProvider,
    StaticIndexMembershipProvider,
)
from indexpilot.services.index.orchestrator import (
    IndexRunOrchestrator,
    extract_news_sentiment,
    normalize_sentiment,
)

__all__ = [
    "IndexMembershipProvider",
    "IndexRunOrchestrator",
    "StaticIndexMembershipProvider",
    "extract_news_sentiment",
    "normalize_sentiment",
]
