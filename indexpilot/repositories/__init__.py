"""Data access layer repositories.

Each repository wraps an injected ``Database`` and opens one session per
call. All code uses SQLAlchemy ORM models from ``indexpilot.database.orm``.

- securities_orm: security rows created on first sight of a ticker
- scores_orm: immutable oracle scores and reuse lookups
- score_runs_orm: ad-hoc batch runs
- index_runs_orm: index scoring runs
- constituent_scores_orm: constituent scores and approval updates
- signatures_orm: sector allocation signatures
- custom_indexes_orm: built custom indexes
"""

from indexpilot.repositories.constituent_scores_orm import ConstituentScoreRepository
from indexpilot.repositories.custom_indexes_orm import CustomIndexRepository
from indexpilot.repositories.index_runs_orm import IndexRunRepository
from indexpilot.repositories.score_runs_orm import ScoreRunRepository
from indexpilot.repositories.scores_orm import ScoreRepository
from indexpilot.repositories.securities_orm import SecurityRepository
from indexpilot.repositories.signatures_orm import SignatureRepository

__all__ = [
    "ConstituentScoreRepository",
    "CustomIndexRepository",
    "IndexRunRepository",
    "ScoreRepository",
    "ScoreRunRepository",
    "SecurityRepository",
    "SignatureRepository",
]
