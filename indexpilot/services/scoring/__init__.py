"""Scoring pipeline: fingerprinting, score reuse, per-ticker scoring and batches."""

from indexpilot.services.scoring.batch import ScoreBatchService
from indexpilot.services.scoring.deduplication import ScoreCache
from indexpilot.services.scoring.fingerprint import fingerprint
from indexpilot.services.scoring.service import ScoredSecurity, ScoringService

__all__ = [
    "ScoreBatchService",
    "ScoreCache",
    "ScoredSecurity",
    "ScoringService",
    "fingerprint",
]
