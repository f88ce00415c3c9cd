"""
Scoring oracle package - prompt, call, validate, retry.

Usage:
    from indexpilot.services.oracle import (
        ScoringOracleClient,
        ScoringResult,
        build_scoring_prompt,
        create_openai_client,
    )
"""

from indexpilot.services.oracle.client import ScoringOracleClient, create_openai_client
from indexpilot.services.oracle.prompts import (
    PriceMetrics,
    build_scoring_prompt,
    compute_price_metrics,
)
from indexpilot.services.oracle.schemas import Rationale, Risks, ScoringResult
from indexpilot.services.oracle.validation import parse_scoring_response, strip_code_fences

__all__ = [
    "PriceMetrics",
    "Rationale",
    "Risks",
    "ScoringOracleClient",
    "ScoringResult",
    "build_scoring_prompt",
    "compute_price_metrics",
    "create_openai_client",
    "parse_scoring_response",
    "strip_code_fences",
]
