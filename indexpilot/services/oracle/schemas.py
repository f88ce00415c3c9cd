"""
Pydantic model for scoring responses.

The model runs in strict mode: numbers are not parsed from strings, enum
members must match exactly and nothing out of range is clamped.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from indexpilot.domain.states import Direction


class Rationale(BaseModel):
    """Reasoning behind a score."""
    model_config = ConfigDict(strict=True)

    summary: str = Field(min_length=1, description="One-paragraph explanation")
    factors: list[Annotated[str, Field(min_length=1)]] = Field(
        description="Key factors that drove the score"
    )
    sentiment: str = Field(min_length=1, description="Overall sentiment of the evidence")


class Risks(BaseModel):
    """Downside risks identified by the model."""
    model_config = ConfigDict(strict=True)

    market: str = Field(min_length=1, description="Market-wide risk")
    specific: str = Field(min_length=1, description="Company-specific risk")


class ScoringResult(BaseModel):
    """Validated output of one scoring call."""
    model_config = ConfigDict(strict=True)

    score: float = Field(ge=0.0, le=1.0, description="Attractiveness from 0 to 1")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence from 0 to 1")
    direction: Direction = Field(description="Expected direction: up, flat or down")
    rationale: Rationale
    risks: Risks
    horizon_days: int = Field(gt=0, description="Forecast horizon in days")
