"""Market inputs fed to the scoring model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PriceBar(BaseModel):
    """Single OHLCV price bar."""

    ts: datetime = Field(..., description="Bar timestamp")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="High price")
    low: float = Field(..., ge=0, description="Low price")
    close: float = Field(..., ge=0, description="Closing price")
    volume: int = Field(default=0, ge=0, description="Trading volume")

    model_config = {"from_attributes": True}


class NewsArticle(BaseModel):
    """News article with a locally computed relevance score."""

    title: str
    url: str
    summary: str = ""
    source: str = ""
    ts: Optional[datetime] = None
    relevance_score: float = Field(default=0.0, ge=0, description="Relevance (0-5)")

    model_config = {"from_attributes": True}


class EnrichedInput(BaseModel):
    """Everything the scoring model sees about one ticker."""

    ticker: str = Field(..., min_length=1)
    prices: list[PriceBar] = Field(default_factory=list)
    news: list[NewsArticle] = Field(default_factory=list)


class IndexConstituent(BaseModel):
    """Membership of a ticker in a benchmark index."""

    ticker: str
    weight: float = Field(default=0.0, ge=0)
    sector: Optional[str] = None
