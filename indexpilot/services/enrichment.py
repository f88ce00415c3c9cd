"""
Market data and news enrichment.

``AlphaVantageEnrichmentProvider`` fetches daily price bars and the news
sentiment feed for a ticker and returns them as an ``EnrichedInput``.
Missing data is an empty list; transport failures raise
``TransientUpstreamError``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

import httpx

from indexpilot.core.config import Settings
from indexpilot.core.exceptions import TransientUpstreamError
from indexpilot.core.logging import get_logger
from indexpilot.domain.market import EnrichedInput, NewsArticle, PriceBar

logger = get_logger("enrichment")


FINANCIAL_KEYWORDS = (
    "earnings",
    "revenue",
    "profit",
    "dividend",
    "growth",
    "expansion",
    "acquisition",
    "partnership",
)

MAX_RELEVANCE = 5.0
RECENCY_HORIZON_HOURS = 168.0
NEWS_FETCH_LIMIT = 50


class EnrichmentProvider(Protocol):
    async def enrich(self, ticker: str) -> EnrichedInput: ...


# =============================================================================
# PARSING
# =============================================================================


def parse_time_published(value: str) -> datetime:
    """Parse Alpha Vantage ``YYYYMMDDTHHMMSS`` timestamps as UTC."""
    return datetime.strptime(value[:15], "%Y%m%dT%H%M%S").replace(tzinfo=timezone.utc)


def relevance_score(ticker: str, title: str, summary: str) -> float:
    """Heuristic relevance of an article to ``ticker`` on a 0-5 scale."""
    score = 1.0
    ticker_lower = ticker.lower()
    title_lower = title.lower()
    summary_lower = summary.lower()

    if ticker_lower in title_lower:
        score += 0.5
    if ticker_lower in summary_lower:
        score += 0.3
    for keyword in FINANCIAL_KEYWORDS:
        if keyword in title_lower:
            score += 0.1

    return min(score, MAX_RELEVANCE)


def recency_score(published: Optional[datetime], now: datetime) -> float:
    """1.0 for an article published now, decaying linearly to 0 over a week."""
    if published is None:
        return 0.0
    hours = (now - published).total_seconds() / 3600
    return max(0.0, 1 - hours / RECENCY_HORIZON_HOURS)


def parse_daily_series(payload: dict[str, Any]) -> list[PriceBar]:
    if payload.get("Error Message") or "Time Series (Daily)" not in payload:
        return []

    bars = []
    for day, values in payload["Time Series (Daily)"].items():
        bars.append(
            PriceBar(
                ts=datetime.fromisoformat(day).replace(tzinfo=timezone.utc),
                open=float(values.get("1. open", 0)),
                high=float(values.get("2. high", 0)),
                low=float(values.get("3. low", 0)),
                close=float(values.get("4. close", 0)),
                volume=int(float(values.get("5. volume", 0))),
            )
        )
    bars.sort(key=lambda bar: bar.ts, reverse=True)
    return bars


def parse_news_feed(
    payload: dict[str, Any],
    ticker: str,
    limit: int,
    now: datetime,
) -> list[NewsArticle]:
    if payload.get("Error Message") or "feed" not in payload:
        return []

    articles = []
    for item in payload["feed"]:
        title = item.get("title") or ""
        summary = item.get("summary") or ""
        published = item.get("time_published")
        articles.append(
            NewsArticle(
                title=title,
                url=item.get("url") or "",
                summary=summary,
                source=item.get("source") or "",
                ts=parse_time_published(published) if published else None,
                relevance_score=relevance_score(ticker, title, summary),
            )
        )

    articles.sort(
        key=lambda article: article.relevance_score + recency_score(article.ts, now),
        reverse=True,
    )
    return articles[:limit]


# =============================================================================
# PROVIDER
# =============================================================================


class AlphaVantageEnrichmentProvider:
    """Enrichment backed by the Alpha Vantage query API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://www.alphavantage.co/query",
        news_limit: int = 10,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url
        self.news_limit = news_limit
        self._clock = clock

    @classmethod
    def from_settings(
        cls, http_client: httpx.AsyncClient, settings: Settings
    ) -> AlphaVantageEnrichmentProvider:
        return cls(
            http_client,
            api_key=settings.alpha_vantage_api_key or "demo",
            base_url=settings.alpha_vantage_base_url,
            news_limit=settings.news_limit,
        )

    async def _query(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.get(
                self._base_url, params={**params, "apikey": self._api_key}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransientUpstreamError(
                message=f"Alpha Vantage returned {e.response.status_code}",
                details={"function": params.get("function"), "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            raise TransientUpstreamError(
                message=f"Alpha Vantage request failed: {e}",
                details={"function": params.get("function")},
            ) from e

        try:
            payload = response.json()
        except ValueError:
            logger.warning(
                f"Alpha Vantage returned a non-JSON body for {params.get('function')}: "
                f"{response.text[:80]!r}"
            )
            return {}

        if not isinstance(payload, dict):
            return {}
        return payload

    async def fetch_prices(self, ticker: str) -> list[PriceBar]:
        payload = await self._query({"function": "TIME_SERIES_DAILY", "symbol": ticker})
        bars = parse_daily_series(payload)
        if not bars:
            logger.info(f"No market data returned for {ticker}")
        return bars

    async def fetch_news(self, ticker: str) -> list[NewsArticle]:
        payload = await self._query(
            {"function": "NEWS_SENTIMENT", "tickers": ticker, "limit": NEWS_FETCH_LIMIT}
        )
        return parse_news_feed(payload, ticker, self.news_limit, self._clock())

    async def enrich(self, ticker: str) -> EnrichedInput:
        prices, news = await asyncio.gather(
            self.fetch_prices(ticker),
            self.fetch_news(ticker),
        )
        logger.debug(f"Enriched {ticker}: {len(prices)} bars, {len(news)} articles")
        return EnrichedInput(ticker=ticker, prices=prices, news=news)
