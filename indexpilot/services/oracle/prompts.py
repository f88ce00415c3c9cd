"""
Prompt construction for security scoring.

The instructions ask the model for a conservative score and a single JSON
object; the context sections summarise the enriched market data and news.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from indexpilot.domain.market import EnrichedInput, PriceBar


SCORING_INSTRUCTIONS = """You are a conservative and rigorous financial analyst. Score the security below using only the market data and news provided.

SCORE BANDS:

1. HIGH (0.70-1.0) - ONLY when:
   - Several strong positive indicators agree
   - There is clear evidence of growth, earnings beats or positive catalysts
   - Price action and volume confirm the outlook
   - Highly relevant news is positive
   - There are NO significant warnings

2. MODERATE (0.50-0.69) - when:
   - Signals are mixed or only mildly positive
   - Data or news coverage is limited
   - Technical picture is unclear

3. LOW (0.30-0.49) - when:
   - Negative indicators outweigh the positives
   - News mentions downgrades, warnings or concerns
   - Price or volume trends are weak

4. VERY LOW (0.0-0.29) - when:
   - Major negative news (lawsuits, scandals, large losses)
   - Clear downward trend with high volatility
   - Multiple red flags

BE CONSERVATIVE:
- Stay near neutral unless the evidence clearly says otherwise
- Minor concerns LOWER the score
- When in doubt, choose the lower score

Respond ONLY with valid JSON in exactly this shape:
{
  "score": 0.65,
  "confidence": 0.85,
  "direction": "flat",
  "rationale": {
    "summary": "Specific summary of the analysis",
    "factors": ["concrete factor 1", "concrete factor 2", "concrete factor 3"],
    "sentiment": "positive" | "neutral" | "negative"
  },
  "risks": {
    "market": "Market-wide risks found",
    "specific": "Security-specific risks found"
  },
  "horizon_days": 30
}

Field rules:
- score: number from 0.0 to 1.0, prefer 0.4-0.6 without clear evidence
- confidence: number from 0.0 to 1.0, higher with more consistent data
- direction: "up" only if score > 0.6, "down" if score < 0.4, otherwise "flat"
- rationale.summary: 2-3 sentences citing the data
- rationale.factors: 3-5 concrete factors
- rationale.sentiment: positive above 0.6, negative below 0.4, neutral otherwise
- risks: name actual risks, no generic statements
- horizon_days: positive integer (7 short-term, 30 medium, 90 longer-term)"""


ANALYSIS_INSTRUCTIONS = """=== ANALYSIS INSTRUCTIONS ===

1. Read every news article; follow the URLs if more context is needed
2. Derive price trend and momentum from the market data
3. Check whether volume confirms or diverges from the price move
4. List ANY negative signals, even minor ones, and let them lower the score
5. Use 0.70+ only for strong positive signals with no significant concerns
6. Use 0.45-0.55 when signals are mixed or unclear
7. Keep the score consistent with the rationale and cite actual data points

Respond with ONLY the JSON object, no other text."""


HISTORY_BARS = 10
VOLATILITY_BARS = 20
TREND_WINDOW = 5


@dataclass
class PriceMetrics:
    """Summary statistics over a ticker's recent price bars."""

    latest_close: float
    latest_volume: int
    change: float
    change_percent: float
    average_volume: float
    volatility: float
    trend: str
    history: list[PriceBar] = field(default_factory=list)

    @property
    def volume_trend(self) -> str:
        if self.average_volume <= 0:
            return "N/A"
        if self.latest_volume > self.average_volume * 1.2:
            return "Above average (potentially significant)"
        if self.latest_volume < self.average_volume * 0.8:
            return "Below average (low interest)"
        return "Near average"


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def compute_price_metrics(bars: list[PriceBar]) -> Optional[PriceMetrics]:
    """Compute change, trend, volatility and volume stats; None without bars."""
    if not bars:
        return None

    ordered = sorted(bars, key=lambda bar: bar.ts, reverse=True)
    latest = ordered[0]
    previous = ordered[1] if len(ordered) > 1 else None

    change = latest.close - previous.close if previous else 0.0
    change_percent = (
        change / previous.close * 100 if previous and previous.close else 0.0
    )

    closes = [bar.close for bar in ordered[:VOLATILITY_BARS]]
    high_close = max(closes)
    volatility = (high_close - min(closes)) / high_close * 100 if high_close > 0 else 0.0

    recent = [bar.close for bar in ordered[:TREND_WINDOW]]
    older = [bar.close for bar in ordered[TREND_WINDOW:TREND_WINDOW * 2]]
    recent_avg = _mean(recent)
    older_avg = _mean(older) if older else recent_avg
    if recent_avg > older_avg:
        trend = "upward"
    elif recent_avg < older_avg:
        trend = "downward"
    else:
        trend = "sideways"

    return PriceMetrics(
        latest_close=latest.close,
        latest_volume=latest.volume,
        change=change,
        change_percent=change_percent,
        average_volume=_mean([float(bar.volume) for bar in bars]),
        volatility=volatility,
        trend=trend,
        history=ordered[:HISTORY_BARS],
    )


def _signed(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.2f}"


def _market_section(ticker: str, bars: list[PriceBar]) -> str:
    header = f"=== MARKET DATA FOR {ticker} ==="
    metrics = compute_price_metrics(bars)
    if metrics is None:
        return f"{header}\nNo market data available for analysis."

    history = "\n".join(
        f"{bar.ts.date().isoformat()}: O=${bar.open:.2f} H=${bar.high:.2f} "
        f"L=${bar.low:.2f} C=${bar.close:.2f} V={bar.volume:,}"
        for bar in metrics.history
    )
    return f"""{header}

Current Price: ${metrics.latest_close:.2f}
Price Change: {_signed(metrics.change)} ({_signed(metrics.change_percent)}%)
Trend: {metrics.trend}
Volatility: {metrics.volatility:.2f}%
Average Volume: {round(metrics.average_volume):,}

Recent Price History (most recent first):
{history}

Volume Analysis:
- Latest Volume: {metrics.latest_volume:,}
- Average Volume: {round(metrics.average_volume):,}
- Volume Trend: {metrics.volume_trend}"""


def _news_section(enriched: EnrichedInput) -> str:
    header = f"=== RECENT NEWS FOR {enriched.ticker.upper()} ==="
    if not enriched.news:
        return f"{header}\nNo recent news articles available. This limits confidence in the analysis."

    articles = []
    for number, article in enumerate(enriched.news, start=1):
        published = article.ts.isoformat() if article.ts else "unknown"
        articles.append(
            f"""Article {number}:
Source: {article.source or "unknown"}
Published: {published}
Title: {article.title}
Summary: {article.summary}
URL: {article.url}
Relevance Score: {article.relevance_score:.2f}/5.0"""
        )
    body = "\n\n---\n\n".join(articles)
    return f"{header}\n\n{body}\n\nTotal Articles Analyzed: {len(enriched.news)}"


def build_scoring_prompt(enriched: EnrichedInput) -> str:
    """Render the full scoring prompt for one ticker."""
    ticker = enriched.ticker.upper()
    return "\n\n".join(
        [
            SCORING_INSTRUCTIONS,
            _market_section(ticker, enriched.prices),
            _news_section(enriched),
            ANALYSIS_INSTRUCTIONS,
        ]
    )
