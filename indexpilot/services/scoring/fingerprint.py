"""Content fingerprint of enriched scoring input.

Two inputs with the same ticker, the same ordered price bars and the same
ordered news (title, summary and source) hash identically. Article URLs,
timestamps and relevance scores do not take part.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any

from indexpilot.core.exceptions import InputDataError
from indexpilot.domain.market import EnrichedInput


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_payload(enriched: EnrichedInput) -> dict[str, Any]:
    return {
        "ticker": enriched.ticker,
        "prices": [
            {
                "ts": bar.ts,
                "open": bar.open,
                "high": bar.high,
                "low": bar.low,
                "close": bar.close,
                "volume": bar.volume,
            }
            for bar in enriched.prices
        ],
        "news": [
            {
                "title": article.title,
                "summary": article.summary,
                "source": article.source,
            }
            for article in enriched.news
        ],
    }


def fingerprint(enriched: EnrichedInput) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``enriched``.

    Raises:
        InputDataError: input is not an EnrichedInput or holds values with no
            canonical JSON form (NaN, infinity, unknown types).
    """
    if not isinstance(enriched, EnrichedInput):
        raise InputDataError(
            message=f"Cannot fingerprint {type(enriched).__name__}",
        )

    try:
        canonical_json = json.dumps(
            canonical_payload(enriched),
            sort_keys=True,
            separators=(",", ":"),
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError) as e:
        raise InputDataError(
            message=f"Enriched input for {enriched.ticker} is not canonicalisable: {e}",
            details={"ticker": enriched.ticker},
        ) from e

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
