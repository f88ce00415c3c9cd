"""Index membership lookup.

``StaticIndexMembershipProvider`` serves a built-in catalogue of benchmark
indexes. Unknown index ids have no constituents.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from indexpilot.domain.market import IndexConstituent


class IndexMembershipProvider(Protocol):
    async def constituents(self, index_id: str) -> list[IndexConstituent]: ...


def _members(*rows: tuple[str, float, str]) -> list[IndexConstituent]:
    return [IndexConstituent(ticker=t, weight=w, sector=s) for t, w, s in rows]


DEFAULT_CATALOGUE: dict[str, list[IndexConstituent]] = {
    "NIFTY50": _members(
        ("RELIANCE", 10.5, "Energy"),
        ("TCS", 7.2, "Technology"),
        ("HDFCBANK", 6.8, "Finance"),
        ("INFY", 5.9, "Technology"),
        ("HINDUNILVR", 4.3, "Consumer Goods"),
        ("ICICIBANK", 4.1, "Finance"),
        ("BHARTIARTL", 3.8, "Telecommunications"),
        ("SBIN", 3.5, "Finance"),
        ("BAJFINANCE", 3.2, "Finance"),
        ("ITC", 2.9, "Consumer Goods"),
    ),
    "BANKNIFTY": _members(
        ("HDFCBANK", 25.5, "Finance"),
        ("ICICIBANK", 20.2, "Finance"),
        ("SBIN", 15.8, "Finance"),
        ("KOTAKBANK", 12.3, "Finance"),
        ("AXISBANK", 10.1, "Finance"),
        ("INDUSINDBK", 6.2, "Finance"),
        ("PNB", 4.5, "Finance"),
        ("BANKBARODA", 3.2, "Finance"),
        ("FEDERALBNK", 2.2, "Finance"),
    ),
    "US_TOP5": _members(
        ("AAPL", 25.0, "Technology"),
        ("MSFT", 22.0, "Technology"),
        ("AMZN", 18.0, "Consumer Discretionary"),
        ("GOOGL", 20.0, "Communication Services"),
        ("TSLA", 15.0, "Automotive"),
    ),
}


class StaticIndexMembershipProvider:
    """Constituents from an in-memory catalogue keyed by upper-case index id."""

    def __init__(self, catalogue: Optional[Mapping[str, list[IndexConstituent]]] = None):
        source = DEFAULT_CATALOGUE if catalogue is None else catalogue
        self._catalogue = {key.upper(): list(value) for key, value in source.items()}

    async def constituents(self, index_id: str) -> list[IndexConstituent]:
        return list(self._catalogue.get(index_id.upper(), []))
