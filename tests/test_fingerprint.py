"""
Tests for input fingerprinting.
"""

import math
import random

import pytest

from indexpilot.core.exceptions import InputDataError, ValidationError
from indexpilot.domain.market import EnrichedInput
from indexpilot.services.scoring.fingerprint import canonical_payload, fingerprint
from tests.conftest import make_article, make_bars, make_enriched


class TestFingerprint:
    """Tests for fingerprint()."""

    def test_is_64_char_lowercase_hex(self):
        digest = fingerprint(make_enriched())
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_identical_content_hashes_identically(self):
        assert fingerprint(make_enriched()) == fingerprint(make_enriched())

    def test_url_timestamp_and_relevance_do_not_matter(self):
        a = make_enriched(news=[make_article(url="https://a.example", relevance_score=1.0)])
        b = make_enriched(news=[make_article(url="https://b.example", relevance_score=4.0)])
        assert fingerprint(a) == fingerprint(b)

    def test_news_title_changes_hash(self):
        a = make_enriched(news=[make_article(title="Beats earnings")])
        b = make_enriched(news=[make_article(title="Misses earnings")])
        assert fingerprint(a) != fingerprint(b)

    def test_price_change_changes_hash(self):
        assert fingerprint(make_enriched(closes=[100.0])) != fingerprint(make_enriched(closes=[100.5]))

    def test_ticker_changes_hash(self):
        assert fingerprint(make_enriched("AAPL")) != fingerprint(make_enriched("MSFT"))

    def test_list_order_is_content(self):
        first, second = make_article(title="One"), make_article(title="Two")
        assert fingerprint(make_enriched(news=[first, second])) != fingerprint(
            make_enriched(news=[second, first])
        )

    def test_canonical_payload_keeps_only_news_text_fields(self):
        payload = canonical_payload(make_enriched())
        assert set(payload) == {"ticker", "prices", "news"}
        assert set(payload["news"][0]) == {"title", "summary", "source"}

    def test_non_finite_price_is_rejected(self):
        enriched = EnrichedInput(ticker="AAPL", prices=make_bars([100.0]))
        enriched.prices[0].close = math.inf
        with pytest.raises(InputDataError) as exc_info:
            fingerprint(enriched)
        assert isinstance(exc_info.value, ValidationError)

    def test_non_enriched_input_is_rejected(self):
        with pytest.raises(InputDataError):
            fingerprint({"ticker": "AAPL"})


def random_enriched(rng: random.Random) -> EnrichedInput:
    closes = [round(rng.uniform(1, 500), 2) for _ in range(rng.randint(1, 20))]
    news = [
        make_article(title=f"headline {rng.randint(0, 10_000)}", url=f"https://news.example/{i}")
        for i in range(rng.randint(0, 5))
    ]
    return make_enriched(rng.choice(["AAPL", "MSFT", "NVDA"]), closes=closes, news=news)


@pytest.mark.parametrize("seed", range(25))
def test_randomized_inputs(seed):
    rng = random.Random(seed)
    enriched = random_enriched(rng)
    rebuilt = EnrichedInput.model_validate(enriched.model_dump())

    assert fingerprint(rebuilt) == fingerprint(enriched)

    changed = enriched.model_copy(deep=True)
    bar = rng.randrange(len(changed.prices))
    changed.prices[bar].close += 0.01
    assert fingerprint(changed) != fingerprint(enriched)
