"""
Tests for the in-memory exchange rate cache.
"""
from datetime import date
from decimal import Decimal

import pytest

from backoffice.schemas.exchange_rate import RateQuote
from backoffice.services.rate_cache import InMemoryRateCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _quote(to_currency, rate="0.73"):
    return RateQuote(
        from_currency="CAD",
        to_currency=to_currency,
        rate=Decimal(rate),
        rate_date=date(2024, 6, 1),
        source="exchangerate-api",
    )


def _key(to_currency):
    return ("CAD", to_currency, date(2024, 6, 1))


def test_get_returns_stored_quote():
    cache = InMemoryRateCache(max_entries=4, ttl_seconds=60)
    cache.put(_key("USD"), _quote("USD"))

    assert cache.get(_key("USD")) == _quote("USD")
    assert cache.get(_key("EUR")) is None


def test_expired_entry_is_dropped_on_read():
    clock = FakeClock()
    cache = InMemoryRateCache(max_entries=4, ttl_seconds=60, clock=clock)
    cache.put(_key("USD"), _quote("USD"))

    clock.advance(59)
    assert cache.get(_key("USD")) is not None

    clock.advance(1)
    assert cache.get(_key("USD")) is None
    assert len(cache) == 0


def test_full_cache_evicts_entry_closest_to_expiry():
    clock = FakeClock()
    cache = InMemoryRateCache(max_entries=2, ttl_seconds=60, clock=clock)
    cache.put(_key("USD"), _quote("USD"))
    clock.advance(10)
    cache.put(_key("EUR"), _quote("EUR"))
    clock.advance(10)
    cache.put(_key("GBP"), _quote("GBP"))

    assert len(cache) == 2
    assert cache.get(_key("USD")) is None
    assert cache.get(_key("EUR")) is not None
    assert cache.get(_key("GBP")) is not None


def test_full_cache_prefers_purging_expired_entries():
    clock = FakeClock()
    cache = InMemoryRateCache(max_entries=2, ttl_seconds=60, clock=clock)
    cache.put(_key("USD"), _quote("USD"))
    cache.put(_key("EUR"), _quote("EUR"))
    clock.advance(61)
    cache.put(_key("GBP"), _quote("GBP"))

    assert len(cache) == 1
    assert cache.get(_key("GBP")) is not None


def test_overwrite_does_not_evict():
    cache = InMemoryRateCache(max_entries=2, ttl_seconds=60)
    cache.put(_key("USD"), _quote("USD"))
    cache.put(_key("EUR"), _quote("EUR"))
    cache.put(_key("USD"), _quote("USD", rate="0.74"))

    assert len(cache) == 2
    assert cache.get(_key("USD")).rate == Decimal("0.74")
    assert cache.get(_key("EUR")) is not None


def test_purge_expired_and_clear():
    clock = FakeClock()
    cache = InMemoryRateCache(max_entries=8, ttl_seconds=60, clock=clock)
    cache.put(_key("USD"), _quote("USD"))
    clock.advance(30)
    cache.put(_key("EUR"), _quote("EUR"))
    clock.advance(31)

    assert cache.purge_expired() == 1
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


@pytest.mark.parametrize("max_entries, ttl", [(0, 60), (10, 0), (-1, 60)])
def test_rejects_non_positive_limits(max_entries, ttl):
    with pytest.raises(ValueError):
        InMemoryRateCache(max_entries=max_entries, ttl_seconds=ttl)
