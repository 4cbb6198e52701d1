"""
Bounded in-memory cache for resolved exchange rates.

Sits in front of the exchange_rates table. The request path reads and writes
it through ExchangeRateResolver; the daily refresh job writes the rates it
upserts, so both share one component with one eviction policy.
"""
import threading
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Protocol, Tuple

from backoffice.schemas.exchange_rate import RateQuote

RateKey = Tuple[str, str, date]


class RateCache(Protocol):
    def get(self, key: RateKey) -> Optional[RateQuote]: ...

    def put(self, key: RateKey, quote: RateQuote) -> None: ...

    def clear(self) -> None: ...


@dataclass
class _Entry:
    quote: RateQuote
    expires_at: float


class InMemoryRateCache:
    """Thread-safe TTL cache with a hard size bound.

    Expired entries are dropped on read and before any eviction. When the
    cache is full, the entry closest to expiry goes first.
    """

    def __init__(
        self,
        max_entries: int = 1024,
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[RateKey, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: RateKey) -> Optional[RateQuote]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.quote

    def put(self, key: RateKey, quote: RateQuote) -> None:
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._purge_expired(now)
                if len(self._entries) >= self._max_entries:
                    oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
                    del self._entries[oldest]
            self._entries[key] = _Entry(quote=quote, expires_at=now + self._ttl)

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired(self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, v in self._entries.items() if v.expires_at <= now]
        for k in expired:
            del self._entries[k]
        return len(expired)
