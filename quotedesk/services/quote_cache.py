from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from quotedesk.schemas.quote import CacheEntry, Quote
from quotedesk.services.market_hours import is_market_open

CLOSED_MARKET_TTL_MULTIPLIER = 3


class QuoteCache:
    """Bounded in-memory quote cache with FIFO eviction.

    Entries are never dropped on expiry: an expired entry is still served as a
    last-known quote when the live path fails. Only capacity pressure evicts.
    """

    def __init__(
        self,
        *,
        ttl_sec: int = 180,
        capacity: int = 100,
        market_open_checker: Callable[[datetime], bool] | None = None,
    ) -> None:
        self.ttl_sec = ttl_sec
        self.capacity = capacity
        self.market_open_checker = market_open_checker or is_market_open
        self.evictions = 0
        # dict keeps insertion order; reads never reorder it
        self._rows: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._rows

    def put(self, symbol: str, quote: Quote, now: datetime | None = None) -> None:
        inserted_at = now or datetime.now(timezone.utc)
        self._rows.pop(symbol, None)
        self._rows[symbol] = CacheEntry(quote=quote, inserted_at=inserted_at)
        while len(self._rows) > self.capacity:
            oldest = next(iter(self._rows))
            del self._rows[oldest]
            self.evictions += 1
            print(f"[CACHE][evict] symbol={oldest} capacity={self.capacity}", flush=True)

    def get(self, symbol: str) -> Quote | None:
        entry = self._rows.get(symbol)
        return entry.quote if entry else None

    def entry(self, symbol: str) -> CacheEntry | None:
        return self._rows.get(symbol)

    def window_for(self, entry: CacheEntry) -> timedelta:
        seconds = self.ttl_sec
        if not self.market_open_checker(entry.inserted_at):
            seconds *= CLOSED_MARKET_TTL_MULTIPLIER
        return timedelta(seconds=seconds)

    def is_valid(self, symbol: str, now: datetime | None = None) -> bool:
        entry = self._rows.get(symbol)
        if entry is None:
            return False
        ref = now or datetime.now(timezone.utc)
        return ref - entry.inserted_at < self.window_for(entry)

    def symbols(self) -> list[str]:
        return list(self._rows)

    def list_all(self) -> list[Quote]:
        return [entry.quote for entry in self._rows.values()]

    def clear(self) -> None:
        self._rows.clear()
