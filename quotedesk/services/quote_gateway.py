from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

from quotedesk.config.settings import is_usable_api_key
from quotedesk.errors import UpstreamErrorKind
from quotedesk.schemas.quote import Quote, QuoteSourceLabel
from quotedesk.schemas.usage import ServiceStatus, UsageStats
from quotedesk.services.fallback_table import FallbackTable
from quotedesk.services.market_hours import is_market_open, recommended_refresh_sec
from quotedesk.services.quote_cache import QuoteCache
from quotedesk.services.state_store import API_KEY_KEY, DEMO_MODE_KEY, KeyValueStore
from quotedesk.services.usage_tracker import UsageTracker


def normalize_symbol(symbol: str) -> str:
    return str(symbol).strip().upper()


class QuoteGatewayService:
    """Cache-first quote resolver.

    Order per symbol: valid cache entry, then a live fetch if credentials,
    quota and cooldown allow it, then the last cached quote (even expired),
    then the static fallback table. Upstream failures never reach the caller.
    """

    def __init__(
        self,
        *,
        quote_cache: QuoteCache,
        quote_source,
        usage_tracker: UsageTracker,
        fallback_table: FallbackTable,
        store: KeyValueStore | None = None,
        env_api_key: str | None = None,
        market_open_checker: Callable[[datetime], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
        batch_delay_sec: float = 2.0,
    ) -> None:
        self.quote_cache = quote_cache
        self.quote_source = quote_source
        self.usage_tracker = usage_tracker
        self.fallback_table = fallback_table
        self.store = store
        self.env_api_key = env_api_key
        self.market_open_checker = market_open_checker or is_market_open
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.sleep = sleep or time.sleep
        self.batch_delay_sec = batch_delay_sec

        self.live_enabled = True
        self.demo_mode = False
        self.config_problem: str | None = None
        self._config_problem_reported = False

        self.cache_hits = 0
        self.live_fetches = 0
        self.live_failures = 0
        self.cached_served = 0
        self.fallbacks_served = 0
        self.last_batch_target = 0
        self.last_batch_live = 0
        self.last_batch_cached = 0
        self.last_batch_fallback = 0

        self.reload_credentials()

    @property
    def mode(self) -> str:
        return "live" if self.live_enabled else "demo"

    def _stored(self, key: str) -> str | None:
        return self.store.get(key) if self.store is not None else None

    def reload_credentials(self) -> None:
        """Re-evaluate live mode from the environment key and the persisted settings."""
        self.demo_mode = (self._stored(DEMO_MODE_KEY) or "").lower() == "true"
        api_key = self.env_api_key if is_usable_api_key(self.env_api_key) else self._stored(API_KEY_KEY)
        needs_key = bool(getattr(self.quote_source, "requires_api_key", False))

        self.config_problem = None
        if self.demo_mode:
            self.live_enabled = False
        elif needs_key and not is_usable_api_key(api_key):
            self.live_enabled = False
            provider = getattr(self.quote_source, "name", "provider")
            self.config_problem = f"no API key configured for {provider}; serving fallback data"
        else:
            self.live_enabled = True
        if is_usable_api_key(api_key):
            self.quote_source.api_key = api_key.strip()

    def startup_check(self) -> str | None:
        self.reload_credentials()
        if self.config_problem and not self._config_problem_reported:
            print(f"[CONFIG][api_key_missing] {self.config_problem}", flush=True)
            self._config_problem_reported = True
        print(f"[QUOTE][mode] mode={self.mode}", flush=True)
        return self.config_problem

    def _live_skip_reason(self) -> str | None:
        if not self.live_enabled:
            return "demo_mode"
        if self.usage_tracker.cooldown_active():
            return "cooldown_active"
        if not self.usage_tracker.can_request():
            return "daily_quota_exhausted"
        return None

    def _degrade(self, symbol: str, now: datetime) -> tuple[Quote, QuoteSourceLabel]:
        cached = self.quote_cache.get(symbol)
        if cached is not None:
            self.cached_served += 1
            return cached.relabel(QuoteSourceLabel.CACHED), QuoteSourceLabel.CACHED
        self.fallbacks_served += 1
        return self.fallback_table.quote(symbol, now=now), QuoteSourceLabel.FALLBACK

    def _resolve(
        self,
        symbol: str,
        before_live: Callable[[], None] | None = None,
    ) -> tuple[Quote, QuoteSourceLabel]:
        now = self.clock()
        if self.quote_cache.is_valid(symbol, now):
            self.cache_hits += 1
            # provenance is kept as labeled when the quote was cached
            return self.quote_cache.get(symbol), QuoteSourceLabel.CACHED

        skip_reason = self._live_skip_reason()
        if skip_reason is not None:
            print(f"[QUOTE][live_skip] symbol={symbol} reason={skip_reason}", flush=True)
            return self._degrade(symbol, now)

        if before_live is not None:
            before_live()
        result = self.quote_source.try_fetch(symbol)
        if result.ok:
            quote = result.quote.relabel(QuoteSourceLabel.LIVE)
            self.usage_tracker.record_request()
            self.quote_cache.put(symbol, quote, now=self.clock())
            self.live_fetches += 1
            print(f"[QUOTE][live_fetch] symbol={symbol} price={quote.price:.2f}", flush=True)
            return quote, QuoteSourceLabel.LIVE

        self.live_failures += 1
        if result.error_kind == UpstreamErrorKind.PROVIDER_RATE_LIMITED:
            self.usage_tracker.start_cooldown()
        print(
            f"[QUOTE][live_fetch_error] symbol={symbol} kind={result.error_kind.value} detail={result.detail}",
            flush=True,
        )
        return self._degrade(symbol, now)

    def get_quote(self, symbol: str) -> Quote:
        value = normalize_symbol(symbol)
        if not value:
            raise ValueError("symbol must not be empty")
        quote, _ = self._resolve(value)
        return quote

    def get_quotes(self, symbols: list[str]) -> list[Quote]:
        unique_symbols: list[str] = []
        seen: set[str] = set()
        for symbol in symbols:
            value = normalize_symbol(symbol)
            if not value or value in seen:
                continue
            seen.add(value)
            unique_symbols.append(value)

        live_attempts = 0

        def pace() -> None:
            nonlocal live_attempts
            if live_attempts:
                self.sleep(self.batch_delay_sec)
            live_attempts += 1

        counts = {label: 0 for label in QuoteSourceLabel}
        out: list[Quote] = []
        for symbol in unique_symbols:
            quote, outcome = self._resolve(symbol, before_live=pace)
            counts[outcome] += 1
            out.append(quote)

        self.last_batch_target = len(unique_symbols)
        self.last_batch_live = counts[QuoteSourceLabel.LIVE]
        self.last_batch_cached = counts[QuoteSourceLabel.CACHED]
        self.last_batch_fallback = counts[QuoteSourceLabel.FALLBACK]

        print(
            "[QUOTE][batch_resolve] "
            f"target_count={len(unique_symbols)} live_attempts={live_attempts} "
            f"live_count={self.last_batch_live} cached_count={self.last_batch_cached} "
            f"fallback_count={self.last_batch_fallback}",
            flush=True,
        )
        return out

    def usage_stats(self) -> UsageStats:
        market_open = self.market_open_checker(self.clock())
        cooldown_left = self.usage_tracker.cooldown_remaining()
        return UsageStats(
            used=self.usage_tracker.used(),
            remaining=self.usage_tracker.remaining(),
            quota=self.usage_tracker.daily_quota,
            cache_size=len(self.quote_cache),
            cooldown_active=cooldown_left > 0,
            cooldown_remaining_sec=round(cooldown_left, 3),
            market_open=market_open,
            mode=self.mode,
            last_request_ts=self.usage_tracker.last_request_ts,
            recommended_refresh_sec=recommended_refresh_sec(market_open),
        )

    def status(self) -> ServiceStatus:
        return ServiceStatus(
            mode=self.mode,
            provider=str(getattr(self.quote_source, "name", "unknown")),
            config_problem=self.config_problem,
        )

    def metrics(self) -> dict[str, int]:
        return {
            "cached_symbols": len(self.quote_cache),
            "cache_evictions": self.quote_cache.evictions,
            "cache_hits": self.cache_hits,
            "live_fetches": self.live_fetches,
            "live_failures": self.live_failures,
            "cached_served": self.cached_served,
            "fallbacks_served": self.fallbacks_served,
            "batch_target_count": self.last_batch_target,
            "batch_live_count": self.last_batch_live,
            "batch_cached_count": self.last_batch_cached,
            "batch_fallback_count": self.last_batch_fallback,
        }
