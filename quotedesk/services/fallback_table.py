from __future__ import annotations

import random as _random
from datetime import datetime, timezone
from typing import Callable

from quotedesk.schemas.quote import Quote, QuoteSourceLabel
from quotedesk.services.reference_data import BASE_PRICES, company_name, estimate_market_cap

DEFAULT_BASE_PRICE = 100.0
FALLBACK_VOLATILITY = 0.02
MIN_FALLBACK_VOLUME = 1_000_000
FALLBACK_VOLUME_SPAN = 50_000_000


def perturb_price(base: float, u: float, volatility: float = FALLBACK_VOLATILITY) -> float:
    """Map ``u`` in [0, 1) onto ``base`` moved by at most ``volatility``."""
    return base * (1 + (u - 0.5) * volatility * 2)


class FallbackTable:
    """Static last-known prices used when no fetched quote is available."""

    def __init__(
        self,
        base_prices: dict[str, float] | None = None,
        *,
        default_price: float = DEFAULT_BASE_PRICE,
        random: Callable[[], float] | None = None,
        volatility: float = FALLBACK_VOLATILITY,
    ) -> None:
        self.base_prices = dict(BASE_PRICES if base_prices is None else base_prices)
        self.default_price = default_price
        self.random = random or _random.random
        self.volatility = volatility

    def base_price(self, symbol: str) -> float:
        return self.base_prices.get(symbol, self.default_price)

    def quote(self, symbol: str, now: datetime | None = None) -> Quote:
        base = self.base_price(symbol)
        price = perturb_price(base, self.random(), self.volatility)
        change = price - base
        volume = int(self.random() * FALLBACK_VOLUME_SPAN) + MIN_FALLBACK_VOLUME
        return Quote(
            symbol=symbol,
            name=company_name(symbol),
            price=price,
            change=change,
            change_pct=change / base * 100,
            volume=volume,
            previous_close=base,
            market_cap=estimate_market_cap(symbol, price),
            ts=now or datetime.now(timezone.utc),
            source=QuoteSourceLabel.FALLBACK,
        )
