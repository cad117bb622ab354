from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from quotedesk.errors import UpstreamErrorKind


class QuoteSourceLabel(str, Enum):
    LIVE = "LIVE"
    CACHED = "CACHED"
    FALLBACK = "FALLBACK"


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str | None = None
    price: float = Field(gt=0)
    change: float = 0.0
    change_pct: float = 0.0
    volume: int = Field(default=0, ge=0)
    high: float | None = None
    low: float | None = None
    previous_close: float | None = None
    market_cap: float | None = None
    latest_trading_day: str | None = None
    ts: datetime
    source: QuoteSourceLabel

    def relabel(self, source: QuoteSourceLabel) -> "Quote":
        return self.model_copy(update={"source": source})


class CacheEntry(BaseModel):
    quote: Quote
    inserted_at: datetime


class FetchResult(BaseModel):
    """Outcome of one upstream fetch: either a quote or a classified error."""

    quote: Quote | None = None
    error_kind: UpstreamErrorKind | None = None
    detail: str | None = None

    @classmethod
    def success(cls, quote: Quote) -> "FetchResult":
        return cls(quote=quote)

    @classmethod
    def failure(cls, kind: UpstreamErrorKind, detail: str = "") -> "FetchResult":
        return cls(error_kind=kind, detail=detail)

    @property
    def ok(self) -> bool:
        return self.quote is not None
