from __future__ import annotations

from typing import Any, Optional

from quotedesk.errors import ConfigurationError
from quotedesk.integrations.alpha_vantage import AlphaVantageQuoteSource
from quotedesk.integrations.base import HttpQuoteSource
from quotedesk.integrations.fmp import FmpQuoteSource
from quotedesk.integrations.yahoo_chart import YahooChartQuoteSource

PROVIDERS: dict[str, type[HttpQuoteSource]] = {
    AlphaVantageQuoteSource.name: AlphaVantageQuoteSource,
    YahooChartQuoteSource.name: YahooChartQuoteSource,
    FmpQuoteSource.name: FmpQuoteSource,
}


def create_quote_source(
    provider: str,
    api_key: Optional[str] = None,
    *,
    session: Optional[Any] = None,
    timeout_sec: float = 15.0,
) -> HttpQuoteSource:
    try:
        source_cls = PROVIDERS[provider]
    except KeyError as exc:
        raise ConfigurationError(f"unknown quote provider: {provider}") from exc
    return source_cls(api_key, session=session, timeout_sec=timeout_sec)
