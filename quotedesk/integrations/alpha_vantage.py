from __future__ import annotations

from typing import Any, Dict

from quotedesk.errors import UpstreamError, UpstreamErrorKind
from quotedesk.integrations.base import HttpQuoteSource, _optional_float, _required_float, _to_float, _to_int
from quotedesk.schemas.quote import Quote

RATE_LIMIT_MARKER = "rate limit"


def detect_rate_limit(payload: Dict[str, Any]) -> str | None:
    """Return the provider's throttling notice if the payload carries one."""
    for key in ("Note", "Information"):
        text = payload.get(key)
        if isinstance(text, str) and RATE_LIMIT_MARKER in text.lower():
            return text
    return None


class AlphaVantageQuoteSource(HttpQuoteSource):
    """Alpha Vantage GLOBAL_QUOTE client."""

    name = "alphavantage"
    requires_api_key = True
    base_url = "https://www.alphavantage.co/query"

    def fetch(self, symbol: str) -> Quote:
        payload = self._get_json(
            self.base_url,
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key},
        )
        if not isinstance(payload, dict):
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, "payload must be an object")

        if payload.get("Error Message"):
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, str(payload["Error Message"]))

        notice = detect_rate_limit(payload)
        if notice is not None:
            raise UpstreamError(UpstreamErrorKind.PROVIDER_RATE_LIMITED, notice)

        quote = payload.get("Global Quote")
        if not isinstance(quote, dict) or not quote:
            raise UpstreamError(UpstreamErrorKind.EMPTY_RESPONSE, f"no quote object for {symbol}")

        return self.parse_global_quote(quote, symbol)

    def parse_global_quote(self, quote: Dict[str, Any], requested_symbol: str) -> Quote:
        return self._build_quote(
            symbol=str(quote.get("01. symbol") or requested_symbol).upper(),
            price=_required_float(quote.get("05. price"), field_name="05. price"),
            change=_to_float(quote.get("09. change")),
            change_pct=_to_float(quote.get("10. change percent")),
            volume=_to_int(quote.get("06. volume")),
            high=_optional_float(quote.get("03. high")),
            low=_optional_float(quote.get("04. low")),
            previous_close=_optional_float(quote.get("08. previous close")),
            latest_trading_day=quote.get("07. latest trading day") or None,
        )
