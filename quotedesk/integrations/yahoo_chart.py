from __future__ import annotations

from datetime import datetime, timezone

from quotedesk.errors import UpstreamError, UpstreamErrorKind
from quotedesk.integrations.base import HttpQuoteSource, _optional_float, _required_float, _to_int
from quotedesk.schemas.quote import Quote


class YahooChartQuoteSource(HttpQuoteSource):
    """Quote from the chart endpoint's ``meta`` block; no API key needed."""

    name = "yahoo"
    base_url = "https://query1.finance.yahoo.com/v8/finance/chart"

    def fetch(self, symbol: str) -> Quote:
        payload = self._get_json(f"{self.base_url}/{symbol}", params={"interval": "1d", "range": "1d"})
        chart = payload.get("chart") if isinstance(payload, dict) else None
        if not isinstance(chart, dict):
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, "missing chart object")

        error = chart.get("error")
        if error:
            description = error.get("description") if isinstance(error, dict) else str(error)
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, str(description))

        results = chart.get("result") or []
        if not results or not isinstance(results[0], dict) or not results[0].get("meta"):
            raise UpstreamError(UpstreamErrorKind.EMPTY_RESPONSE, f"no chart result for {symbol}")

        meta = results[0]["meta"]
        if not isinstance(meta, dict):
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, f"chart meta must be an object, got {type(meta).__name__}")
        price = _required_float(meta.get("regularMarketPrice"), field_name="regularMarketPrice")
        previous_close = _optional_float(meta.get("chartPreviousClose", meta.get("previousClose")))
        change = price - previous_close if previous_close else 0.0
        change_pct = change / previous_close * 100 if previous_close else 0.0

        market_time = meta.get("regularMarketTime")
        ts = datetime.fromtimestamp(int(market_time), tz=timezone.utc) if market_time else datetime.now(timezone.utc)

        return self._build_quote(
            symbol=str(meta.get("symbol") or symbol).upper(),
            name=meta.get("longName") or meta.get("shortName"),
            price=price,
            change=change,
            change_pct=change_pct,
            volume=_to_int(meta.get("regularMarketVolume")),
            high=_optional_float(meta.get("regularMarketDayHigh")),
            low=_optional_float(meta.get("regularMarketDayLow")),
            previous_close=previous_close,
            ts=ts,
        )
