from __future__ import annotations

from datetime import datetime, timezone

from quotedesk.errors import UpstreamError, UpstreamErrorKind
from quotedesk.integrations.base import HttpQuoteSource, _optional_float, _required_float, _to_float, _to_int
from quotedesk.schemas.quote import Quote


class FmpQuoteSource(HttpQuoteSource):
    """Financial Modeling Prep ``/quote`` client."""

    name = "fmp"
    requires_api_key = True
    base_url = "https://financialmodelingprep.com/api/v3/quote"

    def fetch(self, symbol: str) -> Quote:
        payload = self._get_json(f"{self.base_url}/{symbol}", params={"apikey": self.api_key})

        if isinstance(payload, dict):
            message = str(payload.get("Error Message") or payload.get("message") or "")
            if "limit" in message.lower():
                raise UpstreamError(UpstreamErrorKind.PROVIDER_RATE_LIMITED, message)
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, message or "expected a list payload")

        if not isinstance(payload, list) or not payload:
            raise UpstreamError(UpstreamErrorKind.EMPTY_RESPONSE, f"no quote object for {symbol}")

        row = payload[0]
        if not isinstance(row, dict):
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, f"quote row must be an object, got {type(row).__name__}")
        stamp = row.get("timestamp")
        ts = datetime.fromtimestamp(int(stamp), tz=timezone.utc) if stamp else datetime.now(timezone.utc)

        return self._build_quote(
            symbol=str(row.get("symbol") or symbol).upper(),
            name=row.get("name"),
            price=_required_float(row.get("price"), field_name="price"),
            change=_to_float(row.get("change")),
            change_pct=_to_float(row.get("changesPercentage")),
            volume=_to_int(row.get("volume")),
            high=_optional_float(row.get("dayHigh")),
            low=_optional_float(row.get("dayLow")),
            previous_close=_optional_float(row.get("previousClose")),
            market_cap=_optional_float(row.get("marketCap")),
            ts=ts,
        )
