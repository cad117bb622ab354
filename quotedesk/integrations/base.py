from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from quotedesk.errors import UpstreamError, UpstreamErrorKind
from quotedesk.schemas.quote import FetchResult, Quote, QuoteSourceLabel
from quotedesk.services.reference_data import company_name, estimate_market_cap

USER_AGENT = "quotedesk/0.1"


def _optional_float(value: Any) -> float | None:
    """Parse a provider number; blanks, garbage and non-finite values give None."""
    if value is None or value == "":
        return None
    try:
        parsed = float(str(value).replace("%", "").replace(",", ""))
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _to_float(value: Any, default: float = 0.0) -> float:
    parsed = _optional_float(value)
    return default if parsed is None else parsed


def _required_float(value: Any, *, field_name: str) -> float:
    parsed = _optional_float(value)
    if parsed is None:
        raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, f"invalid numeric value for {field_name}: {value!r}")
    return parsed


def _to_int(value: Any, default: int = 0) -> int:
    return max(int(_to_float(value, float(default))), 0)


class HttpQuoteSource:
    """Single-request quote source over a requests-compatible session.

    Subclasses implement ``fetch``; this base owns the HTTP round-trip, maps
    transport problems onto ``UpstreamError`` and builds validated quotes.
    """

    name = "http"
    requires_api_key = False

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        session: Optional[Any] = None,
        timeout_sec: float = 15.0,
        base_url: Optional[str] = None,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests
        self.timeout_sec = timeout_sec
        if base_url is not None:
            self.base_url = base_url

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise UpstreamError(UpstreamErrorKind.HTTP_ERROR, str(exc)) from exc

        if getattr(response, "status_code", None) == 429:
            raise UpstreamError(UpstreamErrorKind.PROVIDER_RATE_LIMITED, "HTTP 429")
        try:
            response.raise_for_status()
        except requests.RequestException as exc:
            raise UpstreamError(UpstreamErrorKind.HTTP_ERROR, str(exc)) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, "response body is not JSON") from exc

    @staticmethod
    def _build_quote(**fields: Any) -> Quote:
        symbol = fields["symbol"]
        price = fields["price"]
        if price <= 0:
            raise UpstreamError(UpstreamErrorKind.PARSE_ERROR, f"non-positive price for {symbol}: {price}")
        fields.setdefault("ts", datetime.now(timezone.utc))
        if not fields.get("name"):
            fields["name"] = company_name(symbol)
        if fields.get("market_cap") is None:
            fields["market_cap"] = estimate_market_cap(symbol, price)
        return Quote(source=QuoteSourceLabel.LIVE, **fields)

    def fetch(self, symbol: str) -> Quote:
        raise NotImplementedError

    def try_fetch(self, symbol: str) -> FetchResult:
        try:
            return FetchResult.success(self.fetch(symbol))
        except UpstreamError as exc:
            return FetchResult.failure(exc.kind, exc.detail)
        except Exception as exc:
            # any other payload shape or validation problem is a parse failure
            return FetchResult.failure(UpstreamErrorKind.PARSE_ERROR, f"{type(exc).__name__}: {exc}")
