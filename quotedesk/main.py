from __future__ import annotations

from contextlib import asynccontextmanager
from functools import partial
from zoneinfo import ZoneInfo

from fastapi import FastAPI

from quotedesk.api.routes import router
from quotedesk.config.settings import Settings, get_settings
from quotedesk.integrations.providers import create_quote_source
from quotedesk.services.fallback_table import FallbackTable
from quotedesk.services.market_hours import is_market_open
from quotedesk.services.quote_cache import QuoteCache
from quotedesk.services.quote_gateway import QuoteGatewayService
from quotedesk.services.state_store import JsonFileStore
from quotedesk.services.usage_tracker import UsageTracker


def build_gateway_service(settings: Settings, *, store=None, session=None) -> QuoteGatewayService:
    tz = ZoneInfo(settings.QUOTE_MARKET_TZ)
    market_open_checker = partial(is_market_open, tz=tz)
    store = store if store is not None else JsonFileStore(settings.QUOTE_STATE_PATH)
    return QuoteGatewayService(
        quote_cache=QuoteCache(
            ttl_sec=settings.QUOTE_CACHE_TTL_SEC,
            capacity=settings.QUOTE_CACHE_CAPACITY,
            market_open_checker=market_open_checker,
        ),
        quote_source=create_quote_source(
            settings.QUOTE_PROVIDER,
            session=session,
            timeout_sec=settings.QUOTE_HTTP_TIMEOUT_SEC,
        ),
        usage_tracker=UsageTracker(
            store,
            daily_quota=settings.QUOTE_DAILY_QUOTA,
            cooldown_sec=settings.QUOTE_COOLDOWN_SEC,
            tz=tz,
        ),
        fallback_table=FallbackTable(),
        store=store,
        env_api_key=settings.QUOTE_API_KEY,
        market_open_checker=market_open_checker,
        batch_delay_sec=settings.QUOTE_BATCH_DELAY_SEC,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    service = app.state.quote_gateway_service
    service.startup_check()
    print(
        f"[QUOTE][service_start] provider={settings.QUOTE_PROVIDER} "
        f"quota={settings.QUOTE_DAILY_QUOTA} watchlist={','.join(settings.QUOTE_WATCHLIST)}",
        flush=True,
    )
    try:
        yield
    finally:
        print("[QUOTE][service_stop]", flush=True)


app = FastAPI(title="quotedesk", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

app.state.get_settings = get_settings
app.state.quote_gateway_service = build_gateway_service(get_settings())
