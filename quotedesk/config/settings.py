import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field

PLACEHOLDER_API_KEYS = {"DEMO_KEY", "ENTER_YOUR_KEY_HERE"}
DEFAULT_WATCHLIST = ["NVDA", "META", "TSLA", "AAPL", "MSFT", "AMZN", "GOOGL"]


def _split_symbols(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    symbols = [s.strip().upper() for s in raw.split(",") if s.strip()]
    return symbols or None


class Settings(BaseModel):
    QUOTE_PROVIDER: Literal["alphavantage", "yahoo", "fmp"] = "alphavantage"
    QUOTE_API_KEY: str | None = None
    QUOTE_DAILY_QUOTA: int = Field(default=25, ge=1)
    QUOTE_CACHE_TTL_SEC: int = Field(default=180, gt=0)
    QUOTE_CACHE_CAPACITY: int = Field(default=100, ge=1)
    QUOTE_COOLDOWN_SEC: int = Field(default=60, ge=0)
    QUOTE_BATCH_DELAY_SEC: float = Field(default=2.0, ge=0)
    QUOTE_HTTP_TIMEOUT_SEC: float = Field(default=15.0, gt=0)
    QUOTE_STATE_PATH: str = ".quotedesk_state.json"
    QUOTE_WATCHLIST: list[str] = Field(default_factory=lambda: list(DEFAULT_WATCHLIST))
    QUOTE_MARKET_TZ: str = "America/New_York"

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "QUOTE_PROVIDER": os.getenv("QUOTE_PROVIDER"),
            "QUOTE_API_KEY": os.getenv("QUOTE_API_KEY"),
            "QUOTE_DAILY_QUOTA": os.getenv("QUOTE_DAILY_QUOTA"),
            "QUOTE_CACHE_TTL_SEC": os.getenv("QUOTE_CACHE_TTL_SEC"),
            "QUOTE_CACHE_CAPACITY": os.getenv("QUOTE_CACHE_CAPACITY"),
            "QUOTE_COOLDOWN_SEC": os.getenv("QUOTE_COOLDOWN_SEC"),
            "QUOTE_BATCH_DELAY_SEC": os.getenv("QUOTE_BATCH_DELAY_SEC"),
            "QUOTE_HTTP_TIMEOUT_SEC": os.getenv("QUOTE_HTTP_TIMEOUT_SEC"),
            "QUOTE_STATE_PATH": os.getenv("QUOTE_STATE_PATH"),
            "QUOTE_WATCHLIST": _split_symbols(os.getenv("QUOTE_WATCHLIST")),
            "QUOTE_MARKET_TZ": os.getenv("QUOTE_MARKET_TZ"),
        }
        # unset variables fall back to field defaults
        return cls.model_validate({k: v for k, v in raw.items() if v is not None})


def is_usable_api_key(value: str | None) -> bool:
    if value is None:
        return False
    key = value.strip()
    return bool(key) and key not in PLACEHOLDER_API_KEYS


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
