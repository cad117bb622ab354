from __future__ import annotations

from datetime import datetime, time
from zoneinfo import ZoneInfo

NEW_YORK = ZoneInfo("America/New_York")
MARKET_OPEN_TIME = time(9, 30)
MARKET_CLOSE_TIME = time(16, 0)

OPEN_MARKET_REFRESH_SEC = 300
CLOSED_MARKET_REFRESH_SEC = 600


def is_market_open(now: datetime | None = None, tz: ZoneInfo = NEW_YORK) -> bool:
    """Return whether the US equity session is open in New York time.

    The session is 09:30 inclusive to 16:00 exclusive, so the 16:00 minute
    already counts as closed. No exchange holiday calendar is applied.
    """
    current = now or datetime.now(tz)

    if current.tzinfo is None:
        local_now = current.replace(tzinfo=tz)
    else:
        local_now = current.astimezone(tz)

    # Saturday=5, Sunday=6
    if local_now.weekday() >= 5:
        return False

    current_time = local_now.time()
    return MARKET_OPEN_TIME <= current_time < MARKET_CLOSE_TIME


def recommended_refresh_sec(market_open: bool) -> int:
    return OPEN_MARKET_REFRESH_SEC if market_open else CLOSED_MARKET_REFRESH_SEC
