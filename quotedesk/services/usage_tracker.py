from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from quotedesk.services.market_hours import NEW_YORK
from quotedesk.services.state_store import DAILY_REQUESTS_KEY, REQUEST_DATE_KEY, KeyValueStore


class UsageTracker:
    """Daily upstream request quota persisted in a key/value store.

    The persisted counter belongs to one calendar day; the first read on a new
    day resets it to zero before anything else sees it. A provider-signalled
    cooldown is tracked in memory only and blocks live fetches independently
    of the quota.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        daily_quota: int = 25,
        cooldown_sec: int = 60,
        clock: Callable[[], datetime] | None = None,
        tz: ZoneInfo = NEW_YORK,
    ) -> None:
        self.store = store
        self.daily_quota = daily_quota
        self.cooldown_sec = cooldown_sec
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(tz))
        self.last_request_ts: int | None = None
        self._cooldown_until: datetime | None = None
        self._lock = threading.Lock()

    def _today(self) -> str:
        return self.clock().astimezone(self.tz).date().isoformat()

    def _load_count_locked(self) -> int:
        today = self._today()
        if self.store.get(REQUEST_DATE_KEY) != today:
            self.store.update({REQUEST_DATE_KEY: today, DAILY_REQUESTS_KEY: "0"})
            print(f"[USAGE][day_rollover] date={today}", flush=True)
            return 0
        raw = self.store.get(DAILY_REQUESTS_KEY)
        try:
            return max(int(raw or 0), 0)
        except ValueError:
            return 0

    def used(self) -> int:
        with self._lock:
            return self._load_count_locked()

    def remaining(self) -> int:
        return max(self.daily_quota - self.used(), 0)

    def can_request(self) -> bool:
        return self.used() < self.daily_quota

    def record_request(self) -> int:
        with self._lock:
            count = self._load_count_locked() + 1
            self.store.update({DAILY_REQUESTS_KEY: str(count)})
            self.last_request_ts = int(self.clock().timestamp())
        print(f"[USAGE][request_recorded] used={count} quota={self.daily_quota}", flush=True)
        return count

    def start_cooldown(self, seconds: int | None = None) -> None:
        duration = self.cooldown_sec if seconds is None else seconds
        self._cooldown_until = self.clock() + timedelta(seconds=duration)
        print(f"[USAGE][cooldown_start] seconds={duration}", flush=True)

    def cooldown_remaining(self) -> float:
        if self._cooldown_until is None:
            return 0.0
        left = (self._cooldown_until - self.clock()).total_seconds()
        if left <= 0:
            self._cooldown_until = None
            print("[USAGE][cooldown_end]", flush=True)
            return 0.0
        return left

    def cooldown_active(self) -> bool:
        return self.cooldown_remaining() > 0
