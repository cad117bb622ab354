from pydantic import BaseModel


class UsageStats(BaseModel):
    used: int
    remaining: int
    quota: int
    cache_size: int
    cooldown_active: bool
    cooldown_remaining_sec: float
    market_open: bool
    mode: str
    last_request_ts: int | None = None
    recommended_refresh_sec: int


class ServiceStatus(BaseModel):
    mode: str
    provider: str
    config_problem: str | None = None


class CredentialsUpdate(BaseModel):
    api_key: str | None = None
    demo_mode: bool | None = None
