"""Configuration models for the search service."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

OP_WEB_SEARCH = "web_search"


class SearchConfig(BaseModel):
    """Limits applied to incoming queries and rendered results."""

    max_query_length: int = Field(default=256, ge=1)
    local_limit: int = Field(default=10, ge=1)
    web_limit: int = Field(default=10, ge=1, le=20)
    snippet_length: int = Field(default=160, ge=1)


class ProviderConfig(BaseModel):
    """Configures the external web-search provider."""

    name: str = "brave"
    endpoint: str = "https://api.search.brave.com/res/v1/web/search"
    timeout_seconds: float = Field(default=10.0, gt=0.0)
    api_key_env: str = "BRAVE_API_KEY"
    max_record_body: int = Field(default=512, ge=0)


class QuotaConfig(BaseModel):
    """Credit costs per metered operation and the free daily allowance."""

    costs: dict[str, int] = Field(default_factory=lambda: {OP_WEB_SEARCH: 5})
    default_cost: int = Field(default=1, ge=0)
    free_daily_searches: int = Field(default=10, ge=0)

    def cost_for(self, operation: str) -> int:
        return self.costs.get(operation, self.default_cost)


class Settings(BaseModel):
    search: SearchConfig = Field(default_factory=SearchConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    quota: QuotaConfig = Field(default_factory=QuotaConfig)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build settings from defaults, `.env` and environment overrides.

    The provider API key is deliberately not part of `Settings`; it is read
    by the search client on every call.
    """
    load_dotenv()

    quota = QuotaConfig()
    web_cost = _env_int("CREDIT_COST_WEB_SEARCH")
    if web_cost is not None:
        quota.costs[OP_WEB_SEARCH] = web_cost
    free_daily = _env_int("FREE_DAILY_SEARCHES")
    if free_daily is not None:
        quota.free_daily_searches = free_daily

    return Settings(
        quota=quota,
        log_level=os.getenv("SITE_SEARCH_LOG_LEVEL", "INFO").upper(),
    )


def _env_int(key: str) -> int | None:
    raw = os.getenv(key)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None
