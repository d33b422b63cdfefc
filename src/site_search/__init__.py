"""Site search package: free local lookups and metered web search."""

from .config import ProviderConfig, QuotaConfig, SearchConfig, Settings, load_settings

__all__ = ["ProviderConfig", "QuotaConfig", "SearchConfig", "Settings", "load_settings"]
