"""
ndpdeploy configuration.

- Pydantic-based deploy settings (environment variables, .env files)
- The federation document model and its validation
- The federation document fetcher
"""

from ndpdeploy.config.federation import FederationConfig, format_bool, normalize_bool
from ndpdeploy.config.fetcher import ConfigFetcher
from ndpdeploy.config.settings import DeploySettings, get_settings

__all__ = [
    "DeploySettings",
    "get_settings",
    "FederationConfig",
    "normalize_bool",
    "format_bool",
    "ConfigFetcher",
]
