"""
Deploy settings using Pydantic.

Provides environment-based configuration loading with NDP_ prefix. Settings
are resolved once by the CLI and handed to the orchestrator; components never
read the process environment themselves.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class DeploySettings(BaseSettings):
    """Deploy settings."""

    # Federation API
    prod_base_url: str = "https://federation.ndp.utah.edu/api/v1"
    test_base_url: str = "https://federation-test.ndp.utah.edu/api/v1"
    http_timeout: float = 30.0

    # Local artifacts
    workdir: Path = Path(".")
    state_file: str = "provisioning_state.env"
    snapshot_file: str = "federation_config.yaml"
    summary_file: str = "deploy_summary.txt"

    # Readiness polling
    readiness_timeout: float = 300.0
    readiness_interval: float = 5.0

    # Identity provider
    keycloak_url: str = "https://idp.nationaldataplatform.org"

    # Gateway
    catalog_global_url: str = "https://nationaldataplatform.org/catalog"
    swagger_title: str = "NDP POP REST API"

    # Host tooling
    install_missing_tools: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "NDP_"
        extra = "ignore"

    def base_url_for(self, env: str) -> str:
        """Federation base URL for a named environment (prod or test)."""
        if env == "prod":
            return self.prod_base_url
        if env == "test":
            return self.test_base_url
        raise ValueError(f"Unknown environment '{env}' (expected 'prod' or 'test')")


@lru_cache
def get_settings() -> DeploySettings:
    """Get cached settings instance."""
    return DeploySettings()
