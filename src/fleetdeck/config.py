"""Fleetdeck configuration.

Created: 2026-02-09
Updated: 2026-02-21 — Added wallet and approval webhook settings.

All settings are read from environment variables prefixed with
``FLEETDECK_`` (or a ``.env`` file in the working directory). Unset
credentials simply disable the tier that needs them; nothing here is
required to boot the dashboard locally.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_OPENCLAW_HOME = Path.home() / ".openclaw"


class Settings(BaseSettings):
    """Runtime settings for the Mission Control dashboard."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Hosted table backend (PostgREST / Supabase)
    supabase_url: str = ""
    supabase_service_key: str = ""
    table_prefix: str = "dashboard_"
    table_timeout: float = 10.0

    # Orchestration gateway
    gateway_url: str = "http://localhost:4440"
    gateway_token: str = ""
    gateway_timeout: float = 5.0

    # Filesystem tiers
    agents_dir: Path = Field(default=_OPENCLAW_HOME / "agents")
    reviews_dir: Path = Field(default=_OPENCLAW_HOME / "reviews")
    activity_days: int = 7

    # Auth gate
    dashboard_token: str = ""
    session_ttl_hours: int = 24 * 7
    auth_exempt_reviews: bool = True

    # Review workflow
    review_decider: str = "operator"
    verify_preview_urls: bool = True
    url_check_timeout: float = 5.0

    # Deliverable approvals
    approval_webhook_url: str = ""

    # Wallet tracker
    wallet_address: str = ""
    wallet_rpc_url: str = "https://polygon-rpc.com"
    price_api_url: str = (
        "https://api.coingecko.com/api/v3/simple/price?ids=matic-network&vs_currencies=usd"
    )
    fallback_token_price: float = 0.5

    # Web server
    web_host: str = "127.0.0.1"
    web_port: int = 8890
    log_level: str = "INFO"

    @property
    def tables_configured(self) -> bool:
        """True when both the table URL and the service key are set."""
        return bool(self.supabase_url and self.supabase_service_key)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.dashboard_token)

    def table_name(self, logical: str) -> str:
        """Map a logical table name (``reviews``) to its physical name."""
        return f"{self.table_prefix}{logical}"


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
