"""Fleet data service: one fallback chain per resource.

Created: 2026-02-09

    agents    tables -> workspace -> mock
    activity  tables -> workspace -> mock
    tasks     tables -> workspace -> mock
    cron      gateway -> tables -> mock
    wallet    rpc -> mock
"""

import logging
from typing import Any

from fleetdeck.config import Settings, get_settings
from fleetdeck.fallback import FallbackChain, TierResult
from fleetdeck.sources.mock import MockProvider
from fleetdeck.sources.models import (
    ActivityItem,
    AgentInfo,
    CronJob,
    SourceResult,
    TaskItem,
    WalletSnapshot,
)
from fleetdeck.sources.providers import GatewayProvider, TableProvider, WorkspaceProvider
from fleetdeck.sources.wallet import WalletTracker
from fleetdeck.sources.workspace import WorkspaceScanner
from fleetdeck.tables import TableClient

logger = logging.getLogger(__name__)


def _message(result: TierResult[Any]) -> str | None:
    if result.source is None:
        return "All data sources failed"
    if result.skipped:
        return f"Served by {result.source}; unavailable: {', '.join(result.skipped)}"
    return None


class FleetDataService:
    """Resolve each fleet resource through its tier chain."""

    def __init__(
        self,
        tables: Any,
        workspace: Any,
        gateway: Any,
        wallet: Any,
        mock: Any | None = None,
        wallet_address: str = "",
    ):
        mock = mock or MockProvider()
        self._wallet_address = wallet_address
        self._agents = FallbackChain([tables, workspace, mock], label="agents")
        self._activity = FallbackChain([tables, workspace, mock], label="activity")
        self._tasks = FallbackChain([tables, workspace, mock], label="tasks")
        self._cron = FallbackChain([gateway, tables, mock], label="cron")
        self._wallet = FallbackChain([wallet, mock], label="wallet")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FleetDataService":
        settings = settings or get_settings()
        return cls(
            tables=TableProvider(TableClient.from_settings(settings)),
            workspace=WorkspaceProvider(
                WorkspaceScanner(settings.agents_dir, settings.activity_days)
            ),
            gateway=GatewayProvider(
                settings.gateway_url, settings.gateway_token, settings.gateway_timeout
            ),
            wallet=WalletTracker(
                settings.wallet_address,
                settings.wallet_rpc_url,
                settings.price_api_url,
                settings.fallback_token_price,
            ),
            wallet_address=settings.wallet_address,
        )

    async def agents(self) -> SourceResult[list[AgentInfo]]:
        result = await self._agents.run(lambda p: p.agents(), default=[])
        return SourceResult(result.value, result.source or "none", _message(result))

    async def activity(self, limit: int = 30) -> SourceResult[list[ActivityItem]]:
        result = await self._activity.run(lambda p: p.activity(limit), default=[])
        return SourceResult(result.value, result.source or "none", _message(result))

    async def tasks(self, status: str | None = None) -> SourceResult[list[TaskItem]]:
        result = await self._tasks.run(lambda p: p.tasks(status), default=[])
        return SourceResult(result.value, result.source or "none", _message(result))

    async def cron(self) -> SourceResult[list[CronJob]]:
        result = await self._cron.run(lambda p: p.cron(), default=[])
        return SourceResult(result.value, result.source or "none", _message(result))

    async def wallet(self) -> SourceResult[WalletSnapshot | None]:
        result = await self._wallet.run(lambda p: p.wallet(self._wallet_address), default=None)
        return SourceResult(result.value, result.source or "none", _message(result))


# =========================================================================
# Factory Function
# =========================================================================

_service_instance: FleetDataService | None = None


def get_fleet_data() -> FleetDataService:
    """Get or create the fleet data service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = FleetDataService.from_settings()
    return _service_instance


def reset_fleet_data() -> None:
    """Reset the service singleton (for testing)."""
    global _service_instance
    _service_instance = None
