"""Fleet data sources: agents, activity, tasks, cron jobs and the wallet."""

from fleetdeck.sources.models import (
    ActivityItem,
    AgentInfo,
    CronJob,
    SourceResult,
    TaskItem,
    WalletSnapshot,
)
from fleetdeck.sources.service import FleetDataService, get_fleet_data, reset_fleet_data

__all__ = [
    "ActivityItem",
    "AgentInfo",
    "CronJob",
    "SourceResult",
    "TaskItem",
    "WalletSnapshot",
    "FleetDataService",
    "get_fleet_data",
    "reset_fleet_data",
]
