"""Fleet data providers.

Created: 2026-02-09
Updated: 2026-02-16 — Cron jobs read from the gateway first.

One class per backend. Each exposes the resources it can serve
(``agents``, ``activity``, ``tasks``, ``cron``) and raises
``ProviderUnavailable`` for the ones it cannot, so a ``FallbackChain`` can
run the same call against every tier.
"""

import logging

import httpx

from fleetdeck.errors import ProviderUnavailable, StorageError
from fleetdeck.sources.models import (
    ActivityItem,
    AgentInfo,
    CronJob,
    TaskItem,
    sort_activities,
    sort_agents,
    sort_tasks,
)
from fleetdeck.sources.workspace import WorkspaceScanner
from fleetdeck.tables import TableClient, parse_rows

logger = logging.getLogger(__name__)


class TableProvider:
    """Reads the hosted tables kept fresh by ``fleetdeck sync``."""

    name = "tables"

    def __init__(self, client: TableClient):
        self._client = client

    async def agents(self) -> list[AgentInfo]:
        rows = await self._client.select("agents", order="status.asc")
        return sort_agents(parse_rows(rows, AgentInfo.from_row, "agents"))

    async def activity(self, limit: int = 30) -> list[ActivityItem]:
        rows = await self._client.select("activities", order="timestamp.desc", limit=limit)
        return parse_rows(rows, ActivityItem.from_row, "activities")

    async def tasks(self, status: str | None = None) -> list[TaskItem]:
        filters = {"status": f"eq.{status}"} if status else None
        rows = await self._client.select(
            "tasks", filters=filters, order="priority.asc,created_at.desc"
        )
        return sort_tasks(parse_rows(rows, TaskItem.from_row, "tasks"))

    async def cron(self) -> list[CronJob]:
        rows = await self._client.select("cron_jobs", order="name.asc")
        return parse_rows(rows, CronJob.from_row, "cron_jobs")


class WorkspaceProvider:
    """Parses agent workspaces on the local filesystem."""

    name = "workspace"

    def __init__(self, scanner: WorkspaceScanner):
        self._scanner = scanner

    def _scan(self):
        if not self._scanner.available:
            raise ProviderUnavailable(f"agents directory {self._scanner.agents_dir} not found")
        return self._scanner.scan()

    async def agents(self) -> list[AgentInfo]:
        snapshot = self._scan()
        if not snapshot.agents:
            raise ProviderUnavailable("no agent workspaces found")
        return sort_agents([AgentInfo.from_row(row) for row in snapshot.agents])

    async def activity(self, limit: int = 30) -> list[ActivityItem]:
        snapshot = self._scan()
        if not snapshot.activities:
            raise ProviderUnavailable("no recent daily logs")
        items = sort_activities([ActivityItem.from_row(row) for row in snapshot.activities])
        return items[:limit]

    async def tasks(self, status: str | None = None) -> list[TaskItem]:
        snapshot = self._scan()
        if not snapshot.tasks:
            raise ProviderUnavailable("no HEARTBEAT.md tasks")
        tasks = [TaskItem.from_row(row) for row in snapshot.tasks]
        if status:
            tasks = [t for t in tasks if t.status.value == status]
        return sort_tasks(tasks)

    async def cron(self) -> list[CronJob]:
        raise ProviderUnavailable("workspaces hold no cron schedule")


class GatewayProvider:
    """Live cron schedule from the orchestration gateway."""

    name = "gateway"

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self._token = token
        self.timeout = timeout
        self._transport = transport

    async def cron(self) -> list[CronJob]:
        if not (self.url and self._token):
            raise ProviderUnavailable("gateway URL or token not set")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(
                f"{self.url}/api/cron/list",
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
            )
        if resp.status_code >= 400:
            raise StorageError(f"gateway responded {resp.status_code}")
        data = resp.json()
        if not isinstance(data, dict):
            raise StorageError("gateway returned an unexpected cron payload")
        return parse_rows(data.get("jobs") or [], CronJob.from_gateway, "gateway jobs")

    async def agents(self) -> list[AgentInfo]:
        raise ProviderUnavailable("gateway serves cron only")

    async def activity(self, limit: int = 30) -> list[ActivityItem]:
        raise ProviderUnavailable("gateway serves cron only")

    async def tasks(self, status: str | None = None) -> list[TaskItem]:
        raise ProviderUnavailable("gateway serves cron only")
