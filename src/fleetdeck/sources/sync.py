"""Push parsed workspace state into the hosted tables.

Created: 2026-02-10

Run with ``fleetdeck sync``. Rows are deduplicated by id (last one wins)
and upserted, so running it repeatedly is safe. Activities are sent in
chunks to stay under request size limits.
"""

import logging
from dataclasses import dataclass
from typing import Any

from fleetdeck.errors import BackendNotConfigured
from fleetdeck.sources.workspace import WorkspaceScanner
from fleetdeck.tables import TableClient

logger = logging.getLogger(__name__)

ACTIVITY_CHUNK = 500


def dedupe(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep one row per id; a later row replaces an earlier one in place."""
    by_id: dict[str, dict[str, Any]] = {}
    for row in rows:
        by_id[row["id"]] = row
    return list(by_id.values())


def chunked(rows: list[dict[str, Any]], size: int) -> list[list[dict[str, Any]]]:
    return [rows[i : i + size] for i in range(0, len(rows), size)]


@dataclass
class SyncReport:
    agents: int = 0
    tasks: int = 0
    activities: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"agents": self.agents, "tasks": self.tasks, "activities": self.activities}


class WorkspaceSync:
    def __init__(self, scanner: WorkspaceScanner, client: TableClient):
        self._scanner = scanner
        self._client = client

    async def run(self) -> SyncReport:
        """Scan workspaces and upsert agents, tasks and activities.

        Raises:
            BackendNotConfigured: The table client has no credentials.
            StorageError: An upsert was rejected.
        """
        if not self._client.is_configured:
            raise BackendNotConfigured(
                "set FLEETDECK_SUPABASE_URL and FLEETDECK_SUPABASE_SERVICE_KEY"
            )

        snapshot = self._scanner.scan()
        tasks = dedupe(snapshot.tasks)
        activities = dedupe(snapshot.activities)

        await self._client.upsert("agents", snapshot.agents)
        await self._client.upsert("tasks", tasks)
        for chunk in chunked(activities, ACTIVITY_CHUNK):
            await self._client.upsert("activities", chunk)

        report = SyncReport(len(snapshot.agents), len(tasks), len(activities))
        logger.info(
            f"Sync complete: {report.agents} agents, {report.tasks} tasks, "
            f"{report.activities} activities"
        )
        return report
