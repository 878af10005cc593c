"""Activity feed and approval audit log writers.

Created: 2026-02-11

Every review submission and decision leaves two traces: a row in the
activity feed (what the dashboard shows) and a row in the approval log
(who decided what). Both are side effects. A failed write is logged and
never undoes the change that caused it.

Backends:
- TableActivityLog: ``activities`` and ``approval_log`` tables
- FileActivityLog: append-only JSONL (``activity.jsonl``) next to the reviews
- TieredActivityLog: first backend that accepts the write
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from fleetdeck.config import Settings, get_settings
from fleetdeck.errors import StorageError
from fleetdeck.fallback import FallbackChain
from fleetdeck.mission_control.models import now_iso
from fleetdeck.tables import TableClient

logger = logging.getLogger(__name__)


def activity_row(
    action: str,
    *,
    agent_id: str,
    agent_name: str | None = None,
    agent_emoji: str = "👤",
    details: str | None = None,
    type: str = "task",
    key: str | None = None,
) -> dict[str, Any]:
    """Build an activity feed row.

    ``key`` makes the ID deterministic for a given event so replays upsert
    instead of duplicating.
    """
    timestamp = now_iso()
    digest = hashlib.md5(f"{agent_id}-{key or action}-{timestamp}".encode()).hexdigest()[:12]
    return {
        "id": f"act-{digest}",
        "agent_id": agent_id,
        "agent_name": agent_name or agent_id,
        "agent_emoji": agent_emoji,
        "action": action[:200],
        "details": details,
        "type": type,
        "timestamp": timestamp,
    }


class TableActivityLog:
    """Writes to the hosted ``activities`` and ``approval_log`` tables."""

    name = "table"

    def __init__(self, client: TableClient):
        self._client = client

    async def record_activity(self, row: dict[str, Any]) -> None:
        await self._client.insert("activities", row)

    async def record_approval(self, row: dict[str, Any]) -> None:
        await self._client.insert("approval_log", row)


class FileActivityLog:
    """Append-only JSONL log. Each line carries a ``kind`` field."""

    name = "file"

    def __init__(self, log_path: Path | None = None):
        if log_path is None:
            log_path = get_settings().reviews_dir / "activity.jsonl"
        self.log_path = Path(log_path)

    def _append(self, kind: str, row: dict[str, Any]) -> None:
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps({"kind": kind, **row}, ensure_ascii=False) + "\n")
        except OSError as e:
            raise StorageError(f"Error appending to {self.log_path}: {e}") from e

    async def record_activity(self, row: dict[str, Any]) -> None:
        self._append("activity", row)

    async def record_approval(self, row: dict[str, Any]) -> None:
        self._append("approval", {"created_at": now_iso(), **row})

    def read(self, kind: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        """Return the most recent entries, newest first."""
        if not self.log_path.exists():
            return []
        entries: list[dict[str, Any]] = []
        with open(self.log_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if kind is None or entry.get("kind") == kind:
                    entries.append(entry)
        return list(reversed(entries))[:limit]


class TieredActivityLog:
    """Send each write to the first log backend that accepts it."""

    name = "tiered"

    def __init__(self, tiers: list[Any]):
        self.tiers = tiers
        self._chain: FallbackChain[Any] = FallbackChain(tiers, label="activity-log")

    async def record_activity(self, row: dict[str, Any]) -> None:
        result = await self._chain.run(lambda log: log.record_activity(row), default=None)
        if result.degraded:
            logger.warning(f"Activity not recorded: {row.get('action')}")

    async def record_approval(self, row: dict[str, Any]) -> None:
        result = await self._chain.run(lambda log: log.record_approval(row), default=None)
        if result.degraded:
            logger.warning(f"Approval log entry not recorded: {row.get('action')}")


# =========================================================================
# Factory Function
# =========================================================================

_log_instance: TieredActivityLog | None = None


def build_activity_log(settings: Settings | None = None) -> TieredActivityLog:
    settings = settings or get_settings()
    return TieredActivityLog(
        [
            TableActivityLog(TableClient.from_settings(settings)),
            FileActivityLog(settings.reviews_dir / "activity.jsonl"),
        ]
    )


def get_activity_log() -> TieredActivityLog:
    """Get or create the activity log singleton."""
    global _log_instance
    if _log_instance is None:
        _log_instance = build_activity_log()
    return _log_instance


def reset_activity_log() -> None:
    """Reset the activity log singleton (for testing)."""
    global _log_instance
    _log_instance = None
