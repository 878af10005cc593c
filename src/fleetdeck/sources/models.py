"""Normalized fleet data shapes.

Created: 2026-02-09

Every provider (hosted table, workspace scan, gateway, mock) produces the
same shapes so the dashboard never has to know where data came from. Table
rows are snake_case; ``to_dict`` emits the camelCase wire format.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class AgentState(str, Enum):
    ACTIVE = "active"
    IDLE = "idle"
    OFFLINE = "offline"


class ActivityType(str, Enum):
    TASK = "task"
    COMMIT = "commit"
    MESSAGE = "message"
    ALERT = "alert"
    DEPLOY = "deploy"


class TaskState(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    BLOCKED = "blocked"


_STATE_ORDER = {AgentState.ACTIVE: 0, AgentState.IDLE: 1, AgentState.OFFLINE: 2}
_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _enum(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _date_only(value: str | None) -> str | None:
    """``2026-02-10T23:59:59Z`` -> ``2026-02-10``."""
    if not value:
        return None
    return str(value).split("T", 1)[0]


@dataclass
class AgentInfo:
    id: str
    name: str
    emoji: str = "🤖"
    status: AgentState = AgentState.OFFLINE
    role: str | None = None
    last_activity: str | None = None
    memory_files: int = 0
    workspace_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "status": self.status.value,
            "role": self.role,
            "lastActivity": self.last_activity,
            "memoryFiles": self.memory_files,
            "workspacePath": self.workspace_path,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AgentInfo":
        return cls(
            id=row["id"],
            name=row.get("name") or row["id"],
            emoji=row.get("emoji") or "🤖",
            status=_enum(AgentState, row.get("status"), AgentState.OFFLINE),
            role=row.get("role"),
            last_activity=_date_only(row.get("last_activity")),
            memory_files=row.get("memory_files") or 0,
            workspace_path=row.get("workspace_path") or "",
        )


@dataclass
class ActivityItem:
    id: str
    agent: str
    action: str
    timestamp: str
    agent_emoji: str = "🤖"
    details: str = ""
    type: ActivityType = ActivityType.TASK

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agent": self.agent,
            "agentEmoji": self.agent_emoji,
            "action": self.action,
            "details": self.details,
            "timestamp": self.timestamp,
            "type": self.type.value,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ActivityItem":
        agent_id = row.get("agent_id") or ""
        return cls(
            id=row["id"],
            agent=row.get("agent_name") or agent_id.capitalize(),
            agent_emoji=row.get("agent_emoji") or "🤖",
            action=row.get("action") or "",
            details=row.get("details") or "",
            timestamp=row.get("timestamp") or "",
            type=_enum(ActivityType, row.get("type"), ActivityType.TASK),
        )


@dataclass
class TaskItem:
    id: str
    title: str
    status: TaskState = TaskState.TODO
    priority: str = "medium"
    assignee: str | None = None
    deadline: str | None = None
    source: str = "tables"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority,
            "assignee": self.assignee,
            "deadline": self.deadline,
            "source": self.source,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TaskItem":
        priority = row.get("priority") or "medium"
        return cls(
            id=row["id"],
            title=row.get("title") or "",
            status=_enum(TaskState, row.get("status"), TaskState.TODO),
            priority=priority if priority in _PRIORITY_ORDER else "medium",
            assignee=row.get("assignee"),
            deadline=row.get("deadline"),
            source=row.get("source") or "tables",
        )


@dataclass
class CronSchedule:
    kind: str
    expr: str | None = None
    at: str | None = None
    every_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind}
        if self.expr is not None:
            data["expr"] = self.expr
        if self.at is not None:
            data["at"] = self.at
        if self.every_ms is not None:
            data["everyMs"] = self.every_ms
        return data


@dataclass
class CronJob:
    id: str
    name: str
    schedule: CronSchedule
    session_target: str = "main"
    enabled: bool = True
    last_run: str | None = None
    next_run: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "schedule": self.schedule.to_dict(),
            "sessionTarget": self.session_target,
            "enabled": self.enabled,
            "lastRun": self.last_run,
            "nextRun": self.next_run,
        }

    @classmethod
    def from_gateway(cls, data: dict[str, Any]) -> "CronJob":
        """Parse a job as returned by the gateway (camelCase)."""
        schedule = data.get("schedule") or {}
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            schedule=CronSchedule(
                kind=schedule.get("kind", "cron"),
                expr=schedule.get("expr"),
                at=schedule.get("at"),
                every_ms=schedule.get("everyMs"),
            ),
            session_target=data.get("sessionTarget") or "main",
            enabled=data.get("enabled", True),
            last_run=data.get("lastRun"),
            next_run=data.get("nextRun"),
        )

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CronJob":
        """Parse a cached ``cron_jobs`` table row."""
        enabled = row.get("enabled")
        return cls(
            id=str(row["id"]),
            name=row.get("name", ""),
            schedule=CronSchedule(
                kind=row.get("schedule_kind") or "cron",
                expr=row.get("schedule_expr"),
                every_ms=row.get("schedule_every_ms"),
            ),
            session_target=row.get("session_target") or "main",
            enabled=True if enabled is None else bool(enabled),
            last_run=row.get("last_run"),
            next_run=row.get("next_run"),
        )


@dataclass
class TokenBalance:
    symbol: str
    balance: float
    usd_value: float

    def to_dict(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "balance": self.balance, "usdValue": self.usd_value}


@dataclass
class WalletSnapshot:
    address: str
    tokens: list[TokenBalance] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @property
    def total_value(self) -> float:
        return sum(t.usd_value for t in self.tokens)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "totalValue": self.total_value,
            "tokens": [t.to_dict() for t in self.tokens],
            "timestamp": self.timestamp,
        }


@dataclass
class SourceResult(Generic[T]):
    """Items from a fleet data chain, tagged with the tier that produced them."""

    items: T
    source: str
    message: str | None = None


def sort_agents(agents: list[AgentInfo]) -> list[AgentInfo]:
    """Active first, then idle, then offline."""
    return sorted(agents, key=lambda a: _STATE_ORDER[a.status])


def sort_tasks(tasks: list[TaskItem]) -> list[TaskItem]:
    """High priority first; stable within a priority."""
    return sorted(tasks, key=lambda t: _PRIORITY_ORDER.get(t.priority, 1))


def sort_activities(items: list[ActivityItem]) -> list[ActivityItem]:
    """Newest first."""
    return sorted(items, key=lambda a: a.timestamp, reverse=True)
