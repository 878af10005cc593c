"""Mock fleet data, the last tier of every chain."""

from datetime import UTC, datetime, timedelta

from fleetdeck.sources.models import (
    ActivityItem,
    ActivityType,
    AgentInfo,
    AgentState,
    CronJob,
    CronSchedule,
    TaskItem,
    TaskState,
    TokenBalance,
    WalletSnapshot,
)


class MockProvider:
    name = "mock"

    def __init__(self, now: datetime | None = None):
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now(UTC)

    async def agents(self) -> list[AgentInfo]:
        today = self.now.date().isoformat()
        return [
            AgentInfo(
                id="main",
                name="Captain",
                emoji="🎖️",
                status=AgentState.ACTIVE,
                role="Fleet Commander",
                last_activity=today,
                memory_files=8,
                workspace_path="/mock/captain",
            ),
            AgentInfo(
                id="devops",
                name="Forge",
                emoji="⚙️",
                status=AgentState.ACTIVE,
                role="CTO / DevOps",
                last_activity=today,
                memory_files=12,
                workspace_path="/mock/forge",
            ),
        ]

    async def activity(self, limit: int = 30) -> list[ActivityItem]:
        def ago(minutes: int) -> str:
            return (self.now - timedelta(minutes=minutes)).isoformat()

        items = [
            ActivityItem(
                id="mock-1",
                agent="Forge",
                agent_emoji="⚙️",
                action="Fixed voice assistant TTS",
                details="Speech output now plays on the lobby speaker",
                timestamp=ago(30),
                type=ActivityType.DEPLOY,
            ),
            ActivityItem(
                id="mock-2",
                agent="Forge",
                agent_emoji="⚙️",
                action="Created dashboard schema",
                details="Tables for agents, activities, tasks",
                timestamp=ago(45),
                type=ActivityType.COMMIT,
            ),
            ActivityItem(
                id="mock-3",
                agent="Captain",
                agent_emoji="🎖️",
                action="Set Wednesday deadline",
                details="3 deliverables: dashboard, voice, build decision",
                timestamp=ago(120),
                type=ActivityType.MESSAGE,
            ),
        ]
        return items[:limit]

    async def tasks(self, status: str | None = None) -> list[TaskItem]:
        tasks = [
            TaskItem("task-1", "Dashboard live data fix", TaskState.IN_PROGRESS, "high", "Forge"),
            TaskItem(
                "task-2", "Voice assistant end-to-end", TaskState.IN_PROGRESS, "high", "Forge"
            ),
            TaskItem("task-3", "Build-vs-rebuild decision", TaskState.TODO, "high", "Forge"),
            TaskItem("task-4", "Review portal persistence", TaskState.DONE, "high", "Forge"),
        ]
        for task in tasks:
            task.source = "HEARTBEAT.md"
        if status:
            tasks = [t for t in tasks if t.status.value == status]
        return tasks

    async def cron(self) -> list[CronJob]:
        return [
            CronJob(
                id="heartbeat-main",
                name="Main Session Heartbeat",
                schedule=CronSchedule(kind="every", every_ms=30 * 60 * 1000),
                session_target="main",
                last_run=(self.now - timedelta(minutes=15)).isoformat(),
                next_run=(self.now + timedelta(minutes=15)).isoformat(),
            ),
            CronJob(
                id="daily-digest",
                name="Daily Digest",
                schedule=CronSchedule(kind="cron", expr="0 9 * * *"),
                session_target="isolated",
            ),
        ]

    async def wallet(self, address: str) -> WalletSnapshot:
        return WalletSnapshot(
            address=address,
            tokens=[
                TokenBalance("USDC", 0.0, 0.0),
                TokenBalance("MATIC", 0.0, 0.0),
            ],
        )
