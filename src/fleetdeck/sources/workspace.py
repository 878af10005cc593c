"""Agent workspace scanner.

Created: 2026-02-09

Reads the per-agent directories on the local filesystem:

    {agents_dir}/<agent_id>/workspace/HEARTBEAT.md
    {agents_dir}/<agent_id>/workspace/memory/YYYY-MM-DD.md

This tier is read-only. Unreadable files are treated as absent.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any

from fleetdeck.sources.markdown import parse_activities, parse_tasks

logger = logging.getLogger(__name__)

_MEMORY_FILE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")


@dataclass(frozen=True)
class AgentIdentity:
    name: str
    emoji: str
    role: str


# Display identities for known agent directories; unknown ones use their id
KNOWN_AGENTS: dict[str, AgentIdentity] = {
    "devops": AgentIdentity("Forge", "⚙️", "CTO / DevOps"),
    "main": AgentIdentity("Captain", "🎖️", "Fleet Commander"),
    "trading": AgentIdentity("Trading", "📈", "Financial Operations"),
    "research": AgentIdentity("Research", "🔬", "Research & Analysis"),
    "video": AgentIdentity("Dr. Strange", "🎬", "Video Production"),
    "dental-marketing": AgentIdentity("Pepper", "🦷", "Dental Marketing"),
    "gop": AgentIdentity("Reagan", "🇺🇸", "Political Analysis"),
    "icheadcam": AgentIdentity("Vision", "👁️", "Visual Intelligence"),
    "executive-assistant": AgentIdentity("Friday", "📋", "Executive Support"),
}


def identity_for(agent_id: str) -> AgentIdentity:
    return KNOWN_AGENTS.get(agent_id) or AgentIdentity(agent_id, "🤖", "Agent")


def _is_calendar_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def agent_status(last_memory_date: str | None, now: datetime | None = None) -> str:
    """active if the last daily log is at most a day old, idle up to three."""
    if not last_memory_date:
        return "offline"
    now = now or datetime.now(UTC)
    end_of_day = datetime.fromisoformat(f"{last_memory_date}T23:59:59+00:00")
    age_days = (now - end_of_day).total_seconds() / 86400
    if age_days <= 1:
        return "active"
    if age_days <= 3:
        return "idle"
    return "offline"


@dataclass
class WorkspaceSnapshot:
    """Everything parsed from the agents directory, as table rows."""

    agents: list[dict[str, Any]] = field(default_factory=list)
    tasks: list[dict[str, Any]] = field(default_factory=list)
    activities: list[dict[str, Any]] = field(default_factory=list)


class WorkspaceScanner:
    """Parse agent workspaces into agent, task and activity rows."""

    def __init__(self, agents_dir: Path, activity_days: int = 7):
        self.agents_dir = Path(agents_dir)
        self.activity_days = activity_days

    @property
    def available(self) -> bool:
        return self.agents_dir.is_dir()

    def agent_dirs(self) -> list[Path]:
        if not self.available:
            return []
        return sorted(p for p in self.agents_dir.iterdir() if p.is_dir())

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except OSError:
            return None

    @staticmethod
    def memory_dates(memory_dir: Path) -> list[str]:
        if not memory_dir.is_dir():
            return []
        return sorted(
            p.stem
            for p in memory_dir.iterdir()
            if _MEMORY_FILE_RE.match(p.name) and _is_calendar_date(p.stem)
        )

    def recent_dates(self, today: date | None = None) -> list[str]:
        today = today or datetime.now(UTC).date()
        return [(today - timedelta(days=i)).isoformat() for i in range(self.activity_days)]

    def scan(self, now: datetime | None = None) -> WorkspaceSnapshot:
        """Walk every agent directory once."""
        now = now or datetime.now(UTC)
        snapshot = WorkspaceSnapshot()
        dates = self.recent_dates(now.date())

        for agent_path in self.agent_dirs():
            agent_id = agent_path.name
            ident = identity_for(agent_id)
            workspace = agent_path / "workspace"
            memory_dir = workspace / "memory"

            memory = self.memory_dates(memory_dir)
            last = memory[-1] if memory else None
            snapshot.agents.append(
                {
                    "id": agent_id,
                    "name": ident.name,
                    "emoji": ident.emoji,
                    "status": agent_status(last, now),
                    "role": ident.role,
                    "last_activity": f"{last}T23:59:59Z" if last else None,
                    "memory_files": len(memory),
                    "workspace_path": str(workspace),
                }
            )

            heartbeat = self._read(workspace / "HEARTBEAT.md")
            if heartbeat:
                snapshot.tasks.extend(
                    parse_tasks(heartbeat, agent_id, ident.name, now=now.isoformat())
                )

            for day in dates:
                content = self._read(memory_dir / f"{day}.md")
                if content:
                    snapshot.activities.extend(
                        parse_activities(content, day, agent_id, ident.name, ident.emoji)
                    )

            logger.debug(
                f"Scanned {agent_id}: {len(memory)} memory files, last={last or 'never'}"
            )

        return snapshot
