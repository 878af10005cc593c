# Markdown parsers for agent workspaces.
# Created: 2026-02-09
#
# Agents keep their state in plain markdown:
#   workspace/HEARTBEAT.md         "## OPEN TASKS" with "### T005 — title (P1)" blocks,
#                                  "## DONE" with "✅ ..." lines
#   workspace/memory/YYYY-MM-DD.md daily log, one bullet per event
#
# These are heuristics, not a markdown grammar. Both parsers return table
# rows (snake_case dicts) so the workspace provider and the sync command
# share them. IDs are md5-derived so re-parsing the same text yields the
# same IDs and repeated syncs upsert instead of duplicating.

import hashlib
import re
from datetime import UTC, datetime
from typing import Any

_SECTION_RE = re.compile(r"^## ", re.MULTILINE)
_TASK_BLOCK_RE = re.compile(r"^### ", re.MULTILINE)
_TASK_CODE_RE = re.compile(r"^(T\d+)\s*[—–-]\s*")
_PAREN_RE = re.compile(r"\s*\(.*?\)\s*")
_PRIORITY_RE = re.compile(r"P(\d)")
_DONE_PREFIX_RE = re.compile(r"^.*?✅\s*")
_DONE_STAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\s*\d{2}:\d{2}:\s*")
_BULLET_RE = re.compile(r"^[-*]\s+(.+)")
_TIME_RE = re.compile(r"(\d{1,2}:\d{2})")

_ACTIVITY_KEYWORDS = (
    ("deploy", re.compile(r"deploy|ship")),
    ("commit", re.compile(r"commit|push|wrote")),
    ("alert", re.compile(r"critical|fix")),
    ("task", re.compile(r"completed|done")),
)

HEARTBEAT_SOURCE = "HEARTBEAT.md"


def hash_id(value: str) -> str:
    """Stable 12-hex-char ID for ``value``."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()[:12]


def map_priority(level: str) -> str:
    """``P0``/``P1`` are high, anything else medium."""
    return "high" if level in ("0", "1") else "medium"


def classify_activity(text: str) -> str:
    """Pick an activity type from keywords in a log line."""
    lowered = text.lower()
    for kind, pattern in _ACTIVITY_KEYWORDS:
        if pattern.search(lowered):
            return kind
    return "message"


def parse_tasks(
    heartbeat: str, agent_id: str, agent_name: str, now: str | None = None
) -> list[dict[str, Any]]:
    """Extract task rows from a HEARTBEAT.md document."""
    updated_at = now or datetime.now(UTC).isoformat()
    tasks: list[dict[str, Any]] = []

    def row(task_id: str, title: str, status: str, priority: str) -> dict[str, Any]:
        return {
            "id": task_id,
            "title": title[:200],
            "status": status,
            "priority": priority,
            "assignee": agent_name,
            "source": HEARTBEAT_SOURCE,
            "agent_id": agent_id,
            "updated_at": updated_at,
        }

    for section in _SECTION_RE.split(heartbeat):
        if section.startswith("OPEN TASKS"):
            for block in _TASK_BLOCK_RE.split(section)[1:]:
                first_line = block.split("\n", 1)[0].strip()
                code = _TASK_CODE_RE.match(first_line)
                title = _PAREN_RE.sub(" ", _TASK_CODE_RE.sub("", first_line)).strip()
                level = _PRIORITY_RE.search(first_line)
                if code:
                    task_id = f"task-{agent_id}-{code.group(1).lower()}"
                else:
                    task_id = f"task-{hash_id(f'{agent_id}-{title}')}"
                priority = map_priority(level.group(1) if level else "2")
                tasks.append(row(task_id, title, "in-progress", priority))

        elif section.startswith("DONE"):
            for line in section.split("\n"):
                if "✅" not in line:
                    continue
                text = _DONE_STAMP_RE.sub("", _DONE_PREFIX_RE.sub("", line)).strip()
                if not text:
                    continue
                task_id = f"task-{hash_id(f'{agent_id}-done-{text[:50]}')}"
                tasks.append(row(task_id, text, "done", "medium"))

    return tasks


def parse_activities(
    content: str, date: str, agent_id: str, agent_name: str, agent_emoji: str
) -> list[dict[str, Any]]:
    """Extract activity rows from one daily memory log.

    Each bullet of at least five characters is one activity. A ``HH:MM``
    anywhere in the line becomes the time of day; otherwise noon UTC.
    """
    activities: list[dict[str, Any]] = []
    for line in content.split("\n"):
        match = _BULLET_RE.match(line)
        if not match:
            continue
        text = match.group(1).strip()
        if len(text) < 5:
            continue

        time_match = _TIME_RE.search(text)
        clock = time_match.group(1).zfill(5) if time_match else "12:00"
        activities.append(
            {
                "id": f"act-{hash_id(f'{agent_id}-{date}-{text[:100]}')}",
                "agent_id": agent_id,
                "agent_name": agent_name,
                "agent_emoji": agent_emoji,
                "action": text[:200],
                "details": text[200:500] if len(text) > 200 else None,
                "type": classify_activity(text),
                "timestamp": f"{date}T{clock}:00Z",
            }
        )
    return activities
