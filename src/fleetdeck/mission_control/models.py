"""Mission Control review data models.

Created: 2026-02-10
Part of the review portal: artifacts submitted by agents that wait for a
human verdict.

These models define:
- Review items (the artifact plus provenance and decision state)
- Decisions and the history of superseded decisions
- Notifications (single-slot batch summaries for the polling agent)
- Deliverables (agent work products with an approval trail)

Design notes:
- Dataclasses with explicit to_dict/from_dict (like the fleet models)
- Wire format is camelCase (what the dashboard UI and agents send);
  table rows are snake_case, so from_dict accepts both spellings
- Timestamps are ISO 8601 strings
"""

import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# ============================================================================
# Enums
# ============================================================================


class ReviewStatus(str, Enum):
    """Review decision status."""

    PENDING = "pending"  # Waiting for a human
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"


# Statuses a human can hand down (pending is only the initial state)
VERDICT_STATUSES = (
    ReviewStatus.APPROVED,
    ReviewStatus.REJECTED,
    ReviewStatus.CHANGES_REQUESTED,
)


class ReviewType(str, Enum):
    """Kind of artifact under review."""

    DOCUMENT = "document"
    COPY = "copy"
    IMAGE = "image"
    WEBSITE = "website"
    VIDEO = "video"
    CODE = "code"
    OTHER = "other"


class ReviewPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DeliverableStatus(str, Enum):
    """Deliverable approval status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"


# ============================================================================
# Helper Functions
# ============================================================================

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_review_id() -> str:
    """Generate a review ID like ``rev_1739200000000_k3j9x0a1b``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"rev_{int(time.time() * 1000)}_{suffix}"


def now_iso() -> str:
    """Get current UTC time as ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Deduplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        tag = str(tag).strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


# ============================================================================
# Data Models
# ============================================================================


@dataclass
class Decision:
    """The current verdict on a review item."""

    status: ReviewStatus
    comment: str | None = None
    decided_at: str = field(default_factory=now_iso)
    decided_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "comment": self.comment,
            "decidedAt": self.decided_at,
            "decidedBy": self.decided_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Decision":
        return cls(
            status=ReviewStatus(data.get("status", "pending")),
            comment=data.get("comment"),
            decided_at=_pick(data, "decidedAt", "decided_at", default=now_iso()),
            decided_by=_pick(data, "decidedBy", "decided_by"),
        )


@dataclass
class HistoryEntry:
    """A superseded decision, tagged with who made it."""

    status: ReviewStatus
    decided_by: str
    decided_at: str
    comment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "comment": self.comment,
            "decidedBy": self.decided_by,
            "decidedAt": self.decided_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            status=ReviewStatus(data.get("status", "pending")),
            comment=data.get("comment"),
            decided_by=_pick(data, "decidedBy", "decided_by", default="unknown"),
            decided_at=_pick(data, "decidedAt", "decided_at", default=""),
        )


@dataclass
class ReviewItem:
    """
    An artifact submitted for human approval.

    Exactly one content field is expected to be populated, chosen by
    ``type``: inline ``content`` for documents/copy, ``preview_url`` for
    websites, ``image_url``/``video_url`` for media, or a ``content_url`` /
    ``file_path`` reference.

    Attributes:
        id: Opaque identifier, assigned once at creation
        title: Short summary
        type: Kind of artifact
        submitted_by: Agent that submitted the item
        submitted_at: Creation time, never changed afterwards
        priority: high / medium / low
        tags: Set-like labels
        upstream_recommendation: Advisory verdict from an intermediate reviewer
        upstream_notes: Notes that go with the recommendation
        status: Current status (always equals decision.status once decided)
        decision: Current verdict, if any
        history: Superseded verdicts, oldest first
    """

    title: str = ""
    type: ReviewType = ReviewType.OTHER
    submitted_by: str = ""
    id: str = field(default_factory=generate_review_id)
    description: str | None = None
    content: str | None = None
    content_url: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    preview_url: str | None = None
    file_path: str | None = None
    submitted_at: str = field(default_factory=now_iso)
    priority: ReviewPriority = ReviewPriority.MEDIUM
    tags: list[str] = field(default_factory=list)
    upstream_recommendation: ReviewStatus | None = None
    upstream_notes: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    decision: Decision | None = None
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def decided_at(self) -> str | None:
        return self.decision.decided_at if self.decision else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire format."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "content": self.content,
            "contentUrl": self.content_url,
            "imageUrl": self.image_url,
            "videoUrl": self.video_url,
            "previewUrl": self.preview_url,
            "filePath": self.file_path,
            "submittedBy": self.submitted_by,
            "submittedAt": self.submitted_at,
            "priority": self.priority.value,
            "tags": self.tags,
            "captainRecommendation": (
                self.upstream_recommendation.value if self.upstream_recommendation else None
            ),
            "captainNotes": self.upstream_notes,
            "status": self.status.value,
            "decision": self.decision.to_dict() if self.decision else None,
            "history": [h.to_dict() for h in self.history],
        }

    def to_row(self) -> dict[str, Any]:
        """Convert to a snake_case table row (decision/history as JSON)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "content": self.content,
            "content_url": self.content_url,
            "image_url": self.image_url,
            "video_url": self.video_url,
            "preview_url": self.preview_url,
            "file_path": self.file_path,
            "submitted_by": self.submitted_by,
            "submitted_at": self.submitted_at,
            "priority": self.priority.value,
            "tags": self.tags,
            "upstream_recommendation": (
                self.upstream_recommendation.value if self.upstream_recommendation else None
            ),
            "upstream_notes": self.upstream_notes,
            "status": self.status.value,
            "decision": self.decision.to_dict() if self.decision else None,
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewItem":
        """Create from either the wire format or a table row."""
        recommendation = _pick(data, "captainRecommendation", "upstream_recommendation")
        decision = data.get("decision")
        return cls(
            id=data.get("id") or generate_review_id(),
            title=data.get("title", ""),
            description=data.get("description"),
            type=ReviewType(data.get("type", "other")),
            content=data.get("content"),
            content_url=_pick(data, "contentUrl", "content_url"),
            image_url=_pick(data, "imageUrl", "image_url"),
            video_url=_pick(data, "videoUrl", "video_url"),
            preview_url=_pick(data, "previewUrl", "preview_url"),
            file_path=_pick(data, "filePath", "file_path"),
            submitted_by=_pick(data, "submittedBy", "submitted_by", default=""),
            submitted_at=_pick(data, "submittedAt", "submitted_at", default=now_iso()),
            priority=ReviewPriority(data.get("priority") or "medium"),
            tags=normalize_tags(data.get("tags")),
            upstream_recommendation=ReviewStatus(recommendation) if recommendation else None,
            upstream_notes=_pick(data, "captainNotes", "upstream_notes"),
            status=ReviewStatus(data.get("status", "pending")),
            decision=Decision.from_dict(decision) if decision else None,
            history=[HistoryEntry.from_dict(h) for h in data.get("history") or []],
        )


@dataclass
class ReviewNotification:
    """Summary of a batch of decisions, waiting for the polling agent.

    Only one exists at a time; writing a new one replaces any unread one.
    """

    message: str
    decisions: list[dict[str, Any]] = field(default_factory=list)
    timestamp: str = field(default_factory=now_iso)

    @classmethod
    def for_batch(cls, message: str, items: list[ReviewItem]) -> "ReviewNotification":
        return cls(
            message=message,
            decisions=[
                {
                    "id": item.id,
                    "title": item.title,
                    "status": item.status.value,
                    "comment": item.decision.comment if item.decision else None,
                }
                for item in items
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "decisions": self.decisions,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewNotification":
        return cls(
            message=data.get("message", ""),
            decisions=list(data.get("decisions") or []),
            timestamp=data.get("timestamp", now_iso()),
        )


@dataclass
class Deliverable:
    """
    A work product submitted by an agent (PR, deploy, screenshot).

    Deliverables go through a separate approval path from review items:
    the approval webhook updates them and fires an automation hook.
    """

    title: str = ""
    agent_id: str = ""
    id: str = field(default_factory=lambda: secrets.token_hex(16))
    agent_name: str = ""
    description: str | None = None
    task_id: str | None = None
    type: str = "feature"
    pr_url: str | None = None
    deploy_url: str | None = None
    screenshot_url: str | None = None
    branch: str | None = None
    files_changed: int | None = None
    status: DeliverableStatus = DeliverableStatus.PENDING
    approved_by: str | None = None
    approval_notes: str | None = None
    approved_at: str | None = None
    webhook_fired: bool = False
    webhook_fired_at: str | None = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Deliverables use snake_case both on the wire and in tables."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "agent_id": self.agent_id,
            "agent_name": self.agent_name or self.agent_id,
            "task_id": self.task_id,
            "type": self.type,
            "pr_url": self.pr_url,
            "deploy_url": self.deploy_url,
            "screenshot_url": self.screenshot_url,
            "branch": self.branch,
            "files_changed": self.files_changed,
            "status": self.status.value,
            "approved_by": self.approved_by,
            "approval_notes": self.approval_notes,
            "approved_at": self.approved_at,
            "webhook_fired": self.webhook_fired,
            "webhook_fired_at": self.webhook_fired_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Deliverable":
        return cls(
            id=str(data.get("id") or secrets.token_hex(16)),
            title=data.get("title", ""),
            description=data.get("description"),
            agent_id=data.get("agent_id", ""),
            agent_name=data.get("agent_name") or data.get("agent_id", ""),
            task_id=data.get("task_id"),
            type=data.get("type") or "feature",
            pr_url=data.get("pr_url"),
            deploy_url=data.get("deploy_url"),
            screenshot_url=data.get("screenshot_url"),
            branch=data.get("branch"),
            files_changed=data.get("files_changed"),
            status=DeliverableStatus(data.get("status") or "pending"),
            approved_by=data.get("approved_by"),
            approval_notes=data.get("approval_notes"),
            approved_at=data.get("approved_at"),
            webhook_fired=bool(_pick(data, "webhook_fired", "n8n_webhook_fired", default=False)),
            webhook_fired_at=_pick(data, "webhook_fired_at", "n8n_webhook_fired_at"),
            created_at=data.get("created_at", now_iso()),
            updated_at=data.get("updated_at", now_iso()),
        )
