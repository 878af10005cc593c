"""Mission Control storage protocols.

Created: 2026-02-10
Defines the interfaces for review storage, the notification slot, the
activity/audit log and deliverable storage.

Following the protocol-first design, every backend (hosted table, JSON
file, in-memory) implements the same interface, so the tiered wrappers
and the tests can swap them freely.
"""

from typing import Any, Protocol, runtime_checkable

from fleetdeck.mission_control.models import (
    Deliverable,
    ReviewItem,
    ReviewNotification,
    ReviewStatus,
)
from fleetdeck.mission_control.workflow import DecisionRequest


@runtime_checkable
class ReviewStoreProtocol(Protocol):
    """Protocol for review item storage.

    Backends raise on I/O failure (``StorageError``, ``OSError``,
    ``httpx.HTTPError``); ``TieredReviewStore`` turns those into fallback.
    """

    name: str

    async def list_reviews(
        self, status: ReviewStatus | None = None, limit: int | None = None
    ) -> list[ReviewItem]:
        """List reviews, most recent submission first."""
        ...

    async def get_review(self, review_id: str) -> ReviewItem | None:
        """Get a review by ID, or None if absent."""
        ...

    async def create_review(self, item: ReviewItem) -> ReviewItem:
        """Persist a new review and return it."""
        ...

    async def decide(
        self,
        review_id: str,
        status: ReviewStatus,
        comment: str | None,
        decided_by: str,
    ) -> ReviewItem | None:
        """Apply a decision. Returns None (and changes nothing) if absent."""
        ...

    async def batch_decide(
        self, decisions: list[DecisionRequest], decided_by: str
    ) -> list[ReviewItem]:
        """Apply decisions in order, skipping unknown IDs."""
        ...

    async def review_history(self, limit: int = 50) -> list[ReviewItem]:
        """Decided reviews, most recently decided first."""
        ...

    async def last_updated(self) -> str | None:
        """Timestamp of the last write, if known."""
        ...


@runtime_checkable
class NotificationChannelProtocol(Protocol):
    """Single-slot notification record.

    Writing replaces any unread notification. Reading with ``peek=False``
    clears the slot.
    """

    async def write(self, notification: ReviewNotification) -> None: ...

    async def read(self, peek: bool = False) -> ReviewNotification | None: ...


@runtime_checkable
class ActivityLogProtocol(Protocol):
    """Collaborator surface for the activity feed and approval audit trail."""

    name: str

    async def record_activity(self, row: dict[str, Any]) -> None:
        """Append an activity feed row."""
        ...

    async def record_approval(self, row: dict[str, Any]) -> None:
        """Append an approval-log row."""
        ...


@runtime_checkable
class DeliverableStoreProtocol(Protocol):
    """Protocol for deliverable storage."""

    name: str

    async def list_deliverables(
        self, status: str | None = None, limit: int = 50
    ) -> list[Deliverable]: ...

    async def get_deliverable(self, deliverable_id: str) -> Deliverable | None: ...

    async def save_deliverable(self, deliverable: Deliverable) -> Deliverable: ...
