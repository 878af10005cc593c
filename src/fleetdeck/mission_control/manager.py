"""Mission Control review manager.

Created: 2026-02-11
Updated: 2026-02-14 — Batch decisions now write one notification per batch
  instead of one per item.

High-level operations for the review portal.

This combines storage operations with the business rules around them:
- Validating submissions (required fields, enums, preview URL reachability)
- Applying single and batch decisions through the workflow
- Writing the activity feed and approval log for every change
- Leaving a notification for the polling agent after a batch
- Review history search and the pending-notification poll
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fleetdeck.config import Settings, get_settings
from fleetdeck.errors import ReviewValidationError, StorageError
from fleetdeck.fallback import RECOVERABLE_ERRORS
from fleetdeck.mission_control.activity_log import activity_row, get_activity_log
from fleetdeck.mission_control.models import (
    ReviewItem,
    ReviewNotification,
    ReviewPriority,
    ReviewStatus,
    ReviewType,
    normalize_tags,
)
from fleetdeck.mission_control.notifications import get_notification_channel
from fleetdeck.mission_control.protocol import (
    ActivityLogProtocol,
    NotificationChannelProtocol,
    ReviewStoreProtocol,
)
from fleetdeck.mission_control.reachability import check_url_reachable, validate_url
from fleetdeck.mission_control.samples import SAMPLE_REVIEWS
from fleetdeck.mission_control.store import get_review_store
from fleetdeck.mission_control.workflow import DecisionRequest, is_verdict, summarize

logger = logging.getLogger(__name__)

URLChecker = Callable[[str, float], Awaitable[None]]

REQUIRED_FIELDS = ("title", "type", "submitted_by")

_URL_FIELDS = {
    "content_url": "contentUrl",
    "image_url": "imageUrl",
    "video_url": "videoUrl",
    "preview_url": "previewUrl",
}

_DECISION_VERBS = {
    ReviewStatus.APPROVED: "Approved",
    ReviewStatus.REJECTED: "Rejected",
    ReviewStatus.CHANGES_REQUESTED: "Requested changes",
    ReviewStatus.PENDING: "Reopened",
}


def _parse_enum(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise ReviewValidationError(
            f"Invalid {field}: {value!r} (expected one of: {valid})", field=field
        ) from None


@dataclass
class BatchResult:
    """Items updated by a batch submission."""

    items: list[ReviewItem]
    notification_written: bool

    @property
    def summary(self) -> dict[str, int]:
        return summarize(self.items)


class ReviewManager:
    """High-level manager for review portal operations.

    Provides convenient methods that handle:
    - Submission validation
    - Activity and approval logging for every change
    - Batch notifications for the polling agent
    """

    def __init__(
        self,
        store: ReviewStoreProtocol | None = None,
        notifications: NotificationChannelProtocol | None = None,
        activity_log: ActivityLogProtocol | None = None,
        url_checker: URLChecker | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the manager.

        Args:
            store: Review store. Uses the tiered singleton if not provided.
            notifications: Notification slot. Uses the file singleton if not provided.
            activity_log: Activity/audit collaborator. Uses the tiered singleton if not provided.
            url_checker: Coroutine raising UnreachableURLError for dead URLs.
            settings: Settings override.
        """
        self._settings = settings or get_settings()
        self._store = store or get_review_store()
        self._notifications = notifications or get_notification_channel()
        self._activity_log = activity_log or get_activity_log()
        self._check_url = url_checker or check_url_reachable

    @property
    def decider(self) -> str:
        return self._settings.review_decider

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit_review(
        self,
        title: str | None = None,
        type: str | None = None,
        submitted_by: str | None = None,
        description: str | None = None,
        content: str | None = None,
        content_url: str | None = None,
        image_url: str | None = None,
        video_url: str | None = None,
        preview_url: str | None = None,
        file_path: str | None = None,
        priority: str | None = None,
        tags: list[str] | None = None,
        upstream_recommendation: str | None = None,
        upstream_notes: str | None = None,
        check_urls: bool | None = None,
    ) -> ReviewItem | None:
        """Validate and store a new review item.

        Raises:
            ReviewValidationError: Missing or invalid fields.
            UnreachableURLError: ``preview_url`` did not answer.

        Returns:
            The stored item (status pending, no decision), or None if every
            storage tier failed.
        """
        values = {"title": title, "type": type, "submitted_by": submitted_by}
        missing = [name for name in REQUIRED_FIELDS if not values[name]]
        if missing:
            raise ReviewValidationError(
                f"Missing required fields: {', '.join(missing)}", field=missing[0]
            )

        review_type = _parse_enum(ReviewType, type, "type")
        review_priority = _parse_enum(ReviewPriority, priority or "medium", "priority")
        recommendation = (
            _parse_enum(ReviewStatus, upstream_recommendation, "captainRecommendation")
            if upstream_recommendation
            else None
        )

        urls = {
            "content_url": content_url,
            "image_url": image_url,
            "video_url": video_url,
            "preview_url": preview_url,
        }
        for attr, value in urls.items():
            if value:
                validate_url(value, field=_URL_FIELDS[attr])

        if review_type == ReviewType.WEBSITE and not preview_url:
            raise ReviewValidationError("Website reviews require a previewUrl", field="previewUrl")

        if check_urls is None:
            check_urls = self._settings.verify_preview_urls
        if preview_url and check_urls:
            await self._check_url(preview_url, self._settings.url_check_timeout)

        item = ReviewItem(
            title=title,
            type=review_type,
            submitted_by=submitted_by,
            description=description,
            content=content,
            priority=review_priority,
            tags=normalize_tags(tags),
            upstream_recommendation=recommendation,
            upstream_notes=upstream_notes,
            file_path=file_path,
            **urls,
        )

        stored = await self._store.create_review(item)
        if stored is None:
            logger.error(f"Review '{title}' could not be stored in any tier")
            return None

        await self._log_activity(
            activity_row(
                f"Submitted for review: {stored.title}",
                agent_id=stored.submitted_by.lower(),
                agent_name=stored.submitted_by,
                agent_emoji="🔨",
                details=stored.description,
                key=stored.id,
            )
        )
        await self._log_approval(stored, "submitted", stored.submitted_by, stored.title)

        logger.info(f"Review submitted: {stored.title} ({stored.id}) by {stored.submitted_by}")
        return stored

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_review(self, review_id: str) -> ReviewItem | None:
        """Get a review by ID."""
        return await self._store.get_review(review_id)

    async def list_reviews(
        self, status: ReviewStatus | None = None, limit: int | None = None
    ) -> list[ReviewItem]:
        """List reviews, optionally filtered by status."""
        return await self._store.list_reviews(status, limit)

    async def list_pending(self, limit: int | None = None) -> list[ReviewItem]:
        return await self._store.list_reviews(ReviewStatus.PENDING, limit)

    async def last_updated(self) -> str | None:
        return await self._store.last_updated()

    async def get_history(
        self, limit: int = 50, search: str | None = None
    ) -> tuple[list[ReviewItem], dict[str, int]]:
        """Decided reviews, newest decision first, with verdict counts.

        ``search`` matches title, description, submitter and tags
        (case-insensitive).
        """
        history = await self._store.review_history(limit * 2 if search else limit)

        if search:
            needle = search.lower()
            history = [
                r
                for r in history
                if needle in r.title.lower()
                or needle in (r.description or "").lower()
                or needle in r.submitted_by.lower()
                or any(needle in t.lower() for t in r.tags)
            ]

        history = history[:limit]
        stats = {"total": len(history), **summarize(history)}
        return history, stats

    # =========================================================================
    # Decisions
    # =========================================================================

    async def decide(
        self, review_id: str, status: ReviewStatus, comment: str | None = None
    ) -> ReviewItem | None:
        """Record a decision on one review.

        Returns:
            The updated item, or None if the review does not exist.
        """
        item = await self._store.decide(review_id, status, comment, self.decider)
        if item is None:
            return None

        await self._record_decision(item)
        logger.info(f"Review {review_id} -> {status.value}")
        return item

    async def batch_decide(self, decisions: list[DecisionRequest]) -> BatchResult:
        """Apply a batch of decisions in the given order.

        Unknown IDs are skipped. The same ID may appear more than once; the
        later decision supersedes the earlier one. One notification
        summarizing the batch is written for the polling agent.

        Raises:
            ReviewValidationError: An entry lacks an ID or has a non-verdict status.
        """
        for decision in decisions:
            if not decision.id:
                raise ReviewValidationError("Each decision must have id and status", field="id")
            if not is_verdict(decision.status):
                raise ReviewValidationError(
                    f"Invalid status: {decision.status.value}", field="status"
                )

        updated = await self._store.batch_decide(decisions, self.decider)

        for item in updated:
            await self._record_decision(item)

        written = await self.notify(
            ReviewNotification.for_batch(
                f"{self.decider} submitted {len(updated)} review decisions", updated
            )
        )

        logger.info(f"Batch of {len(decisions)} decisions applied ({len(updated)} matched)")
        return BatchResult(items=updated, notification_written=written)

    # =========================================================================
    # Notifications
    # =========================================================================

    async def notify(self, notification: ReviewNotification) -> bool:
        """Overwrite the notification slot. Returns False if the write failed."""
        try:
            await self._notifications.write(notification)
        except (StorageError, OSError) as e:
            logger.warning(f"Notification not written: {e}")
            return False
        return True

    async def poll_notification(self, peek: bool = False) -> ReviewNotification | None:
        """Read the pending notification; clears it unless ``peek``."""
        return await self._notifications.read(peek=peek)

    # =========================================================================
    # Seeding
    # =========================================================================

    async def seed_samples(self) -> list[ReviewItem]:
        """Create the sample reviews, unless reviews are already pending."""
        if await self.list_pending(limit=1):
            logger.info("Pending reviews exist, skipping seed")
            return []

        created = []
        for sample in SAMPLE_REVIEWS:
            item = await self.submit_review(**sample, check_urls=False)
            if item is not None:
                created.append(item)
        return created

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _record_decision(self, item: ReviewItem) -> None:
        comment = item.decision.comment if item.decision else None
        await self._log_activity(
            activity_row(
                f"{_DECISION_VERBS[item.status]}: {item.title}",
                agent_id=self.decider.lower(),
                agent_name=self.decider,
                details=comment,
                key=f"{item.id}-{item.decided_at}",
            )
        )
        await self._log_approval(item, item.status.value, self.decider, comment)

    async def _log_activity(self, row: dict[str, Any]) -> None:
        try:
            await self._activity_log.record_activity(row)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"Activity log write failed: {e}")

    async def _log_approval(
        self, item: ReviewItem, action: str, actor: str, notes: str | None
    ) -> None:
        try:
            await self._activity_log.record_approval(
                {"review_id": item.id, "action": action, "actor": actor, "notes": notes}
            )
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"Approval log write failed: {e}")


# =========================================================================
# Factory Function
# =========================================================================

_manager_instance: ReviewManager | None = None


def get_review_manager() -> ReviewManager:
    """Get or create the review manager singleton."""
    global _manager_instance
    if _manager_instance is None:
        _manager_instance = ReviewManager()
    return _manager_instance


def reset_review_manager() -> None:
    """Reset the manager singleton (for testing)."""
    global _manager_instance
    _manager_instance = None
