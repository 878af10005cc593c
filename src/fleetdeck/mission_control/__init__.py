"""Mission Control - human review and approval for the agent fleet.

Created: 2026-02-10

Agents submit artifacts (documents, copy, site previews, media) for a
human verdict. Features:

- Review items with an append-only decision history
- Single and batch decisions (approve / reject / request changes)
- Single-slot notification polled by the coordinating agent
- Activity feed and approval audit log for every change
- Deliverables with an approval webhook that fires an automation hook
- Tiered storage: hosted table -> JSON file -> in-memory

Usage:
    from fleetdeck.mission_control import get_review_manager

    manager = get_review_manager()

    review = await manager.submit_review(
        title="Landing page copy",
        type="copy",
        submitted_by="Pepper",
        content="...",
    )

    await manager.decide(review.id, ReviewStatus.APPROVED, "Ship it")

    # The coordinating agent polls for batch outcomes
    notification = await manager.poll_notification()
"""

# Manager
from fleetdeck.mission_control.deliverables import (
    DeliverableManager,
    get_deliverable_manager,
    reset_deliverable_manager,
)
from fleetdeck.mission_control.manager import (
    BatchResult,
    ReviewManager,
    get_review_manager,
    reset_review_manager,
)

# Models
from fleetdeck.mission_control.models import (
    Decision,
    Deliverable,
    DeliverableStatus,
    HistoryEntry,
    ReviewItem,
    ReviewNotification,
    ReviewPriority,
    ReviewStatus,
    ReviewType,
)

# Store
from fleetdeck.mission_control.store import (
    FileReviewStore,
    InMemoryReviewStore,
    TableReviewStore,
    TieredReviewStore,
    get_review_store,
    reset_review_store,
)
from fleetdeck.mission_control.workflow import DecisionRequest, apply_decision

__all__ = [
    # Models
    "ReviewItem",
    "ReviewStatus",
    "ReviewType",
    "ReviewPriority",
    "Decision",
    "HistoryEntry",
    "ReviewNotification",
    "Deliverable",
    "DeliverableStatus",
    # Workflow
    "DecisionRequest",
    "apply_decision",
    # Store
    "FileReviewStore",
    "InMemoryReviewStore",
    "TableReviewStore",
    "TieredReviewStore",
    "get_review_store",
    "reset_review_store",
    # Manager
    "ReviewManager",
    "BatchResult",
    "get_review_manager",
    "reset_review_manager",
    "DeliverableManager",
    "get_deliverable_manager",
    "reset_deliverable_manager",
]
