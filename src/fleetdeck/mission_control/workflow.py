"""Review decision workflow.

Created: 2026-02-10

State machine for review items:

    pending ──> approved | rejected | changes_requested
                   ^                         |
                   └──── re-decide ──────────┘

There are no automatic transitions. A human may decide an item any number
of times; each new decision pushes the previous one onto ``history`` so
nothing is lost. Every store backend calls ``apply_decision`` so the
semantics are identical across tiers.
"""

from dataclasses import dataclass

from fleetdeck.mission_control.models import (
    VERDICT_STATUSES,
    Decision,
    HistoryEntry,
    ReviewItem,
    ReviewStatus,
    now_iso,
)


@dataclass
class DecisionRequest:
    """One entry of a batch submission."""

    id: str
    status: ReviewStatus
    comment: str | None = None


def apply_decision(
    item: ReviewItem,
    status: ReviewStatus,
    comment: str | None,
    decided_by: str,
    decided_at: str | None = None,
) -> ReviewItem:
    """Record a new decision on ``item`` in place and return it.

    The current decision (if any) is appended to ``history`` before the new
    one replaces it. Decisions loaded from older data carry no actor; those
    are attributed to ``decided_by``.
    """
    if item.decision is not None:
        item.history.append(
            HistoryEntry(
                status=item.decision.status,
                comment=item.decision.comment,
                decided_by=item.decision.decided_by or decided_by,
                decided_at=item.decision.decided_at,
            )
        )

    item.status = status
    item.decision = Decision(
        status=status,
        comment=comment,
        decided_at=decided_at or now_iso(),
        decided_by=decided_by,
    )
    return item


def is_verdict(status: ReviewStatus) -> bool:
    """True for statuses accepted in a batch submission."""
    return status in VERDICT_STATUSES


def summarize(items: list[ReviewItem]) -> dict[str, int]:
    """Count decided items by verdict."""
    return {
        "approved": sum(1 for i in items if i.status == ReviewStatus.APPROVED),
        "rejected": sum(1 for i in items if i.status == ReviewStatus.REJECTED),
        "changesRequested": sum(1 for i in items if i.status == ReviewStatus.CHANGES_REQUESTED),
    }
