"""Mission Control review and approval API endpoints.

Created: 2026-02-11
Updated: 2026-02-18 — Added deliverables and the approval webhook:
  - GET /deliverables — list deliverables (optional status filter)
  - POST /deliverables — submit a deliverable
  - GET /webhooks/approve — endpoint description
  - POST /webhooks/approve — approve / reject / request revision

FastAPI router for the review portal.

Provides REST endpoints for:
- Reviews: list, submit, get, decide
- Batch submission of decisions (leaves a notification for the polling agent)
- Pending-notification poll and decision history
- Sample data seeding

Request bodies use the camelCase wire format the dashboard and agents send.
Required review fields are checked by the manager, not by pydantic, so a
missing ``title`` is a 400 with a readable message rather than a 422.

Mount this router to your FastAPI app:
    from fleetdeck.mission_control.api import router as reviews_router
    app.include_router(reviews_router, prefix="/api")
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from fleetdeck.errors import ReviewValidationError, StorageError, UnreachableURLError
from fleetdeck.mission_control.deliverables import get_deliverable_manager
from fleetdeck.mission_control.manager import get_review_manager
from fleetdeck.mission_control.models import DeliverableStatus, ReviewItem, ReviewStatus
from fleetdeck.mission_control.workflow import DecisionRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reviews"])


# ============================================================================
# Request/Response Models
# ============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateReviewRequest(_CamelModel):
    """Request to submit a review item."""

    title: str | None = None
    type: str | None = None
    submitted_by: str | None = Field(default=None, alias="submittedBy")
    description: str | None = None
    content: str | None = None
    content_url: str | None = Field(default=None, alias="contentUrl")
    image_url: str | None = Field(default=None, alias="imageUrl")
    video_url: str | None = Field(default=None, alias="videoUrl")
    preview_url: str | None = Field(default=None, alias="previewUrl")
    file_path: str | None = Field(default=None, alias="filePath")
    priority: str | None = None
    tags: list[str] | None = None
    upstream_recommendation: str | None = Field(default=None, alias="captainRecommendation")
    upstream_notes: str | None = Field(default=None, alias="captainNotes")


class DecideRequest(BaseModel):
    """Request to decide a single review."""

    status: str | None = None
    comment: str | None = None


class BatchDecisionEntry(BaseModel):
    id: str | None = None
    status: str | None = None
    comment: str | None = None


class BatchDecisionRequest(BaseModel):
    """Request to submit several decisions at once."""

    decisions: list[BatchDecisionEntry] | None = None


class CreateDeliverableRequest(_CamelModel):
    """Request to submit a deliverable."""

    title: str | None = None
    agent_id: str | None = Field(default=None, alias="agentId")
    agent_name: str | None = Field(default=None, alias="agentName")
    description: str | None = None
    task_id: str | None = Field(default=None, alias="taskId")
    type: str | None = None
    pr_url: str | None = Field(default=None, alias="prUrl")
    deploy_url: str | None = Field(default=None, alias="deployUrl")
    screenshot_url: str | None = Field(default=None, alias="screenshotUrl")
    branch: str | None = None
    files_changed: int | None = Field(default=None, alias="filesChanged")


class ApprovalRequest(_CamelModel):
    """Approval webhook body."""

    deliverable_id: str | None = Field(default=None, alias="deliverableId")
    status: str | None = None
    notes: str | None = None
    approved_by: str | None = Field(default=None, alias="approvedBy")


def _decision_summary(item: ReviewItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "type": item.type.value,
        "status": item.status.value,
        "submittedBy": item.submitted_by,
        "decidedAt": item.decided_at,
        "comment": item.decision.comment if item.decision else None,
    }


def _parse_status(value: str | None) -> ReviewStatus:
    try:
        return ReviewStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in ReviewStatus)
        raise HTTPException(
            status_code=400, detail=f"Invalid status: {value} (expected one of: {valid})"
        ) from None


# ============================================================================
# Review Endpoints
# ============================================================================


@router.get("/reviews")
async def list_reviews(
    pending: bool = False,
    status: str | None = None,
    limit: int = 100,
) -> dict[str, Any]:
    """List reviews, most recent submission first."""
    manager = get_review_manager()

    if pending:
        reviews = await manager.list_pending()
        return {
            "reviews": [r.to_dict() for r in reviews[:limit]],
            "count": len(reviews),
        }

    status_filter = _parse_status(status) if status else None
    reviews = await manager.list_reviews(status_filter)
    return {
        "reviews": [r.to_dict() for r in reviews[:limit]],
        "count": len(reviews),
        "lastUpdated": await manager.last_updated(),
    }


@router.post("/reviews", status_code=201)
async def submit_review(request: CreateReviewRequest) -> dict[str, Any]:
    """Submit a new item for review."""
    manager = get_review_manager()
    try:
        review = await manager.submit_review(**request.model_dump())
    except UnreachableURLError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except ReviewValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if review is None:
        raise HTTPException(status_code=503, detail="Review storage unavailable")

    return {
        "success": True,
        "review": review.to_dict(),
        "message": "Review submitted successfully",
    }


@router.get("/reviews/pending")
async def poll_pending(peek: bool = False) -> dict[str, Any]:
    """Notification poll for the coordinating agent.

    Consumes the notification unless ``peek`` is set.
    """
    manager = get_review_manager()
    notification = await manager.poll_notification(peek=peek)
    recent, _ = await manager.get_history(limit=10)
    return {
        "hasNotification": notification is not None,
        "notification": notification.to_dict() if notification else None,
        "recentDecisions": [_decision_summary(r) for r in recent],
    }


@router.get("/reviews/history")
async def review_history(limit: int = 50, search: str | None = None) -> dict[str, Any]:
    """Decided reviews with verdict counts."""
    manager = get_review_manager()
    history, stats = await manager.get_history(limit=limit, search=search)
    return {"history": [r.to_dict() for r in history], "stats": stats}


@router.post("/reviews/submit")
async def submit_decisions(request: BatchDecisionRequest) -> dict[str, Any]:
    """Apply a batch of decisions and notify the polling agent."""
    if not request.decisions:
        raise HTTPException(
            status_code=400,
            detail="Missing decisions array (expected decisions: [{id, status, comment?}])",
        )

    decisions = []
    for entry in request.decisions:
        if not entry.id or not entry.status:
            raise HTTPException(status_code=400, detail="Each decision must have id and status")
        decisions.append(
            DecisionRequest(id=entry.id, status=_parse_status(entry.status), comment=entry.comment)
        )

    manager = get_review_manager()
    try:
        result = await manager.batch_decide(decisions)
    except ReviewValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return {
        "success": True,
        "updated": len(result.items),
        "summary": result.summary,
        "message": f"Submitted {len(result.items)} review decisions",
        "notificationWritten": result.notification_written,
    }


@router.post("/reviews/seed")
async def seed_reviews() -> dict[str, Any]:
    """Create the sample reviews (skipped while reviews are pending)."""
    manager = get_review_manager()
    created = await manager.seed_samples()
    return {
        "success": True,
        "created": len(created),
        "ids": [r.id for r in created],
        "message": "Sample reviews seeded" if created else "Pending reviews exist, nothing seeded",
    }


@router.get("/reviews/{review_id}")
async def get_review(review_id: str) -> dict[str, Any]:
    """Get a single review."""
    manager = get_review_manager()
    review = await manager.get_review(review_id)
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return {"review": review.to_dict()}


@router.patch("/reviews/{review_id}")
async def decide_review(review_id: str, request: DecideRequest) -> dict[str, Any]:
    """Decide a single review. ``pending`` re-opens it."""
    status = _parse_status(request.status)
    manager = get_review_manager()
    review = await manager.decide(review_id, status, request.comment)
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return {"success": True, "review": review.to_dict(), "message": f"Review {status.value}"}


# ============================================================================
# Deliverable Endpoints
# ============================================================================


@router.get("/deliverables")
async def list_deliverables(status: str | None = None, limit: int = 50) -> dict[str, Any]:
    """List deliverables, newest first."""
    manager = get_deliverable_manager()
    deliverables = await manager.list_deliverables(status, limit)
    return {"deliverables": [d.to_dict() for d in deliverables], "count": len(deliverables)}


@router.post("/deliverables", status_code=201)
async def submit_deliverable(request: CreateDeliverableRequest) -> dict[str, Any]:
    """Submit a deliverable for approval."""
    manager = get_deliverable_manager()
    fields = request.model_dump(exclude={"title", "agent_id", "agent_name"}, exclude_none=True)
    try:
        deliverable = await manager.submit(
            request.title, request.agent_id, request.agent_name, **fields
        )
    except ReviewValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if deliverable is None:
        raise HTTPException(status_code=503, detail="Deliverable storage unavailable")
    return {"success": True, "deliverable": deliverable.to_dict()}


@router.get("/webhooks/approve")
async def describe_approval_webhook() -> dict[str, Any]:
    """Describe the approval webhook."""
    manager = get_deliverable_manager()
    return {
        "status": "ok",
        "endpoint": "/api/webhooks/approve",
        "method": "POST",
        "webhookConfigured": manager.webhook_configured,
        "requiredFields": {
            "deliverableId": "string",
            "status": "approved | rejected | revision_requested",
            "notes": "string (optional)",
            "approvedBy": "string (optional)",
        },
    }


@router.post("/webhooks/approve")
async def approve_deliverable(request: ApprovalRequest) -> dict[str, Any]:
    """Approve, reject, or request revision of a deliverable."""
    if not request.deliverable_id:
        raise HTTPException(status_code=400, detail="deliverableId is required")

    verdicts = [s.value for s in DeliverableStatus if s != DeliverableStatus.PENDING]
    if request.status not in verdicts:
        raise HTTPException(
            status_code=400, detail=f"status must be one of: {', '.join(verdicts)}"
        )

    manager = get_deliverable_manager()
    try:
        outcome = await manager.approve(
            request.deliverable_id,
            DeliverableStatus(request.status),
            notes=request.notes,
            approved_by=request.approved_by,
        )
    except StorageError as e:
        logger.error(f"Approval failed for {request.deliverable_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update deliverable") from e

    if outcome is None:
        raise HTTPException(
            status_code=404, detail=f"Deliverable not found: {request.deliverable_id}"
        )
    return outcome.to_dict()
