"""Deliverables and the approval webhook.

Created: 2026-02-18

Deliverables are agent work products (a PR, a deploy, a screenshot) that
go through their own approval path, separate from review items:

    submit ──> pending ──(approval webhook)──> approved | rejected | revision_requested
                                          └──> automation hook (POST)

Stores are table-first with a local JSON document
(``{reviews_dir}/deliverables.json``) behind it. Audit and activity writes
are side effects and never fail the approval.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from fleetdeck.config import Settings, get_settings
from fleetdeck.errors import ReviewValidationError, StorageError
from fleetdeck.fallback import RECOVERABLE_ERRORS, FallbackChain
from fleetdeck.mission_control.activity_log import activity_row, get_activity_log
from fleetdeck.mission_control.models import Deliverable, DeliverableStatus, now_iso
from fleetdeck.mission_control.protocol import ActivityLogProtocol, DeliverableStoreProtocol
from fleetdeck.tables import MALFORMED_ROW_ERRORS, TableClient, parse_rows

logger = logging.getLogger(__name__)

DEFAULT_APPROVER = "operator"

_APPROVAL_VERBS = {
    DeliverableStatus.APPROVED: "Approved",
    DeliverableStatus.REJECTED: "Rejected",
    DeliverableStatus.REVISION_REQUESTED: "Requested revision",
}


# =========================================================================
# Stores
# =========================================================================


class TableDeliverableStore:
    """Deliverables in the hosted ``deliverables`` table."""

    name = "table"

    def __init__(self, client: TableClient):
        self._client = client

    async def list_deliverables(
        self, status: str | None = None, limit: int = 50
    ) -> list[Deliverable]:
        filters = {"status": f"eq.{status}"} if status else None
        rows = await self._client.select(
            "deliverables", filters=filters, order="created_at.desc", limit=limit
        )
        return parse_rows(rows, Deliverable.from_dict, "deliverables")

    async def get_deliverable(self, deliverable_id: str) -> Deliverable | None:
        row = await self._client.select_one("deliverables", {"id": f"eq.{deliverable_id}"})
        items = parse_rows([row], Deliverable.from_dict, "deliverables") if row else []
        return items[0] if items else None

    async def save_deliverable(self, deliverable: Deliverable) -> Deliverable:
        rows = await self._client.upsert("deliverables", [deliverable.to_dict()])
        saved = parse_rows(rows, Deliverable.from_dict, "deliverables")
        return saved[0] if saved else deliverable


class FileDeliverableStore:
    """Deliverables in a local JSON document."""

    name = "file"

    def __init__(self, path: Path | None = None):
        if path is None:
            path = get_settings().reviews_dir / "deliverables.json"
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> list[Deliverable]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"{self.path} is not valid JSON: {e}") from e
        try:
            return [Deliverable.from_dict(d) for d in data.get("deliverables", [])]
        except MALFORMED_ROW_ERRORS as e:
            raise StorageError(f"{self.path} holds a malformed deliverable: {e}") from e

    def _save(self, deliverables: list[Deliverable]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(
                    {"deliverables": [d.to_dict() for d in deliverables]},
                    f,
                    indent=2,
                    ensure_ascii=False,
                )
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Error saving {self.path}: {e}") from e

    async def list_deliverables(
        self, status: str | None = None, limit: int = 50
    ) -> list[Deliverable]:
        items = self._load()
        if status:
            items = [d for d in items if d.status.value == status]
        items.sort(key=lambda d: d.created_at, reverse=True)
        return items[:limit]

    async def get_deliverable(self, deliverable_id: str) -> Deliverable | None:
        return next((d for d in self._load() if d.id == deliverable_id), None)

    async def save_deliverable(self, deliverable: Deliverable) -> Deliverable:
        async with self._lock:
            items = [d for d in self._load() if d.id != deliverable.id]
            items.append(deliverable)
            self._save(items)
        return deliverable


class TieredDeliverableStore:
    """First deliverable store tier that answers wins."""

    name = "tiered"

    def __init__(self, tiers: list[Any]):
        self.tiers = tiers
        self._chain: FallbackChain[Any] = FallbackChain(tiers, label="deliverables")

    async def list_deliverables(
        self, status: str | None = None, limit: int = 50
    ) -> list[Deliverable]:
        result = await self._chain.run(lambda s: s.list_deliverables(status, limit), default=[])
        return result.value

    async def get_deliverable(self, deliverable_id: str) -> Deliverable | None:
        result = await self._chain.run(lambda s: s.get_deliverable(deliverable_id), default=None)
        return result.value

    async def save_deliverable(self, deliverable: Deliverable) -> Deliverable | None:
        result = await self._chain.run(lambda s: s.save_deliverable(deliverable), default=None)
        return result.value


def build_deliverable_store(settings: Settings | None = None) -> TieredDeliverableStore:
    settings = settings or get_settings()
    return TieredDeliverableStore(
        [
            TableDeliverableStore(TableClient.from_settings(settings)),
            FileDeliverableStore(settings.reviews_dir / "deliverables.json"),
        ]
    )


# =========================================================================
# Manager
# =========================================================================


@dataclass
class ApprovalOutcome:
    """Result of an approval webhook call."""

    deliverable: Deliverable
    webhook_fired: bool
    webhook_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "deliverableId": self.deliverable.id,
            "status": self.deliverable.status.value,
            "approvedBy": self.deliverable.approved_by,
            "notes": self.deliverable.approval_notes,
            "webhook": "fired" if self.webhook_fired else "skipped",
            "webhookError": self.webhook_error,
            "timestamp": self.deliverable.updated_at,
        }


class DeliverableManager:
    """Submission and approval of agent deliverables."""

    def __init__(
        self,
        store: DeliverableStoreProtocol | None = None,
        activity_log: ActivityLogProtocol | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings or get_settings()
        self._store = store or build_deliverable_store(self._settings)
        self._activity_log = activity_log or get_activity_log()
        self._transport = transport

    @property
    def webhook_configured(self) -> bool:
        return bool(self._settings.approval_webhook_url)

    async def list_deliverables(
        self, status: str | None = None, limit: int = 50
    ) -> list[Deliverable]:
        return await self._store.list_deliverables(status, limit)

    async def get_deliverable(self, deliverable_id: str) -> Deliverable | None:
        return await self._store.get_deliverable(deliverable_id)

    async def submit(
        self,
        title: str | None,
        agent_id: str | None,
        agent_name: str | None = None,
        **fields: Any,
    ) -> Deliverable | None:
        """Store a new pending deliverable.

        Raises:
            ReviewValidationError: ``title`` or ``agent_id`` missing.
        """
        if not title:
            raise ReviewValidationError("title is required", field="title")
        if not agent_id:
            raise ReviewValidationError("agentId is required", field="agentId")

        deliverable = Deliverable(
            title=title,
            agent_id=agent_id,
            agent_name=agent_name or agent_id,
            **fields,
        )
        stored = await self._store.save_deliverable(deliverable)
        if stored is None:
            return None

        await self._side_effect(
            self._activity_log.record_approval(
                {
                    "deliverable_id": stored.id,
                    "action": "submitted",
                    "actor": stored.agent_name,
                    "notes": f"Submitted: {stored.title}",
                }
            )
        )
        await self._side_effect(
            self._activity_log.record_activity(
                activity_row(
                    f"Submitted for review: {stored.title}",
                    agent_id=stored.agent_id,
                    agent_name=stored.agent_name,
                    agent_emoji="🔨",
                    details=stored.pr_url or stored.description,
                    key=f"submit-{stored.id}",
                )
            )
        )
        logger.info(f"Deliverable submitted: {stored.title} ({stored.id})")
        return stored

    async def approve(
        self,
        deliverable_id: str,
        status: DeliverableStatus,
        notes: str | None = None,
        approved_by: str | None = None,
    ) -> ApprovalOutcome | None:
        """Record an approval decision and fire the automation hook.

        Returns:
            The outcome, or None if the deliverable does not exist.
        """
        if status == DeliverableStatus.PENDING:
            raise ReviewValidationError(
                "status must be one of: approved, rejected, revision_requested", field="status"
            )

        deliverable = await self._store.get_deliverable(deliverable_id)
        if deliverable is None:
            return None

        approver = approved_by or DEFAULT_APPROVER
        timestamp = now_iso()
        deliverable.status = status
        deliverable.approved_by = approver
        deliverable.approval_notes = notes
        deliverable.updated_at = timestamp
        if status == DeliverableStatus.APPROVED:
            deliverable.approved_at = timestamp

        saved = await self._store.save_deliverable(deliverable)
        if saved is None:
            raise StorageError(f"Failed to update deliverable {deliverable_id}")

        await self._side_effect(
            self._activity_log.record_approval(
                {
                    "deliverable_id": deliverable_id,
                    "action": status.value,
                    "actor": approver,
                    "notes": notes,
                }
            )
        )
        await self._side_effect(
            self._activity_log.record_activity(
                activity_row(
                    f"{_APPROVAL_VERBS[status]}: {deliverable.title}",
                    agent_id=approver.lower(),
                    agent_name=approver,
                    details=notes,
                    key=f"approval-{deliverable_id}",
                )
            )
        )

        fired, error = await self._fire_webhook(deliverable, timestamp)
        if fired:
            deliverable.webhook_fired = True
            deliverable.webhook_fired_at = timestamp
            await self._store.save_deliverable(deliverable)

        return ApprovalOutcome(deliverable=deliverable, webhook_fired=fired, webhook_error=error)

    async def _fire_webhook(
        self, deliverable: Deliverable, timestamp: str
    ) -> tuple[bool, str | None]:
        url = self._settings.approval_webhook_url
        if not url:
            logger.info("Approval webhook URL not configured, skipping")
            return False, "approval webhook URL not configured"

        payload = {
            "deliverableId": deliverable.id,
            "status": deliverable.status.value,
            "notes": deliverable.approval_notes,
            "approvedBy": deliverable.approved_by,
            "deliverable": deliverable.to_dict(),
            "timestamp": timestamp,
        }
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Approval webhook failed: {e}")
            return False, str(e) or type(e).__name__

        if resp.status_code >= 400:
            logger.error(f"Approval webhook responded {resp.status_code}: {resp.text[:200]}")
            return False, f"webhook responded {resp.status_code}"

        logger.info(f"Approval webhook fired for {deliverable.id}")
        return True, None

    async def _side_effect(self, write) -> None:
        try:
            await write
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"Deliverable audit write failed: {e}")


# =========================================================================
# Factory Function
# =========================================================================

_manager_instance: DeliverableManager | None = None


def get_deliverable_manager() -> DeliverableManager:
    """Get or create the deliverable manager singleton."""
    global _manager_instance
    if _manager_instance is None:
        _manager_instance = DeliverableManager()
    return _manager_instance


def reset_deliverable_manager() -> None:
    """Reset the manager singleton (for testing)."""
    global _manager_instance
    _manager_instance = None
