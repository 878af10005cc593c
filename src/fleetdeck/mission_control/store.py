"""Review stores: hosted table, JSON file, in-memory, and the tiered wrapper.

Created: 2026-02-10
Implements ReviewStoreProtocol three ways plus a fallback wrapper.

File layout (file tier):
~/.openclaw/reviews/
    reviews.json                 # {"reviews": [...], "lastUpdated": ..., "version": 1}

Design notes:
- The file tier re-reads the whole document on every call and writes the
  whole document back (read, mutate in memory, write). Edits made by other
  tools between requests are picked up.
- Writes are atomic (temp file + replace) and serialized per store
  instance with an asyncio.Lock. Separate processes sharing one file are
  still last-write-wins.
- The table tier updates single rows; decision and history are JSON columns.
- The in-memory tier replaces the old process-wide fallback list: it is an
  ordinary object that callers construct and inject.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from fleetdeck.config import Settings, get_settings
from fleetdeck.errors import StorageError
from fleetdeck.fallback import FallbackChain
from fleetdeck.mission_control.models import ReviewItem, ReviewStatus, now_iso
from fleetdeck.mission_control.workflow import DecisionRequest, apply_decision
from fleetdeck.tables import MALFORMED_ROW_ERRORS, TableClient, get_table_client, parse_rows

logger = logging.getLogger(__name__)

STORE_VERSION = 1


# =========================================================================
# Ordering helpers
# =========================================================================


def _ts(value: str | None) -> float:
    """Parse an ISO timestamp for sorting; unparseable values sort last."""
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def sort_by_submission(items: list[ReviewItem]) -> list[ReviewItem]:
    """Most recent submission first (stable for equal timestamps)."""
    return sorted(items, key=lambda r: _ts(r.submitted_at), reverse=True)


def sort_by_decision(items: list[ReviewItem]) -> list[ReviewItem]:
    """Most recently decided first, falling back to submission time."""
    return sorted(items, key=lambda r: _ts(r.decided_at or r.submitted_at), reverse=True)


# =========================================================================
# Document-backed stores (in-memory and file)
# =========================================================================


class _DocumentReviewStore:
    """Shared logic for stores that hold the whole review list at once.

    Subclasses provide ``_load`` and ``_save``; every mutation is a
    read-modify-write of the full list under ``self._lock``.
    """

    name = "document"

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._last_updated: str | None = None

    def _load(self) -> list[ReviewItem]:
        raise NotImplementedError

    def _save(self, items: list[ReviewItem]) -> None:
        raise NotImplementedError

    async def list_reviews(
        self, status: ReviewStatus | None = None, limit: int | None = None
    ) -> list[ReviewItem]:
        items = self._load()
        if status is not None:
            items = [r for r in items if r.status == status]
        items = sort_by_submission(items)
        return items[:limit] if limit is not None else items

    async def get_review(self, review_id: str) -> ReviewItem | None:
        for item in self._load():
            if item.id == review_id:
                return item
        return None

    async def create_review(self, item: ReviewItem) -> ReviewItem:
        async with self._lock:
            items = self._load()
            items.insert(0, item)
            self._save(items)
        return item

    async def decide(
        self,
        review_id: str,
        status: ReviewStatus,
        comment: str | None,
        decided_by: str,
    ) -> ReviewItem | None:
        async with self._lock:
            items = self._load()
            item = next((r for r in items if r.id == review_id), None)
            if item is None:
                return None
            apply_decision(item, status, comment, decided_by)
            self._save(items)
        return item

    async def batch_decide(
        self, decisions: list[DecisionRequest], decided_by: str
    ) -> list[ReviewItem]:
        updated: list[ReviewItem] = []
        async with self._lock:
            items = self._load()
            by_id = {r.id: r for r in items}
            for decision in decisions:
                item = by_id.get(decision.id)
                if item is None:
                    continue
                apply_decision(item, decision.status, decision.comment, decided_by)
                updated.append(item)
            self._save(items)
        return updated

    async def review_history(self, limit: int = 50) -> list[ReviewItem]:
        decided = [r for r in self._load() if r.status != ReviewStatus.PENDING]
        return sort_by_decision(decided)[:limit]

    async def last_updated(self) -> str | None:
        return self._last_updated


class InMemoryReviewStore(_DocumentReviewStore):
    """Review store held in process memory. Lost on restart."""

    name = "memory"

    def __init__(self, items: list[ReviewItem] | None = None):
        super().__init__()
        self._items: list[dict[str, Any]] = [i.to_dict() for i in items or []]

    def _load(self) -> list[ReviewItem]:
        # Hand out copies so callers can't mutate stored state by accident
        return [ReviewItem.from_dict(d) for d in self._items]

    def _save(self, items: list[ReviewItem]) -> None:
        self._items = [i.to_dict() for i in items]
        self._last_updated = now_iso()


class FileReviewStore(_DocumentReviewStore):
    """Review store backed by a single JSON document."""

    name = "file"

    def __init__(self, base_path: Path | None = None):
        """Initialize the store.

        Args:
            base_path: Directory for reviews.json. Defaults to ~/.openclaw/reviews/
        """
        super().__init__()
        if base_path is None:
            base_path = get_settings().reviews_dir
        self.base_path = Path(base_path)
        self.path = self.base_path / "reviews.json"

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"reviews": [], "lastUpdated": None, "version": STORE_VERSION}
        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"{self.path} is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise StorageError(f"{self.path} does not hold a review document")
        return document

    def _load(self) -> list[ReviewItem]:
        document = self._read_document()
        self._last_updated = document.get("lastUpdated")
        # A bad entry fails the whole tier; skipping it would drop it on the next save
        try:
            return [ReviewItem.from_dict(d) for d in document.get("reviews", [])]
        except MALFORMED_ROW_ERRORS as e:
            raise StorageError(f"{self.path} holds a malformed review: {e}") from e

    def _save(self, items: list[ReviewItem]) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        document = {
            "reviews": [i.to_dict() for i in items],
            "lastUpdated": now_iso(),
            "version": STORE_VERSION,
        }
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Error saving {self.path}: {e}") from e
        self._last_updated = document["lastUpdated"]

    async def last_updated(self) -> str | None:
        if self._last_updated is None and self.path.exists():
            self._load()
        return self._last_updated


# =========================================================================
# Hosted table store
# =========================================================================


class TableReviewStore:
    """Review store backed by the hosted ``reviews`` table."""

    name = "table"

    def __init__(self, client: TableClient | None = None):
        self._client = client or get_table_client()

    async def list_reviews(
        self, status: ReviewStatus | None = None, limit: int | None = None
    ) -> list[ReviewItem]:
        filters = {"status": f"eq.{status.value}"} if status is not None else None
        rows = await self._client.select(
            "reviews", filters=filters, order="submitted_at.desc", limit=limit
        )
        return parse_rows(rows, ReviewItem.from_dict, "reviews")

    async def get_review(self, review_id: str) -> ReviewItem | None:
        row = await self._client.select_one("reviews", {"id": f"eq.{review_id}"})
        items = parse_rows([row], ReviewItem.from_dict, "reviews") if row else []
        return items[0] if items else None

    async def create_review(self, item: ReviewItem) -> ReviewItem:
        rows = await self._client.insert("reviews", item.to_row())
        saved = parse_rows(rows, ReviewItem.from_dict, "reviews")
        return saved[0] if saved else item

    async def decide(
        self,
        review_id: str,
        status: ReviewStatus,
        comment: str | None,
        decided_by: str,
    ) -> ReviewItem | None:
        item = await self.get_review(review_id)
        if item is None:
            return None
        apply_decision(item, status, comment, decided_by)
        row = item.to_row()
        await self._client.update(
            "reviews",
            {"status": row["status"], "decision": row["decision"], "history": row["history"]},
            {"id": f"eq.{review_id}"},
        )
        return item

    async def batch_decide(
        self, decisions: list[DecisionRequest], decided_by: str
    ) -> list[ReviewItem]:
        """Apply decisions one row at a time.

        Rows are written independently, so a failure partway through cannot
        be rolled back. Once any row has been written the batch stays on this
        tier: later failures are logged and the written items are returned.
        A failure before the first write raises so the next tier is tried.
        """
        updated: list[ReviewItem] = []
        for decision in decisions:
            try:
                item = await self.decide(decision.id, decision.status, decision.comment, decided_by)
            except (StorageError, httpx.HTTPError) as e:
                if not updated:
                    raise
                logger.warning(f"Decision on {decision.id} not saved, batch partly applied: {e}")
                continue
            if item is not None:
                updated.append(item)
        return updated

    async def review_history(self, limit: int = 50) -> list[ReviewItem]:
        rows = await self._client.select(
            "reviews", filters={"status": "neq.pending"}, order="submitted_at.desc"
        )
        return sort_by_decision(parse_rows(rows, ReviewItem.from_dict, "reviews"))[:limit]

    async def last_updated(self) -> str | None:
        """Latest submission or decision time across the table."""
        rows = await self._client.select("reviews", columns="submitted_at,decision")
        return max(
            (
                ts
                for row in rows
                for ts in (row.get("submitted_at"), (row.get("decision") or {}).get("decidedAt"))
                if ts
            ),
            key=_ts,
            default=None,
        )


# =========================================================================
# Tiered store
# =========================================================================


class TieredReviewStore:
    """Route each operation to the first review store tier that answers.

    Tiers are tried in order. A tier that raises a storage error is logged
    and skipped. When every tier fails, reads return an empty result and
    writes return None (or an empty list for batches).
    """

    name = "tiered"

    def __init__(self, tiers: list[Any]):
        self.tiers = tiers
        self._chain: FallbackChain[Any] = FallbackChain(tiers, label="reviews")

    async def list_reviews(
        self, status: ReviewStatus | None = None, limit: int | None = None
    ) -> list[ReviewItem]:
        result = await self._chain.run(lambda s: s.list_reviews(status, limit), default=[])
        return result.value

    async def get_review(self, review_id: str) -> ReviewItem | None:
        result = await self._chain.run(lambda s: s.get_review(review_id), default=None)
        return result.value

    async def create_review(self, item: ReviewItem) -> ReviewItem | None:
        result = await self._chain.run(lambda s: s.create_review(item), default=None)
        return result.value

    async def decide(
        self,
        review_id: str,
        status: ReviewStatus,
        comment: str | None,
        decided_by: str,
    ) -> ReviewItem | None:
        result = await self._chain.run(
            lambda s: s.decide(review_id, status, comment, decided_by), default=None
        )
        return result.value

    async def batch_decide(
        self, decisions: list[DecisionRequest], decided_by: str
    ) -> list[ReviewItem]:
        result = await self._chain.run(lambda s: s.batch_decide(decisions, decided_by), default=[])
        return result.value

    async def review_history(self, limit: int = 50) -> list[ReviewItem]:
        result = await self._chain.run(lambda s: s.review_history(limit), default=[])
        return result.value

    async def last_updated(self) -> str | None:
        result = await self._chain.run(lambda s: s.last_updated(), default=None)
        return result.value


# =========================================================================
# Factory Function
# =========================================================================

_store_instance: TieredReviewStore | None = None


def build_review_store(settings: Settings | None = None) -> TieredReviewStore:
    """Build the default tier order: hosted table, JSON file, memory."""
    settings = settings or get_settings()
    return TieredReviewStore(
        [
            TableReviewStore(TableClient.from_settings(settings)),
            FileReviewStore(settings.reviews_dir),
            InMemoryReviewStore(),
        ]
    )


def get_review_store() -> TieredReviewStore:
    """Get or create the review store singleton."""
    global _store_instance
    if _store_instance is None:
        _store_instance = build_review_store()
    return _store_instance


def reset_review_store() -> None:
    """Reset the store singleton (for testing)."""
    global _store_instance
    _store_instance = None
