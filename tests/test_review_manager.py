# Tests for ReviewManager: submission rules, decisions, batches, side effects
# Created: 2026-02-11

import pytest

from fleetdeck.errors import ReviewValidationError, StorageError, UnreachableURLError
from fleetdeck.mission_control.manager import ReviewManager
from fleetdeck.mission_control.models import ReviewStatus
from fleetdeck.mission_control.notifications import InMemoryNotificationChannel
from fleetdeck.mission_control.samples import SAMPLE_REVIEWS
from fleetdeck.mission_control.store import (
    InMemoryReviewStore,
    TableReviewStore,
    TieredReviewStore,
)
from fleetdeck.mission_control.workflow import DecisionRequest

# ============================================================================
# Fixtures
# ============================================================================


class FailingChannel:
    async def write(self, notification):
        raise StorageError("disk full")

    async def read(self, peek=False):
        return None


class CountingChecker:
    def __init__(self):
        self.calls: list[tuple[str, float]] = []

    async def __call__(self, url: str, timeout: float) -> None:
        self.calls.append((url, timeout))


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def channel():
    return InMemoryNotificationChannel()


@pytest.fixture
def manager(store, channel, activity_log, reachable_checker, settings):
    return ReviewManager(
        store=store,
        notifications=channel,
        activity_log=activity_log,
        url_checker=reachable_checker,
        settings=settings,
    )


async def submit_doc(manager, title="Doc", **kwargs):
    return await manager.submit_review(
        title=title, type="document", submitted_by="Forge", **kwargs
    )


# ============================================================================
# Submission
# ============================================================================


class TestSubmitReview:
    """Submission validation and its side effects."""

    async def test_submit_creates_pending_item(self, manager, store):
        item = await submit_doc(manager, description="A doc", tags=["docs", "docs"])

        assert item.status == ReviewStatus.PENDING
        assert item.decision is None
        assert item.history == []
        assert item.tags == ["docs"]
        assert (await store.get_review(item.id)).title == "Doc"

    async def test_missing_fields_listed(self, manager):
        with pytest.raises(ReviewValidationError) as exc:
            await manager.submit_review(title="Doc")
        assert "type" in str(exc.value)
        assert "submitted_by" in str(exc.value)

    async def test_invalid_type(self, manager):
        with pytest.raises(ReviewValidationError) as exc:
            await manager.submit_review(title="x", type="podcast", submitted_by="Forge")
        assert exc.value.field == "type"

    async def test_invalid_priority(self, manager):
        with pytest.raises(ReviewValidationError):
            await submit_doc(manager, priority="urgent")

    async def test_invalid_url_rejected(self, manager):
        with pytest.raises(ReviewValidationError) as exc:
            await submit_doc(manager, content_url="not a url")
        assert exc.value.field == "contentUrl"

    async def test_website_requires_preview_url(self, manager, store):
        with pytest.raises(ReviewValidationError) as exc:
            await manager.submit_review(title="Site", type="website", submitted_by="Pepper")
        assert exc.value.field == "previewUrl"
        assert await store.list_reviews() == []

    async def test_unreachable_preview_not_persisted(
        self, store, channel, activity_log, unreachable_checker, settings
    ):
        manager = ReviewManager(
            store=store,
            notifications=channel,
            activity_log=activity_log,
            url_checker=unreachable_checker,
            settings=settings,
        )
        with pytest.raises(UnreachableURLError):
            await manager.submit_review(
                title="Site",
                type="website",
                submitted_by="Pepper",
                preview_url="https://dead.example.com",
            )
        assert await store.list_reviews() == []
        assert activity_log.activities == []

    async def test_preview_checked_with_configured_timeout(
        self, store, channel, activity_log, settings
    ):
        checker = CountingChecker()
        manager = ReviewManager(
            store=store,
            notifications=channel,
            activity_log=activity_log,
            url_checker=checker,
            settings=settings,
        )
        await manager.submit_review(
            title="Site",
            type="website",
            submitted_by="Pepper",
            preview_url="https://ok.example.com",
        )
        assert checker.calls == [("https://ok.example.com", settings.url_check_timeout)]

    async def test_check_can_be_disabled(
        self, store, channel, activity_log, unreachable_checker, settings
    ):
        manager = ReviewManager(
            store=store,
            notifications=channel,
            activity_log=activity_log,
            url_checker=unreachable_checker,
            settings=settings,
        )
        item = await manager.submit_review(
            title="Site",
            type="website",
            submitted_by="Pepper",
            preview_url="https://dead.example.com",
            check_urls=False,
        )
        assert item is not None

    async def test_submission_logged(self, manager, activity_log):
        item = await submit_doc(manager)

        assert activity_log.activities[0]["action"] == "Submitted for review: Doc"
        assert activity_log.activities[0]["agent_id"] == "forge"
        assert activity_log.approvals == [
            {"review_id": item.id, "action": "submitted", "actor": "Forge", "notes": "Doc"}
        ]

    async def test_log_failure_does_not_fail_submission(
        self, store, channel, failing_activity_log, reachable_checker, settings
    ):
        manager = ReviewManager(
            store=store,
            notifications=channel,
            activity_log=failing_activity_log,
            url_checker=reachable_checker,
            settings=settings,
        )
        item = await submit_doc(manager)
        assert item is not None
        assert len(await store.list_reviews()) == 1

    async def test_all_tiers_down_returns_none(self, channel, activity_log, settings):
        class Down:
            name = "down"

            async def create_review(self, item):
                raise StorageError("down")

        manager = ReviewManager(
            store=TieredReviewStore([Down()]),
            notifications=channel,
            activity_log=activity_log,
            settings=settings,
        )
        assert await submit_doc(manager) is None
        assert activity_log.activities == []


# ============================================================================
# Decisions
# ============================================================================


class TestDecide:
    async def test_decide_records_decider(self, manager, activity_log):
        item = await submit_doc(manager)
        updated = await manager.decide(item.id, ReviewStatus.APPROVED, "ship it")

        assert updated.status == ReviewStatus.APPROVED
        assert updated.decision.decided_by == "blake"
        assert activity_log.activities[-1]["action"] == "Approved: Doc"
        assert activity_log.approvals[-1]["action"] == "approved"
        assert activity_log.approvals[-1]["actor"] == "blake"

    async def test_decide_unknown_id(self, manager, store, channel, activity_log):
        """Not found: nothing stored, nothing logged, no notification."""
        await submit_doc(manager)
        before = [r.to_dict() for r in await store.list_reviews()]
        approvals = list(activity_log.approvals)

        assert await manager.decide("rev_missing", ReviewStatus.APPROVED) is None
        assert [r.to_dict() for r in await store.list_reviews()] == before
        assert activity_log.approvals == approvals
        assert await channel.read(peek=True) is None

    async def test_reopen(self, manager, activity_log):
        item = await submit_doc(manager)
        await manager.decide(item.id, ReviewStatus.REJECTED)
        reopened = await manager.decide(item.id, ReviewStatus.PENDING)

        assert reopened.status == ReviewStatus.PENDING
        assert len(reopened.history) == 1
        assert activity_log.activities[-1]["action"] == "Reopened: Doc"


class TestBatchDecide:
    """Batch decisions and the notification they leave behind."""

    async def test_batch_in_order(self, manager, channel):
        a = await submit_doc(manager, "A")
        b = await submit_doc(manager, "B")

        result = await manager.batch_decide(
            [
                DecisionRequest(a.id, ReviewStatus.APPROVED, "yes"),
                DecisionRequest(b.id, ReviewStatus.REJECTED, "no"),
                DecisionRequest(a.id, ReviewStatus.CHANGES_REQUESTED, "wait"),
            ]
        )

        a_after = await manager.get_review(a.id)
        assert a_after.status == ReviewStatus.CHANGES_REQUESTED
        assert a_after.decision.comment == "wait"
        assert [h.status for h in a_after.history] == [ReviewStatus.APPROVED]
        assert (await manager.get_review(b.id)).status == ReviewStatus.REJECTED

        assert result.notification_written
        notification = await channel.read(peek=True)
        assert notification.message == "blake submitted 3 review decisions"
        assert len(notification.decisions) == 3

    async def test_summary_counts(self, manager):
        a = await submit_doc(manager, "A")
        b = await submit_doc(manager, "B")
        result = await manager.batch_decide(
            [
                DecisionRequest(a.id, ReviewStatus.APPROVED),
                DecisionRequest(b.id, ReviewStatus.REJECTED),
            ]
        )
        assert result.summary == {"approved": 1, "rejected": 1, "changesRequested": 0}

    async def test_unknown_ids_skipped(self, manager, channel, activity_log):
        result = await manager.batch_decide([DecisionRequest("rev_missing", ReviewStatus.APPROVED)])

        assert result.items == []
        assert activity_log.approvals == []
        notification = await channel.read()
        assert notification.decisions == []
        assert notification.message == "blake submitted 0 review decisions"

    async def test_pending_is_not_a_verdict(self, manager):
        item = await submit_doc(manager)
        with pytest.raises(ReviewValidationError):
            await manager.batch_decide([DecisionRequest(item.id, ReviewStatus.PENDING)])
        assert (await manager.get_review(item.id)).status == ReviewStatus.PENDING

    async def test_missing_id_rejected(self, manager):
        with pytest.raises(ReviewValidationError):
            await manager.batch_decide([DecisionRequest("", ReviewStatus.APPROVED)])

    async def test_notification_failure_is_reported(
        self, store, activity_log, reachable_checker, settings
    ):
        manager = ReviewManager(
            store=store,
            notifications=FailingChannel(),
            activity_log=activity_log,
            url_checker=reachable_checker,
            settings=settings,
        )
        item = await submit_doc(manager)
        result = await manager.batch_decide([DecisionRequest(item.id, ReviewStatus.APPROVED)])

        assert result.notification_written is False
        assert (await store.get_review(item.id)).status == ReviewStatus.APPROVED

    async def test_partial_table_batch_is_logged_and_announced(
        self, table_client, fake_tables, channel, activity_log, reachable_checker, settings
    ):
        """Items written before a table failure still get audit rows."""
        store = TieredReviewStore([TableReviewStore(table_client), InMemoryReviewStore()])
        manager = ReviewManager(
            store=store,
            notifications=channel,
            activity_log=activity_log,
            url_checker=reachable_checker,
            settings=settings,
        )
        a = await submit_doc(manager, "A")
        b = await submit_doc(manager, "B")
        fake_tables.failing_patches = {2}

        result = await manager.batch_decide(
            [
                DecisionRequest(a.id, ReviewStatus.APPROVED),
                DecisionRequest(b.id, ReviewStatus.REJECTED),
            ]
        )

        assert [i.id for i in result.items] == [a.id]
        assert fake_tables.rows[a.id]["status"] == "approved"
        decided = [row for row in activity_log.approvals if row["action"] != "submitted"]
        assert [(row["review_id"], row["action"]) for row in decided] == [(a.id, "approved")]
        assert activity_log.activities[-1]["action"] == "Approved: A"
        notification = await channel.read(peek=True)
        assert notification.message == "blake submitted 1 review decisions"

    async def test_poll_consumes(self, manager):
        item = await submit_doc(manager)
        await manager.batch_decide([DecisionRequest(item.id, ReviewStatus.APPROVED)])

        assert await manager.poll_notification(peek=True) is not None
        assert await manager.poll_notification() is not None
        assert await manager.poll_notification() is None


# ============================================================================
# History and Seeding
# ============================================================================


class TestHistory:
    async def test_history_excludes_pending(self, manager):
        decided = await submit_doc(manager, "Decided")
        await submit_doc(manager, "Waiting")
        await manager.decide(decided.id, ReviewStatus.APPROVED)

        history, stats = await manager.get_history()
        assert [r.title for r in history] == ["Decided"]
        assert stats == {"total": 1, "approved": 1, "rejected": 0, "changesRequested": 0}

    async def test_search_matches_tags_and_submitter(self, manager):
        tagged = await submit_doc(manager, "Alpha", tags=["video"])
        other = await manager.submit_review(title="Beta", type="code", submitted_by="Pepper")
        await manager.decide(tagged.id, ReviewStatus.APPROVED)
        await manager.decide(other.id, ReviewStatus.REJECTED)

        history, _ = await manager.get_history(search="VIDEO")
        assert [r.title for r in history] == ["Alpha"]

        history, stats = await manager.get_history(search="pepper")
        assert [r.title for r in history] == ["Beta"]
        assert stats["rejected"] == 1


class TestSeedSamples:
    async def test_seed_creates_samples(self, manager):
        created = await manager.seed_samples()
        assert len(created) == len(SAMPLE_REVIEWS)
        assert all(r.status == ReviewStatus.PENDING for r in created)

    async def test_seed_skips_url_checks(
        self, store, channel, activity_log, unreachable_checker, settings
    ):
        manager = ReviewManager(
            store=store,
            notifications=channel,
            activity_log=activity_log,
            url_checker=unreachable_checker,
            settings=settings,
        )
        assert len(await manager.seed_samples()) == len(SAMPLE_REVIEWS)

    async def test_seed_skipped_when_pending_exist(self, manager):
        await submit_doc(manager)
        assert await manager.seed_samples() == []
        assert len(await manager.list_reviews()) == 1
