# Tests for the review portal and deliverable REST endpoints
# Created: 2026-02-12

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fleetdeck.mission_control import deliverables as deliverables_module
from fleetdeck.mission_control import manager as manager_module
from fleetdeck.mission_control.api import router
from fleetdeck.mission_control.deliverables import DeliverableManager, FileDeliverableStore
from fleetdeck.mission_control.manager import ReviewManager
from fleetdeck.mission_control.notifications import InMemoryNotificationChannel
from fleetdeck.mission_control.store import InMemoryReviewStore

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def review_manager(activity_log, reachable_checker, settings):
    return ReviewManager(
        store=InMemoryReviewStore(),
        notifications=InMemoryNotificationChannel(),
        activity_log=activity_log,
        url_checker=reachable_checker,
        settings=settings,
    )


@pytest.fixture
def hook_calls():
    return []


@pytest.fixture
def deliverable_manager(activity_log, settings, temp_store_path, hook_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        hook_calls.append(request)
        return httpx.Response(200)

    return DeliverableManager(
        store=FileDeliverableStore(temp_store_path / "deliverables.json"),
        activity_log=activity_log,
        settings=settings.model_copy(
            update={"approval_webhook_url": "https://hooks.example.com/approve"}
        ),
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def client(monkeypatch, review_manager, deliverable_manager):
    monkeypatch.setattr(manager_module, "_manager_instance", review_manager)
    monkeypatch.setattr(deliverables_module, "_manager_instance", deliverable_manager)
    app = FastAPI()
    app.include_router(router, prefix="/api")
    return TestClient(app)


def create(client, **overrides):
    body = {"title": "Doc", "type": "document", "submittedBy": "Forge", **overrides}
    return client.post("/api/reviews", json=body)


# ============================================================================
# Review Endpoints
# ============================================================================


class TestCreateReview:
    def test_create(self, client):
        resp = create(client, captainRecommendation="approved", tags=["a"])
        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["review"]["status"] == "pending"
        assert data["review"]["submittedBy"] == "Forge"
        assert data["review"]["captainRecommendation"] == "approved"
        assert data["review"]["id"].startswith("rev_")

    def test_missing_fields_is_400(self, client):
        resp = client.post("/api/reviews", json={"title": "Doc"})
        assert resp.status_code == 400
        assert "Missing required fields" in resp.json()["detail"]

    def test_website_without_preview_is_400(self, client):
        resp = create(client, type="website")
        assert resp.status_code == 400
        assert client.get("/api/reviews").json()["count"] == 0

    def test_unreachable_preview_is_422(
        self, monkeypatch, client, review_manager, unreachable_checker
    ):
        monkeypatch.setattr(review_manager, "_check_url", unreachable_checker)
        resp = create(client, type="website", previewUrl="https://dead.example.com")
        assert resp.status_code == 422
        assert client.get("/api/reviews").json()["count"] == 0


class TestListAndGet:
    def test_list(self, client):
        create(client, title="One")
        create(client, title="Two")

        data = client.get("/api/reviews").json()
        assert data["count"] == 2
        assert "lastUpdated" in data

    def test_pending_and_status_filters(self, client):
        first = create(client, title="One").json()["review"]
        create(client, title="Two")
        client.patch(f"/api/reviews/{first['id']}", json={"status": "approved"})

        pending = client.get("/api/reviews?pending=true").json()
        assert [r["title"] for r in pending["reviews"]] == ["Two"]
        assert "lastUpdated" not in pending

        approved = client.get("/api/reviews?status=approved").json()
        assert [r["title"] for r in approved["reviews"]] == ["One"]

    def test_invalid_status_filter(self, client):
        assert client.get("/api/reviews?status=bogus").status_code == 400

    def test_get_one(self, client):
        review = create(client).json()["review"]
        resp = client.get(f"/api/reviews/{review['id']}")
        assert resp.status_code == 200
        assert resp.json()["review"]["title"] == "Doc"

    def test_get_missing(self, client):
        assert client.get("/api/reviews/rev_missing").status_code == 404


class TestDecide:
    def test_patch(self, client):
        review = create(client).json()["review"]
        resp = client.patch(
            f"/api/reviews/{review['id']}", json={"status": "rejected", "comment": "no"}
        )
        assert resp.status_code == 200
        data = resp.json()["review"]
        assert data["status"] == "rejected"
        assert data["decision"]["comment"] == "no"
        assert data["decision"]["decidedBy"] == "blake"

    def test_patch_pending_reopens(self, client):
        review = create(client).json()["review"]
        client.patch(f"/api/reviews/{review['id']}", json={"status": "approved"})
        data = client.patch(f"/api/reviews/{review['id']}", json={"status": "pending"}).json()
        assert data["review"]["status"] == "pending"
        assert len(data["review"]["history"]) == 1

    def test_patch_missing(self, client):
        create(client)
        resp = client.patch("/api/reviews/rev_missing", json={"status": "approved"})
        assert resp.status_code == 404

        assert client.get("/api/reviews?pending=true").json()["count"] == 1
        assert client.get("/api/reviews/pending?peek=true").json()["hasNotification"] is False

    def test_patch_invalid_status(self, client):
        review = create(client).json()["review"]
        resp = client.patch(f"/api/reviews/{review['id']}", json={"status": "maybe"})
        assert resp.status_code == 400


class TestBatchSubmit:
    """POST /reviews/submit and the notification poll."""

    def test_batch_and_poll(self, client):
        a = create(client, title="A").json()["review"]
        b = create(client, title="B").json()["review"]

        resp = client.post(
            "/api/reviews/submit",
            json={
                "decisions": [
                    {"id": a["id"], "status": "approved"},
                    {"id": b["id"], "status": "rejected", "comment": "no"},
                    {"id": a["id"], "status": "changes_requested", "comment": "wait"},
                ]
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["updated"] == 3
        assert data["notificationWritten"] is True

        peek = client.get("/api/reviews/pending?peek=true").json()
        assert peek["hasNotification"] is True
        assert peek["notification"]["message"] == "blake submitted 3 review decisions"
        assert {d["title"] for d in peek["recentDecisions"]} == {"A", "B"}

        consumed = client.get("/api/reviews/pending").json()
        assert consumed["hasNotification"] is True
        assert client.get("/api/reviews/pending").json()["hasNotification"] is False

        assert client.get(f"/api/reviews/{a['id']}").json()["review"]["status"] == (
            "changes_requested"
        )

    def test_missing_decisions(self, client):
        assert client.post("/api/reviews/submit", json={}).status_code == 400
        assert client.post("/api/reviews/submit", json={"decisions": []}).status_code == 400

    def test_entry_without_status(self, client):
        resp = client.post("/api/reviews/submit", json={"decisions": [{"id": "rev_1"}]})
        assert resp.status_code == 400

    def test_pending_status_rejected(self, client):
        review = create(client).json()["review"]
        resp = client.post(
            "/api/reviews/submit",
            json={"decisions": [{"id": review["id"], "status": "pending"}]},
        )
        assert resp.status_code == 400

    def test_unknown_ids_skipped(self, client):
        resp = client.post(
            "/api/reviews/submit",
            json={"decisions": [{"id": "rev_missing", "status": "approved"}]},
        )
        assert resp.status_code == 200
        assert resp.json()["updated"] == 0


class TestHistoryAndSeed:
    def test_history(self, client):
        review = create(client, title="Video notes", tags=["video"]).json()["review"]
        create(client, title="Other")
        client.patch(f"/api/reviews/{review['id']}", json={"status": "approved"})

        data = client.get("/api/reviews/history?search=video").json()
        assert [r["title"] for r in data["history"]] == ["Video notes"]
        assert data["stats"]["approved"] == 1
        assert data["stats"]["total"] == 1

    def test_seed_once(self, client):
        first = client.post("/api/reviews/seed").json()
        assert first["created"] == 5
        assert len(first["ids"]) == 5

        second = client.post("/api/reviews/seed").json()
        assert second["created"] == 0


# ============================================================================
# Deliverable Endpoints
# ============================================================================


class TestDeliverableEndpoints:
    def test_submit_and_list(self, client):
        resp = client.post(
            "/api/deliverables",
            json={"title": "PR", "agentId": "devops", "prUrl": "https://github.com/o/r/pull/1"},
        )
        assert resp.status_code == 201
        assert resp.json()["deliverable"]["pr_url"] == "https://github.com/o/r/pull/1"

        data = client.get("/api/deliverables").json()
        assert data["count"] == 1

    def test_submit_requires_agent(self, client):
        assert client.post("/api/deliverables", json={"title": "PR"}).status_code == 400

    def test_describe_webhook(self, client):
        data = client.get("/api/webhooks/approve").json()
        assert data["method"] == "POST"
        assert data["webhookConfigured"] is True

    def test_approve(self, client, hook_calls):
        deliverable = client.post(
            "/api/deliverables", json={"title": "PR", "agentId": "devops"}
        ).json()["deliverable"]

        resp = client.post(
            "/api/webhooks/approve",
            json={"deliverableId": deliverable["id"], "status": "approved", "approvedBy": "blake"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["webhook"] == "fired"
        assert data["approvedBy"] == "blake"
        assert len(hook_calls) == 1

    def test_approve_validation(self, client):
        assert client.post("/api/webhooks/approve", json={"status": "approved"}).status_code == 400
        resp = client.post("/api/webhooks/approve", json={"deliverableId": "d1", "status": "meh"})
        assert resp.status_code == 400

    def test_approve_missing(self, client):
        resp = client.post(
            "/api/webhooks/approve", json={"deliverableId": "nope", "status": "rejected"}
        )
        assert resp.status_code == 404
