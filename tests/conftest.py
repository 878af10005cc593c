# Shared fixtures for the fleetdeck test suite
# Created: 2026-02-10

import json
import tempfile
from pathlib import Path
from typing import Any

import httpx
import pytest

from fleetdeck.config import Settings, get_settings
from fleetdeck.errors import StorageError, UnreachableURLError
from fleetdeck.tables import TableClient


class RecordingActivityLog:
    """Activity log double that keeps every row it is given."""

    name = "recording"

    def __init__(self):
        self.activities: list[dict[str, Any]] = []
        self.approvals: list[dict[str, Any]] = []

    async def record_activity(self, row: dict[str, Any]) -> None:
        self.activities.append(row)

    async def record_approval(self, row: dict[str, Any]) -> None:
        self.approvals.append(row)


class FailingActivityLog:
    """Activity log double whose writes always fail."""

    name = "failing"

    async def record_activity(self, row: dict[str, Any]) -> None:
        raise StorageError("activity backend down")

    async def record_approval(self, row: dict[str, Any]) -> None:
        raise StorageError("approval backend down")


class FakeTables:
    """In-memory PostgREST stand-in for httpx.MockTransport.

    ``failing_patches`` holds the 1-based numbers of PATCH requests that
    answer 503.
    """

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.failing_patches: set[int] = set()
        self._patches = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        if request.method == "POST":
            body = json.loads(request.content)
            rows = body if isinstance(body, list) else [body]
            for row in rows:
                self.rows[row["id"]] = row
            return httpx.Response(201, json=rows)
        if request.method == "PATCH":
            self._patches += 1
            if self._patches in self.failing_patches:
                return httpx.Response(503, text="down")
            row_id = params["id"].removeprefix("eq.")
            self.rows[row_id].update(json.loads(request.content))
            return httpx.Response(200, json=[self.rows[row_id]])

        rows = list(self.rows.values())
        if "id" in params:
            rows = [r for r in rows if r["id"] == params["id"].removeprefix("eq.")]
        if params.get("status", "").startswith("eq."):
            rows = [r for r in rows if r["status"] == params["status"][3:]]
        if params.get("status", "").startswith("neq."):
            rows = [r for r in rows if r["status"] != params["status"][4:]]
        if "limit" in params:
            rows = rows[: int(params["limit"])]
        return httpx.Response(200, json=rows)


async def reachable(url: str, timeout: float = 5.0) -> None:
    return None


async def unreachable(url: str, timeout: float = 5.0) -> None:
    raise UnreachableURLError(url, f"timed out after {timeout:g}s")


@pytest.fixture
def temp_store_path():
    """Create a temporary directory for test storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_store_path):
    """Settings isolated from the environment: no tables, no gateway, files in a temp dir."""
    return Settings(
        _env_file=None,
        supabase_url="",
        supabase_service_key="",
        gateway_token="",
        dashboard_token="",
        agents_dir=temp_store_path / "agents",
        reviews_dir=temp_store_path / "reviews",
        review_decider="blake",
        approval_webhook_url="",
        wallet_address="",
    )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def activity_log():
    return RecordingActivityLog()


@pytest.fixture
def failing_activity_log():
    return FailingActivityLog()


@pytest.fixture
def reachable_checker():
    return reachable


@pytest.fixture
def unreachable_checker():
    return unreachable


@pytest.fixture
def fake_tables():
    return FakeTables()


@pytest.fixture
def table_client(fake_tables):
    return TableClient(
        "https://tables.example.com",
        "service-key",
        table_prefix="dashboard_",
        transport=httpx.MockTransport(fake_tables.handler),
    )
