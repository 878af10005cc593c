# Tests for pushing workspace state into the hosted tables
# Created: 2026-02-10

import json

import httpx
import pytest

from fleetdeck.__main__ import run_sync
from fleetdeck.errors import BackendNotConfigured, StorageError
from fleetdeck.sources.sync import WorkspaceSync, chunked, dedupe
from fleetdeck.sources.workspace import WorkspaceScanner
from fleetdeck.tables import TableClient


class UpsertRecorder:
    def __init__(self, status_code: int = 201):
        self.status_code = status_code
        self.calls: list[tuple[str, list[dict]]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        table = request.url.path.rsplit("/", 1)[-1]
        rows = json.loads(request.content)
        self.calls.append((table, rows))
        assert "merge-duplicates" in request.headers["Prefer"]
        return httpx.Response(self.status_code, json=rows)


@pytest.fixture
def agents_dir(temp_store_path):
    root = temp_store_path / "agents"
    workspace = root / "devops" / "workspace"
    (workspace / "memory").mkdir(parents=True)
    (workspace / "HEARTBEAT.md").write_text(
        "## OPEN TASKS\n\n### T001 — Ship it (P0)\n\n### T001 — Ship it again (P1)\n",
        encoding="utf-8",
    )
    return root


def make_client(handler):
    return TableClient(
        "https://tables.example.com",
        "key",
        table_prefix="dashboard_",
        transport=httpx.MockTransport(handler),
    )


class TestHelpers:
    def test_dedupe_last_wins(self):
        rows = [{"id": "a", "v": 1}, {"id": "b", "v": 2}, {"id": "a", "v": 3}]
        assert dedupe(rows) == [{"id": "a", "v": 3}, {"id": "b", "v": 2}]

    def test_chunked(self):
        rows = [{"id": str(i)} for i in range(5)]
        assert [len(c) for c in chunked(rows, 2)] == [2, 2, 1]
        assert chunked([], 2) == []


class TestWorkspaceSync:
    async def test_requires_credentials(self, agents_dir):
        sync = WorkspaceSync(WorkspaceScanner(agents_dir), TableClient("", ""))
        with pytest.raises(BackendNotConfigured):
            await sync.run()

    async def test_upserts_agents_and_tasks(self, agents_dir):
        recorder = UpsertRecorder()
        sync = WorkspaceSync(WorkspaceScanner(agents_dir), make_client(recorder))

        report = await sync.run()

        assert report.to_dict() == {"agents": 1, "tasks": 1, "activities": 0}
        tables = [table for table, _ in recorder.calls]
        assert tables == ["dashboard_agents", "dashboard_tasks"]
        task_rows = recorder.calls[1][1]
        assert task_rows[0]["id"] == "task-devops-t001"
        assert task_rows[0]["title"] == "Ship it again"

    async def test_rejected_upsert(self, agents_dir):
        sync = WorkspaceSync(WorkspaceScanner(agents_dir), make_client(UpsertRecorder(400)))
        with pytest.raises(StorageError):
            await sync.run()


class TestSyncCommand:
    @pytest.fixture(autouse=True)
    def sync_env(self, monkeypatch, agents_dir):
        monkeypatch.setenv("FLEETDECK_AGENTS_DIR", str(agents_dir))
        monkeypatch.setenv("FLEETDECK_SUPABASE_URL", "https://tables.example.com")
        monkeypatch.setenv("FLEETDECK_SUPABASE_SERVICE_KEY", "service-key")

    @pytest.mark.parametrize(
        "error", [StorageError("rejected"), httpx.ConnectError("connection refused")]
    )
    def test_failure_exits_nonzero(self, monkeypatch, caplog, error):
        async def failing_run(self):
            raise error

        monkeypatch.setattr(WorkspaceSync, "run", failing_run)
        assert run_sync() == 1
        assert "Sync failed" in caplog.text
