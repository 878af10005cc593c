# Tests for the activity feed / approval log writers
# Created: 2026-02-11

import re

from fleetdeck.errors import StorageError
from fleetdeck.mission_control.activity_log import (
    FileActivityLog,
    TieredActivityLog,
    activity_row,
    build_activity_log,
)


class BrokenLog:
    name = "broken"

    async def record_activity(self, row):
        raise StorageError("down")

    async def record_approval(self, row):
        raise StorageError("down")


class TestActivityRow:
    def test_shape(self):
        row = activity_row("Approved: Doc", agent_id="blake", details="ok")
        assert re.fullmatch(r"act-[0-9a-f]{12}", row["id"])
        assert row["agent_name"] == "blake"
        assert row["agent_emoji"] == "👤"
        assert row["type"] == "task"
        assert row["details"] == "ok"

    def test_action_truncated(self):
        row = activity_row("x" * 300, agent_id="forge")
        assert len(row["action"]) == 200


class TestFileActivityLog:
    async def test_append_and_read(self, temp_store_path):
        log = FileActivityLog(temp_store_path / "logs" / "activity.jsonl")
        await log.record_activity(activity_row("first", agent_id="forge"))
        await log.record_approval({"review_id": "rev_1", "action": "approved", "actor": "blake"})
        await log.record_activity(activity_row("second", agent_id="forge"))

        activities = log.read("activity")
        assert [a["action"] for a in activities] == ["second", "first"]

        approvals = log.read("approval")
        assert approvals[0]["review_id"] == "rev_1"
        assert approvals[0]["created_at"]

        assert len(log.read()) == 3
        assert len(log.read(limit=1)) == 1

    async def test_skips_garbage_lines(self, temp_store_path):
        path = temp_store_path / "activity.jsonl"
        path.write_text('not json\n\n{"kind": "activity", "action": "ok"}\n')
        assert [e["action"] for e in FileActivityLog(path).read()] == ["ok"]

    def test_missing_file(self, temp_store_path):
        assert FileActivityLog(temp_store_path / "nope.jsonl").read() == []


class TestTieredActivityLog:
    async def test_falls_back_to_file(self, temp_store_path):
        file_log = FileActivityLog(temp_store_path / "activity.jsonl")
        tiered = TieredActivityLog([BrokenLog(), file_log])

        await tiered.record_activity(activity_row("kept", agent_id="forge"))
        assert file_log.read()[0]["action"] == "kept"

    async def test_all_failing_does_not_raise(self):
        tiered = TieredActivityLog([BrokenLog()])
        await tiered.record_activity(activity_row("lost", agent_id="forge"))
        await tiered.record_approval({"action": "approved"})

    async def test_default_tiers_without_tables(self, settings):
        log = build_activity_log(settings)
        await log.record_activity(activity_row("local", agent_id="forge"))
        assert (settings.reviews_dir / "activity.jsonl").exists()
