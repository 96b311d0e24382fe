"""Tests for the date-scoped completion ledger and its toggle protocol."""

import pytest

from famcal.services.completion_service import CompletionLedger, completion_filter, today_filter


CHECKED = "checked_tasks"


@pytest.fixture
async def live_ledger(patched_db, snapshot_hub, clock):
    """Ledger wired to a live checked_tasks subscription scoped to today."""
    ledger = CompletionLedger(clock=clock)
    await snapshot_hub.subscribe(CHECKED, ledger.on_snapshot, filter_query=today_filter(ledger.today()))
    return ledger


@pytest.mark.unit
class TestFilters:
    def test_completion_filter(self):
        assert completion_filter("brush-teeth", "2024-01-01") == 'task_id = "brush-teeth" && date = "2024-01-01"'

    def test_filters_escape_quotes(self):
        assert completion_filter('a"b', "2024-01-01").startswith('task_id = "a\\"b"')


@pytest.mark.unit
class TestCompletionLedger:
    def test_empty_snapshot_means_nothing_checked(self, clock):
        ledger = CompletionLedger(clock=clock)
        ledger.on_snapshot([])
        assert ledger.checked_task_ids() == set()

    def test_only_todays_records_count(self, clock):
        ledger = CompletionLedger(clock=clock)
        ledger.on_snapshot(
            [
                {"id": "1", "task_id": "f1", "date": "2024-06-10", "member": "Leo"},
                {"id": "2", "task_id": "f2", "date": "2024-06-09", "member": "Leo"},
            ]
        )
        assert ledger.is_checked("f1")
        assert not ledger.is_checked("f2")

    def test_state_resets_when_the_date_changes(self, clock):
        ledger = CompletionLedger(clock=clock)
        ledger.on_snapshot([{"id": "1", "task_id": "f1", "date": "2024-06-10", "member": "Leo"}])

        clock.advance(days=1)

        assert not ledger.is_checked("f1")

    async def test_toggle_on_then_off(self, patched_db, snapshot_hub, live_ledger):
        await live_ledger.toggle("f1", False, "Leo")
        await snapshot_hub.drain()
        assert live_ledger.is_checked("f1")
        assert patched_db.records(CHECKED)[0]["member"] == "Leo"

        await live_ledger.toggle("f1", True, "Leo")
        await snapshot_hub.drain()
        assert not live_ledger.is_checked("f1")
        assert patched_db.records(CHECKED) == []

    async def test_write_is_not_echoed_before_push(self, patched_db, snapshot_hub, live_ledger):
        await live_ledger.toggle("f1", False, "Leo")
        # The push is scheduled but not yet delivered
        assert not live_ledger.is_checked("f1")
        await snapshot_hub.drain()
        assert live_ledger.is_checked("f1")

    async def test_check_twice_keeps_one_record(self, patched_db, live_ledger):
        await live_ledger.ensure_checked("f1", "Leo")
        await live_ledger.ensure_checked("f1", "Mamma")

        records = patched_db.records(CHECKED)
        assert len(records) == 1
        assert records[0]["member"] == "Leo"

    async def test_ensure_checked_trims_duplicates(self, patched_db, live_ledger):
        first = patched_db.seed(CHECKED, {"task_id": "f1", "date": "2024-06-10", "member": "Leo"})
        patched_db.seed(CHECKED, {"task_id": "f1", "date": "2024-06-10", "member": "Mamma"})
        patched_db.seed(CHECKED, {"task_id": "f1", "date": "2024-06-09", "member": "Leo"})

        await live_ledger.ensure_checked("f1", "Leo")

        todays = [r for r in patched_db.records(CHECKED) if r["date"] == "2024-06-10"]
        assert [r["id"] for r in todays] == [first["id"]]

    async def test_uncheck_removes_every_duplicate(self, patched_db, clock):
        """Two records for the same task and day; unchecking deletes both."""
        clock.now = clock.now.replace(year=2024, month=1, day=1)
        ledger = CompletionLedger(clock=clock)
        patched_db.seed(CHECKED, {"task_id": "brush-teeth", "date": "2024-01-01", "member": "Leo"})
        patched_db.seed(CHECKED, {"task_id": "brush-teeth", "date": "2024-01-01", "member": "Molly"})

        await ledger.toggle("brush-teeth", True, "Leo")

        assert patched_db.records(CHECKED) == []

    async def test_uncheck_is_idempotent(self, patched_db, live_ledger):
        assert await live_ledger.ensure_unchecked("f1") == 0
        assert await live_ledger.ensure_unchecked("f1") == 0

    async def test_uncheck_keeps_other_days_and_tasks(self, patched_db, live_ledger):
        patched_db.seed(CHECKED, {"task_id": "f1", "date": "2024-06-10", "member": "Leo"})
        patched_db.seed(CHECKED, {"task_id": "f1", "date": "2024-06-09", "member": "Leo"})
        patched_db.seed(CHECKED, {"task_id": "f2", "date": "2024-06-10", "member": "Leo"})

        removed = await live_ledger.ensure_unchecked("f1")

        assert removed == 1
        assert len(patched_db.records(CHECKED)) == 2

    async def test_write_failure_leaves_state_unchanged(self, patched_db, snapshot_hub, live_ledger):
        patched_db.fail_writes = True

        await live_ledger.toggle("f1", False, "Leo")
        await snapshot_hub.drain()

        assert not live_ledger.is_checked("f1")
        assert patched_db.records(CHECKED) == []

    async def test_query_failure_is_logged_not_raised(self, patched_db, live_ledger):
        patched_db.fail_reads = True
        await live_ledger.toggle("f1", False, "Leo")
        assert patched_db.records(CHECKED) == []
