"""
Integration tests for the ledger session and the insight flow.

Sessions run on the in-memory backends with a fake Gemini model.
"""

import asyncio
import json
from datetime import date

import pytest

from hisebi.agents import InsightAgent
from hisebi.config import AppVariant, Settings, StorageBackend
from hisebi.models.audit import AuditEventType
from hisebi.models.ledger import DebtStatus, LedgerSnapshot
from hisebi.orchestrator import (
    EntryRejectedError,
    FeatureDisabledError,
    InsightFlow,
    LedgerSession,
    create_app_components,
)
from hisebi.services.storage import InMemoryStorage, KeyValueStorageInterface, StorageWriteError

from tests.factories import FakeModel, TODAY, build_session, gemini_settings, make_transaction


class BrokenDiskStorage(KeyValueStorageInterface):
    def read(self, key):
        return None

    def write(self, key, value):
        raise StorageWriteError("read-only file system")


class TestTransactions:
    """Tests for adding and deleting transactions."""

    def test_add_prepends_and_persists(self):
        """Test new transactions go first and the blob is rewritten."""
        storage = InMemoryStorage()
        session, _ = build_session(AppVariant.HISEBI, storage=storage)

        first = session.add_transaction("income", "30000", "Salary")
        second = session.add_transaction("expense", "120", "Food", note="Lunch")

        assert [t.id for t in session.snapshot.transactions] == [second.id, first.id]
        blob = json.loads(storage.read("hisebi_data"))
        assert [t["id"] for t in blob["transactions"]] == [second.id, first.id]
        assert "shoppingItems" not in blob

    def test_previous_snapshot_untouched(self, session):
        """Test a change replaces the snapshot instead of editing it."""
        before = session.snapshot
        session.add_transaction("expense", "50", "Transport")
        assert before.transactions == ()
        assert session.snapshot is not before

    def test_rejected_entry_changes_nothing(self):
        """Test an invalid amount never creates a record."""
        session, audit = build_session()
        with pytest.raises(EntryRejectedError) as excinfo:
            session.add_transaction("expense", "twelve", "Food")

        assert session.snapshot.transactions == ()
        assert not excinfo.value.result.is_valid
        assert "must be a number" in str(excinfo.value)
        assert audit.events[-1].event_type == AuditEventType.ENTRY_REJECTED

    def test_delete(self, session):
        """Test deleting by id."""
        t = session.add_transaction("expense", "10", "Food")
        assert session.delete_transaction(t.id) is True
        assert session.snapshot.transactions == ()

    def test_delete_unknown_is_noop(self, session):
        """Test deleting an unknown id changes nothing."""
        session.add_transaction("expense", "10", "Food")
        before = session.snapshot
        assert session.delete_transaction("missing") is False
        assert session.snapshot is before


class TestDebts:
    """Tests for Dhar operations."""

    def test_toggle_twice(self, session):
        """Test status flips between pending and repaid."""
        d = session.add_debt("Rahim", "500")
        assert session.toggle_debt_status(d.id).status == DebtStatus.REPAID
        assert session.dashboard().totals.pending_debt == 0
        assert session.toggle_debt_status(d.id).status == DebtStatus.PENDING
        assert session.dashboard().totals.pending_debt == 500

    def test_toggle_unknown(self, session):
        """Test toggling an unknown id is a no-op."""
        assert session.toggle_debt_status("missing") is None

    def test_delete(self, session):
        """Test deleting a debt."""
        d = session.add_debt("Karim", "200")
        assert session.delete_debt(d.id) is True
        assert session.delete_debt(d.id) is False
        assert session.snapshot.debts == ()


class TestShopping:
    """Tests for the shopping list."""

    def test_disabled_in_hisebi(self, hisebi_session):
        """Test the Hisebi variant has no shopping list."""
        with pytest.raises(FeatureDisabledError):
            hisebi_session.add_shopping_item("Rice")
        with pytest.raises(FeatureDisabledError):
            hisebi_session.clear_completed()

    def test_add_toggle_clear(self, session):
        """Test the full shopping flow."""
        rice = session.add_shopping_item("Rice", "2", "65", "kg")
        session.add_shopping_item("Salt")

        assert session.toggle_shopping_item(rice.id).completed is True
        assert [i.name for i in session.shopping_items()] == ["Salt", "Rice"]

        totals = session.dashboard().shopping_totals
        assert totals.total == 130
        assert totals.completed_total == 130
        assert totals.completion_percentage == 50

        assert session.clear_completed() == 1
        assert [i.name for i in session.snapshot.shopping_items] == ["Salt"]
        assert session.clear_completed() == 0

    def test_toggle_and_delete_unknown(self, session):
        """Test unknown ids are ignored."""
        assert session.toggle_shopping_item("missing") is None
        assert session.delete_shopping_item("missing") is False


class TestProfileAndDashboard:
    """Tests for profile edits and derived views."""

    def test_update_profile(self, session):
        """Test the profile is replaced."""
        session.update_profile("Nusrat", "20000")
        assert session.snapshot.profile.name == "Nusrat"
        assert session.dashboard().budget.budget == 20000

    def test_update_profile_rejected(self, session):
        """Test a non-numeric budget is rejected."""
        with pytest.raises(EntryRejectedError):
            session.update_profile("Nusrat", "a lot")

    def test_budget_alert(self, session):
        """Test the dashboard reports an overrun."""
        session.update_profile("Nusrat", "1000")
        session.add_transaction("expense", "1500", "Rent/Housing")
        budget = session.dashboard().budget
        assert budget.over_budget is True
        assert budget.overrun == 500

    def test_empty_dashboard(self, session):
        """Test placeholders on an empty ledger."""
        view = session.dashboard()
        assert view.recent_activity == ()
        assert view.category_breakdown[0].is_placeholder
        assert view.trend[0].date == "Today"

    def test_activity_limit_per_variant(self, session, hisebi_session):
        """Test Dor-Dam shows 10 entries and Hisebi 5."""
        for s in (session, hisebi_session):
            for _ in range(12):
                s.add_transaction("expense", "1", "Food")
        assert len(session.dashboard().recent_activity) == 10
        assert len(hisebi_session.dashboard().recent_activity) == 5

    def test_export(self, session):
        """Test the export file name and content."""
        session.add_transaction("expense", "120", "Food", "2024-01-10", "Lunch")
        filename, content = session.export_csv()
        assert filename == "dordam_transactions.csv"
        assert content.splitlines()[1] == "2024-01-10,expense,Food,120,Lunch"

    def test_default_date(self, session):
        """Test entries without a date are dated today."""
        t = session.add_transaction("expense", "5", "Food")
        assert t.date == TODAY


class TestPersistence:
    """Tests for save failures and reloads."""

    def test_reload_from_storage(self):
        """Test a new session sees what the previous one saved."""
        storage = InMemoryStorage()
        first, _ = build_session(storage=storage)
        first.add_debt("Rahim", "500", "2024-01-02")
        first.add_shopping_item("Onion", "1", "90", "kg")

        second, _ = build_session(storage=storage)
        assert second.snapshot == first.snapshot

    def test_save_failure_keeps_change_in_memory(self):
        """Test a failed save is raised and audited but the change stays."""
        session, audit = build_session(storage=BrokenDiskStorage())
        with pytest.raises(StorageWriteError):
            session.add_transaction("expense", "10", "Food")
        assert len(session.snapshot.transactions) == 1
        assert AuditEventType.SAVE_FAILED in [e.event_type for e in audit.events]


class TestInsightFlow:
    """Tests for the single-flight insight request."""

    @pytest.mark.asyncio
    async def test_sends_recent_window(self):
        """Test at most the configured number of transactions are sent."""
        model = FakeModel()
        session, audit = build_session(model=model)
        for day in range(1, 16):
            session.add_transaction("expense", str(day), "Food", date(2024, 1, day))

        insight = await session.request_insights()

        assert insight.is_fallback is False
        assert session.last_insight == insight
        prompt = model.prompts[0]
        assert '"date": "2024-01-15"' in prompt
        assert '"date": "2024-01-05"' not in prompt
        types = [e.event_type for e in audit.events]
        assert AuditEventType.INSIGHT_REQUESTED in types
        assert AuditEventType.INSIGHT_GENERATED in types

    @pytest.mark.asyncio
    async def test_fallback_is_audited(self):
        """Test a failed request is logged and still returns tips."""
        session, audit = build_session(model=FakeModel(error=RuntimeError("quota")))
        insight = await session.request_insights()
        assert insight.is_fallback is True
        assert audit.events[-1].event_type == AuditEventType.INSIGHT_FALLBACK
        assert "quota" in audit.events[-1].error_message

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_call(self):
        """Test callers arriving while a request is in flight join it."""
        model = FakeModel(hold=True)
        flow = InsightFlow(InsightAgent(settings=gemini_settings(), model=model))
        snapshot = LedgerSnapshot(transactions=(make_transaction(),))

        first = asyncio.ensure_future(flow.run(snapshot))
        second = asyncio.ensure_future(flow.run(snapshot))
        while model.release is None:
            await asyncio.sleep(0)
        assert flow.is_pending

        model.release.set()
        a, b = await asyncio.gather(first, second)

        assert model.calls == 1
        assert a == b
        assert not flow.is_pending

    @pytest.mark.asyncio
    async def test_new_request_after_completion(self):
        """Test a finished request does not block the next one."""
        model = FakeModel()
        flow = InsightFlow(InsightAgent(settings=gemini_settings(), model=model))
        await flow.run(LedgerSnapshot())
        await flow.run(LedgerSnapshot())
        assert model.calls == 2


class TestFactory:
    """Tests for create_app_components."""

    def test_memory_backend(self, monkeypatch):
        """Test the factory builds a working session."""
        monkeypatch.setenv("HISEBI_STORAGE_BACKEND", StorageBackend.MEMORY.value)
        monkeypatch.setenv("VARIANT", AppVariant.DORDAM.value)
        session = create_app_components(
            Settings(),
            insight_agent=InsightAgent(settings=gemini_settings(), model=FakeModel()),
        )
        assert isinstance(session, LedgerSession)
        assert session.settings.shopping_enabled
        session.add_shopping_item("Tea")
        assert len(session.snapshot.shopping_items) == 1

    def test_file_backend(self, monkeypatch, tmp_path):
        """Test the file backend writes under the data directory."""
        monkeypatch.setenv("HISEBI_STORAGE_BACKEND", StorageBackend.FILE.value)
        monkeypatch.setenv("HISEBI_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("VARIANT", AppVariant.HISEBI.value)
        session = create_app_components(
            Settings(),
            insight_agent=InsightAgent(settings=gemini_settings(), model=FakeModel()),
        )
        session.add_transaction("income", "100", "Gifts")

        blob = json.loads((tmp_path / "storage.json").read_text(encoding="utf-8"))
        assert "hisebi_data" in blob
        assert (tmp_path / "audit.jsonl").exists()
        assert session.recent_events(5)
