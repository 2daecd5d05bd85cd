"""
Main Orchestrator for Hisebi

This module ties together all the components and defines the flows for:
1. Ledger changes (form input → validate → replace snapshot → save → audit)
2. Derived views (snapshot → totals, feeds, chart series)
3. Insights (snapshot summary → Gemini → tips, or the standard tips)

DESIGN DECISION: `LedgerSession` is the single owner of the snapshot.
Every change builds a new snapshot instead of editing the old one, and
derived views are recomputed from whatever snapshot is current.
"""

import asyncio
from typing import Optional

import structlog

from hisebi.agents import InsightAgent, fallback_insight
from hisebi.aggregation import (
    budget_status,
    clear_completed,
    compute_shopping_totals,
    compute_totals,
    group_expenses_by_category,
    merge_activity,
    recent_transactions,
    sort_shopping_items,
    toggle_item,
    trend_window,
)
from hisebi.audit import AuditLogger, create_correlation_id
from hisebi.config import AppSettings, Settings, StorageBackend, get_settings
from hisebi.models.audit import AuditEvent, AuditEventBuilder
from hisebi.models.forms import ValidationResult
from hisebi.models.ledger import (
    AIInsight,
    Debt,
    LedgerSnapshot,
    ShoppingItem,
    Transaction,
    UserProfile,
)
from hisebi.models.views import DashboardView
from hisebi.services.export import transactions_to_csv
from hisebi.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonLinesAuditStorage,
    KeyValueStorageInterface,
    LocalFileStorage,
    SnapshotStore,
)
from hisebi.validation import EntryValidator


logger = structlog.get_logger("hisebi.orchestrator")


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class EntryRejectedError(LedgerError):
    """Form input failed validation; nothing was changed."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.error_messages()) or "Entry rejected")


class FeatureDisabledError(LedgerError):
    """The operation is not part of the running application variant."""
    pass


class InsightFlow:
    """
    Orchestrates the insight request.

    Only one request runs at a time. A caller arriving while a request is
    in flight joins it and receives the same insight; no second model
    call is made.
    """

    def __init__(
        self,
        insight_agent: Optional[InsightAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
        transaction_window: int = 10,
    ):
        self._agent = insight_agent or InsightAgent()
        self._audit_logger = audit_logger
        self._window = transaction_window
        self._inflight: Optional[asyncio.Future] = None

    @property
    def is_pending(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def _log(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    async def _request(self, snapshot: LedgerSnapshot) -> AIInsight:
        correlation_id = create_correlation_id()
        totals = compute_totals(snapshot.transactions, snapshot.debts)
        recent = recent_transactions(snapshot.transactions, self._window)

        self._log(AuditEventBuilder.insight_requested(correlation_id, len(recent)))

        try:
            insight, failure = await self._agent.generate_insights(
                totals, snapshot.profile, recent
            )
        except Exception as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            insight, failure = fallback_insight(), str(e)

        if failure:
            self._log(AuditEventBuilder.insight_fallback(correlation_id, failure))
        else:
            self._log(AuditEventBuilder.insight_generated(
                correlation_id,
                tip_count=len(insight.tips),
                has_alert=insight.alert is not None,
            ))
        return insight

    async def run(self, snapshot: LedgerSnapshot) -> AIInsight:
        """Request insights for `snapshot`, joining any request in flight."""
        task = self._inflight
        loop = asyncio.get_running_loop()
        if task is None or task.done() or task.get_loop() is not loop:
            task = loop.create_task(self._request(snapshot))
            self._inflight = task
        return await asyncio.shield(task)


class LedgerSession:
    """
    Single owner of the ledger snapshot.

    FLOW for every change:
    1. Validate raw form input (rejected input changes nothing)
    2. Build the new snapshot (records are prepended, newest first)
    3. Save the whole snapshot
    4. Audit the change

    Deleting or toggling an id that does not exist is a no-op.
    """

    def __init__(
        self,
        store: SnapshotStore,
        app_settings: Optional[AppSettings] = None,
        validator: Optional[EntryValidator] = None,
        insight_flow: Optional[InsightFlow] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._settings = app_settings or get_settings().app
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger
        self._insight_flow = insight_flow or InsightFlow(
            insight_agent=InsightAgent(app_name=self._settings.app_title),
            audit_logger=audit_logger,
            transaction_window=self._settings.insight_transaction_window,
        )
        self._snapshot = store.load()
        self.last_insight: Optional[AIInsight] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def insight_pending(self) -> bool:
        return self._insight_flow.is_pending

    def _log(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def recent_events(self, limit: int = 20) -> list[AuditEvent]:
        """Latest audit events, newest first."""
        if not self._audit_logger:
            return []
        return self._audit_logger.recent_events(limit)

    def _commit(self, snapshot: LedgerSnapshot, event: AuditEvent) -> None:
        """
        Make `snapshot` current, then save and audit it.

        Raises:
            StorageWriteError: If saving fails. The in-memory change stays.
        """
        self._snapshot = snapshot
        self._log(event)
        self._store.save(snapshot)

    def _reject(self, result: ValidationResult) -> EntryRejectedError:
        self._log(AuditEventBuilder.entry_rejected(
            result.entity_type,
            [issue.model_dump() for issue in result.issues if issue.severity == "error"],
        ))
        return EntryRejectedError(result)

    def _require_shopping(self) -> None:
        if not self._settings.shopping_enabled:
            raise FeatureDisabledError(
                f"The shopping list is not available in {self._settings.app_title}"
            )

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        kind,
        amount,
        category,
        entry_date=None,
        note: str = "",
    ) -> Transaction:
        """
        Record an income or expense.

        Raises:
            EntryRejectedError: If the input does not validate
        """
        result, transaction = self._validator.validate_transaction(
            kind, amount, category, entry_date, note
        )
        if transaction is None:
            raise self._reject(result)

        self._commit(
            self._snapshot.model_copy(
                update={"transactions": (transaction,) + self._snapshot.transactions}
            ),
            AuditEventBuilder.transaction_added(
                transaction.id,
                transaction.kind.value,
                transaction.amount,
                transaction.category,
            ),
        )
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        remaining = tuple(t for t in self._snapshot.transactions if t.id != transaction_id)
        if len(remaining) == len(self._snapshot.transactions):
            return False
        self._commit(
            self._snapshot.model_copy(update={"transactions": remaining}),
            AuditEventBuilder.transaction_deleted(transaction_id),
        )
        return True

    # -------------------------------------------------------------------------
    # Dhar
    # -------------------------------------------------------------------------

    def add_debt(self, person, amount, entry_date=None, note: str = "") -> Debt:
        """
        Record a pending Dhar.

        Raises:
            EntryRejectedError: If the input does not validate
        """
        result, debt = self._validator.validate_debt(person, amount, entry_date, note)
        if debt is None:
            raise self._reject(result)

        self._commit(
            self._snapshot.model_copy(update={"debts": (debt,) + self._snapshot.debts}),
            AuditEventBuilder.debt_added(debt.id, debt.person, debt.amount),
        )
        return debt

    def toggle_debt_status(self, debt_id: str) -> Optional[Debt]:
        """Flip pending/repaid. Returns the updated debt, or None if unknown."""
        updated = None
        debts = []
        for debt in self._snapshot.debts:
            if debt.id == debt_id:
                debt = debt.model_copy(update={"status": debt.status.toggled()})
                updated = debt
            debts.append(debt)

        if updated is None:
            return None

        self._commit(
            self._snapshot.model_copy(update={"debts": tuple(debts)}),
            AuditEventBuilder.debt_status_toggled(debt_id, updated.status.value),
        )
        return updated

    def delete_debt(self, debt_id: str) -> bool:
        remaining = tuple(d for d in self._snapshot.debts if d.id != debt_id)
        if len(remaining) == len(self._snapshot.debts):
            return False
        self._commit(
            self._snapshot.model_copy(update={"debts": remaining}),
            AuditEventBuilder.debt_deleted(debt_id),
        )
        return True

    # -------------------------------------------------------------------------
    # Shopping list
    # -------------------------------------------------------------------------

    def add_shopping_item(
        self,
        name,
        quantity=None,
        estimated_price=None,
        unit=None,
    ) -> ShoppingItem:
        """
        Add an item to the shopping list.

        Raises:
            FeatureDisabledError: In the Hisebi variant
            EntryRejectedError: If the input does not validate
        """
        self._require_shopping()
        result, item = self._validator.validate_shopping_item(
            name, quantity, estimated_price, unit
        )
        if item is None:
            raise self._reject(result)

        self._commit(
            self._snapshot.model_copy(
                update={"shopping_items": (item,) + self._snapshot.shopping_items}
            ),
            AuditEventBuilder.shopping_item_added(item.id, item.name),
        )
        return item

    def toggle_shopping_item(self, item_id: str) -> Optional[ShoppingItem]:
        """Flip an item's completed flag. Returns the item, or None if unknown."""
        self._require_shopping()
        items = toggle_item(self._snapshot.shopping_items, item_id)
        updated = next((item for item in items if item.id == item_id), None)
        if updated is None:
            return None

        self._commit(
            self._snapshot.model_copy(update={"shopping_items": tuple(items)}),
            AuditEventBuilder.shopping_item_toggled(item_id, updated.completed),
        )
        return updated

    def delete_shopping_item(self, item_id: str) -> bool:
        self._require_shopping()
        remaining = tuple(i for i in self._snapshot.shopping_items if i.id != item_id)
        if len(remaining) == len(self._snapshot.shopping_items):
            return False
        self._commit(
            self._snapshot.model_copy(update={"shopping_items": remaining}),
            AuditEventBuilder.shopping_item_deleted(item_id),
        )
        return True

    def clear_completed(self) -> int:
        """Remove every checked-off item. Returns how many were removed."""
        self._require_shopping()
        remaining = clear_completed(self._snapshot.shopping_items)
        removed = len(self._snapshot.shopping_items) - len(remaining)
        if removed == 0:
            return 0
        self._commit(
            self._snapshot.model_copy(update={"shopping_items": tuple(remaining)}),
            AuditEventBuilder.shopping_completed_cleared(removed),
        )
        return removed

    def shopping_items(self) -> tuple[ShoppingItem, ...]:
        """Shopping list in display order."""
        return sort_shopping_items(self._snapshot.shopping_items)

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    def update_profile(self, name, monthly_budget) -> UserProfile:
        """
        Replace the profile.

        Raises:
            EntryRejectedError: If the budget is not a non-negative number
        """
        result, profile = self._validator.validate_profile(name, monthly_budget)
        if profile is None:
            raise self._reject(result)

        self._commit(
            self._snapshot.model_copy(update={"profile": profile}),
            AuditEventBuilder.profile_updated(profile.name, profile.monthly_budget),
        )
        return profile

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def dashboard(self) -> DashboardView:
        """Compute every derived view from the current snapshot."""
        snapshot = self._snapshot
        totals = compute_totals(snapshot.transactions, snapshot.debts)
        return DashboardView(
            totals=totals,
            budget=budget_status(totals, snapshot.profile),
            recent_activity=merge_activity(
                snapshot.transactions,
                snapshot.debts,
                self._settings.recent_activity_limit,
            ),
            category_breakdown=group_expenses_by_category(snapshot.transactions),
            trend=trend_window(snapshot.transactions, self._settings.trend_window),
            shopping_totals=compute_shopping_totals(snapshot.shopping_items),
        )

    def export_csv(self) -> tuple[str, str]:
        """
        Export transactions in display order.

        Returns:
            (filename, csv_text)
        """
        content = transactions_to_csv(self._snapshot.transactions)
        filename = self._settings.export_filename
        self._log(AuditEventBuilder.export_generated(
            len(self._snapshot.transactions), filename
        ))
        return filename, content

    async def request_insights(self) -> AIInsight:
        """Ask for budgeting tips. Always returns an insight."""
        insight = await self._insight_flow.run(self._snapshot)
        self.last_insight = insight
        return insight


def _build_storage(
    settings: Settings,
) -> tuple[KeyValueStorageInterface, Optional[AuditStorageInterface]]:
    storage_settings = settings.storage

    if storage_settings.backend == StorageBackend.MEMORY:
        return InMemoryStorage(), InMemoryAuditStorage()

    try:
        storage_settings.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        # Storage not writable - continue in memory
        logger.warning(
            "storage_unavailable",
            data_dir=str(storage_settings.data_dir),
            error=str(e),
        )
        return InMemoryStorage(), InMemoryAuditStorage()

    audit_storage = None
    if storage_settings.audit_log_enabled:
        audit_storage = JsonLinesAuditStorage(storage_settings.audit_path)
    return LocalFileStorage(storage_settings.snapshot_path), audit_storage


def create_app_components(
    settings: Optional[Settings] = None,
    insight_agent: Optional[InsightAgent] = None,
) -> LedgerSession:
    """
    Factory function to create a ready-to-use ledger session.

    Args:
        settings: Root settings; loaded from the environment if None.
        insight_agent: Overrides the Gemini-backed agent (e.g., in tests).
    """
    settings = settings or get_settings()
    app_settings = settings.app

    storage, audit_storage = _build_storage(settings)
    audit_logger = AuditLogger(audit_storage)

    store = SnapshotStore(
        storage=storage,
        storage_key=app_settings.storage_key,
        default_profile=UserProfile(
            name=app_settings.default_profile_name,
            monthly_budget=app_settings.default_monthly_budget,
        ),
        include_shopping=app_settings.shopping_enabled,
        audit_logger=audit_logger,
    )

    insight_flow = InsightFlow(
        insight_agent=insight_agent or InsightAgent(
            settings=settings.gemini,
            app_name=app_settings.app_title,
        ),
        audit_logger=audit_logger,
        transaction_window=app_settings.insight_transaction_window,
    )

    return LedgerSession(
        store=store,
        app_settings=app_settings,
        insight_flow=insight_flow,
        audit_logger=audit_logger,
    )
