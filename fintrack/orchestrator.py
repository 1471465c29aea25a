"""
Main Orchestrator for fintrack

This module ties together all the components and defines the
end-to-end flows for the four ledgers:
1. Budgets (create → apply expense → reconcile → renew)
2. Debts (create → add payment → update terms)
3. Income (record → update → summarize)
4. Investments (create → transactions / SIP → revalue → portfolio queries)

Every mutation follows the same shape:
    lock entity → load → engine operation → save(expected_version)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Engines never see storage; flows never compute derived state themselves
- A save whose version token is stale raises ConflictError, and the whole
  load → mutate → save cycle is retried (tenacity). Nothing else is retried.
- Engine errors are audited and re-raised unchanged
- Every step is audited
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, NamedTuple, Optional
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fintrack.audit import AuditLogger, configure_logging, create_correlation_id
from fintrack.concurrency import EntityLockRegistry
from fintrack.config import get_settings
from fintrack.engines import budget as budget_engine
from fintrack.engines import debt as debt_engine
from fintrack.engines import income as income_engine
from fintrack.engines import investment as investment_engine
from fintrack.engines.errors import (
    BudgetOverlapError,
    EngineError,
    InvalidInputError,
    InvalidStateError,
)
from fintrack.models.budget import (
    Budget,
    BudgetsSummary,
    ExpenseApplication,
    ExpenseRecord,
    ReconciliationResult,
)
from fintrack.models.debt import Debt, DebtProgress, DebtStatus, PaymentType
from fintrack.models.income import IncomeRecord, IncomeSummary
from fintrack.models.investment import (
    AssetAllocation,
    Investment,
    InvestmentMetrics,
    PortfolioFilters,
    PortfolioSummary,
    TransactionType,
)
from fintrack.models.validation import ValidationResult
from fintrack.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConflictError,
    DebtStorageInterface,
    EntityStorageInterface,
    ExpenseSourceInterface,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryDebtStorage,
    InMemoryExpenseSource,
    InMemoryIncomeStorage,
    InMemoryInvestmentStorage,
    IncomeStorageInterface,
    InvestmentStorageInterface,
)
from fintrack.validation import EntityValidator


class _EntityFlow:
    """
    Shared load → mutate → save machinery.

    Subclasses pass an engine call as `mutate`; it receives the freshly
    loaded entity and returns `(updated_entity, payload)`.
    """

    def __init__(
        self,
        storage: EntityStorageInterface,
        locks: Optional[EntityLockRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._locks = locks or EntityLockRegistry()
        self._audit_logger = audit_logger
        self._concurrency = get_settings().concurrency

    @property
    def _entity_type(self) -> str:
        return self._storage.entity_type

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._concurrency.conflict_retry_attempts),
            wait=wait_exponential(
                multiplier=self._concurrency.conflict_retry_wait_seconds,
                max=self._concurrency.conflict_retry_max_wait_seconds,
            ),
            retry=retry_if_exception_type(ConflictError),
            reraise=True,
        )

    async def _rejected(
        self,
        entity_id: Optional[UUID],
        user_id: Optional[str],
        operation: str,
        error: EngineError,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_operation_rejected(
                entity_type=self._entity_type,
                entity_id=entity_id,
                user_id=user_id,
                operation=operation,
                error=error,
                correlation_id=correlation_id,
            )

    async def _conflicted(
        self,
        entity_id: UUID,
        attempt: int,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_version_conflict(
                entity_type=self._entity_type,
                entity_id=entity_id,
                attempt=attempt,
                correlation_id=correlation_id,
            )

    async def _mutate(
        self,
        entity_id: UUID,
        user_id: str,
        operation: str,
        mutate: Callable[[Any], tuple[Any, Any]],
        correlation_id: UUID,
    ) -> tuple[Any, Any]:
        """
        Run one engine operation against the stored entity.

        Returns:
            (saved_entity, payload)

        Raises:
            EngineError: From the engine, after auditing
            ConflictError: Still conflicting after all retry attempts
            NotFoundError: No such entity for this user
        """
        async with self._locks.hold(self._entity_type, entity_id):
            async for attempt in self._retrying():
                with attempt:
                    entity = await self._storage.get(entity_id, user_id)
                    try:
                        updated, payload = mutate(entity)
                    except EngineError as e:
                        await self._rejected(entity_id, user_id, operation, e, correlation_id)
                        raise
                    try:
                        saved = await self._storage.save(updated, expected_version=entity.version)
                    except ConflictError:
                        await self._conflicted(
                            entity_id,
                            attempt.retry_state.attempt_number,
                            correlation_id,
                        )
                        raise
                    return saved, payload

    async def _insert(self, entity, correlation_id: UUID, details: Optional[dict] = None):
        saved = await self._storage.save(entity, expected_version=None)
        if self._audit_logger:
            await self._audit_logger.log_entity_created(
                entity_type=self._entity_type,
                entity_id=saved.id,
                user_id=saved.user_id,
                correlation_id=correlation_id,
                details=details,
            )
        return saved


def _raise_for_validation(result: ValidationResult) -> None:
    """Turn error-level validation issues into an engine error."""
    if not result.has_errors:
        return
    messages = [issue.message for issue in result.errors]
    details = {"issues": [issue.model_dump() for issue in result.errors]}
    if any(issue.issue_type == "overlap" for issue in result.errors):
        raise BudgetOverlapError("; ".join(messages), details)
    raise InvalidInputError("; ".join(messages), details)


class BudgetFlow(_EntityFlow):
    """
    Orchestrates budget flows.

    CRITICAL: `spent` is written by exactly two paths: `apply_expense`
    (one budget, increment) and `sync_expenses` (all of a user's active
    budgets, recomputed). Both hold the budget locks while they run, so a
    reconciliation never interleaves with a single-expense application.
    """

    def __init__(
        self,
        budget_storage: BudgetStorageInterface,
        expense_source: Optional[ExpenseSourceInterface] = None,
        validator: Optional[EntityValidator] = None,
        locks: Optional[EntityLockRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(budget_storage, locks, audit_logger)
        self._expenses = expense_source
        self._validator = validator or EntityValidator(budget_storage)

    async def create_budget(
        self,
        budget: Budget,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Validate and store a new budget.

        Raises:
            BudgetOverlapError: An active budget already covers the category
                and period
            InvalidInputError: Any other error-level validation issue
        """
        correlation_id = correlation_id or create_correlation_id()

        # Serialize creations per user so two overlapping budgets can't both pass
        async with self._locks.hold("budget_owner", budget.user_id):
            result = await self._validator.validate_budget(budget)
            try:
                _raise_for_validation(result)
            except EngineError as e:
                await self._rejected(budget.id, budget.user_id, "create_budget", e, correlation_id)
                raise

            return await self._insert(
                budget,
                correlation_id,
                {"category": budget.category, "amount": str(budget.amount)},
            )

    async def apply_expense(
        self,
        budget_id: UUID,
        user_id: str,
        amount,
        category: str,
        expense_date: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseApplication:
        """
        Apply one expense to a stored budget.

        Returns:
            ExpenseApplication whose budget is the saved copy
        """
        correlation_id = correlation_id or create_correlation_id()

        def mutate(budget: Budget):
            application = budget_engine.apply_expense(budget, amount, category, expense_date)
            return application.budget, application

        saved, application = await self._mutate(
            budget_id, user_id, "apply_expense", mutate, correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_expense_applied(
                budget_id=saved.id,
                user_id=user_id,
                amount=str(amount),
                spent=str(saved.spent),
                progress_percentage=str(application.progress.progress_percentage),
                alerts=application.alerts,
                correlation_id=correlation_id,
            )

        return application.model_copy(update={"budget": saved})

    async def record_expense(
        self,
        expense: ExpenseRecord,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ExpenseApplication]:
        """
        Apply an expense to whichever active budget covers it.

        Returns None when no budget matches the category and date.
        """
        budgets = await self._storage.list_for_user(expense.user_id)
        budget = budget_engine.find_budget_for_expense(budgets, expense.category, expense.date)
        if budget is None:
            return None
        return await self.apply_expense(
            budget.id,
            expense.user_id,
            expense.amount,
            expense.category,
            expense.date,
            correlation_id,
        )

    async def sync_expenses(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ReconciliationResult:
        """
        Recompute `spent` of every active budget from the expense ledger.

        This is how edited and deleted expenses reach the budgets.
        """
        if self._expenses is None:
            raise RuntimeError("No expense source configured")

        correlation_id = correlation_id or create_correlation_id()
        budget_ids = {b.id for b in await self._storage.list_for_user(user_id)}

        outcome = None
        while outcome is None:
            async with self._locks.hold_many(self._entity_type, budget_ids):
                outcome = await self._reconcile_locked(user_id, budget_ids, correlation_id)
            if outcome is None:
                # A budget appeared after the locks were taken; widen and redo
                budget_ids |= {b.id for b in await self._storage.list_for_user(user_id)}

        result, saved_budgets = outcome

        if self._audit_logger:
            await self._audit_logger.log_budgets_reconciled(
                user_id=user_id,
                budgets_processed=result.budgets_processed,
                budgets_updated=result.budgets_updated,
                expenses_synced=result.expenses_synced,
                correlation_id=correlation_id,
            )

        return result.model_copy(update={"budgets": saved_budgets})

    async def _list_expenses(self, user_id: str, correlation_id: UUID) -> list[ExpenseRecord]:
        try:
            return await self._expenses.list_expenses(user_id)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="expense_source_error",
                    error_message=str(e),
                    details={"user_id": user_id},
                    correlation_id=correlation_id,
                )
            raise

    async def _reconcile_locked(
        self,
        user_id: str,
        locked_ids: set[UUID],
        correlation_id: UUID,
    ) -> Optional[tuple[ReconciliationResult, list[Budget]]]:
        """
        Reconcile while the budget locks in `locked_ids` are held.

        Returns None, without writing anything, when the listing holds a
        budget whose lock is not among them.
        """
        async for attempt in self._retrying():
            with attempt:
                budgets = await self._storage.list_for_user(user_id)
                if any(b.id not in locked_ids for b in budgets):
                    return None

                expenses = await self._list_expenses(user_id, correlation_id)
                result = budget_engine.reconcile_budgets(budgets, expenses)

                saved_budgets = []
                for before, after in zip(budgets, result.budgets):
                    if after is before:
                        saved_budgets.append(before)
                        continue
                    try:
                        saved = await self._storage.save(
                            after, expected_version=before.version,
                        )
                    except ConflictError:
                        await self._conflicted(
                            before.id,
                            attempt.retry_state.attempt_number,
                            correlation_id,
                        )
                        raise
                    saved_budgets.append(saved)
                return result, saved_budgets

    async def renew_budgets(
        self,
        user_id: str,
        as_of: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Budget]:
        """
        Roll every ended recurring budget over into the next month.

        The ended budget is deactivated, so it is renewed only once. A
        successor that would overlap an active budget of the same category
        is rejected and audited; the ended budget is still deactivated.
        """
        correlation_id = correlation_id or create_correlation_id()

        def deactivate(budget: Budget):
            if not budget.is_active:
                raise InvalidStateError(
                    "Budget has already been renewed",
                    {"budget_id": str(budget.id)},
                )
            return budget.model_copy(update={"is_active": False}), None

        renewed = []
        # Same guard as create_budget, so the overlap check sees every insert
        async with self._locks.hold("budget_owner", user_id):
            budgets = await self._storage.list_for_user(user_id)
            due = budget_engine.budgets_needing_renewal(budgets, as_of)

            for previous in [b for b in due if b.is_active]:
                try:
                    ended, _ = await self._mutate(
                        previous.id, user_id, "renew_budget", deactivate, correlation_id,
                    )
                except InvalidStateError:
                    continue

                successor = budget_engine.create_next_recurring_budget(ended)
                try:
                    _raise_for_validation(await self._validator.validate_budget(successor))
                except EngineError as e:
                    await self._rejected(successor.id, user_id, "renew_budget", e, correlation_id)
                    continue

                saved = await self._storage.save(successor, expected_version=None)
                if self._audit_logger:
                    await self._audit_logger.log_budget_renewed(
                        previous_id=previous.id,
                        new_id=saved.id,
                        user_id=user_id,
                        correlation_id=correlation_id,
                    )
                renewed.append(saved)

        return renewed

    async def get_summary(self, user_id: str) -> BudgetsSummary:
        """Summary over the user's active budgets."""
        budgets = await self._storage.list_for_user(user_id)
        return budget_engine.summarize_budgets([b for b in budgets if b.is_active])


class DebtFlow(_EntityFlow):
    """Orchestrates debt flows."""

    def __init__(
        self,
        debt_storage: DebtStorageInterface,
        validator: Optional[EntityValidator] = None,
        locks: Optional[EntityLockRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(debt_storage, locks, audit_logger)
        self._validator = validator or EntityValidator()

    async def _report_projection(self, debt: Debt, correlation_id: UUID) -> None:
        """Audit a missing projection on a debt that still has a balance."""
        if (
            self._audit_logger
            and debt.status == DebtStatus.ACTIVE
            and debt.current_balance > 0
            and debt.expected_payoff_date is None
        ):
            await self._audit_logger.log_payoff_non_convergent(
                debt_id=debt.id,
                user_id=debt.user_id,
                reason="Minimum payment does not pay the debt off",
                correlation_id=correlation_id,
            )

    async def create_debt(
        self,
        debt: Debt,
        correlation_id: Optional[UUID] = None,
        as_of: Optional[datetime] = None,
    ) -> Debt:
        """Validate, project the payoff date and store a new debt."""
        correlation_id = correlation_id or create_correlation_id()

        result = await self._validator.validate_debt(debt)
        try:
            _raise_for_validation(result)
        except EngineError as e:
            await self._rejected(debt.id, debt.user_id, "create_debt", e, correlation_id)
            raise

        projected = debt_engine.refresh_payoff_date(debt, as_of)
        saved = await self._insert(
            projected,
            correlation_id,
            {"original_amount": str(debt.original_amount), "creditor": debt.creditor},
        )
        await self._report_projection(saved, correlation_id)
        return saved

    async def add_payment(
        self,
        debt_id: UUID,
        user_id: str,
        amount,
        payment_type: PaymentType = PaymentType.REGULAR,
        note: str = "",
        paid_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Debt:
        """Apply a payment to a stored debt."""
        correlation_id = correlation_id or create_correlation_id()

        def mutate(debt: Debt):
            return debt_engine.add_payment(debt, amount, payment_type, note, paid_at), None

        saved, _ = await self._mutate(debt_id, user_id, "add_payment", mutate, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_payment_added(
                debt_id=saved.id,
                user_id=user_id,
                amount=str(amount),
                balance=str(saved.current_balance),
                paid_off=saved.status == DebtStatus.PAID_OFF,
                correlation_id=correlation_id,
            )
        await self._report_projection(saved, correlation_id)
        return saved

    async def update_terms(
        self,
        debt_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
        **terms,
    ) -> Debt:
        """
        Change repayment terms of a stored debt.

        Accepts the keyword arguments of `debt_engine.update_terms`.
        """
        correlation_id = correlation_id or create_correlation_id()

        def mutate(debt: Debt):
            return debt_engine.update_terms(debt, **terms), None

        saved, _ = await self._mutate(debt_id, user_id, "update_terms", mutate, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_debt_terms_updated(
                debt_id=saved.id,
                user_id=user_id,
                changes={key: str(value) for key, value in terms.items() if value is not None},
                correlation_id=correlation_id,
            )
        await self._report_projection(saved, correlation_id)
        return saved

    async def get_progress(self, debt_id: UUID, user_id: str) -> DebtProgress:
        debt = await self._storage.get(debt_id, user_id)
        return debt_engine.debt_progress(debt)


class IncomeFlow(_EntityFlow):
    """Orchestrates income flows."""

    def __init__(
        self,
        income_storage: IncomeStorageInterface,
        locks: Optional[EntityLockRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(income_storage, locks, audit_logger)

    async def record_income(
        self,
        record: IncomeRecord,
        correlation_id: Optional[UUID] = None,
    ) -> IncomeRecord:
        """Classify and store a new income record."""
        correlation_id = correlation_id or create_correlation_id()
        classified = income_engine.apply_classification(record)
        saved = await self._storage.save(classified, expected_version=None)

        if self._audit_logger:
            await self._audit_logger.log_income_recorded(
                income_id=saved.id,
                user_id=saved.user_id,
                frequency=saved.frequency.value,
                is_recurring=saved.is_recurring,
                correlation_id=correlation_id,
            )
        return saved

    async def update_income(
        self,
        income_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
        **changes,
    ) -> IncomeRecord:
        """Apply field changes to a stored record and re-classify it."""
        correlation_id = correlation_id or create_correlation_id()

        def mutate(record: IncomeRecord):
            return income_engine.update_record(record, **changes), None

        saved, _ = await self._mutate(income_id, user_id, "update_income", mutate, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_income_recorded(
                income_id=saved.id,
                user_id=user_id,
                frequency=saved.frequency.value,
                is_recurring=saved.is_recurring,
                correlation_id=correlation_id,
                updated=True,
            )
        return saved

    async def get_summary(
        self,
        user_id: str,
        as_of: Optional[datetime] = None,
    ) -> IncomeSummary:
        records = await self._storage.list_for_user(user_id)
        return income_engine.summarize_income(records, as_of)

    async def next_expected(
        self,
        user_id: str,
        as_of: Optional[datetime] = None,
    ) -> Optional[IncomeRecord]:
        records = await self._storage.list_for_user(user_id)
        return income_engine.next_expected_across_portfolio(records, as_of)


class InvestmentFlow(_EntityFlow):
    """Orchestrates investment flows."""

    def __init__(
        self,
        investment_storage: InvestmentStorageInterface,
        locks: Optional[EntityLockRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(investment_storage, locks, audit_logger)

    async def create_investment(
        self,
        investment: Investment,
        correlation_id: Optional[UUID] = None,
    ) -> Investment:
        correlation_id = correlation_id or create_correlation_id()
        return await self._insert(
            investment,
            correlation_id,
            {"investment_type": investment.investment_type.value},
        )

    async def add_transaction(
        self,
        investment_id: UUID,
        user_id: str,
        transaction_type: TransactionType,
        quantity,
        price=Decimal("0"),
        note: str = "",
        executed_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Investment:
        """Apply a Buy/Sell/Dividend/Split/Bonus to a stored holding."""
        correlation_id = correlation_id or create_correlation_id()

        def mutate(investment: Investment):
            return investment_engine.apply_transaction(
                investment, transaction_type, quantity, price, note, executed_at,
            )

        saved, transaction = await self._mutate(
            investment_id, user_id, "add_transaction", mutate, correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_investment_transaction(
                investment_id=saved.id,
                user_id=user_id,
                transaction_type=transaction.type.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )
        return saved

    async def add_sip_transaction(
        self,
        investment_id: UUID,
        user_id: str,
        amount,
        nav,
        units=None,
        note: str = "",
        executed_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Investment:
        """Record a SIP contribution on a stored holding."""
        correlation_id = correlation_id or create_correlation_id()

        def mutate(investment: Investment):
            updated = investment_engine.add_sip_transaction(
                investment, amount, nav, units, note, executed_at,
            )
            return updated, None

        saved, _ = await self._mutate(
            investment_id, user_id, "add_sip_transaction", mutate, correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_investment_transaction(
                investment_id=saved.id,
                user_id=user_id,
                transaction_type="SIP",
                amount=str(amount),
                correlation_id=correlation_id,
                sip=True,
            )
        return saved

    async def update_current_value(
        self,
        investment_id: UUID,
        user_id: str,
        new_value,
        current_price=None,
        correlation_id: Optional[UUID] = None,
    ) -> Investment:
        correlation_id = correlation_id or create_correlation_id()

        def mutate(investment: Investment):
            updated = investment_engine.update_current_value(investment, new_value, current_price)
            return updated, None

        saved, _ = await self._mutate(
            investment_id, user_id, "update_current_value", mutate, correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_investment_revalued(
                investment_id=saved.id,
                user_id=user_id,
                current_value=str(saved.current_value),
                correlation_id=correlation_id,
            )
        return saved

    async def get_metrics(
        self,
        investment_id: UUID,
        user_id: str,
        as_of: Optional[datetime] = None,
    ) -> InvestmentMetrics:
        investment = await self._storage.get(investment_id, user_id)
        return investment_engine.investment_metrics(investment, as_of)

    async def get_portfolio_summary(
        self,
        user_id: str,
        filters: Optional[PortfolioFilters] = None,
    ) -> PortfolioSummary:
        investments = await self._storage.list_for_user(user_id)
        return investment_engine.portfolio_summary(investments, filters)

    async def get_asset_allocation(self, user_id: str) -> list[AssetAllocation]:
        investments = await self._storage.list_for_user(user_id)
        return investment_engine.asset_allocation(investments)


class AppComponents(NamedTuple):
    budgets: BudgetFlow
    debts: DebtFlow
    income: IncomeFlow
    investments: InvestmentFlow
    audit_logger: AuditLogger


def create_app_components(
    budget_storage: Optional[BudgetStorageInterface] = None,
    debt_storage: Optional[DebtStorageInterface] = None,
    income_storage: Optional[IncomeStorageInterface] = None,
    investment_storage: Optional[InvestmentStorageInterface] = None,
    expense_source: Optional[ExpenseSourceInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Any storage left out is replaced by its in-memory implementation.
    All flows share one lock registry, so create the components inside
    the event loop that will run them.

    Returns:
        AppComponents(budgets, debts, income, investments, audit_logger)
    """
    configure_logging()

    budget_storage = budget_storage or InMemoryBudgetStorage()
    audit_logger = AuditLogger(audit_storage or InMemoryAuditStorage())
    locks = EntityLockRegistry()

    return AppComponents(
        budgets=BudgetFlow(
            budget_storage,
            expense_source=expense_source or InMemoryExpenseSource(),
            validator=EntityValidator(budget_storage),
            locks=locks,
            audit_logger=audit_logger,
        ),
        debts=DebtFlow(
            debt_storage or InMemoryDebtStorage(),
            locks=locks,
            audit_logger=audit_logger,
        ),
        income=IncomeFlow(
            income_storage or InMemoryIncomeStorage(),
            locks=locks,
            audit_logger=audit_logger,
        ),
        investments=InvestmentFlow(
            investment_storage or InMemoryInvestmentStorage(),
            locks=locks,
            audit_logger=audit_logger,
        ),
        audit_logger=audit_logger,
    )
