"""
Budget Tracker Engine

Turns expenses into budget state: `spent`, and from it progress, remaining,
status and colour, plus threshold alerts when an expense crosses a level.

DESIGN DECISION: Every function here is pure. The budget passed in is never
mutated; callers receive a new instance and persist it themselves.

CRITICAL: `spent` only ever grows through `apply_expense`. Edits and
deletions of expenses are reflected by `reconcile_budgets`, which zeroes
every active budget and replays all matching expenses. There is no
decrement path.
"""

from calendar import monthrange
from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from uuid import uuid4

import structlog
from dateutil.relativedelta import relativedelta

from fintrack.config import EngineSettings, get_settings
from fintrack.engines.errors import (
    CategoryMismatchError,
    InvalidAmountError,
    PeriodMismatchError,
)
from fintrack.models.budget import (
    AlertType,
    Budget,
    BudgetAlert,
    BudgetProgress,
    BudgetsSummary,
    BudgetStatus,
    ExpenseApplication,
    ExpenseRecord,
    ProgressColor,
    ReconciliationEntry,
    ReconciliationResult,
)
from fintrack.utils.decimal_utils import ZERO, coerce_decimal, percentage_of
from fintrack.utils.time_utils import utcnow
from fintrack.validation.categories import canonicalize_category, categories_match


logger = structlog.get_logger(__name__)

_THRESHOLDS = (
    (AlertType.THRESHOLD_50, Decimal("50"), "alert_50", "50% of budget used"),
    (AlertType.THRESHOLD_75, Decimal("75"), "alert_75", "75% of budget used"),
    (AlertType.THRESHOLD_100, Decimal("100"), "alert_100", "Budget fully used"),
)

_ORANGE_PERCENTAGE = Decimal("50")


def _engine_settings(settings: Optional[EngineSettings]) -> EngineSettings:
    return settings if settings is not None else get_settings().engine


def matches_budget(budget: Budget, category: str) -> bool:
    """True when `category` matches any of the budget's categories."""
    return any(categories_match(category, own) for own in budget.categories)


# =============================================================================
# DERIVED STATE
# =============================================================================

def budget_progress(
    budget: Budget,
    settings: Optional[EngineSettings] = None,
) -> BudgetProgress:
    """
    Derive the read-only progress fields of a budget.

    Percentage is uncapped (150 means one and a half times the cap).
    Remaining never goes below zero and includes any rolled-over amount.
    """
    settings = _engine_settings(settings)

    percentage = percentage_of(budget.spent, budget.amount)
    remaining = max(ZERO, budget.amount - budget.spent + budget.rollover_amount)
    is_over = budget.spent > budget.amount

    if is_over:
        status = BudgetStatus.OVER_BUDGET
    elif percentage >= settings.near_limit_percentage:
        status = BudgetStatus.NEAR_LIMIT
    elif percentage >= settings.on_track_percentage:
        status = BudgetStatus.ON_TRACK
    else:
        status = BudgetStatus.UNDER_BUDGET

    if is_over or percentage >= settings.on_track_percentage:
        color = ProgressColor.RED
    elif percentage >= _ORANGE_PERCENTAGE:
        color = ProgressColor.ORANGE
    else:
        color = ProgressColor.GREEN

    return BudgetProgress(
        progress_percentage=percentage,
        remaining=remaining,
        is_over_budget=is_over,
        status=status,
        progress_color=color,
    )


def _crossed_alerts(
    budget: Budget,
    spent_before: Decimal,
    spent_after: Decimal,
) -> list[BudgetAlert]:
    """Alerts for every enabled level crossed by moving spent_before -> spent_after."""
    previous = percentage_of(spent_before, budget.amount)
    new = percentage_of(spent_after, budget.amount)

    alerts = []
    for alert_type, level, flag, message in _THRESHOLDS:
        if getattr(budget, flag) and previous < level <= new:
            alerts.append(BudgetAlert(type=alert_type, message=message, percentage=level))

    if budget.alert_exceeded and spent_before <= budget.amount < spent_after:
        alerts.append(BudgetAlert(
            type=AlertType.EXCEEDED,
            message="Budget exceeded!",
            percentage=new,
        ))

    return alerts


# =============================================================================
# OPERATIONS
# =============================================================================

def apply_expense(
    budget: Budget,
    amount,
    category: str,
    expense_date: datetime,
    settings: Optional[EngineSettings] = None,
) -> ExpenseApplication:
    """
    Apply one expense to a budget.

    Args:
        budget: Current budget snapshot
        amount: Expense amount, must be > 0
        category: Expense category, matched canonically against the budget
        expense_date: Must fall within the budget period (both ends inclusive)

    Returns:
        ExpenseApplication with the updated budget copy, the alerts raised
        by this expense and the new progress.

    Raises:
        InvalidAmountError, CategoryMismatchError, PeriodMismatchError.
        Nothing is changed when any of them is raised.
    """
    amount = coerce_decimal(amount)
    if amount <= 0:
        raise InvalidAmountError(
            "Valid expense amount is required",
            {"amount": str(amount)},
        )

    if not matches_budget(budget, category):
        raise CategoryMismatchError(category, budget.category)

    if not budget.contains_date(expense_date):
        raise PeriodMismatchError(
            "Expense date is outside budget period",
            {
                "expense_date": expense_date.isoformat(),
                "start_date": budget.start_date.isoformat(),
                "end_date": budget.end_date.isoformat(),
            },
        )

    spent_before = budget.spent
    spent_after = spent_before + amount

    updated = budget.model_copy(
        update={"spent": spent_after, "updated_at": utcnow()},
        deep=True,
    )
    alerts = _crossed_alerts(budget, spent_before, spent_after)

    logger.debug(
        "expense_applied",
        budget_id=str(budget.id),
        amount=str(amount),
        spent=str(spent_after),
        alerts=[alert.type.value for alert in alerts],
    )

    return ExpenseApplication(
        budget=updated,
        alerts=alerts,
        progress=budget_progress(updated, settings),
    )


def summarize_budgets(
    budgets: list[Budget],
    settings: Optional[EngineSettings] = None,
) -> BudgetsSummary:
    """Aggregate figures across budgets. All zero for an empty list."""
    if not budgets:
        return BudgetsSummary()

    total_budget = sum((b.amount for b in budgets), ZERO)
    total_spent = sum((b.spent for b in budgets), ZERO)
    total_remaining = sum(
        (budget_progress(b, settings).remaining for b in budgets),
        ZERO,
    )
    categories = {canonicalize_category(b.category) for b in budgets}
    over_budget_count = sum(1 for b in budgets if b.spent > b.amount)

    total_progress = sum(
        (percentage_of(b.spent, b.amount) for b in budgets),
        ZERO,
    )
    average = (total_progress / len(budgets)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )

    return BudgetsSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_remaining,
        categories_count=len(categories),
        over_budget_count=over_budget_count,
        average_progress=average,
    )


def find_budget_for_expense(
    budgets: Iterable[Budget],
    category: str,
    expense_date: datetime,
) -> Optional[Budget]:
    """First active budget matching the category whose period contains the date."""
    for budget in budgets:
        if (
            budget.is_active
            and matches_budget(budget, category)
            and budget.contains_date(expense_date)
        ):
            return budget
    return None


def _next_month_range(after: datetime) -> tuple[datetime, datetime]:
    first = datetime.combine(after.date().replace(day=1), time.min) + relativedelta(months=1)
    last_day = monthrange(first.year, first.month)[1]
    last = datetime.combine(first.date().replace(day=last_day), time.max)
    return first, last


def create_next_recurring_budget(
    budget: Budget,
    settings: Optional[EngineSettings] = None,
) -> Budget:
    """
    Build the budget for the calendar month following `budget.end_date`.

    Settings and alert flags carry over, `spent` starts at zero. With
    rollover enabled, the previous remaining amount becomes the new
    `rollover_amount`.
    """
    start, end = _next_month_range(budget.end_date)

    rollover = ZERO
    if budget.rollover_enabled:
        rollover = budget_progress(budget, settings).remaining

    now = utcnow()
    return budget.model_copy(
        update={
            "id": uuid4(),
            "start_date": start,
            "end_date": end,
            "spent": ZERO,
            "rollover_amount": rollover,
            "is_active": True,
            "version": 0,
            "created_at": now,
            "updated_at": now,
        },
        deep=True,
    )


def budgets_needing_renewal(
    budgets: Iterable[Budget],
    as_of: Optional[datetime] = None,
) -> list[Budget]:
    """Recurring budgets whose period ended before `as_of`."""
    as_of = as_of or utcnow()
    return [b for b in budgets if b.is_recurring and b.end_date < as_of]


def reconcile_budgets(
    budgets: list[Budget],
    expenses: list[ExpenseRecord],
    settings: Optional[EngineSettings] = None,
) -> ReconciliationResult:
    """
    Recompute `spent` of every active budget from the full expense ledger.

    Each active budget is zeroed, then every expense of the same user that
    matches canonically and falls within the inclusive period is summed in.
    Inactive budgets are returned untouched.

    Returns:
        ReconciliationResult with all budgets (in input order) and one
        entry per budget that had at least one matching expense.
    """
    result_budgets = []
    entries = []
    budgets_processed = 0
    expenses_synced = 0
    now = utcnow()

    for budget in budgets:
        if not budget.is_active:
            result_budgets.append(budget)
            continue

        budgets_processed += 1
        matching = [
            expense for expense in expenses
            if expense.user_id == budget.user_id
            and matches_budget(budget, expense.category)
            and budget.contains_date(expense.date)
        ]
        total = sum((expense.amount for expense in matching), ZERO)

        updated = budget.model_copy(
            update={"spent": total, "updated_at": now},
            deep=True,
        )
        result_budgets.append(updated)

        if matching:
            expenses_synced += len(matching)
            progress = budget_progress(updated, settings)
            entries.append(ReconciliationEntry(
                budget_id=budget.id,
                category=budget.category,
                expenses_count=len(matching),
                total_spent=total,
                budget_amount=budget.amount,
                progress_percentage=progress.progress_percentage,
                status=progress.status,
            ))

    logger.info(
        "budgets_reconciled",
        budgets_processed=budgets_processed,
        budgets_updated=len(entries),
        expenses_synced=expenses_synced,
    )

    return ReconciliationResult(
        budgets=result_budgets,
        entries=entries,
        budgets_processed=budgets_processed,
        budgets_updated=len(entries),
        expenses_synced=expenses_synced,
    )


__all__ = [
    "apply_expense",
    "budget_progress",
    "budgets_needing_renewal",
    "create_next_recurring_budget",
    "find_budget_for_expense",
    "matches_budget",
    "reconcile_budgets",
    "summarize_budgets",
]
