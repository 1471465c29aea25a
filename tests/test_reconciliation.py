"""
Tests for budget reconciliation.

Reconciliation zeroes every active budget and replays the full expense
ledger, so edits and deletions of expenses reach the budgets.
"""

from datetime import datetime
from decimal import Decimal

from fintrack.engines import budget as engine
from fintrack.models.budget import Budget, ExpenseRecord


def make_budget(**overrides) -> Budget:
    data = {
        "user_id": "user-1",
        "name": "Food",
        "category": "food",
        "amount": Decimal("1000"),
        "start_date": datetime(2024, 1, 1),
        "end_date": datetime(2024, 1, 31, 23, 59, 59),
    }
    data.update(overrides)
    return Budget(**data)


def expense(amount, category="food", when=datetime(2024, 1, 10), user_id="user-1"):
    return ExpenseRecord(
        user_id=user_id,
        category=category,
        amount=Decimal(amount),
        date=when,
    )


class TestReconcileBudgets:
    """Tests for reconcile_budgets."""

    def test_recomputes_spent_from_matching_expenses(self):
        """Stale spent is replaced by the sum of matching expenses."""
        budget = make_budget(spent=Decimal("999"))
        expenses = [
            expense("100"),
            expense("50", category="Food & Dining"),
            expense("70", category="transport"),
            expense("30", when=datetime(2024, 2, 1)),
            expense("500", user_id="user-2"),
        ]

        result = engine.reconcile_budgets([budget], expenses)

        assert result.budgets[0].spent == Decimal("150")
        assert result.budgets_processed == 1
        assert result.budgets_updated == 1
        assert result.expenses_synced == 2
        entry = result.entries[0]
        assert entry.budget_id == budget.id
        assert entry.expenses_count == 2
        assert entry.total_spent == Decimal("150")
        assert entry.progress_percentage == Decimal("15")

    def test_budget_without_expenses_is_zeroed(self):
        budget = make_budget(spent=Decimal("300"))
        result = engine.reconcile_budgets([budget], [])
        assert result.budgets[0].spent == Decimal("0")
        assert result.budgets_processed == 1
        assert result.budgets_updated == 0
        assert result.entries == []

    def test_inactive_budgets_untouched(self):
        budget = make_budget(spent=Decimal("999"), is_active=False)
        result = engine.reconcile_budgets([budget], [expense("100")])
        assert result.budgets[0] is budget
        assert result.budgets_processed == 0

    def test_is_idempotent(self):
        """Running reconciliation twice yields the same spent."""
        budgets = [make_budget(), make_budget(category="transport")]
        expenses = [expense("100"), expense("40", category="Transportation")]

        first = engine.reconcile_budgets(budgets, expenses)
        second = engine.reconcile_budgets(first.budgets, expenses)

        assert [b.spent for b in first.budgets] == [Decimal("100"), Decimal("40")]
        assert [b.spent for b in second.budgets] == [b.spent for b in first.budgets]

    def test_agrees_with_incremental_application(self):
        """Replaying every expense equals applying them one by one."""
        budget = make_budget()
        expenses = [expense("120"), expense("80.50"), expense("300")]

        incremental = budget
        for item in expenses:
            incremental = engine.apply_expense(
                incremental, item.amount, item.category, item.date,
            ).budget

        result = engine.reconcile_budgets([budget], expenses)
        assert result.budgets[0].spent == incremental.spent

    def test_removed_expense_is_reflected(self):
        budget = make_budget()
        kept, removed = expense("100"), expense("250")

        before = engine.reconcile_budgets([budget], [kept, removed])
        after = engine.reconcile_budgets(before.budgets, [kept])

        assert before.budgets[0].spent == Decimal("350")
        assert after.budgets[0].spent == Decimal("100")

    def test_expense_counts_toward_every_matching_budget(self):
        """Multi-category budgets pick up expenses of each category."""
        combined = make_budget(category="food", additional_categories=["shopping"])
        expenses = [expense("100"), expense("60", category="Shopping")]
        result = engine.reconcile_budgets([combined], expenses)
        assert result.budgets[0].spent == Decimal("160")
