"""
Tests for the budget tracker engine.

Covers expense application, threshold alerts, derived progress, summaries
and recurring-budget renewal.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from fintrack.config import EngineSettings
from fintrack.engines import budget as engine
from fintrack.engines.errors import (
    CategoryMismatchError,
    InvalidAmountError,
    InvalidInputError,
    PeriodMismatchError,
)
from fintrack.models.budget import AlertType, Budget, BudgetStatus, ProgressColor


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


def alert_types(application) -> list[AlertType]:
    return [alert.type for alert in application.alerts]


IN_PERIOD = datetime(2024, 1, 15, 12, 0)


class TestApplyExpense:
    """Tests for apply_expense."""

    def test_increments_spent(self):
        budget = make_budget(spent=Decimal("100"))
        application = engine.apply_expense(budget, Decimal("250"), "food", IN_PERIOD)
        assert application.budget.spent == Decimal("350")

    def test_input_budget_is_not_mutated(self):
        """The engine returns a copy and leaves the snapshot alone."""
        budget = make_budget()
        engine.apply_expense(budget, Decimal("250"), "food", IN_PERIOD)
        assert budget.spent == Decimal("0")

    def test_float_amounts_are_coerced(self):
        budget = make_budget()
        application = engine.apply_expense(budget, 0.1, "food", IN_PERIOD)
        assert application.budget.spent == Decimal("0.1")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(InvalidAmountError, match="Valid expense amount is required"):
            engine.apply_expense(make_budget(), amount, "food", IN_PERIOD)

    def test_category_mismatch_rejected(self):
        with pytest.raises(CategoryMismatchError) as exc_info:
            engine.apply_expense(make_budget(), Decimal("10"), "transport", IN_PERIOD)
        assert exc_info.value.expense_category == "transport"
        assert isinstance(exc_info.value, InvalidInputError)

    def test_category_matches_canonically(self):
        """Display labels and casing variants match the same budget."""
        budget = make_budget()
        for category in ("Food & Dining", "FOOD", "  food "):
            application = engine.apply_expense(budget, Decimal("10"), category, IN_PERIOD)
            assert application.budget.spent == Decimal("10")

    def test_additional_categories_match(self):
        budget = make_budget(additional_categories=["Shopping"])
        application = engine.apply_expense(budget, Decimal("10"), "shopping", IN_PERIOD)
        assert application.budget.spent == Decimal("10")

    def test_date_outside_period_rejected(self):
        with pytest.raises(PeriodMismatchError, match="Expense date is outside budget period"):
            engine.apply_expense(make_budget(), Decimal("10"), "food", datetime(2024, 2, 1))

    def test_period_bounds_are_inclusive(self):
        budget = make_budget()
        first = engine.apply_expense(budget, Decimal("10"), "food", budget.start_date)
        last = engine.apply_expense(budget, Decimal("10"), "food", budget.end_date)
        assert first.budget.spent == last.budget.spent == Decimal("10")


class TestBudgetAlerts:
    """Threshold alerts fire once per crossing."""

    def test_crossing_fifty(self):
        application = engine.apply_expense(make_budget(), Decimal("500"), "food", IN_PERIOD)
        assert alert_types(application) == [AlertType.THRESHOLD_50]
        assert application.alerts[0].message == "50% of budget used"

    def test_one_expense_can_cross_several_levels(self):
        budget = make_budget(spent=Decimal("400"))
        application = engine.apply_expense(budget, Decimal("400"), "food", IN_PERIOD)
        assert alert_types(application) == [AlertType.THRESHOLD_50, AlertType.THRESHOLD_75]

    def test_no_alert_below_next_level(self):
        budget = make_budget(spent=Decimal("500"))
        application = engine.apply_expense(budget, Decimal("100"), "food", IN_PERIOD)
        assert application.alerts == []

    def test_hitting_the_cap_exactly(self):
        """Reaching 100% fires the threshold but the budget is not exceeded."""
        budget = make_budget(spent=Decimal("900"))
        application = engine.apply_expense(budget, Decimal("100"), "food", IN_PERIOD)
        assert alert_types(application) == [AlertType.THRESHOLD_100]
        assert application.alerts[0].message == "Budget fully used"
        assert application.progress.is_over_budget is False

    def test_crossing_the_cap(self):
        budget = make_budget(spent=Decimal("900"))
        application = engine.apply_expense(budget, Decimal("200"), "food", IN_PERIOD)
        assert alert_types(application) == [AlertType.THRESHOLD_100, AlertType.EXCEEDED]
        exceeded = application.alerts[1]
        assert exceeded.message == "Budget exceeded!"
        assert exceeded.percentage == Decimal("110")

    def test_exceeded_from_exactly_full(self):
        """Moving from exactly 100% to above it only raises EXCEEDED."""
        budget = make_budget(spent=Decimal("1000"))
        application = engine.apply_expense(budget, Decimal("50"), "food", IN_PERIOD)
        assert alert_types(application) == [AlertType.EXCEEDED]

    def test_no_repeat_once_over(self):
        budget = make_budget(spent=Decimal("1100"))
        application = engine.apply_expense(budget, Decimal("10"), "food", IN_PERIOD)
        assert application.alerts == []

    def test_disabled_alerts_are_skipped(self):
        budget = make_budget(alert_50=False, alert_exceeded=False)
        application = engine.apply_expense(budget, Decimal("1200"), "food", IN_PERIOD)
        assert alert_types(application) == [AlertType.THRESHOLD_75, AlertType.THRESHOLD_100]


class TestBudgetProgress:
    """Tests for derived progress fields."""

    def test_under_budget(self):
        progress = engine.budget_progress(make_budget(spent=Decimal("200")))
        assert progress.progress_percentage == Decimal("20")
        assert progress.remaining == Decimal("800")
        assert progress.status == BudgetStatus.UNDER_BUDGET
        assert progress.progress_color == ProgressColor.GREEN

    def test_orange_from_fifty(self):
        progress = engine.budget_progress(make_budget(spent=Decimal("600")))
        assert progress.status == BudgetStatus.UNDER_BUDGET
        assert progress.progress_color == ProgressColor.ORANGE

    def test_on_track(self):
        progress = engine.budget_progress(make_budget(spent=Decimal("800")))
        assert progress.status == BudgetStatus.ON_TRACK
        assert progress.progress_color == ProgressColor.RED

    def test_near_limit(self):
        progress = engine.budget_progress(make_budget(spent=Decimal("950")))
        assert progress.status == BudgetStatus.NEAR_LIMIT

    def test_over_budget_percentage_uncapped(self):
        progress = engine.budget_progress(make_budget(spent=Decimal("1200")))
        assert progress.progress_percentage == Decimal("120")
        assert progress.remaining == Decimal("0")
        assert progress.is_over_budget is True
        assert progress.status == BudgetStatus.OVER_BUDGET

    def test_rollover_adds_to_remaining(self):
        budget = make_budget(
            spent=Decimal("500"),
            rollover_amount=Decimal("100"),
            rollover_enabled=True,
            is_recurring=True,
        )
        assert engine.budget_progress(budget).remaining == Decimal("600")

    def test_tiers_follow_settings(self):
        settings = EngineSettings(near_limit_percentage=60, on_track_percentage=40)
        progress = engine.budget_progress(make_budget(spent=Decimal("650")), settings)
        assert progress.status == BudgetStatus.NEAR_LIMIT


class TestSummarizeBudgets:
    """Tests for summarize_budgets."""

    def test_empty_list_is_all_zero(self):
        summary = engine.summarize_budgets([])
        assert summary.total_budget == Decimal("0")
        assert summary.categories_count == 0
        assert summary.average_progress == Decimal("0")

    def test_aggregates(self):
        budgets = [
            make_budget(category="Food & Dining", spent=Decimal("500")),
            make_budget(
                category="food",
                amount=Decimal("500"),
                spent=Decimal("600"),
                start_date=datetime(2024, 2, 1),
                end_date=datetime(2024, 2, 29),
            ),
        ]
        summary = engine.summarize_budgets(budgets)
        assert summary.total_budget == Decimal("1500")
        assert summary.total_spent == Decimal("1100")
        assert summary.total_remaining == Decimal("500")
        assert summary.categories_count == 1
        assert summary.over_budget_count == 1
        assert summary.average_progress == Decimal("85.00")


class TestFindBudgetForExpense:
    """Tests for find_budget_for_expense."""

    def test_skips_inactive_and_mismatched(self):
        inactive = make_budget(is_active=False)
        transport = make_budget(category="transport")
        food = make_budget()
        found = engine.find_budget_for_expense(
            [inactive, transport, food], "Food & Dining", IN_PERIOD,
        )
        assert found.id == food.id

    def test_none_when_no_period_matches(self):
        found = engine.find_budget_for_expense([make_budget()], "food", datetime(2023, 12, 31))
        assert found is None


class TestRecurringBudgets:
    """Tests for renewal of recurring budgets."""

    def test_next_period_is_following_month(self):
        budget = make_budget(is_recurring=True, spent=Decimal("700"))
        successor = engine.create_next_recurring_budget(budget)

        assert successor.id != budget.id
        assert successor.start_date == datetime(2024, 2, 1)
        assert successor.end_date.date() == datetime(2024, 2, 29).date()
        assert successor.end_date.hour == 23 and successor.end_date.minute == 59
        assert successor.spent == Decimal("0")
        assert successor.version == 0
        assert successor.is_active is True

    def test_year_boundary(self):
        budget = make_budget(
            is_recurring=True,
            start_date=datetime(2024, 12, 1),
            end_date=datetime(2024, 12, 31, 23, 59, 59),
        )
        successor = engine.create_next_recurring_budget(budget)
        assert successor.start_date == datetime(2025, 1, 1)
        assert successor.end_date.date() == datetime(2025, 1, 31).date()

    def test_rollover_carries_remaining(self):
        budget = make_budget(
            is_recurring=True,
            rollover_enabled=True,
            spent=Decimal("700"),
        )
        successor = engine.create_next_recurring_budget(budget)
        assert successor.rollover_amount == Decimal("300")

    def test_no_rollover_when_disabled(self):
        budget = make_budget(is_recurring=True, spent=Decimal("700"))
        successor = engine.create_next_recurring_budget(budget)
        assert successor.rollover_amount == Decimal("0")

    def test_settings_carry_over(self):
        budget = make_budget(is_recurring=True, alert_50=False, additional_categories=["travel"])
        successor = engine.create_next_recurring_budget(budget)
        assert successor.alert_50 is False
        assert successor.additional_categories == ["travel"]
        assert successor.amount == budget.amount

    def test_budgets_needing_renewal(self):
        ended = make_budget(is_recurring=True)
        one_off = make_budget()
        current = make_budget(
            is_recurring=True,
            start_date=datetime(2024, 2, 1),
            end_date=datetime(2024, 2, 29),
        )
        due = engine.budgets_needing_renewal([ended, one_off, current], as_of=datetime(2024, 2, 10))
        assert [b.id for b in due] == [ended.id]
