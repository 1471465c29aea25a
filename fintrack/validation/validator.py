"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation of new entities happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Field relationships pydantic cannot express on a single field
- Unknown categories, inconsistent flags
- Runs without storage

STAGE 2 - SEMANTIC VALIDATION:
- Consistency with what is already stored
- Active budget overlap (same user, same canonical category,
  intersecting periods)
- Payoff projections that never converge
- This catches data that is well-formed but contradicts the ledger

Stage 2 is skipped when stage 1 fails.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the flows decide whether to reject.
"""

from typing import Optional

from fintrack.engines.debt import calculate_payoff_date
from fintrack.engines.errors import NonConvergentError
from fintrack.models.budget import Budget
from fintrack.models.debt import Debt, DebtStatus
from fintrack.models.validation import ValidationIssue, ValidationResult
from fintrack.services.storage import BudgetStorageInterface
from fintrack.validation.categories import (
    BUDGET_CATEGORIES,
    canonicalize_category,
    categories_match,
)


def _periods_overlap(a: Budget, b: Budget) -> bool:
    """Inclusive periods intersect."""
    return a.start_date <= b.end_date and b.start_date <= a.end_date


def _shares_category(a: Budget, b: Budget) -> bool:
    return any(
        categories_match(mine, theirs)
        for mine in a.categories
        for theirs in b.categories
    )


def _result(
    entity_id,
    entity_type: str,
    schema_valid: bool,
    semantic_valid: bool,
    issues: list[ValidationIssue],
) -> ValidationResult:
    return ValidationResult(
        entity_id=entity_id,
        entity_type=entity_type,
        schema_valid=schema_valid,
        semantic_valid=semantic_valid,
        is_valid=schema_valid and semantic_valid,
        issues=issues,
        warnings=[i.message for i in issues if i.severity == "warning"],
    )


class EntityValidator:
    """
    Validates new budgets and debts through a two-stage pipeline.

    Stage 1: Schema validation (can run without storage)
    Stage 2: Semantic validation (needs storage for the overlap check)
    """

    def __init__(
        self,
        budget_storage: Optional[BudgetStorageInterface] = None,
    ):
        """
        Initialize validator.

        Args:
            budget_storage: Storage interface for the overlap check.
                           If None, the overlap check is skipped.
        """
        self._budgets = budget_storage

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def _validate_budget_schema(
        self,
        budget: Budget,
    ) -> tuple[bool, list[ValidationIssue]]:
        issues = []

        if canonicalize_category(budget.category) not in BUDGET_CATEGORIES:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{budget.category}' is not a standard budget category",
                severity="warning",
                suggested_fix="Expenses only match budgets with the same category",
            ))

        primary = canonicalize_category(budget.category)
        if any(canonicalize_category(c) == primary for c in budget.additional_categories):
            issues.append(ValidationIssue(
                field="additional_categories",
                issue_type="duplicate",
                message="Additional categories repeat the primary category",
                severity="warning",
            ))

        if budget.rollover_amount > 0 and not budget.rollover_enabled:
            issues.append(ValidationIssue(
                field="rollover_amount",
                issue_type="inconsistent",
                message="Rollover amount is set but rollover is disabled",
                severity="error",
                suggested_fix="Enable rollover or clear the rollover amount",
            ))

        if budget.rollover_enabled and not budget.is_recurring:
            issues.append(ValidationIssue(
                field="rollover_enabled",
                issue_type="inconsistent",
                message="Rollover only applies to recurring budgets",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    async def _check_budget_overlap(
        self,
        budget: Budget,
    ) -> list[ValidationIssue]:
        """
        A user may hold only one active budget per category and period.
        """
        if self._budgets is None or not budget.is_active:
            return []

        issues = []
        for existing in await self._budgets.list_for_user(budget.user_id):
            if existing.id == budget.id or not existing.is_active:
                continue
            if _shares_category(budget, existing) and _periods_overlap(budget, existing):
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="overlap",
                    message=(
                        f"Active budget '{existing.name}' already covers "
                        f"'{existing.category}' from "
                        f"{existing.start_date.date()} to {existing.end_date.date()}"
                    ),
                    severity="error",
                    suggested_fix="Deactivate the existing budget or pick another period",
                ))
        return issues

    async def validate_budget(self, budget: Budget) -> ValidationResult:
        """
        Run the full two-stage pipeline on a new or edited budget.
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_budget_schema(budget)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            overlap_issues = await self._check_budget_overlap(budget)
            all_issues.extend(overlap_issues)
            semantic_valid = not overlap_issues

        return _result(budget.id, "budget", schema_valid, semantic_valid, all_issues)

    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------

    def _validate_debt_schema(
        self,
        debt: Debt,
    ) -> tuple[bool, list[ValidationIssue]]:
        issues = []

        if debt.status == DebtStatus.PAID_OFF and debt.current_balance > 0:
            issues.append(ValidationIssue(
                field="status",
                issue_type="inconsistent",
                message="A paid-off debt cannot have an outstanding balance",
                severity="error",
            ))

        if debt.status == DebtStatus.ACTIVE and debt.current_balance == 0:
            issues.append(ValidationIssue(
                field="current_balance",
                issue_type="inconsistent",
                message="Active debt has no outstanding balance",
                severity="warning",
                suggested_fix="Mark the debt as paid off",
            ))

        if debt.minimum_payment == 0 and debt.current_balance > 0:
            issues.append(ValidationIssue(
                field="minimum_payment",
                issue_type="missing",
                message="No minimum payment set, payoff date cannot be projected",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_debt_semantic(self, debt: Debt) -> list[ValidationIssue]:
        if debt.status != DebtStatus.ACTIVE or debt.minimum_payment == 0:
            return []
        try:
            calculate_payoff_date(debt)
        except NonConvergentError as e:
            return [ValidationIssue(
                field="minimum_payment",
                issue_type="non_convergent",
                message=e.message,
                severity="warning",
                suggested_fix="Increase the minimum payment above the monthly interest",
            )]
        return []

    async def validate_debt(self, debt: Debt) -> ValidationResult:
        """
        Run the full two-stage pipeline on a new debt.

        A non-converging projection is a warning: the debt is stored, just
        without an expected payoff date.
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_debt_schema(debt)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            all_issues.extend(self._validate_debt_semantic(debt))
            semantic_valid = True

        return _result(debt.id, "debt", schema_valid, semantic_valid, all_issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
