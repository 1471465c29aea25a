"""
Audit Models for fintrack

Every mutation of a ledger entity, and every rejected mutation, is recorded
as an audit event. Budget alerts are audited as well, since they are not
persisted anywhere else.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from fintrack.utils.time_utils import utcnow


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every engine operation has its own event type.
    """
    # Budgets
    BUDGET_CREATED = "budget_created"
    EXPENSE_APPLIED = "expense_applied"
    BUDGET_ALERT_RAISED = "budget_alert_raised"
    BUDGETS_RECONCILED = "budgets_reconciled"
    BUDGET_RENEWED = "budget_renewed"

    # Debts
    DEBT_CREATED = "debt_created"
    PAYMENT_ADDED = "payment_added"
    DEBT_PAID_OFF = "debt_paid_off"
    DEBT_TERMS_UPDATED = "debt_terms_updated"
    PAYOFF_NON_CONVERGENT = "payoff_non_convergent"

    # Income
    INCOME_RECORDED = "income_recorded"
    INCOME_UPDATED = "income_updated"

    # Investments
    INVESTMENT_CREATED = "investment_created"
    INVESTMENT_TRANSACTION_ADDED = "investment_transaction_added"
    SIP_TRANSACTION_ADDED = "sip_transaction_added"
    INVESTMENT_REVALUED = "investment_revalued"

    # Failures
    OPERATION_REJECTED = "operation_rejected"
    VERSION_CONFLICT = "version_conflict"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'budget', 'debt', 'investment')"
    )
    entity_id: Optional[UUID] = None
    user_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one flow"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_applied(budget, amount, correlation_id)
        event = AuditEventBuilder.operation_rejected("debt", debt_id, error, correlation_id)
    """

    @staticmethod
    def entity_created(
        entity_type: str,
        entity_id: UUID,
        user_id: str,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        event_types = {
            "budget": AuditEventType.BUDGET_CREATED,
            "debt": AuditEventType.DEBT_CREATED,
            "income": AuditEventType.INCOME_RECORDED,
            "investment": AuditEventType.INVESTMENT_CREATED,
        }
        return AuditEvent(
            event_type=event_types[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} created",
            details=details or {},
        )

    @staticmethod
    def expense_applied(
        budget_id: UUID,
        user_id: str,
        amount: str,
        spent: str,
        progress_percentage: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_APPLIED,
            entity_type="budget",
            entity_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense of {amount} applied to budget",
            details={
                "amount": amount,
                "spent": spent,
                "progress_percentage": progress_percentage,
            },
        )

    @staticmethod
    def budget_alert_raised(
        budget_id: UUID,
        user_id: str,
        alert_type: str,
        message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_ALERT_RAISED,
            severity=AuditSeverity.WARNING,
            entity_type="budget",
            entity_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Budget alert: {message}",
            details={"alert_type": alert_type},
        )

    @staticmethod
    def budgets_reconciled(
        user_id: str,
        budgets_processed: int,
        budgets_updated: int,
        expenses_synced: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGETS_RECONCILED,
            entity_type="budget",
            user_id=user_id,
            correlation_id=correlation_id,
            description=(
                f"Reconciled {budgets_processed} budgets from "
                f"{expenses_synced} expenses"
            ),
            details={
                "budgets_processed": budgets_processed,
                "budgets_updated": budgets_updated,
                "expenses_synced": expenses_synced,
            },
        )

    @staticmethod
    def budget_renewed(
        previous_id: UUID,
        new_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_RENEWED,
            entity_type="budget",
            entity_id=new_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Recurring budget renewed for the next period",
            details={"previous_budget_id": str(previous_id)},
        )

    @staticmethod
    def payment_added(
        debt_id: UUID,
        user_id: str,
        amount: str,
        balance: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_ADDED,
            entity_type="debt",
            entity_id=debt_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount} added, balance now {balance}",
            details={"amount": amount, "current_balance": balance},
        )

    @staticmethod
    def debt_paid_off(
        debt_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_PAID_OFF,
            entity_type="debt",
            entity_id=debt_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Debt paid off",
        )

    @staticmethod
    def debt_terms_updated(
        debt_id: UUID,
        user_id: str,
        changes: dict,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_TERMS_UPDATED,
            entity_type="debt",
            entity_id=debt_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Debt terms updated",
            details=changes,
        )

    @staticmethod
    def payoff_non_convergent(
        debt_id: UUID,
        user_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYOFF_NON_CONVERGENT,
            severity=AuditSeverity.WARNING,
            entity_type="debt",
            entity_id=debt_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Payoff projection does not converge",
            error_code="non_convergent",
            error_message=reason,
        )

    @staticmethod
    def income_recorded(
        income_id: UUID,
        user_id: str,
        frequency: str,
        is_recurring: bool,
        correlation_id: UUID,
        updated: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.INCOME_UPDATED if updated
                else AuditEventType.INCOME_RECORDED
            ),
            entity_type="income",
            entity_id=income_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Income {'updated' if updated else 'recorded'} ({frequency})",
            details={"frequency": frequency, "is_recurring": is_recurring},
        )

    @staticmethod
    def investment_transaction_added(
        investment_id: UUID,
        user_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
        sip: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.SIP_TRANSACTION_ADDED if sip
                else AuditEventType.INVESTMENT_TRANSACTION_ADDED
            ),
            entity_type="investment",
            entity_id=investment_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{transaction_type} transaction of {amount} recorded",
            details={"transaction_type": transaction_type, "amount": amount},
        )

    @staticmethod
    def investment_revalued(
        investment_id: UUID,
        user_id: str,
        current_value: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_REVALUED,
            entity_type="investment",
            entity_id=investment_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Current value updated to {current_value}",
            details={"current_value": current_value},
        )

    @staticmethod
    def operation_rejected(
        entity_type: str,
        entity_id: Optional[UUID],
        user_id: Optional[str],
        operation: str,
        error_code: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_code}",
            details={"operation": operation},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def version_conflict(
        entity_type: str,
        entity_id: UUID,
        attempt: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VERSION_CONFLICT,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Concurrent update detected (attempt {attempt})",
            details={"attempt": attempt},
            error_code="version_conflict",
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
