"""
Audit Logger

DESIGN DECISION: Every mutation of a ledger entity is logged, and so is
every rejected one.
This provides:
1. Complete traceability of how `spent`, balances and cost basis evolved
2. Debugging capability
3. A record of budget alerts, which are never persisted anywhere else

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fintrack.config import get_settings
from fintrack.engines.errors import EngineError
from fintrack.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from fintrack.models.budget import BudgetAlert
from fintrack.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Route structlog output through the stdlib root logger.

    The level defaults to LOG_LEVEL from the app settings.
    """
    level = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("fintrack.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_entity_created(
        self,
        entity_type: str,
        entity_id: UUID,
        user_id: str,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> None:
        """Log creation of a budget, debt, income record or investment."""
        event = AuditEventBuilder.entity_created(
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            details=details,
        )
        await self.log(event)

    async def log_expense_applied(
        self,
        budget_id: UUID,
        user_id: str,
        amount: str,
        spent: str,
        progress_percentage: str,
        alerts: list[BudgetAlert],
        correlation_id: UUID,
    ) -> None:
        """Log an applied expense and every alert it raised."""
        await self.log(AuditEventBuilder.expense_applied(
            budget_id=budget_id,
            user_id=user_id,
            amount=amount,
            spent=spent,
            progress_percentage=progress_percentage,
            correlation_id=correlation_id,
        ))
        for alert in alerts:
            await self.log(AuditEventBuilder.budget_alert_raised(
                budget_id=budget_id,
                user_id=user_id,
                alert_type=alert.type.value,
                message=alert.message,
                correlation_id=correlation_id,
            ))

    async def log_budgets_reconciled(
        self,
        user_id: str,
        budgets_processed: int,
        budgets_updated: int,
        expenses_synced: int,
        correlation_id: UUID,
    ) -> None:
        """Log a reconciliation sweep."""
        event = AuditEventBuilder.budgets_reconciled(
            user_id=user_id,
            budgets_processed=budgets_processed,
            budgets_updated=budgets_updated,
            expenses_synced=expenses_synced,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_renewed(
        self,
        previous_id: UUID,
        new_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log creation of the next period of a recurring budget."""
        event = AuditEventBuilder.budget_renewed(
            previous_id=previous_id,
            new_id=new_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payment_added(
        self,
        debt_id: UUID,
        user_id: str,
        amount: str,
        balance: str,
        paid_off: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a debt payment, and the payoff if it closed the debt."""
        await self.log(AuditEventBuilder.payment_added(
            debt_id=debt_id,
            user_id=user_id,
            amount=amount,
            balance=balance,
            correlation_id=correlation_id,
        ))
        if paid_off:
            await self.log(AuditEventBuilder.debt_paid_off(
                debt_id=debt_id,
                user_id=user_id,
                correlation_id=correlation_id,
            ))

    async def log_debt_terms_updated(
        self,
        debt_id: UUID,
        user_id: str,
        changes: dict,
        correlation_id: UUID,
    ) -> None:
        """Log a change of repayment terms."""
        event = AuditEventBuilder.debt_terms_updated(
            debt_id=debt_id,
            user_id=user_id,
            changes=changes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payoff_non_convergent(
        self,
        debt_id: UUID,
        user_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a payoff projection that never reaches zero."""
        event = AuditEventBuilder.payoff_non_convergent(
            debt_id=debt_id,
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_income_recorded(
        self,
        income_id: UUID,
        user_id: str,
        frequency: str,
        is_recurring: bool,
        correlation_id: UUID,
        updated: bool = False,
    ) -> None:
        """Log a new or updated income record."""
        event = AuditEventBuilder.income_recorded(
            income_id=income_id,
            user_id=user_id,
            frequency=frequency,
            is_recurring=is_recurring,
            correlation_id=correlation_id,
            updated=updated,
        )
        await self.log(event)

    async def log_investment_transaction(
        self,
        investment_id: UUID,
        user_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
        sip: bool = False,
    ) -> None:
        """Log a general or SIP transaction."""
        event = AuditEventBuilder.investment_transaction_added(
            investment_id=investment_id,
            user_id=user_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
            sip=sip,
        )
        await self.log(event)

    async def log_investment_revalued(
        self,
        investment_id: UUID,
        user_id: str,
        current_value: str,
        correlation_id: UUID,
    ) -> None:
        """Log a valuation update."""
        event = AuditEventBuilder.investment_revalued(
            investment_id=investment_id,
            user_id=user_id,
            current_value=current_value,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_operation_rejected(
        self,
        entity_type: str,
        entity_id: Optional[UUID],
        user_id: Optional[str],
        operation: str,
        error: EngineError,
        correlation_id: UUID,
    ) -> None:
        """Log an engine rejection."""
        event = AuditEventBuilder.operation_rejected(
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            operation=operation,
            error_code=error.error_code,
            error_message=error.message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_version_conflict(
        self,
        entity_type: str,
        entity_id: UUID,
        attempt: int,
        correlation_id: UUID,
    ) -> None:
        """Log a lost optimistic-concurrency race."""
        event = AuditEventBuilder.version_conflict(
            entity_type=entity_type,
            entity_id=entity_id,
            attempt=attempt,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new flow (e.g., applying an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
