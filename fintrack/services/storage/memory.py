"""
In-Memory Storage Implementation

DESIGN DECISION: Entities are stored as their JSON documents, not as live
model instances. A caller can never mutate the stored copy through a
reference it got back, and every load goes through the same validation a
real document store would.

TRADEOFFS:
- Process-local, nothing survives a restart
- Good enough for tests and for embedding the engines in a single process

The implementation follows the abstract interface, so the flows run
unchanged against a real backend.
"""

from typing import Generic, Optional
from uuid import UUID

from fintrack.models.audit import AuditEvent
from fintrack.models.budget import Budget, ExpenseRecord
from fintrack.models.debt import Debt
from fintrack.models.income import IncomeRecord
from fintrack.models.investment import Investment
from fintrack.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConflictError,
    DebtStorageInterface,
    DuplicateError,
    EntityStorageInterface,
    EntityT,
    ExpenseSourceInterface,
    IncomeStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
)


class InMemoryEntityStorage(EntityStorageInterface[EntityT], Generic[EntityT]):
    """
    Versioned document storage backed by a dict.

    Subclasses only pin the model class and entity type.
    """

    model_class: type = None

    def __init__(self):
        self._documents: dict[UUID, str] = {}

    def _load(self, entity_id: UUID) -> Optional[EntityT]:
        document = self._documents.get(entity_id)
        if document is None:
            return None
        return self.model_class.model_validate_json(document)

    async def get(self, entity_id: UUID, user_id: str) -> EntityT:
        entity = self._load(entity_id)
        if entity is None or entity.user_id != user_id:
            raise NotFoundError(f"{self.entity_type} {entity_id} not found")
        return entity

    async def save(
        self,
        entity: EntityT,
        expected_version: Optional[int] = None,
    ) -> EntityT:
        current = self._load(entity.id)

        if expected_version is None:
            if current is not None:
                raise DuplicateError(f"{self.entity_type} {entity.id} already exists")
            next_version = 0
        else:
            if current is None:
                raise NotFoundError(f"{self.entity_type} {entity.id} not found")
            if current.version != expected_version:
                raise ConflictError(
                    self.entity_type,
                    entity.id,
                    expected_version,
                    current.version,
                )
            next_version = current.version + 1

        stored = entity.model_copy(update={"version": next_version})
        self._documents[entity.id] = stored.model_dump_json()
        return self.model_class.model_validate_json(self._documents[entity.id])

    async def list_for_user(self, user_id: str) -> list[EntityT]:
        entities = [
            self.model_class.model_validate_json(document)
            for document in self._documents.values()
        ]
        owned = [e for e in entities if e.user_id == user_id]
        owned.sort(key=lambda e: e.created_at)
        return owned


class InMemoryBudgetStorage(InMemoryEntityStorage[Budget], BudgetStorageInterface):
    model_class = Budget


class InMemoryDebtStorage(InMemoryEntityStorage[Debt], DebtStorageInterface):
    model_class = Debt


class InMemoryIncomeStorage(InMemoryEntityStorage[IncomeRecord], IncomeStorageInterface):
    model_class = IncomeRecord


class InMemoryInvestmentStorage(
    InMemoryEntityStorage[Investment],
    InvestmentStorageInterface,
):
    model_class = Investment


class InMemoryExpenseSource(ExpenseSourceInterface):
    """
    Expense ledger for tests and single-process use.

    Adding and removing expenses does not touch any budget; call the
    reconciliation flow to bring budgets back in line.
    """

    def __init__(self, expenses: Optional[list[ExpenseRecord]] = None):
        self._expenses: dict[UUID, ExpenseRecord] = {}
        for expense in expenses or []:
            self.add_expense(expense)

    def add_expense(self, expense: ExpenseRecord) -> None:
        if expense.id in self._expenses:
            raise DuplicateError(f"expense {expense.id} already exists")
        self._expenses[expense.id] = expense

    def remove_expense(self, expense_id: UUID) -> None:
        if self._expenses.pop(expense_id, None) is None:
            raise NotFoundError(f"expense {expense_id} not found")

    async def list_expenses(self, user_id: str) -> list[ExpenseRecord]:
        return [e for e in self._expenses.values() if e.user_id == user_id]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
