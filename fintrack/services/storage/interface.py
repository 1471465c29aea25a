"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Plug in whatever document store the collaborator layer uses
2. Use in-memory storage for testing
3. Keep the engines and flows decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just load by id, save with a version check, and list a user's entities.

CRITICAL: Every save is a compare-and-set on `version`. A save whose
`expected_version` no longer matches the stored entity raises ConflictError,
so two writers can never silently overwrite each other.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar
from uuid import UUID

from fintrack.models.audit import AuditEvent
from fintrack.models.budget import Budget, ExpenseRecord
from fintrack.models.debt import Debt
from fintrack.models.income import IncomeRecord
from fintrack.models.investment import Investment


EntityT = TypeVar("EntityT", Budget, Debt, IncomeRecord, Investment)


class EntityStorageInterface(ABC, Generic[EntityT]):
    """
    Abstract interface for versioned entity storage.

    Any storage implementation must implement these methods.
    """

    entity_type: str = "entity"

    @abstractmethod
    async def get(self, entity_id: UUID, user_id: str) -> EntityT:
        """
        Retrieve an entity owned by `user_id`.

        Raises:
            NotFoundError: No such entity for this user
        """
        pass

    @abstractmethod
    async def save(
        self,
        entity: EntityT,
        expected_version: Optional[int] = None,
    ) -> EntityT:
        """
        Insert or update an entity.

        Args:
            entity: The entity to store
            expected_version: Version the caller loaded. None inserts a new
                entity.

        Returns:
            The stored entity, with `version` incremented

        Raises:
            ConflictError: Stored version differs from `expected_version`
            DuplicateError: Insert of an id that already exists
            NotFoundError: Update of an entity that doesn't exist
        """
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[EntityT]:
        """
        List all entities of a user, oldest first.
        """
        pass


class BudgetStorageInterface(EntityStorageInterface[Budget]):
    entity_type = "budget"


class DebtStorageInterface(EntityStorageInterface[Debt]):
    entity_type = "debt"


class IncomeStorageInterface(EntityStorageInterface[IncomeRecord]):
    entity_type = "income"


class InvestmentStorageInterface(EntityStorageInterface[Investment]):
    entity_type = "investment"


class ExpenseSourceInterface(ABC):
    """
    Read access to the expense ledger owned by the collaborator layer.
    """

    @abstractmethod
    async def list_expenses(self, user_id: str) -> list[ExpenseRecord]:
        """
        All expenses of a user.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one apply-expense flow).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'budget', 'debt')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConflictError(StorageError):
    """
    Optimistic concurrency check failed.

    The only storage error that flows retry.
    """

    def __init__(
        self,
        entity_type: str,
        entity_id: UUID,
        expected_version: Optional[int],
        actual_version: int,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"{entity_type} {entity_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
