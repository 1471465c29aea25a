"""
Per-Entity Locking

Version tokens catch concurrent writers across processes. Within one
process the flows additionally serialize on the entity, so two coroutines
applying expenses to the same budget queue up instead of burning conflict
retries against each other.

CRITICAL: Reconciliation must hold the locks of every budget it rewrites
for the whole zero-then-reaggregate pass. `hold_many` acquires them in a
fixed (sorted) order so two multi-entity holders can never deadlock.

A registry belongs to one event loop.
"""

import asyncio
from collections.abc import AsyncIterator, Hashable, Iterable
from contextlib import AsyncExitStack, asynccontextmanager


class EntityLockRegistry:
    """
    Lazily created asyncio locks keyed by (entity_type, entity_id).

    Keys are usually entity UUIDs. Budget creation guards the whole user
    for its overlap check and keys on the user id instead.
    """

    def __init__(self):
        self._locks: dict[tuple[str, Hashable], asyncio.Lock] = {}

    def _lock_for(self, entity_type: str, entity_id: Hashable) -> asyncio.Lock:
        key = (entity_type, entity_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def is_locked(self, entity_type: str, entity_id: Hashable) -> bool:
        key = (entity_type, entity_id)
        return key in self._locks and self._locks[key].locked()

    @asynccontextmanager
    async def hold(self, entity_type: str, entity_id: Hashable) -> AsyncIterator[None]:
        """Hold the lock of one entity."""
        async with self._lock_for(entity_type, entity_id):
            yield

    @asynccontextmanager
    async def hold_many(
        self,
        entity_type: str,
        entity_ids: Iterable[Hashable],
    ) -> AsyncIterator[None]:
        """Hold the locks of several entities, acquired in sorted order."""
        async with AsyncExitStack() as stack:
            for entity_id in sorted(set(entity_ids), key=str):
                await stack.enter_async_context(self._lock_for(entity_type, entity_id))
            yield


__all__ = ["EntityLockRegistry"]
