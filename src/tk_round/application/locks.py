"""Per-round mutation locks shared by betting, settlement and claims.

Process-local serialization; the `SELECT ... FOR UPDATE` on the round row
serializes writers across processes.

Locks are held weakly: a lock lives while a coroutine holds or awaits it and
is dropped once the round goes idle, so the registry does not grow with the
number of rounds ever touched.
"""
import asyncio
import weakref


class RoundLockRegistry:
    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, round_id: int) -> asyncio.Lock:
        lock = self._locks.get(round_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[round_id] = lock
        return lock


_registry: RoundLockRegistry | None = None


def get_round_locks() -> RoundLockRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = RoundLockRegistry()
    return _registry
