"""Unit tests for RoundLockRegistry."""

import asyncio
import gc
import weakref

from src.tk_round.application.locks import RoundLockRegistry


async def test_same_round_shares_lock_while_held() -> None:
    registry = RoundLockRegistry()
    async with registry.get(1):
        assert registry.get(1).locked()
        assert not registry.get(2).locked()


async def test_idle_lock_is_released() -> None:
    registry = RoundLockRegistry()
    async with registry.get(7):
        pass
    ref = weakref.ref(registry.get(7))

    gc.collect()

    assert ref() is None


async def test_waiters_keep_lock_alive() -> None:
    registry = RoundLockRegistry()
    order: list[str] = []

    async def critical(name: str) -> None:
        async with registry.get(3):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            gc.collect()
            order.append(f"{name}-out")

    await asyncio.gather(critical("a"), critical("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]
