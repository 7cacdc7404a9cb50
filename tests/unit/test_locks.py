import asyncio

import pytest

from skillgov.core.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    order = []

    async def worker(name: str):
        async with locks.hold("s1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_block():
    locks = KeyedLock()
    entered = asyncio.Event()

    async with locks.hold("s1"):
        assert locks.locked("s1")

        async def other():
            async with locks.hold("s2"):
                entered.set()

        await asyncio.wait_for(other(), timeout=1)

    assert entered.is_set()
    assert not locks.locked("s1")


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.hold("s1"):
            raise RuntimeError("boom")

    assert len(locks) == 0
