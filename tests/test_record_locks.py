"""
tests/test_record_locks.py
Tests for the per-record lock registry.
"""

import asyncio

import pytest

from app.services.record_locks import RecordLocks


@pytest.mark.asyncio
class TestRecordLocks:
    async def test_same_key_is_serialized(self):
        locks = RecordLocks()
        trace: list[str] = []

        async def _worker(name: str) -> None:
            async with locks.hold("bet"):
                trace.append(f"{name}-in")
                await asyncio.sleep(0.01)
                trace.append(f"{name}-out")

        await asyncio.gather(_worker("a"), _worker("b"))

        assert trace == ["a-in", "a-out", "b-in", "b-out"]

    async def test_different_keys_run_in_parallel(self):
        locks = RecordLocks()
        inside = asyncio.Event()
        released = asyncio.Event()

        async def _first() -> None:
            async with locks.hold("one"):
                inside.set()
                await released.wait()

        async def _second() -> None:
            await inside.wait()
            async with locks.hold("two"):
                released.set()

        await asyncio.wait_for(asyncio.gather(_first(), _second()), timeout=1)

    async def test_locks_released_after_use(self):
        locks = RecordLocks()

        async with locks.hold("bet"):
            assert len(locks) == 1

        assert len(locks) == 0

    async def test_released_on_error(self):
        locks = RecordLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("bet"):
                raise RuntimeError("boom")

        assert len(locks) == 0
