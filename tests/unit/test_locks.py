"""Unit tests for per-user locking."""

from __future__ import annotations

import asyncio

import pytest

from ecobingo.bingo.locks import UserLocks


class TestUserLocks:
    @pytest.mark.asyncio
    async def test_same_user_is_serialized(self):
        locks = UserLocks()
        trace: list[str] = []

        async def work(tag: str) -> None:
            async with locks.hold("u1"):
                trace.append(f"{tag}-in")
                await asyncio.sleep(0.01)
                trace.append(f"{tag}-out")

        await asyncio.gather(work("a"), work("b"))
        assert trace in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])

    @pytest.mark.asyncio
    async def test_different_users_overlap(self):
        locks = UserLocks()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def first() -> None:
            async with locks.hold("u1"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(first())
        await inside.wait()
        async with locks.hold("u2"):
            assert locks.is_locked("u1")
        release.set()
        await task

    @pytest.mark.asyncio
    async def test_lock_dropped_when_idle(self):
        locks = UserLocks()
        async with locks.hold("u1"):
            assert len(locks) == 1
        assert len(locks) == 0
        assert not locks.is_locked("u1")

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks = UserLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("u1"):
                raise RuntimeError("boom")
        assert len(locks) == 0
