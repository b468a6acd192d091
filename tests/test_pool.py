# ============================================================================
# DISPATCH POOL TESTS
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Tests - Bounded concurrent dispatch
# PURPOSE: Verify worker bounds, failure isolation and shutdown
# CREATED: 18 OCT 2026
# ============================================================================
"""
Dispatch Pool Tests

Run with:
    pytest tests/test_pool.py -v
"""

import asyncio

import pytest

from listener.pool import DispatchPool


class TestDispatchPool:

    def test_handles_every_item(self):
        seen = []

        async def handler(item):
            seen.append(item)

        async def scenario():
            pool = DispatchPool(handler, max_workers=3)
            await pool.start()
            for i in range(10):
                pool.offer(i)
            await pool.join()
            stats = pool.stats()
            await pool.stop()
            return stats

        stats = asyncio.run(scenario())

        assert sorted(seen) == list(range(10))
        assert stats["completed"] == 10
        assert stats["failed"] == 0

    def test_concurrency_bounded_by_workers(self):
        state = {"active": 0, "peak": 0}

        async def handler(item):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1

        async def scenario():
            pool = DispatchPool(handler, max_workers=2, queue_size=20)
            await pool.start()
            for i in range(8):
                pool.offer(i)
            await pool.join()
            await pool.stop()

        asyncio.run(scenario())

        assert state["peak"] == 2

    def test_failing_handler_keeps_worker_alive(self):
        handled = []

        async def handler(item):
            if item == "bad":
                raise RuntimeError("boom")
            handled.append(item)

        async def scenario():
            pool = DispatchPool(handler, max_workers=1)
            await pool.start()
            for item in ("bad", "good", "bad", "good"):
                pool.offer(item)
            await pool.join()
            stats = pool.stats()
            await pool.stop()
            return stats

        stats = asyncio.run(scenario())

        assert handled == ["good", "good"]
        assert stats["failed"] == 2
        assert stats["completed"] == 2

    def test_stop_cancels_without_draining(self):
        handled = []

        async def scenario():
            block = asyncio.Event()

            async def handler(item):
                await block.wait()
                handled.append(item)

            pool = DispatchPool(handler, max_workers=1, queue_size=5)
            await pool.start()
            for i in range(3):
                pool.offer(i)
            await asyncio.sleep(0)
            await asyncio.wait_for(pool.stop(), timeout=1)
            return pool

        pool = asyncio.run(scenario())

        assert handled == []
        assert pool.running is False
        assert pool.stats()["workers"] == 0

    def test_invalid_worker_count(self):
        async def handler(item):
            pass

        with pytest.raises(ValueError):
            DispatchPool(handler, max_workers=0)

    def test_offer_rejects_when_buffer_full(self):
        async def scenario():
            block = asyncio.Event()

            async def handler(item):
                await block.wait()

            pool = DispatchPool(handler, max_workers=1, queue_size=2)
            await pool.start()
            accepted = [pool.offer(i) for i in range(5)]
            stats = pool.stats()
            await pool.stop()
            return accepted, stats

        accepted, stats = asyncio.run(scenario())

        assert accepted == [True, True, False, False, False]
        assert stats["rejected"] == 3
        assert stats["buffered"] == 2

    def test_offer_before_start_raises(self):
        async def handler(item):
            pass

        with pytest.raises(RuntimeError, match="not started"):
            DispatchPool(handler).offer(1)
