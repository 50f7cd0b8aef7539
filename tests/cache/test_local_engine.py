# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the in-process engine primitives."""

import asyncio

import pytest

from cachebridge.cache import Query
from cachebridge.cache.adapters.local import LocalEngine
from cachebridge.cache.ports.outbound import CacheEngine, EngineCursor, EngineExecutionError
from cachebridge.kernel.exceptions import OperationTimeoutException


class TestLocalEngine:
    def test_protocol_compliance(self, clock):
        engine = LocalEngine("e", clock=clock)
        assert isinstance(engine, CacheEngine)
        assert isinstance(engine.cursor(Query(), 10), EngineCursor)

    async def test_default_ttl_applies_to_writes_without_ttl(self, clock):
        engine = LocalEngine("e", default_ttl=100, clock=clock)
        await engine.put("a", 1)
        await engine.put("b", 2, ttl=500)
        assert await engine.ttl("a") == 100
        assert await engine.ttl("b") == 500

    async def test_limit_evicts_least_recently_written(self, clock):
        engine = LocalEngine("e", limit=3, stats=True, clock=clock)
        for key in "abcd":
            await engine.put(key, key)
            clock.advance(1)
        assert await engine.exists("a") is False
        assert await engine.size() == 3
        assert (await engine.stats())["evictions"] == 1

    async def test_rewrite_refreshes_write_order(self, clock):
        engine = LocalEngine("e", limit=2, clock=clock)
        await engine.put("a", 1)
        clock.advance(1)
        await engine.put("b", 2)
        clock.advance(1)
        await engine.put("a", 3)
        clock.advance(1)
        await engine.put("c", 4)
        assert await engine.exists("a") is True
        assert await engine.exists("b") is False

    async def test_delete_always_succeeds(self, clock):
        engine = LocalEngine("e", clock=clock)
        assert await engine.delete("missing") is True

    async def test_incr_rejects_booleans(self, clock):
        engine = LocalEngine("e", clock=clock)
        await engine.put("flag", True)
        with pytest.raises(EngineExecutionError, match="non_numeric_value"):
            await engine.incr("flag")

    async def test_stats_disabled_raises(self, clock):
        engine = LocalEngine("e", clock=clock)
        with pytest.raises(EngineExecutionError, match="stats_disabled"):
            await engine.stats()

    async def test_stop_closes_cursors_and_clears(self, clock):
        engine = LocalEngine("e", clock=clock)
        await engine.put("a", 1)
        engine.cursor(Query(), 1)
        await engine.stop()
        assert engine.open_cursors == 0
        assert await engine.size() == 0


class TestTransactions:
    async def test_in_transaction(self, clock):
        engine = LocalEngine("e", clock=clock)
        assert engine.in_transaction() is False
        async with engine.transaction(["a"]):
            assert engine.in_transaction() is True
        assert engine.in_transaction() is False

    async def test_reentrant_for_same_task(self, clock):
        engine = LocalEngine("e", lock_timeout=100, clock=clock)
        async with engine.transaction(["a", "b"]):
            async with engine.transaction(["a"]):
                await engine.put("a", 1)
            async with engine.transaction(["b", "c"]):
                await engine.put("c", 2)
        assert await engine.get("a") == 1
        assert await engine.get("c") == 2

    async def test_disjoint_key_sets_do_not_block(self, clock):
        engine = LocalEngine("e", lock_timeout=100, clock=clock)
        async with engine.transaction(["a"]):
            await asyncio.create_task(self._hold(engine, ["b"]))

    async def test_overlapping_key_sets_time_out(self, clock):
        engine = LocalEngine("e", lock_timeout=20, clock=clock)
        async with engine.transaction(["a", "b"]):
            with pytest.raises(OperationTimeoutException) as exc_info:
                await asyncio.create_task(self._hold(engine, ["b", "c"]))
        assert exc_info.value.code == "LOCK_TIMEOUT"

    async def test_lock_released_on_error(self, clock):
        engine = LocalEngine("e", lock_timeout=50, clock=clock)
        with pytest.raises(RuntimeError):
            async with engine.transaction(["a"]):
                raise RuntimeError("fail inside")
        await asyncio.create_task(self._hold(engine, ["a"]))

    async def test_other_engines_unaffected(self, clock):
        first = LocalEngine("first", clock=clock)
        second = LocalEngine("second", clock=clock)
        async with first.transaction(["a"]):
            assert first.in_transaction() is True
            assert second.in_transaction() is False

    @staticmethod
    async def _hold(engine, keys):
        async with engine.transaction(keys):
            return True
