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
"""Tests for the Cache facade: lifecycle, configuration and composite operations."""

import asyncio

import pytest

from cachebridge.cache import INFINITY, Cache
from cachebridge.core.config import Config
from cachebridge.kernel import Lifecycle
from cachebridge.kernel.exceptions import CacheNotStartedException, ValidationException


class TestLifecycle:
    async def test_is_lifecycle(self):
        assert isinstance(Cache(), Lifecycle)

    async def test_not_started(self):
        cache = Cache(name="idle")
        with pytest.raises(CacheNotStartedException) as exc_info:
            await cache.get("a")
        assert exc_info.value.context == {"cache": "idle"}

    async def test_start_and_stop(self):
        cache = Cache(name="cycle")
        await cache.start()
        await cache.start()
        assert cache.started
        await cache.put("a", 1)
        await cache.stop()
        await cache.stop()
        assert not cache.started
        with pytest.raises(CacheNotStartedException):
            await cache.get("a")

    async def test_restart_gets_fresh_engine(self):
        cache = Cache(name="fresh")
        await cache.start()
        await cache.put("a", 1)
        await cache.stop()
        await cache.start()
        assert await cache.get("a") is None
        await cache.stop()

    async def test_instances_are_isolated(self):
        async with Cache(name="one") as one, Cache(name="two") as two:
            await one.put("k", "from-one")
            await two.put("k", "from-two")
            assert await one.get("k") == "from-one"
            assert await two.get("k") == "from-two"


class TestConfiguration:
    def test_from_config(self):
        config = Config({"cachebridge": {"cache": {"name": "sessions", "stats": True, "page_size": 5}}})
        cache = Cache.from_config(config)
        assert cache.name == "sessions"
        assert cache.properties.stats is True
        assert cache.properties.page_size == 5

    def test_from_config_env_override(self, monkeypatch):
        monkeypatch.setenv("CACHEBRIDGE_CACHE_NAME", "from-env")
        cache = Cache.from_config(Config({"cachebridge": {"cache": {"name": "from-file"}}}))
        assert cache.name == "from-env"

    def test_invalid_options_fail_fast(self):
        config = Config({"cachebridge": {"cache": {"page_size": 0}}})
        with pytest.raises(ValidationException):
            Cache.from_config(config)

    async def test_handle_reflects_properties(self):
        async with Cache(name="props", stats=True, telemetry=False, page_size=7) as cache:
            handle = cache.handle
            assert handle.name == "props"
            assert handle.stats is True
            assert handle.telemetry is False
            assert handle.page_size == 7

    async def test_default_ttl_option(self):
        async with Cache(name="default-ttl", default_ttl=60_000) as cache:
            await cache.put("a", 1)
            assert 0 < await cache.ttl("a") <= 60_000

    async def test_default_ttl_applies_to_infinity_writes(self):
        async with Cache(name="default-ttl-infinity", default_ttl=60_000) as cache:
            await cache.put("a", 1, ttl=INFINITY)
            await cache.put("b", 0)
            await cache.replace("b", 2, ttl=INFINITY)
            assert 0 < await cache.ttl("a") <= 60_000
            assert 0 < await cache.ttl("b") <= 60_000

    async def test_infinity_without_default_ttl(self):
        async with Cache(name="no-default-ttl") as cache:
            await cache.put("a", 1, ttl=INFINITY)
            assert await cache.ttl("a") is INFINITY
            assert await cache.ttl("missing") is None

    async def test_limit_option(self):
        async with Cache(name="limited", limit=2) as cache:
            await cache.put_all({"a": 1, "b": 2, "c": 3})
            assert await cache.count_all() == 2


class TestCompositeOperations:
    async def test_get_and_update(self, cache):
        await cache.put("n", 2)
        assert await cache.get_and_update("n", lambda current: (current, current * 2)) == (2, 4)
        assert await cache.get("n") == 4

    async def test_get_and_update_absent(self, cache):
        assert await cache.get_and_update("n", lambda current: (current, 1)) == (None, 1)
        assert await cache.get("n") == 1

    async def test_get_and_update_bad_function(self, cache):
        with pytest.raises(ValidationException):
            await cache.get_and_update("n", lambda current: "other")
        assert cache.in_transaction() is False

    async def test_update(self, cache):
        assert await cache.update("n", 1, lambda current: current + 10) == 1
        assert await cache.update("n", 1, lambda current: current + 10) == 11
        assert await cache.ttl("n") is INFINITY

    async def test_concurrent_updates_serialize(self, cache):
        async def bump():
            async def slow_add(current):
                return current + 1

            async with cache.transaction(["n"]):
                current = await cache.get("n") or 0
                await asyncio.sleep(0)
                await cache.put("n", await slow_add(current))

        await asyncio.gather(*(bump() for _ in range(20)))
        assert await cache.get("n") == 20

    async def test_transaction_yields_cache(self, cache):
        async with cache.transaction(["a"]) as tx:
            assert tx is cache
            assert cache.in_transaction() is True
        assert cache.in_transaction() is False
