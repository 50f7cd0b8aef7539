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
"""Shared fixtures for cache tests."""

from __future__ import annotations

import functools

import pytest

from cachebridge.cache import Cache, EngineAdapter, LocalEngine


class FakeClock:
    """Millisecond clock the engine reads instead of wall time."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def adapter(clock: FakeClock) -> EngineAdapter:
    return EngineAdapter(engine_factory=functools.partial(LocalEngine, clock=clock))


@pytest.fixture
async def cache(adapter: EngineAdapter):
    c = Cache(name="test-cache", stats=True, adapter=adapter)
    await c.start()
    yield c
    await c.stop()
