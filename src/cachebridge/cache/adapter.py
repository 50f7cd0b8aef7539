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
"""Engine adapter: the generic cache contract on top of engine primitives.

Every operation takes the :class:`CacheHandle` returned by
:meth:`EngineAdapter.init` and dispatches to one coordinator: writes,
counters, the query translator, the stream cursor, or the persistence
bridge. Each operation runs inside a telemetry span.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any

from cachebridge.cache import counters, persistence, writes
from cachebridge.cache.adapters.local import LocalEngine
from cachebridge.cache.ports.outbound import CacheEngine
from cachebridge.cache.query import execute as execute_query
from cachebridge.cache.query import open_stream
from cachebridge.cache.stream import CacheStream
from cachebridge.cache.ttl import from_engine_ttl, to_engine_ttl
from cachebridge.cache.types import (
    INFINITY,
    CacheHandle,
    Infinity,
    QueryOperation,
    ReturnShape,
    Stats,
    Ttl,
    WritePolicy,
)
from cachebridge.config.properties.cache import CacheProperties
from cachebridge.observability.telemetry import span

EngineFactory = Callable[..., CacheEngine]


class EngineAdapter:
    """Stateless translation layer between callers and a cache engine.

    The adapter holds no cache state of its own; everything lives in the
    engine referenced by the handle, so one adapter serves any number of
    handles concurrently.
    """

    def __init__(self, engine_factory: EngineFactory = LocalEngine) -> None:
        self._engine_factory = engine_factory

    def init(self, properties: CacheProperties) -> CacheHandle:
        """Start an engine for *properties* and return the handle bound to it."""
        engine = self._engine_factory(
            properties.name,
            stats=properties.stats,
            default_ttl=properties.default_ttl,
            limit=properties.limit,
            lock_timeout=properties.lock_timeout,
        )
        return CacheHandle(
            name=properties.name,
            engine=engine,
            stats=properties.stats,
            telemetry=properties.telemetry,
            telemetry_prefix=properties.telemetry_prefix,
            page_size=properties.page_size,
        )

    # -- entries -------------------------------------------------------------

    @span("get")
    async def get(self, handle: CacheHandle, key: Any) -> Any | None:
        return await handle.engine.get(key)

    @span("get_all")
    async def get_all(self, handle: CacheHandle, keys: Iterable[Any]) -> dict[Any, Any]:
        """Values of the present keys; absent keys (and ``None`` values) are left out."""
        found: dict[Any, Any] = {}
        for key in keys:
            value = await handle.engine.get(key)
            if value is not None:
                found[key] = value
        return found

    @span("put")
    async def put(
        self,
        handle: CacheHandle,
        key: Any,
        value: Any,
        ttl: Ttl = INFINITY,
        policy: WritePolicy = WritePolicy.INSERT,
        atomic: bool = False,
    ) -> bool:
        return await writes.put(handle, key, value, ttl, policy, atomic=atomic)

    @span("put_all")
    async def put_all(
        self,
        handle: CacheHandle,
        entries: Mapping[Any, Any] | Iterable[tuple[Any, Any]],
        ttl: Ttl = INFINITY,
        policy: WritePolicy = WritePolicy.INSERT,
    ) -> bool:
        return await writes.put_all(handle, entries, ttl, policy)

    @span("delete")
    async def delete(self, handle: CacheHandle, key: Any) -> None:
        await handle.engine.delete(key)

    @span("take")
    async def take(self, handle: CacheHandle, key: Any) -> Any | None:
        return await handle.engine.take(key)

    @span("has_key")
    async def has_key(self, handle: CacheHandle, key: Any) -> bool:
        return await handle.engine.exists(key)

    @span("ttl")
    async def ttl(self, handle: CacheHandle, key: Any) -> int | Infinity | None:
        """Remaining ms, ``INFINITY`` for entries without expiration, ``None`` if absent."""
        remaining = await handle.engine.ttl(key)
        if remaining is None and not await handle.engine.exists(key):
            return None
        return from_engine_ttl(remaining)

    @span("expire")
    async def expire(self, handle: CacheHandle, key: Any, ttl: Ttl) -> bool:
        return await handle.engine.expire(key, to_engine_ttl(ttl))

    @span("touch")
    async def touch(self, handle: CacheHandle, key: Any) -> bool:
        return await handle.engine.touch(key)

    @span("update_counter")
    async def update_counter(
        self,
        handle: CacheHandle,
        key: Any,
        amount: int = 1,
        ttl: Ttl = INFINITY,
        default: int = 0,
    ) -> int:
        return await counters.update_counter(handle, key, amount, ttl, default)

    # -- queries -------------------------------------------------------------

    @span("execute")
    async def execute(
        self,
        handle: CacheHandle,
        operation: QueryOperation | str,
        query: Any = None,
        page_size: int | None = None,
        return_shape: ReturnShape | None = None,
    ) -> Any:
        return await execute_query(handle, operation, query, page_size=page_size, return_shape=return_shape)

    @span("stream")
    def stream(
        self,
        handle: CacheHandle,
        query: Any = None,
        page_size: int | None = None,
        return_shape: ReturnShape | None = None,
    ) -> CacheStream:
        return open_stream(handle, query, page_size=page_size, return_shape=return_shape)

    # -- transactions --------------------------------------------------------

    def transaction(self, handle: CacheHandle, keys: Iterable[Any]) -> AbstractAsyncContextManager[None]:
        return handle.engine.transaction(list(keys))

    def in_transaction(self, handle: CacheHandle) -> bool:
        return handle.engine.in_transaction()

    # -- persistence / stats -------------------------------------------------

    @span("dump")
    async def dump(self, handle: CacheHandle, path: str | os.PathLike[str], **opts: Any) -> None:
        await persistence.dump(handle, path, **opts)

    @span("load")
    async def load(self, handle: CacheHandle, path: str | os.PathLike[str], **opts: Any) -> None:
        await persistence.load(handle, path, **opts)

    @span("stats")
    async def stats(self, handle: CacheHandle) -> Stats | None:
        return await persistence.stats(handle)
