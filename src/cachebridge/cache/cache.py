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
"""Cache facade: a started engine plus the adapter, behind one object."""

from __future__ import annotations

import contextlib
import os
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from typing import Any

import structlog

from cachebridge.cache.adapter import EngineAdapter
from cachebridge.cache.stream import CacheStream
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
from cachebridge.core.config import Config
from cachebridge.kernel.exceptions import CacheNotStartedException, ValidationException
from cachebridge.logging.port import LoggingPort
from cachebridge.logging.structlog_adapter import StructlogAdapter

logger = structlog.get_logger("cachebridge.cache")


class Cache:
    """A named cache instance.

    Usage:
        async with Cache(name="sessions", stats=True) as cache:
            await cache.put("user:1", {"name": "Alice"}, ttl=timedelta(minutes=5))
            await cache.incr("logins")

    The facade owns its engine: :meth:`start` initializes it through the
    adapter, :meth:`stop` tears it down. Operations before ``start`` or
    after ``stop`` raise :class:`CacheNotStartedException`.
    """

    def __init__(
        self,
        properties: CacheProperties | None = None,
        *,
        adapter: EngineAdapter | None = None,
        **options: Any,
    ) -> None:
        self._properties = properties if properties is not None else CacheProperties(**options)
        self._adapter = adapter if adapter is not None else EngineAdapter()
        self._handle: CacheHandle | None = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        adapter: EngineAdapter | None = None,
        logging_port: LoggingPort | None = None,
    ) -> Cache:
        """Build a cache from the ``cachebridge.cache`` section of *config*.

        Logging is configured from ``cachebridge.logging`` first, through
        *logging_port* (structlog by default).
        """
        port = logging_port if logging_port is not None else StructlogAdapter()
        port.configure(config)
        return cls(config.bind(CacheProperties), adapter=adapter)

    @property
    def name(self) -> str:
        return self._properties.name

    @property
    def properties(self) -> CacheProperties:
        return self._properties

    @property
    def handle(self) -> CacheHandle:
        if self._handle is None:
            raise CacheNotStartedException(
                f"cache '{self.name}' is not started",
                code="CACHE_NOT_STARTED",
                context={"cache": self.name},
            )
        return self._handle

    @property
    def started(self) -> bool:
        return self._handle is not None

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        if self._handle is not None:
            return
        self._handle = self._adapter.init(self._properties)
        logger.info("cache.started", cache=self.name, stats=self._properties.stats)

    async def stop(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        await handle.engine.stop()
        logger.info("cache.stopped", cache=self.name)

    async def __aenter__(self) -> Cache:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # -- entries -------------------------------------------------------------

    async def get(self, key: Any) -> Any | None:
        return await self._adapter.get(self.handle, key)

    async def get_all(self, keys: Iterable[Any]) -> dict[Any, Any]:
        return await self._adapter.get_all(self.handle, keys)

    async def put(self, key: Any, value: Any, ttl: Ttl = INFINITY) -> bool:
        """Store *value* under *key*, overwriting any existing entry.

        With ``default_ttl`` configured, ``ttl=INFINITY`` stores the entry
        with the default TTL rather than without expiration.
        """
        return await self._adapter.put(self.handle, key, value, ttl, WritePolicy.INSERT)

    async def put_new(self, key: Any, value: Any, ttl: Ttl = INFINITY, atomic: bool = False) -> bool:
        """Store *value* only if *key* is absent.

        Not atomic unless ``atomic=True``: a concurrent write between the
        existence check and the write is overwritten.
        """
        return await self._adapter.put(self.handle, key, value, ttl, WritePolicy.INSERT_IF_ABSENT, atomic=atomic)

    async def replace(self, key: Any, value: Any, ttl: Ttl = INFINITY) -> bool:
        return await self._adapter.put(self.handle, key, value, ttl, WritePolicy.REPLACE)

    async def put_all(self, entries: Mapping[Any, Any] | Iterable[tuple[Any, Any]], ttl: Ttl = INFINITY) -> bool:
        return await self._adapter.put_all(self.handle, entries, ttl, WritePolicy.INSERT)

    async def put_new_all(
        self, entries: Mapping[Any, Any] | Iterable[tuple[Any, Any]], ttl: Ttl = INFINITY
    ) -> bool:
        """Store every entry, or none of them if any key already exists."""
        return await self._adapter.put_all(self.handle, entries, ttl, WritePolicy.INSERT_IF_ABSENT)

    async def delete(self, key: Any) -> None:
        await self._adapter.delete(self.handle, key)

    async def take(self, key: Any) -> Any | None:
        return await self._adapter.take(self.handle, key)

    async def has_key(self, key: Any) -> bool:
        return await self._adapter.has_key(self.handle, key)

    async def ttl(self, key: Any) -> int | Infinity | None:
        return await self._adapter.ttl(self.handle, key)

    async def expire(self, key: Any, ttl: Ttl) -> bool:
        return await self._adapter.expire(self.handle, key, ttl)

    async def touch(self, key: Any) -> bool:
        return await self._adapter.touch(self.handle, key)

    async def incr(self, key: Any, amount: int = 1, ttl: Ttl = INFINITY, default: int = 0) -> int:
        return await self._adapter.update_counter(self.handle, key, amount, ttl, default)

    async def decr(self, key: Any, amount: int = 1, ttl: Ttl = INFINITY, default: int = 0) -> int:
        return await self.incr(key, -amount, ttl=ttl, default=default)

    async def get_and_update(
        self, key: Any, fun: Callable[[Any], tuple[Any, Any]], ttl: Ttl = INFINITY
    ) -> tuple[Any, Any]:
        """Atomically read *key* and replace it with what *fun* returns.

        *fun* receives the current value (``None`` if absent) and returns a
        ``(result, new_value)`` pair. Returns ``(result, new_value)``.
        """
        handle = self.handle
        async with self._adapter.transaction(handle, [key]):
            current = await self._adapter.get(handle, key)
            outcome = fun(current)
            if not (isinstance(outcome, tuple) and len(outcome) == 2):
                raise ValidationException(
                    f"get_and_update function must return a (result, new_value) pair, got {outcome!r}",
                    code="INVALID_UPDATE_FUNCTION",
                    context={"key": key},
                )
            await self._adapter.put(handle, key, outcome[1], ttl, WritePolicy.INSERT)
            return outcome

    async def update(self, key: Any, initial: Any, fun: Callable[[Any], Any], ttl: Ttl = INFINITY) -> Any:
        """Store *initial* if *key* is absent, otherwise ``fun(current)``. Returns the stored value."""
        handle = self.handle
        async with self._adapter.transaction(handle, [key]):
            if await self._adapter.has_key(handle, key):
                value = fun(await self._adapter.get(handle, key))
            else:
                value = initial
            await self._adapter.put(handle, key, value, ttl, WritePolicy.INSERT)
            return value

    # -- queries -------------------------------------------------------------

    async def count_all(self, query: Any = None) -> int:
        return await self._adapter.execute(self.handle, QueryOperation.COUNT_ALL, query)

    async def delete_all(self, query: Any = None) -> int:
        return await self._adapter.execute(self.handle, QueryOperation.DELETE_ALL, query)

    async def all(
        self,
        query: Any = None,
        *,
        page_size: int | None = None,
        return_shape: ReturnShape | None = None,
    ) -> list[Any]:
        return await self._adapter.execute(
            self.handle, QueryOperation.ALL, query, page_size=page_size, return_shape=return_shape
        )

    def stream(
        self,
        query: Any = None,
        *,
        page_size: int | None = None,
        return_shape: ReturnShape | None = None,
    ) -> CacheStream:
        return self._adapter.stream(self.handle, query, page_size=page_size, return_shape=return_shape)

    async def size(self) -> int:
        return await self.count_all()

    async def flush(self) -> int:
        return await self.delete_all()

    # -- transactions --------------------------------------------------------

    @contextlib.asynccontextmanager
    async def transaction(self, keys: Iterable[Any]) -> AsyncIterator[Cache]:
        """Hold the engine lock on *keys* for the block; re-entrant within a task."""
        async with self._adapter.transaction(self.handle, keys):
            yield self

    def in_transaction(self) -> bool:
        return self._adapter.in_transaction(self.handle)

    # -- persistence / stats -------------------------------------------------

    async def dump(self, path: str | os.PathLike[str], **opts: Any) -> None:
        await self._adapter.dump(self.handle, path, **opts)

    async def load(self, path: str | os.PathLike[str], **opts: Any) -> None:
        await self._adapter.load(self.handle, path, **opts)

    async def stats(self) -> Stats | None:
        return await self._adapter.stats(self.handle)
