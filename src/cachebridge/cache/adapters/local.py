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
"""In-process cache engine.

``LocalEngine`` is the engine the adapter layer runs against by default: a
dict of :class:`Entry` records with lazy expiration, an optional default
TTL, an optional size limit (least-recently-written eviction), key-set
transactions, cursors, and pickle snapshots.

It offers the same primitive set as the engines the adapter
targets: there is no "insert if absent" call and ``incr`` cannot set an
expiration.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
import pickle
import time
import zlib
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

from cachebridge.cache.ports.outbound import EngineExecutionError, EnginePersistenceError
from cachebridge.cache.types import Entry, Query
from cachebridge.kernel.exceptions import OperationTimeoutException

_logger = logging.getLogger(__name__)

_FIELDS = frozenset({"key", "value", "touched", "ttl"})
_SNAPSHOT_PLAIN = b"\x00"
_SNAPSHOT_ZLIB = b"\x01"


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class LocalEngine:
    """Dict-backed engine implementing the ``CacheEngine`` port.

    Args:
        name: Engine instance identity.
        stats: Track hit/miss/write counters for :meth:`stats`.
        default_ttl: TTL in ms applied to writes that carry no TTL.
        limit: Maximum number of entries; the least recently written
            entries are evicted once it is exceeded.
        lock_timeout: Maximum time in ms to wait for a transaction lock.
    """

    def __init__(
        self,
        name: str,
        *,
        stats: bool = False,
        default_ttl: int | None = None,
        limit: int | None = None,
        lock_timeout: int = 5000,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.name = name
        self._clock = clock
        self._store: dict[Any, Entry] = {}
        self._default_ttl = default_ttl
        self._limit = limit
        self._lock_timeout = lock_timeout
        self._stats_enabled = stats
        self._counters: dict[str, int] = dict.fromkeys(
            ("operations", "hits", "misses", "writes", "updates", "evictions", "expirations"), 0
        )
        self._created = clock()
        self._owners: dict[Any, asyncio.Task[Any] | None] = {}
        self._lock_condition = asyncio.Condition()
        self._cursors: set[_LocalCursor] = set()

    # -- internals -----------------------------------------------------------

    def _count(self, counter: str, amount: int = 1) -> None:
        if self._stats_enabled:
            self._counters[counter] += amount

    def _expired(self, entry: Entry, now: int) -> bool:
        return entry.ttl is not None and now >= entry.touched + entry.ttl

    def _live(self, key: Any) -> Entry | None:
        self._count("operations")
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._store[key]
            self._count("expirations")
            return None
        return entry

    def _write(self, key: Any, value: Any, ttl: int | None) -> None:
        self._store.pop(key, None)
        self._store[key] = Entry(key, value, self._clock(), ttl if ttl is not None else self._default_ttl)
        self._count("writes")
        self._enforce_limit()

    def _enforce_limit(self) -> None:
        if self._limit is None or len(self._store) <= self._limit:
            return
        overflow = len(self._store) - self._limit
        oldest = sorted(self._store.values(), key=lambda e: e.touched)[:overflow]
        for entry in oldest:
            del self._store[entry.key]
        self._count("evictions", overflow)
        _logger.debug("Engine '%s' evicted %d entries over limit %d", self.name, overflow, self._limit)

    # -- entry primitives ----------------------------------------------------

    async def get(self, key: Any) -> Any | None:
        entry = self._live(key)
        self._count("hits" if entry is not None else "misses")
        return entry.value if entry is not None else None

    async def exists(self, key: Any) -> bool:
        return self._live(key) is not None

    async def put(self, key: Any, value: Any, ttl: int | None = None) -> bool:
        self._count("operations")
        self._write(key, value, ttl)
        return True

    async def put_many(self, pairs: list[tuple[Any, Any]], ttl: int | None = None) -> bool:
        self._count("operations")
        for key, value in pairs:
            self._write(key, value, ttl)
        return True

    async def update(self, key: Any, value: Any, ttl: int | None = None) -> bool:
        entry = self._live(key)
        if entry is None:
            return False
        entry.value = value
        entry.touched = self._clock()
        entry.ttl = ttl if ttl is not None else self._default_ttl
        self._count("updates")
        return True

    async def delete(self, key: Any) -> bool:
        self._count("operations")
        self._store.pop(key, None)
        return True

    async def take(self, key: Any) -> Any | None:
        entry = self._live(key)
        if entry is None:
            self._count("misses")
            return None
        del self._store[key]
        self._count("hits")
        return entry.value

    async def ttl(self, key: Any) -> int | None:
        entry = self._live(key)
        if entry is None or entry.ttl is None:
            return None
        return max(entry.touched + entry.ttl - self._clock(), 0)

    async def expire(self, key: Any, ttl: int | None) -> bool:
        entry = self._live(key)
        if entry is None:
            return False
        entry.touched = self._clock()
        entry.ttl = ttl
        self._count("updates")
        return True

    async def touch(self, key: Any) -> bool:
        entry = self._live(key)
        if entry is None:
            return False
        entry.touched = self._clock()
        self._count("updates")
        return True

    async def incr(self, key: Any, amount: int = 1, initial: int = 0) -> int:
        entry = self._live(key)
        if entry is None:
            self._write(key, initial + amount, None)
            return initial + amount
        if not isinstance(entry.value, int) or isinstance(entry.value, bool):
            raise EngineExecutionError(f"non_numeric_value: {entry.value!r}")
        entry.value += amount
        self._count("updates")
        return entry.value

    # -- bulk primitives -----------------------------------------------------

    async def size(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._store.values() if not self._expired(entry, now))

    async def clear(self) -> int:
        removed = len(self._store)
        self._store.clear()
        self._count("evictions", removed)
        return removed

    async def purge(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._store.items() if self._expired(entry, now)]
        for key in expired:
            del self._store[key]
        self._count("expirations", len(expired))
        return len(expired)

    def cursor(self, query: Query, batch_size: int) -> _LocalCursor:
        cursor = _LocalCursor(self, query, batch_size)
        self._cursors.add(cursor)
        return cursor

    @property
    def open_cursors(self) -> int:
        return len(self._cursors)

    # -- transactions --------------------------------------------------------

    @contextlib.asynccontextmanager
    async def transaction(self, keys: list[Any]) -> AsyncIterator[None]:
        """Lock *keys* for the duration of the block.

        Re-entrant for the task that already holds the keys. Only other
        transactions are excluded; plain writes do not wait for locks.
        """
        task = asyncio.current_task()
        wanted = {key for key in keys if self._owners.get(key) is not task}

        if wanted:
            async with self._lock_condition:
                try:
                    await asyncio.wait_for(
                        self._lock_condition.wait_for(lambda: self._owners.keys().isdisjoint(wanted)),
                        timeout=self._lock_timeout / 1000,
                    )
                except TimeoutError as exc:
                    raise OperationTimeoutException(
                        f"Timed out acquiring transaction lock on {len(wanted)} key(s)",
                        code="LOCK_TIMEOUT",
                        context={"cache": self.name, "timeout_ms": self._lock_timeout},
                    ) from exc
                self._owners.update(dict.fromkeys(wanted, task))

        try:
            yield
        finally:
            if wanted:
                async with self._lock_condition:
                    for key in wanted:
                        del self._owners[key]
                    self._lock_condition.notify_all()

    def in_transaction(self) -> bool:
        task = asyncio.current_task()
        return any(owner is task for owner in self._owners.values())

    # -- persistence ---------------------------------------------------------

    async def dump(self, path: str, compression: int = 0) -> bool:
        now = self._clock()
        records = [
            (e.key, e.value, e.touched, e.ttl) for e in self._store.values() if not self._expired(e, now)
        ]
        payload = pickle.dumps(records)
        if compression:
            payload = _SNAPSHOT_ZLIB + zlib.compress(payload, compression)
        else:
            payload = _SNAPSHOT_PLAIN + payload

        try:
            await asyncio.to_thread(Path(path).write_bytes, payload)
        except OSError as exc:
            _logger.warning("Engine '%s' could not write snapshot to '%s': %s", self.name, path, exc)
            raise EnginePersistenceError("unreachable_file") from exc
        return True

    async def load(self, path: str) -> bool:
        target = Path(path)
        if not target.is_file():
            raise EnginePersistenceError("enoent")
        try:
            raw = await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise EnginePersistenceError("unreachable_file") from exc

        try:
            body = zlib.decompress(raw[1:]) if raw[:1] == _SNAPSHOT_ZLIB else raw[1:]
            records = pickle.loads(body)
        except (zlib.error, pickle.UnpicklingError, EOFError) as exc:
            raise EnginePersistenceError("invalid_snapshot") from exc

        for key, value, touched, ttl in records:
            self._store[key] = Entry(key, value, touched, ttl)
        self._count("writes", len(records))
        self._enforce_limit()
        return True

    # -- stats / lifecycle ---------------------------------------------------

    async def stats(self) -> dict[str, Any]:
        if not self._stats_enabled:
            raise EngineExecutionError("stats_disabled")
        counters: dict[str, Any] = dict(self._counters)
        lookups = counters["hits"] + counters["misses"]
        counters["hit_rate"] = counters["hits"] / lookups * 100 if lookups else 100.0
        counters["miss_rate"] = counters["misses"] / lookups * 100 if lookups else 0.0
        counters["meta"] = {"name": self.name, "creation_date": self._created}
        return counters

    async def stop(self) -> None:
        for cursor in list(self._cursors):
            await cursor.close()
        self._store.clear()
        _logger.debug("Engine '%s' stopped", self.name)


class _LocalCursor:
    """Cursor over a snapshot of the keys present when the first batch is fetched."""

    def __init__(self, engine: LocalEngine, query: Query, batch_size: int) -> None:
        self._engine = engine
        self._query = query
        self._batch_size = batch_size
        self._keys: list[Any] | None = None
        self._position = 0
        self._closed = False

    def _validate(self) -> None:
        query = self._query
        if not isinstance(query, Query):
            raise EngineExecutionError(f"invalid match specification: {query!r}")
        if query.where is not True and not callable(query.where):
            raise EngineExecutionError(f"invalid match condition: {query.where!r}")
        select = query.select
        if callable(select):
            return
        fields = select if isinstance(select, tuple) else (select,)
        for field in fields:
            if not isinstance(field, str) or field not in _FIELDS:
                raise EngineExecutionError(f"invalid match return: {field!r}")

    def _project(self, entry: Entry) -> Any:
        select = self._query.select
        if isinstance(select, tuple):
            return tuple(getattr(entry, field) for field in select)
        if callable(select):
            return select(entry)
        return getattr(entry, select)

    async def fetch(self) -> list[Any]:
        if self._closed:
            return []
        if self._keys is None:
            self._validate()
            self._keys = list(self._engine._store)

        where = self._query.where
        now = self._engine._clock()
        batch: list[Any] = []
        while len(batch) < self._batch_size and self._position < len(self._keys):
            key = self._keys[self._position]
            self._position += 1
            entry = self._engine._store.get(key)
            if entry is None or self._engine._expired(entry, now):
                continue
            snapshot = dataclasses.replace(entry)
            try:
                if where is True or where(snapshot):
                    batch.append(self._project(snapshot))
            except Exception as exc:
                raise EngineExecutionError(f"query failed on key {key!r}: {exc}") from exc
        return batch

    async def close(self) -> None:
        self._closed = True
        self._engine._cursors.discard(self)
