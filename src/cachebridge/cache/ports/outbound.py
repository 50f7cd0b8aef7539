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
"""Outbound ports: the contract a cache engine offers to the adapter layer."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable

from cachebridge.cache.types import Query


class EngineExecutionError(Exception):
    """Raised by an engine when it cannot execute a query or stream batch."""


class EnginePersistenceError(Exception):
    """Raised by an engine when a snapshot dump or load fails.

    ``reason`` is a short machine-readable code such as
    ``"unreachable_file"`` or ``"enoent"``.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@runtime_checkable
class EngineCursor(Protocol):
    """Server-side enumeration state for one stream."""

    async def fetch(self) -> list[Any]:
        """Return the next batch of projected results, or ``[]`` once exhausted."""
        ...

    async def close(self) -> None: ...


@runtime_checkable
class CacheEngine(Protocol):
    """Primitive operations of a cache engine.

    TTLs are integer milliseconds; ``None`` means "no expiration". The
    engine has no "insert if absent" primitive and its ``incr`` cannot set
    an expiration: the adapter synthesizes both on top of
    :meth:`transaction`, which locks a key set for the duration of the
    ``async with`` block.
    """

    name: str

    async def get(self, key: Any) -> Any | None: ...

    async def exists(self, key: Any) -> bool: ...

    async def put(self, key: Any, value: Any, ttl: int | None = None) -> bool: ...

    async def put_many(self, pairs: list[tuple[Any, Any]], ttl: int | None = None) -> bool: ...

    async def update(self, key: Any, value: Any, ttl: int | None = None) -> bool: ...

    async def delete(self, key: Any) -> bool: ...

    async def take(self, key: Any) -> Any | None: ...

    async def ttl(self, key: Any) -> int | None: ...

    async def expire(self, key: Any, ttl: int | None) -> bool: ...

    async def touch(self, key: Any) -> bool: ...

    async def incr(self, key: Any, amount: int = 1, initial: int = 0) -> int: ...

    async def size(self) -> int: ...

    async def clear(self) -> int: ...

    async def purge(self) -> int: ...

    def cursor(self, query: Query, batch_size: int) -> EngineCursor: ...

    def transaction(self, keys: list[Any]) -> AbstractAsyncContextManager[None]: ...

    def in_transaction(self) -> bool: ...

    async def dump(self, path: str, compression: int = 0) -> bool: ...

    async def load(self, path: str) -> bool: ...

    async def stats(self) -> dict[str, Any]: ...

    async def stop(self) -> None: ...
