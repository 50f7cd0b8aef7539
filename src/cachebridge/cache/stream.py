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
"""Stream cursor: lazy, batched enumeration over the engine's cursor primitive."""

from __future__ import annotations

import weakref
from collections.abc import AsyncGenerator
from typing import Any

from cachebridge.cache.ports.outbound import EngineCursor, EngineExecutionError
from cachebridge.cache.types import CacheHandle
from cachebridge.kernel.exceptions import QueryError, ValidationException
from cachebridge.observability.telemetry import record_failure


def validate_page_size(page_size: Any) -> int:
    if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size < 1:
        raise ValidationException(
            f"page_size must be a positive integer, got {page_size!r}",
            code="INVALID_PAGE_SIZE",
        )
    return page_size


class CacheStream:
    """Async iterable over the results of a query.

    Nothing touches the engine until iteration starts. Every ``async for``
    opens a fresh engine cursor and pulls batches of ``page_size`` results;
    the cursor is closed when the iteration finishes, fails, or is closed
    early with :meth:`aclose` (or by leaving an ``async with`` block).

    Engine failures while opening the cursor or fetching a batch surface as
    :class:`QueryError` carrying the engine message and the caller's query.
    """

    def __init__(self, handle: CacheHandle, query: Any, native_query: Any, page_size: int) -> None:
        self._handle = handle
        self._query = query
        self._native_query = native_query
        self._page_size = page_size
        self._iterations: weakref.WeakSet[AsyncGenerator[Any, None]] = weakref.WeakSet()

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def query(self) -> Any:
        return self._native_query

    def __aiter__(self) -> AsyncGenerator[Any, None]:
        iteration = self._iterate()
        self._iterations.add(iteration)
        return iteration

    async def _iterate(self) -> AsyncGenerator[Any, None]:
        cursor: EngineCursor | None = None
        try:
            try:
                cursor = self._handle.engine.cursor(self._native_query, self._page_size)
            except EngineExecutionError as exc:
                raise self._query_error(exc) from exc

            while True:
                try:
                    batch = await cursor.fetch()
                except EngineExecutionError as exc:
                    raise self._query_error(exc) from exc
                if not batch:
                    return
                for item in batch:
                    yield item
        finally:
            if cursor is not None:
                await cursor.close()

    def _query_error(self, exc: EngineExecutionError) -> QueryError:
        error = QueryError(str(exc), query=self._query, operation="stream")
        record_failure(self._handle, "stream", error)
        return error

    async def to_list(self) -> list[Any]:
        return [item async for item in self]

    async def aclose(self) -> None:
        """Close every iteration of this stream that is still open."""
        for iteration in list(self._iterations):
            await iteration.aclose()

    async def __aenter__(self) -> CacheStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
