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
"""Query translator: return-shape rewriting and query execution."""

from __future__ import annotations

import dataclasses
from typing import Any

from cachebridge.cache.stream import CacheStream, validate_page_size
from cachebridge.cache.types import (
    CacheHandle,
    Entry,
    Query,
    QueryFilter,
    QueryOperation,
    ReturnShape,
)
from cachebridge.kernel.exceptions import QueryError, ValidationException

MATCH_ALL_KEYS = Query(where=True, select="key")


def _whole_entry(entry: Entry) -> Entry:
    return Entry(key=entry.key, value=entry.value, touched=entry.touched, ttl=entry.ttl)


def _select_for(return_shape: ReturnShape) -> Any:
    match return_shape:
        case ReturnShape.KEY:
            return "key"
        case ReturnShape.VALUE:
            return "value"
        case ReturnShape.KEY_VALUE:
            return ("key", "value")
        case ReturnShape.ENTRY:
            return _whole_entry


def build_query(query: Any, return_shape: ReturnShape | None = None) -> Any:
    """Translate a caller query into the engine query to run.

    ``None`` becomes "every live entry, project the key". A *return_shape*
    replaces only the projection of a :class:`Query`, never its predicate.
    Values that are not a :class:`Query` are passed through untouched for
    the engine to accept or reject.
    """
    if return_shape is not None and not isinstance(return_shape, ReturnShape):
        raise ValidationException(
            f"return_shape must be a ReturnShape, got {return_shape!r}",
            code="INVALID_RETURN_SHAPE",
        )
    if query is None:
        query = MATCH_ALL_KEYS
    if return_shape is None or not isinstance(query, Query):
        return query
    return dataclasses.replace(query, select=_select_for(return_shape))


def open_stream(
    handle: CacheHandle,
    query: Any = None,
    page_size: int | None = None,
    return_shape: ReturnShape | None = None,
) -> CacheStream:
    size = validate_page_size(page_size if page_size is not None else handle.page_size)
    return CacheStream(handle, query, build_query(query, return_shape), size)


def _unsupported(operation: Any, query: Any) -> QueryError:
    name = operation.value if isinstance(operation, QueryOperation) else str(operation)
    return QueryError(f"unsupported {name} in query {query!r}", query=query, operation=name)


async def execute(
    handle: CacheHandle,
    operation: QueryOperation | str,
    query: Any = None,
    page_size: int | None = None,
    return_shape: ReturnShape | None = None,
) -> Any:
    """Run ``count_all``, ``delete_all`` or ``all``.

    Supported combinations: ``count_all`` with no query, ``delete_all`` with
    no query or :data:`EXPIRED`, and ``all`` with any query. Everything else
    raises :class:`QueryError` naming the operation.
    """
    try:
        op = QueryOperation(operation)
    except ValueError:
        raise _unsupported(operation, query) from None

    engine = handle.engine
    match op, query:
        case QueryOperation.COUNT_ALL, None:
            return await engine.size()
        case QueryOperation.DELETE_ALL, None:
            return await engine.clear()
        case QueryOperation.DELETE_ALL, QueryFilter.EXPIRED:
            return await engine.purge()
        case QueryOperation.ALL, _:
            return await open_stream(handle, query, page_size, return_shape).to_list()
    raise _unsupported(op, query)
