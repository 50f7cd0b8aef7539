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
"""Value types shared by the cache adapter, its coordinators and the engine port."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Final, Literal, TypeAlias

if TYPE_CHECKING:
    from cachebridge.cache.ports.outbound import CacheEngine


class Infinity(enum.Enum):
    """Marker for "never expires"."""

    INFINITY = "infinity"

    def __repr__(self) -> str:
        return "INFINITY"


INFINITY: Final = Infinity.INFINITY

Ttl: TypeAlias = Literal[Infinity.INFINITY] | timedelta | int
"""A logical TTL: ``INFINITY`` or a positive duration (timedelta or ms)."""


class WritePolicy(enum.Enum):
    """How a write treats an existing entry."""

    INSERT = "insert"
    """Insert or overwrite."""

    REPLACE = "replace"
    """Overwrite only if the key is present."""

    INSERT_IF_ABSENT = "insert_if_absent"
    """Insert only if the key is absent."""


class ReturnShape(enum.Enum):
    """Projection applied to query and stream results."""

    KEY = "key"
    VALUE = "value"
    KEY_VALUE = "key_value"
    ENTRY = "entry"


class QueryOperation(enum.Enum):
    ALL = "all"
    COUNT_ALL = "count_all"
    DELETE_ALL = "delete_all"


class QueryFilter(enum.Enum):
    """Built-in query restrictions understood by ``delete_all``."""

    EXPIRED = "expired"

    def __repr__(self) -> str:
        return "EXPIRED"


EXPIRED: Final = QueryFilter.EXPIRED


@dataclass
class Entry:
    """A stored key/value pair.

    ``touched`` is the last write/touch time in epoch milliseconds; ``ttl``
    is the remaining budget in milliseconds counted from ``touched``, or
    ``None`` when the entry never expires.
    """

    key: Any
    value: Any
    touched: int
    ttl: int | None = None


@dataclass
class Stats:
    """Snapshot of engine counters, with engine metadata split out."""

    measurements: dict[str, int | float] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CacheHandle:
    """Reference to one running engine instance.

    Handles are created by :meth:`EngineAdapter.init` and passed explicitly
    to every adapter operation; there is no global lookup by name, so any
    number of caches can run side by side.
    """

    name: str
    engine: CacheEngine = field(repr=False, compare=False)
    stats: bool = False
    telemetry: bool = True
    telemetry_prefix: str = "cachebridge.cache"
    page_size: int = 20


@dataclass(frozen=True)
class Query:
    """Native query: a predicate over live entries plus a projection.

    ``where`` is ``True`` (match everything) or a callable taking an
    :class:`Entry` and returning a truthy value. ``select`` is a field name
    (``"key"``, ``"value"``, ``"touched"``, ``"ttl"``), a tuple of field
    names, or a callable taking an :class:`Entry`. The engine evaluates
    both; malformed queries are rejected while the engine streams them.
    """

    where: Any = True
    select: Any = "key"

    @classmethod
    def create(cls, where: Any = True, select: Any = "key") -> Query:
        return cls(where=where, select=select)
