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
"""cachebridge cache: generic cache contract over a cache engine."""

from cachebridge.cache.adapter import EngineAdapter
from cachebridge.cache.adapters.local import LocalEngine
from cachebridge.cache.cache import Cache
from cachebridge.cache.ports.outbound import CacheEngine
from cachebridge.cache.stream import CacheStream
from cachebridge.cache.types import (
    EXPIRED,
    INFINITY,
    CacheHandle,
    Entry,
    Query,
    QueryOperation,
    ReturnShape,
    Stats,
    WritePolicy,
)

__all__ = [
    "EXPIRED",
    "INFINITY",
    "Cache",
    "CacheEngine",
    "CacheHandle",
    "CacheStream",
    "EngineAdapter",
    "Entry",
    "LocalEngine",
    "Query",
    "QueryOperation",
    "ReturnShape",
    "Stats",
    "WritePolicy",
]
