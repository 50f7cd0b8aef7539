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
"""Counter coordinator: atomic increments with an optional new expiration."""

from __future__ import annotations

from typing import Any

from cachebridge.cache.ttl import to_engine_ttl
from cachebridge.cache.types import CacheHandle, Ttl
from cachebridge.kernel.exceptions import ValidationException


async def update_counter(handle: CacheHandle, key: Any, amount: int, ttl: Ttl, default: int) -> int:
    """Add *amount* to the counter at *key*, creating it at *default* if absent.

    The engine increment cannot carry a TTL, so a finite *ttl* is applied
    by a second call; both run inside one transaction on ``[key]`` so other
    transactions never see the counter without its expiration.
    """
    for name, number in (("amount", amount), ("default", default)):
        if not isinstance(number, int) or isinstance(number, bool):
            raise ValidationException(
                f"counter {name} must be an integer, got {number!r}",
                code="INVALID_COUNTER",
                context={"key": key},
            )

    engine = handle.engine
    engine_ttl = to_engine_ttl(ttl)
    if engine_ttl is None:
        return await engine.incr(key, amount, initial=default)

    async with engine.transaction([key]):
        counter = await engine.incr(key, amount, initial=default)
        await engine.expire(key, engine_ttl)
        return counter
