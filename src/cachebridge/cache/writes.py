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
"""Write coordinator: the three write policies for single and bulk writes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from cachebridge.cache.ttl import to_engine_ttl
from cachebridge.cache.types import CacheHandle, Ttl, WritePolicy
from cachebridge.kernel.exceptions import ValidationException


async def put(
    handle: CacheHandle,
    key: Any,
    value: Any,
    ttl: Ttl,
    policy: WritePolicy,
    atomic: bool = False,
) -> bool:
    """Write one entry according to *policy*.

    ``INSERT_IF_ABSENT`` is a check-then-act: an existence probe followed by
    an unconditional write. Another writer can slip in between the two
    calls and its value is then silently overwritten. Pass
    ``atomic=True`` to run the probe and the write inside an engine
    transaction on ``[key]``; that excludes other transactions on the key,
    not plain writes.
    """
    engine = handle.engine
    engine_ttl = to_engine_ttl(ttl)

    match policy:
        case WritePolicy.INSERT:
            return await engine.put(key, value, engine_ttl)
        case WritePolicy.REPLACE:
            return await engine.update(key, value, engine_ttl)
        case WritePolicy.INSERT_IF_ABSENT:
            if not atomic:
                return await _insert_if_absent(handle, key, value, engine_ttl)
            async with engine.transaction([key]):
                return await _insert_if_absent(handle, key, value, engine_ttl)
        case _:
            raise _unsupported("put", policy)


async def _insert_if_absent(handle: CacheHandle, key: Any, value: Any, engine_ttl: int | None) -> bool:
    if await handle.engine.exists(key):
        return False
    return await handle.engine.put(key, value, engine_ttl)


async def put_all(
    handle: CacheHandle,
    entries: Mapping[Any, Any] | Iterable[tuple[Any, Any]],
    ttl: Ttl,
    policy: WritePolicy,
) -> bool:
    """Write a batch of entries with one TTL.

    ``INSERT_IF_ABSENT`` is all-or-nothing: the batch keys are locked in one
    engine transaction, every key is probed, and the batch is written only
    if none of them exists.
    """
    pairs = list(entries.items()) if isinstance(entries, Mapping) else list(entries)
    engine = handle.engine
    engine_ttl = to_engine_ttl(ttl)

    match policy:
        case WritePolicy.INSERT:
            return await engine.put_many(pairs, engine_ttl)
        case WritePolicy.INSERT_IF_ABSENT:
            keys = [key for key, _ in pairs]
            async with engine.transaction(keys):
                for key in keys:
                    if await engine.exists(key):
                        return False
                return await engine.put_many(pairs, engine_ttl)
        case WritePolicy.REPLACE:
            raise ValidationException(
                "put_all does not support the REPLACE policy",
                code="UNSUPPORTED_POLICY",
                context={"policy": policy.value},
            )
        case _:
            raise _unsupported("put_all", policy)


def _unsupported(operation: str, policy: Any) -> ValidationException:
    return ValidationException(
        f"{operation} does not support write policy {policy!r}",
        code="UNSUPPORTED_POLICY",
        context={"operation": operation, "policy": policy},
    )
