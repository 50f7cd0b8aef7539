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
"""Persistence bridge and stats reporter."""

from __future__ import annotations

import logging
import os
from typing import Any

from cachebridge.cache.ports.outbound import EnginePersistenceError
from cachebridge.cache.types import CacheHandle, Stats
from cachebridge.kernel.exceptions import PersistenceError, ValidationException

_logger = logging.getLogger(__name__)


def _compression(opts: dict[str, Any]) -> int:
    level = opts.get("compression", 0)
    if not isinstance(level, int) or isinstance(level, bool) or not 0 <= level <= 9:
        raise ValidationException(
            f"compression must be an integer between 0 and 9, got {level!r}",
            code="INVALID_COMPRESSION",
        )
    return level


async def dump(handle: CacheHandle, path: str | os.PathLike[str], **opts: Any) -> None:
    """Write a snapshot of the live entries to *path*.

    Raises:
        PersistenceError: with the engine's reason, unchanged.
    """
    target = os.fspath(path)
    try:
        await handle.engine.dump(target, compression=_compression(opts))
    except EnginePersistenceError as exc:
        raise PersistenceError(exc.reason, path=target) from exc
    _logger.info("Cache '%s' dumped to '%s'", handle.name, target)


async def load(handle: CacheHandle, path: str | os.PathLike[str], **opts: Any) -> None:
    """Load a snapshot written by :func:`dump` into the cache.

    Raises:
        PersistenceError: with the engine's reason, unchanged.
    """
    target = os.fspath(path)
    try:
        await handle.engine.load(target)
    except EnginePersistenceError as exc:
        raise PersistenceError(exc.reason, path=target) from exc
    _logger.info("Cache '%s' loaded from '%s'", handle.name, target)


async def stats(handle: CacheHandle) -> Stats | None:
    """Engine counters as :class:`Stats`, or ``None`` when stats are disabled."""
    if not handle.stats:
        return None
    measurements = dict(await handle.engine.stats())
    metadata = measurements.pop("meta", {})
    return Stats(measurements=measurements, metadata=metadata)
