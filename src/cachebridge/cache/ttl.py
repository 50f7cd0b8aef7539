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
"""TTL normalization between the logical TTL and the engine's representation.

The engine counts in integer milliseconds and uses ``None`` for "no
expiration". Callers use ``INFINITY`` or a positive ``timedelta`` / int.
"""

from __future__ import annotations

from datetime import timedelta

from cachebridge.cache.types import INFINITY, Infinity, Ttl
from cachebridge.kernel.exceptions import ValidationException


def to_engine_ttl(ttl: Ttl) -> int | None:
    """Convert a logical TTL to engine milliseconds (``None`` for ``INFINITY``)."""
    if ttl is INFINITY:
        return None
    if isinstance(ttl, timedelta):
        ms = int(ttl.total_seconds() * 1000)
    elif isinstance(ttl, int) and not isinstance(ttl, bool):
        ms = ttl
    else:
        raise ValidationException(
            f"ttl must be INFINITY, a timedelta or an integer in milliseconds, got {ttl!r}",
            code="INVALID_TTL",
        )
    if ms <= 0:
        raise ValidationException(f"ttl must be positive, got {ttl!r}", code="INVALID_TTL")
    return ms


def from_engine_ttl(ms: int | None) -> int | Infinity:
    """Remaining engine milliseconds as a logical TTL (``None`` means ``INFINITY``)."""
    return INFINITY if ms is None else ms
