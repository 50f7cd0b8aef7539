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
"""Cache configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cachebridge.core.config import config_properties


@config_properties(prefix="cachebridge.cache")
class CacheProperties(BaseModel):
    """Configuration for one cache instance (cachebridge.cache.*).

    ``stats`` is fixed when the cache starts. ``default_ttl``, ``limit`` and
    ``lock_timeout`` are consumed by the engine; ``page_size`` is the
    stream batch size used when a caller does not pass one. Durations are
    integer milliseconds.

    ``default_ttl`` also applies to writes made with ``ttl=INFINITY``: the
    engine cannot tell an explicit "no expiry" from an omitted TTL, so with
    a default set every write expires.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="default", min_length=1)
    stats: bool = False
    telemetry: bool = True
    telemetry_prefix: str = "cachebridge.cache"
    default_ttl: int | None = Field(default=None, gt=0)
    limit: int | None = Field(default=None, gt=0)
    page_size: int = Field(default=20, ge=1)
    lock_timeout: int = Field(default=5000, gt=0)
