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
"""Prometheus metric registry used by command telemetry."""

from __future__ import annotations

from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client import REGISTRY as DEFAULT_REGISTRY

COMMAND_BUCKETS = (0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0)


class MetricsRegistry:
    """Get-or-create wrapper around prometheus_client metrics.

    prometheus_client rejects duplicate registrations, so every metric is
    created once per registry and reused by all caches.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def counter(self, name: str, description: str, labels: list[str] | None = None) -> Counter:
        if name not in self._counters:
            self._counters[name] = Counter(name, description, labels or [], registry=self._registry)
        return self._counters[name]

    def histogram(
        self,
        name: str,
        description: str,
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ) -> Histogram:
        if name not in self._histograms:
            kwargs: dict[str, Any] = {"registry": self._registry}
            if buckets:
                kwargs["buckets"] = buckets
            self._histograms[name] = Histogram(name, description, labels or [], **kwargs)
        return self._histograms[name]


metrics = MetricsRegistry()

command_duration = metrics.histogram(
    "cachebridge_command_duration_seconds",
    "Time spent executing cache adapter commands",
    labels=["cache", "command"],
    buckets=COMMAND_BUCKETS,
)

command_exceptions = metrics.counter(
    "cachebridge_command_exceptions_total",
    "Cache adapter commands that raised",
    labels=["cache", "command", "kind"],
)
