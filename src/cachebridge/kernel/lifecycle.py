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
"""Lifecycle protocol for components that own an engine instance."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Lifecycle(Protocol):
    """Standard start/stop lifecycle.

    Caches own the engine they start: ``start()`` initializes the engine and
    binds a handle to it, ``stop()`` tears the engine down and invalidates
    the handle. Owners call ``stop()`` in reverse start order.
    """

    async def start(self) -> None:
        """Initialize the engine. Raise if it cannot be brought up."""
        ...

    async def stop(self) -> None:
        """Release the engine. Safe to call more than once."""
        ...
