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
"""Command spans: start/stop/exception events for every adapter command.

Each adapter command is wrapped with :func:`span`. When the handle has
telemetry enabled the span emits structlog events named
``<telemetry_prefix>.command.start``, ``.stop`` and ``.exception`` and
records the duration in the ``cachebridge_command_duration_seconds``
histogram.
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from cachebridge.observability.metrics import command_duration, command_exceptions

F = TypeVar("F", bound=Callable[..., Any])

logger = structlog.get_logger("cachebridge.cache")


def _start(handle: Any, command: str) -> float:
    logger.debug(f"{handle.telemetry_prefix}.command.start", cache=handle.name, command=command)
    return time.perf_counter()


def _stop(handle: Any, command: str, started: float) -> None:
    duration = time.perf_counter() - started
    command_duration.labels(cache=handle.name, command=command).observe(duration)
    logger.debug(
        f"{handle.telemetry_prefix}.command.stop",
        cache=handle.name,
        command=command,
        duration=duration,
    )


def _exception(handle: Any, command: str, started: float, exc: BaseException) -> None:
    duration = time.perf_counter() - started
    kind = type(exc).__name__
    command_duration.labels(cache=handle.name, command=command).observe(duration)
    command_exceptions.labels(cache=handle.name, command=command, kind=kind).inc()
    logger.debug(
        f"{handle.telemetry_prefix}.command.exception",
        cache=handle.name,
        command=command,
        duration=duration,
        kind=kind,
        reason=str(exc),
    )


def record_failure(handle: Any, command: str, exc: BaseException) -> None:
    """Count a failure that surfaces after *command* returned, e.g. while a stream is iterated."""
    if not handle.telemetry:
        return
    kind = type(exc).__name__
    command_exceptions.labels(cache=handle.name, command=command, kind=kind).inc()
    logger.debug(
        f"{handle.telemetry_prefix}.command.exception",
        cache=handle.name,
        command=command,
        kind=kind,
        reason=str(exc),
    )


def span(command: str) -> Callable[[F], F]:
    """Wrap an adapter method ``(self, handle, ...)`` in a telemetry span.

    Works on coroutine functions and on plain functions. For ``stream`` the
    span covers building the lazy stream only; failures during iteration
    are counted by the stream itself through :func:`record_failure`.
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(self: Any, handle: Any, *args: Any, **kwargs: Any) -> Any:
                if not handle.telemetry:
                    return await func(self, handle, *args, **kwargs)
                started = _start(handle, command)
                try:
                    result = await func(self, handle, *args, **kwargs)
                except Exception as exc:
                    _exception(handle, command, started, exc)
                    raise
                _stop(handle, command, started)
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(self: Any, handle: Any, *args: Any, **kwargs: Any) -> Any:
            if not handle.telemetry:
                return func(self, handle, *args, **kwargs)
            started = _start(handle, command)
            try:
                result = func(self, handle, *args, **kwargs)
            except Exception as exc:
                _exception(handle, command, started, exc)
                raise
            _stop(handle, command, started)
            return result

        return sync_wrapper  # type: ignore[return-value]

    return decorator
