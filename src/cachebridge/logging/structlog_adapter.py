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
"""StructlogAdapter: LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

from cachebridge.core.config import Config

_LEVELS = logging.getLevelNamesMapping()


def _level(name: object) -> int:
    return _LEVELS.get(str(name).upper(), logging.INFO)


class StructlogAdapter:
    """Routes cachebridge's structlog and stdlib loggers to one stdout handler.

    Reads ``cachebridge.logging.level`` (``root`` plus per-logger levels,
    e.g. ``cachebridge.cache: DEBUG`` to see command spans) and
    ``cachebridge.logging.format`` (``console`` or ``json``).
    """

    def __init__(self) -> None:
        self.root_level = logging.INFO
        self.renderer = "console"
        self.logger_levels: dict[str, int] = {}

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("cachebridge.logging.level"))
        self.root_level = _level(levels.pop("root", "INFO"))
        self.logger_levels = {name: _level(value) for name, value in levels.items()}
        self.renderer = str(config.get("cachebridge.logging.format", "console")).lower()

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(default=repr)
                if self.renderer == "json"
                else structlog.dev.ConsoleRenderer(),
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
        )
        logging.basicConfig(format="%(message)s", stream=sys.stdout, level=self.root_level, force=True)
        for name, level in self.logger_levels.items():
            logging.getLogger(name).setLevel(level)
