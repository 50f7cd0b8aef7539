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
"""Tests for StructlogAdapter, the default LoggingPort implementation."""

import json
import logging

import structlog

from cachebridge.cache import Cache
from cachebridge.core.config import Config
from cachebridge.logging.port import LoggingPort
from cachebridge.logging.structlog_adapter import StructlogAdapter


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter.root_level == logging.INFO
        assert adapter.renderer == "console"

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"cachebridge": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter.root_level == logging.DEBUG
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"cachebridge": {"logging": {"level": {"root": "chatty"}}}}))
        assert adapter.root_level == logging.INFO

    def test_configure_reads_per_logger_levels(self):
        adapter = StructlogAdapter()
        config = Config({"cachebridge": {"logging": {"level": {"root": "INFO", "cachebridge.cache": "DEBUG"}}}})
        adapter.configure(config)
        assert adapter.logger_levels == {"cachebridge.cache": logging.DEBUG}
        assert logging.getLogger("cachebridge.cache").level == logging.DEBUG
        logging.getLogger("cachebridge.cache").setLevel(logging.NOTSET)

    def test_json_format(self, capsys):
        adapter = StructlogAdapter()
        adapter.configure(Config({"cachebridge": {"logging": {"format": "JSON"}}}))
        assert adapter.renderer == "json"
        structlog.get_logger("cachebridge.test").info("cache.started", cache="sessions")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "cache.started"
        assert event["cache"] == "sessions"
        assert event["logger"] == "cachebridge.test"


class RecordingLogging:
    def __init__(self) -> None:
        self.configured_with: Config | None = None

    def configure(self, config: Config) -> None:
        self.configured_with = config


class TestCacheConfiguresLogging:
    def test_from_config_uses_logging_port(self):
        port = RecordingLogging()
        config = Config({"cachebridge": {"cache": {"name": "logged"}}})
        cache = Cache.from_config(config, logging_port=port)
        assert isinstance(port, LoggingPort)
        assert port.configured_with is config
        assert cache.name == "logged"
