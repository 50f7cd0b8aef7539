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
"""Layered configuration: packaged defaults, YAML/TOML files, env vars, model binding."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cachebridge.kernel.exceptions import ValidationException

T = TypeVar("T")

_CONFIG_PROPERTIES_ATTR = "__cachebridge_config_prefix__"
_ENV_PREFIX = "CACHEBRIDGE_"
_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a class as bindable to a configuration prefix.

    Works with both dataclasses and Pydantic models. Pydantic models are
    validated with ``model_validate()`` so bad option values fail when the
    cache is configured, not on first use.

    Usage:
        @config_properties(prefix="cachebridge.cache")
        class CacheProperties(BaseModel):
            name: str = "default"
            page_size: int = Field(default=20, ge=1)
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (``cachebridge.cache.name`` -> ``CACHEBRIDGE_CACHE_NAME``)
    2. Configuration dict / file values
    3. Packaged defaults (``cachebridge-defaults.yaml``)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Config sources that were merged, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load and merge config from the packaged defaults and *base_dir*.

        Merge order (later wins):
        1. Packaged defaults
        2. ``cachebridge.yaml`` / ``cachebridge.toml`` in *base_dir*
        3. Profile overlays ``cachebridge-{profile}.yaml|toml``
        """
        base_dir = Path(base_dir)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append("cachebridge-defaults.yaml (defaults)")

        stems = ["cachebridge"] + [f"cachebridge-{p}" for p in active_profiles or []]
        for stem in stems:
            for ext in (".yaml", ".toml"):
                candidate = base_dir / f"{stem}{ext}"
                if candidate.is_file():
                    data = cls._deep_merge(data, cls._load_file(candidate))
                    sources.append(str(candidate))

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @classmethod
    def from_file(cls, path: str | Path, load_defaults: bool = True) -> Config:
        """Load a single YAML or TOML file on top of the packaged defaults."""
        path = Path(path)
        data = cls._load_defaults() if load_defaults else {}
        sources = ["cachebridge-defaults.yaml (defaults)"] if load_defaults else []
        if path.is_file():
            data = cls._deep_merge(data, cls._load_file(path))
            sources.append(str(path))
        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _load_file(path: Path) -> dict[str, Any]:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f) or {}
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        defaults = importlib.resources.files("cachebridge.resources").joinpath("cachebridge-defaults.yaml")
        with importlib.resources.as_file(defaults) as p, open(p) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def _env_key(key: str) -> str:
        base = key.removeprefix("cachebridge.")
        return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def _resolve(self, value: Any, depth: int = 0) -> Any:
        """Expand ``${NAME}``, ``${dotted.key}`` and ``${key:fallback}`` in string values.

        Environment variables win over config references.
        """
        if not isinstance(value, str) or "${" not in value:
            return value
        if depth > 10:
            raise ValidationException(
                f"Placeholder nesting too deep in '{value}'; check for circular references",
                code="CONFIG_PLACEHOLDER",
            )

        def _substitute(match: re.Match[str]) -> str:
            ref, _, fallback = match.group(1).partition(":")
            env_val = os.environ.get(ref)
            if env_val is not None:
                return env_val
            found = self._lookup(ref)
            if found is not None:
                return str(self._resolve(str(found), depth + 1))
            if match.group(1) != ref:
                return fallback
            raise ValidationException(
                f"Cannot resolve placeholder '${{{ref}}}' from environment or config",
                code="CONFIG_PLACEHOLDER",
                context={"placeholder": ref},
            )

        return _PLACEHOLDER_RE.sub(_substitute, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values have their ``${...}`` placeholders expanded.
        """
        env_val = os.environ.get(self._env_key(key))
        if env_val is not None:
            return env_val

        current = self._lookup(key)
        if current is None:
            return default
        return self._resolve(current)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix, with env overrides applied to its leaves."""
        current: Any = self._data
        for part in prefix.split("."):
            if not isinstance(current, dict):
                return {}
            current = current.get(part, {})
        section = {k: self._resolve(v) for k, v in current.items()} if isinstance(current, dict) else {}

        env_prefix = self._env_key(prefix) + "_"
        for env_key, env_val in os.environ.items():
            if env_key.startswith(env_prefix):
                section[env_key.removeprefix(env_prefix).lower()] = env_val
        return section

    def bind(self, config_cls: type[T]) -> T:
        """Bind configuration to a @config_properties dataclass or Pydantic model."""
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)

        if isinstance(config_cls, type) and issubclass(config_cls, BaseModel):
            try:
                return config_cls.model_validate(section)
            except PydanticValidationError as exc:
                raise ValidationException(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}",
                    code="CONFIG_INVALID",
                    context={"prefix": prefix},
                ) from exc

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            if field.name in section:
                value = section[field.name]
                expected_type = hints.get(field.name)
                if expected_type is int and isinstance(value, str):
                    value = int(value)
                elif expected_type is bool and isinstance(value, str):
                    value = value.lower() in ("true", "1", "yes")
                kwargs[field.name] = value

        return config_cls(**kwargs)
