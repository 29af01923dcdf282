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
"""Layered configuration: framework defaults, YAML/TOML files, environment.

Later layers win. Keys are addressed with dot notation
(``restfly.rest.endpoint``) and any key can be overridden with an
environment variable named after it (``RESTFLY_REST_ENDPOINT``). String
values may reference other keys or environment variables through
``${name}`` or ``${name:default}`` placeholders.
"""

from __future__ import annotations

import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, TypeAdapter

T = TypeVar("T")

DEFAULTS_RESOURCE = "restfly-defaults.yaml"

_PREFIX_ATTR = "__restfly_config_prefix__"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10
_MISSING = object()


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Declare the configuration section a dataclass or pydantic model binds to.

    Usage::

        @config_properties(prefix="restfly.rest")
        @dataclass
        class RestProperties:
            endpoint: str = ""
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_var_name(key: str) -> str:
    """``restfly.rest.api-version`` -> ``RESTFLY_REST_API_VERSION``."""
    return "RESTFLY_" + re.sub(r"[.\-]", "_", key.removeprefix("restfly.")).upper()


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as f:
            return tomllib.load(f)
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _framework_defaults() -> dict[str, Any]:
    resource = importlib.resources.files("restfly.resources").joinpath(DEFAULTS_RESOURCE)
    return yaml.safe_load(resource.read_text(encoding="utf-8")) or {}


class Config:
    """Read-only view over merged configuration data."""

    def __init__(self, data: Mapping[str, Any] | None = None, sources: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._sources = list(sources)

    @classmethod
    def defaults(cls) -> Config:
        return cls(_framework_defaults(), [f"{DEFAULTS_RESOURCE} (framework defaults)"])

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: Iterable[str] = (),
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* on top of the framework defaults.

        For each active profile, ``<stem>-<profile><suffix>`` beside *path*
        is merged on top when it exists, in the order given. A missing
        *path* leaves only the defaults.
        """
        config = cls.defaults() if load_defaults else cls()
        path = Path(path)
        if not path.exists():
            return config
        config = config._layered(_read(path), str(path))
        for profile in active_profiles or ():
            overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
            if overlay.exists():
                config = config._layered(_read(overlay), f"{overlay} (profile: {profile})")
        return config

    def _layered(self, override: Mapping[str, Any], source: str | None = None) -> Config:
        sources = [*self._sources, source] if source else self._sources
        return Config(_deep_merge(self._data, override), sources)

    def merged_with(self, override: Mapping[str, Any]) -> Config:
        """Return a copy with *override* deep-merged on top."""
        return self._layered(override)

    @property
    def loaded_sources(self) -> list[str]:
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    # -- lookups ----------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dot-notation *key*; its environment variable wins."""
        from_env = os.environ.get(env_var_name(key))
        if from_env is not None:
            return from_env
        value = self._lookup(key)
        if value is _MISSING:
            return default
        if isinstance(value, str) and "${" in value:
            return self._interpolate(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Mapping stored at *prefix*, dotted child keys left intact."""
        value = self._lookup(prefix)
        return dict(value) if isinstance(value, Mapping) else {}

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, Mapping) or node.get(part) is None:
                return _MISSING
            node = node[part]
        return node

    def _interpolate(self, text: str, depth: int = 0) -> str:
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Placeholders in {text!r} nest too deeply; check for a reference cycle")

        def substitute(match: re.Match[str]) -> str:
            name, _, fallback = match.group(1).partition(":")
            has_fallback = ":" in match.group(1)
            if name in os.environ:
                return os.environ[name]
            value = self._lookup(name)
            if value is not _MISSING:
                value = str(value)
                return self._interpolate(value, depth + 1) if "${" in value else value
            if has_fallback:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}' from the environment or config")

        return _PLACEHOLDER.sub(substitute, text)

    # -- binding ----------------------------------------------------------

    def bind(self, target: type[T]) -> T:
        """Build *target* from its ``@config_properties`` section.

        Section keys have hyphens folded to underscores, so
        ``strip-expect-header`` fills ``strip_expect_header``. Values are
        validated and coerced by pydantic for models and dataclasses alike.
        """
        prefix = getattr(target, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{target.__name__} is not decorated with @config_properties")
        section = {key.replace("-", "_"): value for key, value in self.get_section(prefix).items()}
        if isinstance(target, type) and issubclass(target, BaseModel):
            return target.model_validate(section)  # type: ignore[return-value]
        return TypeAdapter(target).validate_python(section)
