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
"""StructlogAdapter: default LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog

from restfly.core.config import Config

NAMESPACE = "restfly"


def drop_none(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Remove fields whose value is ``None`` (e.g. an unset endpoint)."""
    for key in [k for k, v in event_dict.items() if v is None]:
        del event_dict[key]
    return event_dict


class StructlogAdapter:
    """Default logging adapter backed by structlog.

    Reads ``restfly.logging.format`` (``console`` or ``json``),
    ``restfly.logging.level.*`` and ``restfly.logging.wire``. ``root`` is the
    level of the ``restfly`` logger and any other key names a child logger,
    e.g. ``restfly.rest: DEBUG`` to see request build, dispatch and parse
    events. ``wire: true`` shows every request sent and response received
    by the transport (``restfly.http`` at DEBUG).

    Only the ``restfly`` logger hierarchy gets a handler; the application's
    root logger is left untouched.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.level = "INFO"
        self.format = "console"
        self.wire = False
        self.logger_levels: dict[str, str] = {}
        self._stream = stream
        self._handler: logging.Handler | None = None

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("restfly.logging.level"))
        self.level = str(levels.pop("root", "INFO")).upper()
        self.logger_levels = {name: str(level).upper() for name, level in levels.items()}
        self.format = str(config.get("restfly.logging.format", "console")).lower()
        self.wire = str(config.get("restfly.logging.wire", False)).lower() in ("true", "1", "yes")
        if self.wire:
            self.logger_levels.setdefault("restfly.http", "DEBUG")

        structlog.configure(
            processors=self._processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self._install_handler()
        for name, level in self.logger_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _processors(self) -> list[structlog.types.Processor]:
        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            drop_none,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        if self.format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))
        return processors

    def _install_handler(self) -> None:
        logger = logging.getLogger(NAMESPACE)
        if self._handler is not None:
            logger.removeHandler(self._handler)
        self._handler = logging.StreamHandler(self._stream or sys.stderr)
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(self._handler)
        logger.setLevel(getattr(logging, self.level, logging.INFO))
        logger.propagate = False
