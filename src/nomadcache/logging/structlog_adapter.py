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
"""structlog rendering for nomadcache events."""

from __future__ import annotations

import hashlib
import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from nomadcache.config.properties.logging import LoggingProperties
from nomadcache.core.config import Config

_ROOT_LOGGER = "nomadcache"

# Event fields that carry cache keys. Memoized keys embed call arguments.
_KEY_FIELDS = ("key",)


def add_component(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Tag events from ``nomadcache.<component>...`` loggers with ``component``."""
    name = event_dict.get("logger")
    if isinstance(name, str) and name.startswith(f"{_ROOT_LOGGER}."):
        event_dict.setdefault("component", name.removeprefix(f"{_ROOT_LOGGER}."))
    return event_dict


def redact_cache_keys(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Replace cache keys with a short digest so argument values stay out of logs."""
    for field in _KEY_FIELDS:
        value = event_dict.get(field)
        if isinstance(value, str):
            event_dict[field] = "sha256:" + hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]
    return event_dict


class StructlogAdapter:
    """Renders the events nomadcache modules emit through structlog.

    Library modules log through ``structlog.get_logger("nomadcache.*")``
    with event names such as ``cache_write_failed`` or
    ``prefetch_loader_failed``. Calling :meth:`configure` once at start-up
    decides levels, rendering and whether cache keys are redacted.
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}
        self._redact_keys = False

    def configure(self, config: Config) -> None:
        """Configure structlog from the nomadcache.logging section."""
        props = config.bind(LoggingProperties)
        levels = dict(props.level)
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = {k: str(v).upper() for k, v in levels.items()}
        self._format = str(props.format).lower()
        self._redact_keys = props.redact_keys

        structlog.configure(
            processors=self.processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )
        for module, level in self._module_levels.items():
            self.set_level(module, level)

    def processors(self) -> list[structlog.types.Processor]:
        """The processor chain for the current settings, renderer last."""
        chain: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            add_component,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
        if self._redact_keys:
            chain.append(redact_cache_keys)
        if self._format == "json":
            chain.append(structlog.processors.JSONRenderer())
        else:
            chain.append(structlog.dev.ConsoleRenderer())
        return chain

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def bind_context(self, **values: Any) -> None:
        """Attach *values* to every event logged from the current context."""
        structlog.contextvars.bind_contextvars(**values)

    def clear_context(self) -> None:
        structlog.contextvars.clear_contextvars()
