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
"""Blocking adaptation of asynchronous interface methods."""

from __future__ import annotations

import concurrent.futures
from collections.abc import Mapping
from typing import Any

import structlog

from restfly.kernel.exceptions import (
    ConfigurationException,
    InvocationException,
    MissingAsyncCounterpartException,
    OperationTimeoutException,
)
from restfly.rest.annotations import get_metadata
from restfly.rest.invocation import Invokable, Invocation, interface_methods

logger = structlog.get_logger("restfly.rest")


def needs_async_counterpart(invokable: Invokable) -> bool:
    """Synchronous methods that are not HTTP-bound themselves, delegates or providers."""
    metadata = invokable.metadata
    return not (invokable.is_async or metadata.is_http or metadata.delegate or metadata.provides)


class SyncToAsyncMethodMap:
    """Pairs synchronous interfaces with their asynchronous counterparts.

    Each synchronous method without HTTP metadata of its own is mapped to the
    same-named asynchronous method of the same arity. Mapping happens when
    the proxy is created, so a missing counterpart fails fast.

    The return types of same-named ``delegate`` methods are paired too, down
    the whole delegate tree, unless a pair for them was given explicitly.
    """

    def __init__(self, pairs: Mapping[type, type] | None = None) -> None:
        self._pairs: dict[type, type] = dict(pairs or {})
        self._methods: dict[type, dict[str, Invokable]] = {}
        for sync_api, async_api in list(self._pairs.items()):
            self._pair_delegates(sync_api, async_api)

    def pair(self, sync_api: type, async_api: type) -> None:
        self._pairs[sync_api] = async_api
        self._methods.pop(sync_api, None)
        self._pair_delegates(sync_api, async_api)

    def _pair_delegates(self, sync_api: type, async_api: type) -> None:
        async_methods = dict(interface_methods(async_api))
        for name, func in interface_methods(sync_api):
            invokable = Invokable.of(sync_api, func)
            counterpart_func = async_methods.get(name)
            if not invokable.metadata.delegate or counterpart_func is None:
                continue
            counterpart = Invokable.of(async_api, counterpart_func)
            target, async_target = invokable.return_type, counterpart.return_type
            if (
                counterpart.metadata.delegate
                and isinstance(target, type)
                and isinstance(async_target, type)
                and target is not async_target
                and target not in self._pairs
            ):
                logger.debug("paired delegate api", sync_api=target.__name__, async_api=async_target.__name__)
                self.pair(target, async_target)

    def async_for(self, sync_api: type) -> type | None:
        return self._pairs.get(sync_api)

    def methods_for(self, sync_api: type) -> dict[str, Invokable]:
        if sync_api not in self._methods:
            self._methods[sync_api] = self._resolve(sync_api)
        return self._methods[sync_api]

    def _resolve(self, sync_api: type) -> dict[str, Invokable]:
        async_api = self._pairs.get(sync_api)
        async_methods = dict(interface_methods(async_api)) if async_api is not None else {}
        resolved: dict[str, Invokable] = {}
        for name, func in interface_methods(sync_api):
            invokable = Invokable.of(sync_api, func)
            if not needs_async_counterpart(invokable):
                continue
            if async_api is None:
                raise MissingAsyncCounterpartException(
                    f"{invokable} has no http metadata and {sync_api.__name__} has no async counterpart",
                    code="MISSING_ASYNC_COUNTERPART",
                )
            counterpart_func = async_methods.get(name)
            counterpart = Invokable.of(async_api, counterpart_func) if counterpart_func is not None else None
            if counterpart is None or counterpart.arity != invokable.arity:
                raise MissingAsyncCounterpartException(
                    f"no async counterpart for {invokable} with {invokable.arity} parameter(s) "
                    f"on {async_api.__name__}",
                    code="MISSING_ASYNC_COUNTERPART",
                )
            resolved[name] = counterpart
        return resolved

    def to_async(self, invocation: Invocation) -> Invocation:
        counterpart = self.methods_for(invocation.interface)[invocation.invokable.name]
        return Invocation(self._pairs[invocation.interface], counterpart, invocation.args)


class TimeoutTable:
    """Blocking timeouts in seconds for synchronous methods.

    Lookup order: ``Class.method`` entry, method ``timeout``, ``Class``
    entry, interface ``timeout``, ``default`` entry. ``None`` means unbounded.
    """

    def __init__(self, table: Mapping[str, Any] | None = None) -> None:
        self._table = {str(k): v for k, v in (table or {}).items()}

    def timeout_for(self, interface: type, invokable: Invokable) -> float | None:
        method_key = f"{interface.__name__}.{invokable.name}"
        if method_key in self._table:
            return self._seconds(self._table[method_key])
        if invokable.metadata.timeout is not None:
            return invokable.metadata.timeout
        if interface.__name__ in self._table:
            return self._seconds(self._table[interface.__name__])
        interface_metadata = get_metadata(interface)
        if interface_metadata is not None and interface_metadata.timeout is not None:
            return interface_metadata.timeout
        if "default" in self._table:
            return self._seconds(self._table["default"])
        return None

    @staticmethod
    def _seconds(value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationException(f"invalid timeout value {value!r}") from exc


def block_on(
    future: concurrent.futures.Future[Any],
    timeout: float | None,
    invocation: Invocation,
) -> Any:
    """Wait for *future*; on expiry cancel it and raise :class:`OperationTimeoutException`."""
    try:
        return future.result(timeout)
    except TimeoutError as exc:
        if future.done() and not future.cancelled() and future.exception() is exc:
            exc.add_note(f"while invoking {invocation}")
            raise
        if not future.cancel():
            # finished between expiry and cancel
            return block_on(future, None, invocation)
        logger.debug("invocation timed out", invocation=str(invocation), timeout=timeout)
        raise OperationTimeoutException(
            f"{invocation} exceeded timeout of {timeout}s",
            code="TIMEOUT",
            context={"timeout": timeout},
        ) from exc
    except Exception as exc:
        exc.add_note(f"while invoking {invocation}")
        raise
    except BaseException as exc:
        if isinstance(exc, (KeyboardInterrupt, SystemExit)):
            raise
        raise InvocationException(f"{invocation} failed: {exc!r}") from exc
