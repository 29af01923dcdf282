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
"""Proxies for annotated interfaces and the function their methods delegate to."""

from __future__ import annotations

import functools
import inspect
from typing import Any

import structlog

from restfly.container import Container
from restfly.rest.internal.cache import LoadingCache
from restfly.rest.internal.invoke_http_method import InvokeHttpMethod
from restfly.rest.internal.sync_async import SyncToAsyncMethodMap, TimeoutTable, needs_async_counterpart
from restfly.rest.invocation import Invokable, Invocation, interface_methods

logger = structlog.get_logger("restfly.rest")

_HANDLER_ATTR = "__restfly_handler__"


class ImplicitOptionalConverter:
    """Decides what an ``Optional`` delegate method returns; the proxy by default.

    Register a subclass in the container to return ``None`` for APIs a
    provider does not support.
    """

    def __call__(self, invocation: Invocation, proxy: Any) -> Any:
        return proxy


def _proxy_method(invokable: Invokable) -> Any:
    if inspect.iscoroutinefunction(invokable.func):

        async def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            result = getattr(self, _HANDLER_ATTR).invoke(invokable, args, kwargs)
            if inspect.isawaitable(result):
                return await result
            return result

    else:

        def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            return getattr(self, _HANDLER_ATTR).invoke(invokable, args, kwargs)

    functools.update_wrapper(method, invokable.func)
    return method


def _build_proxy_class(interface: type) -> type:
    namespace: dict[str, Any] = {
        name: _proxy_method(Invokable.of(interface, func)) for name, func in interface_methods(interface)
    }
    namespace["__module__"] = interface.__module__
    namespace["__qualname__"] = f"{interface.__qualname__}Proxy"
    namespace["__repr__"] = lambda self: f"<{interface.__name__} proxy {getattr(self, _HANDLER_ATTR)!r}>"
    return type(interface)(f"{interface.__name__}Proxy", (interface,), namespace)


_proxy_classes: LoadingCache[type, type] = LoadingCache(_build_proxy_class)


def create_proxy(handler: DelegatesToInvocationFunction) -> Any:
    """Instance of *handler*'s interface whose methods call the handler."""
    cls = _proxy_classes.get(handler.interface)
    proxy = object.__new__(cls)
    object.__setattr__(proxy, _HANDLER_ATTR, handler)
    return proxy


class DelegatesToInvocationFunction:
    """Routes proxy calls by kind of method.

    ``provides`` methods return container objects, ``delegate`` methods
    return nested proxies bound to the current invocation, asynchronous
    methods return awaitables, and synchronous methods block, either on
    their own HTTP metadata or on their asynchronous counterpart.
    """

    def __init__(
        self,
        interface: type,
        container: Container,
        http: InvokeHttpMethod,
        sync_map: SyncToAsyncMethodMap,
        timeouts: TimeoutTable,
        caller: Invocation | None = None,
    ) -> None:
        self.interface = interface
        self.caller = caller
        self._container = container
        self._http = http
        self._sync_map = sync_map
        self._timeouts = timeouts
        self._check_counterparts()

    def _check_counterparts(self) -> None:
        for _, func in interface_methods(self.interface):
            if needs_async_counterpart(Invokable.of(self.interface, func)):
                self._sync_map.methods_for(self.interface)
                return

    def invoke(self, invokable: Invokable, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        invocation = Invocation.create(invokable, args, kwargs, interface=self.interface)
        metadata = invokable.metadata
        if metadata.provides:
            return self._provides(invocation)
        if metadata.delegate:
            return self._delegate(invocation)
        if invokable.is_async:
            return self._http.invoke_async(invocation)
        timeout = self._timeouts.timeout_for(self.interface, invokable)
        if metadata.is_http:
            return self._http.invoke(invocation, timeout)
        return self._http.invoke_with_timeout(self._sync_map.to_async(invocation), timeout)

    def _provides(self, invocation: Invocation) -> Any:
        invokable = invocation.invokable
        name = invokable.metadata.provides_name
        if name:
            if self._container.get_existing_binding(name=name) is not None:
                return self._container.resolve_by_name(name)
            supplier = self._container.get_existing_supplier(name)
            if supplier is not None:
                return supplier()
        return self._container.get_instance(invokable.return_type)

    def _delegate(self, invocation: Invocation) -> Any:
        invokable = invocation.invokable
        target = invokable.return_type
        logger.debug("creating delegate", delegate=target.__name__, caller=str(invocation))
        child = DelegatesToInvocationFunction(
            target,
            self._container,
            self._http.with_caller(invocation),
            self._sync_map,
            self._timeouts,
            caller=invocation,
        )
        proxy = create_proxy(child)
        if invokable.returns_optional:
            converter = self._container.get_instance(ImplicitOptionalConverter)
            return converter(invocation, proxy)
        return proxy

    def __repr__(self) -> str:
        return f"{self.interface.__name__}(caller={self.caller})" if self.caller else self.interface.__name__
