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
"""RestContext: wires the engine together and hands out API proxies.

Usage::

    context = (
        RestContext.builder(ServerApi, ServerAsyncApi)
        .endpoint("https://compute.example.com/v2")
        .build()
    )
    context.api.suspend("42")
    await context.async_api.suspend("42")
    context.close()
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import httpx
import structlog

from restfly.container import Container, Scope
from restfly.core.config import Config
from restfly.http.adapters.httpx_adapter import HttpxCommandExecutor
from restfly.http.ports.outbound import HttpCommandExecutorPort
from restfly.logging.port import LoggingPort
from restfly.logging.structlog_adapter import StructlogAdapter
from restfly.rest.internal.annotation_processor import PROVIDER_ENDPOINT, RestAnnotationProcessor
from restfly.rest.internal.delegates import DelegatesToInvocationFunction, create_proxy
from restfly.rest.internal.executor import LoopExecutor
from restfly.rest.internal.invoke_http_method import FallbackCache, InvokeHttpMethod
from restfly.rest.internal.sync_async import SyncToAsyncMethodMap, TimeoutTable
from restfly.rest.internal.transformer import TransformerForRequest
from restfly.rest.properties import RestProperties
from restfly.rest.validation import InputParamValidator

logger = structlog.get_logger("restfly.rest")


class RestContext:
    """A configured client: the proxies plus the container they resolve from."""

    def __init__(
        self,
        container: Container,
        api: Any,
        async_api: Any,
        transport: HttpCommandExecutorPort,
        executor: LoopExecutor,
    ) -> None:
        self.container = container
        self.api = api
        self.async_api = async_api
        self._transport = transport
        self._executor = executor

    @staticmethod
    def builder(api: type, async_api: type | None = None) -> RestContextBuilder:
        return RestContextBuilder(api, async_api)

    def close(self) -> None:
        # the transport closes its executor-loop client while that loop still runs
        self._transport.close()
        self._executor.shutdown()

    async def aclose(self) -> None:
        await self._transport.aclose()
        self._executor.shutdown()

    def __enter__(self) -> RestContext:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    async def __aenter__(self) -> RestContext:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class RestContextBuilder:
    """Fluent builder for :class:`RestContext`.

    *api* may be synchronous or asynchronous. When *async_api* is given,
    *api* is the synchronous face and its undecorated methods block on the
    same-named methods of *async_api*.
    """

    def __init__(self, api: type, async_api: type | None = None) -> None:
        self._api = api
        self._async_api = async_api
        self._pairs: dict[type, type] = {}
        if async_api is not None:
            self._pairs[api] = async_api
        self._endpoint: str | None = None
        self._config: Config | None = None
        self._transport: HttpCommandExecutorPort | None = None
        self._executor: LoopExecutor | None = None
        self._logging: LoggingPort | None = None
        self._registrations: list[Callable[[Container], None]] = []

    def endpoint(self, url: str | httpx.URL) -> RestContextBuilder:
        self._endpoint = str(url)
        return self

    def config(self, config: Config) -> RestContextBuilder:
        self._config = config
        return self

    def transport(self, transport: HttpCommandExecutorPort) -> RestContextBuilder:
        self._transport = transport
        return self

    def executor(self, executor: LoopExecutor) -> RestContextBuilder:
        self._executor = executor
        return self

    def logging(self, adapter: LoggingPort | None = None) -> RestContextBuilder:
        """Configure logging from ``restfly.logging.*`` when the context is built."""
        self._logging = adapter or StructlogAdapter()
        return self

    def pair(self, sync_api: type, async_api: type) -> RestContextBuilder:
        """Declare the async counterpart of a nested synchronous API.

        Needed only when it cannot be found through the same-named
        ``delegate`` method of the async interface.
        """
        self._pairs[sync_api] = async_api
        return self

    def bind_endpoint(self, name: str, url: str | httpx.URL | Callable[[], Any]) -> RestContextBuilder:
        """Make *url* available to ``endpoint(name)`` qualifiers."""
        supplier = url if callable(url) else (lambda: url)
        self._registrations.append(lambda c: c.register_supplier(supplier, name=name))
        return self

    def register_instance(self, instance: Any, *, name: str = "", as_type: type | None = None) -> RestContextBuilder:
        self._registrations.append(lambda c: c.register_instance(instance, name=name, as_type=as_type))
        return self

    def register(self, cls: type, scope: Scope = Scope.SINGLETON, name: str = "") -> RestContextBuilder:
        self._registrations.append(lambda c: c.register(cls, scope=scope, name=name))
        return self

    def bind(self, interface: type, implementation: type) -> RestContextBuilder:
        def register(c: Container) -> None:
            c.register(implementation)
            c.bind(interface, implementation)

        self._registrations.append(register)
        return self

    def build(self) -> RestContext:
        config = self._config or Config.defaults()
        if self._endpoint is not None:
            config = config.merged_with({"restfly": {"rest": {"endpoint": self._endpoint}}})
        if self._logging is not None:
            self._logging.configure(config)
        properties = config.bind(RestProperties)

        container = Container()
        container.register_instance(container)
        container.register_instance(config)
        container.register_instance(properties)
        if properties.endpoint:
            provider = httpx.URL(properties.endpoint)
            container.register_supplier(lambda: provider, name=PROVIDER_ENDPOINT)

        transport = self._transport or HttpxCommandExecutor(
            timeout=timedelta(seconds=properties.http_timeout),
            follow_redirects=properties.follow_redirects,
        )
        executor = self._executor or LoopExecutor()
        container.register_instance(transport, as_type=HttpCommandExecutorPort)
        container.register_instance(executor)
        for registration in self._registrations:
            registration(container)

        processor = RestAnnotationProcessor(
            container,
            InputParamValidator(container),
            api_version=properties.api_version,
            build_version=properties.build_version,
            strip_expect_header=properties.strip_expect_header,
        )
        http = InvokeHttpMethod(
            processor,
            transport,
            TransformerForRequest(container),
            FallbackCache(container),
            executor,
        )
        sync_map = SyncToAsyncMethodMap(self._pairs)
        timeouts = TimeoutTable(config.get_section("restfly.rest.timeouts"))
        container.register_instance(processor)
        container.register_instance(http)
        container.register_instance(sync_map)
        container.register_instance(timeouts)

        def proxy(interface: type) -> Any:
            return create_proxy(DelegatesToInvocationFunction(interface, container, http, sync_map, timeouts))

        api = proxy(self._api)
        async_api = proxy(self._async_api) if self._async_api is not None else None
        logger.debug(
            "rest context built",
            api=self._api.__name__,
            async_api=getattr(self._async_api, "__name__", None),
            endpoint=properties.endpoint or None,
        )
        return RestContext(container, api, async_api, transport, executor)
