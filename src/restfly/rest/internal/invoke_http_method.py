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
"""Dispatch of HTTP-bound invocations: build, send, check, transform, fall back."""

from __future__ import annotations

from typing import Any

import structlog

from restfly.container import Container
from restfly.http.ports.outbound import HttpCommandExecutorPort
from restfly.http.request import HttpResponse
from restfly.kernel.exceptions import AuthorizationException, HttpResponseException, OperationTimeoutException
from restfly.rest.fallbacks import Fallback, MapHttp4xxCodesToExceptions, first_of_type
from restfly.rest.internal.annotation_processor import RestAnnotationProcessor
from restfly.rest.internal.cache import LoadingCache
from restfly.rest.internal.executor import LoopExecutor
from restfly.rest.internal.generated_request import GeneratedHttpRequest
from restfly.rest.internal.sync_async import block_on
from restfly.rest.internal.transformer import TransformerForRequest
from restfly.rest.invocation import Invokable, Invocation

logger = structlog.get_logger("restfly.rest")


class FallbackCache:
    """Fallback instance per method: method ``fallback``, interface ``fallback``, else the default."""

    def __init__(self, container: Container) -> None:
        self._container = container
        self._cache: LoadingCache[Invokable, Fallback] = LoadingCache(self._load)

    def get(self, invokable: Invokable) -> Fallback:
        return self._cache.get(invokable)

    def _load(self, invokable: Invokable) -> Fallback:
        fallback_cls = invokable.single_valued("fallback") or MapHttp4xxCodesToExceptions
        if isinstance(fallback_cls, type):
            return self._container.get_instance(fallback_cls)
        return fallback_cls


def check_response(request: GeneratedHttpRequest, response: HttpResponse) -> HttpResponse:
    """Raise for responses with a status of 300 or more."""
    if response.status_code < 300:
        return response
    try:
        content = response.read_text()
    except (OSError, TypeError, ValueError):
        content = None
    error = HttpResponseException(request=request, response=response, content=content)
    if response.status_code in (401, 403):
        raise AuthorizationException(str(error), code="UNAUTHORIZED", context=error.context) from error
    raise error


class InvokeHttpMethod:
    """Sends the request of an invocation and converts the response."""

    def __init__(
        self,
        processor: RestAnnotationProcessor,
        transport: HttpCommandExecutorPort,
        transformers: TransformerForRequest,
        fallbacks: FallbackCache,
        executor: LoopExecutor,
    ) -> None:
        self.processor = processor
        self._transport = transport
        self._transformers = transformers
        self._fallbacks = fallbacks
        self._executor = executor

    def with_caller(self, caller: Invocation) -> InvokeHttpMethod:
        return InvokeHttpMethod(
            self.processor.with_caller(caller),
            self._transport,
            self._transformers,
            self._fallbacks,
            self._executor,
        )

    def _transform(self, request: GeneratedHttpRequest, response: HttpResponse) -> Any:
        check_response(request, response)
        transformer = self._transformers(request)
        result = transformer(response)
        logger.debug("parsed response", invocation=repr(request.invocation.invokable), status=response.status_code)
        return result

    def _fallback(self, invocation: Invocation, exc: Exception) -> Any:
        unauthorized = first_of_type(exc, AuthorizationException)
        if unauthorized is not None:
            raise unauthorized
        fallback = self._fallbacks.get(invocation.invokable)
        logger.debug(
            "applying fallback",
            invocation=repr(invocation.invokable),
            fallback=type(fallback).__name__,
            error=type(exc).__name__,
        )
        return fallback.create(exc)

    async def invoke_async(self, invocation: Invocation) -> Any:
        request = self.processor.apply(invocation)
        logger.debug("dispatching request", request=request.request_line, invocation=repr(invocation.invokable))
        try:
            response = await self._transport.submit(request)
            return self._transform(request, response)
        except Exception as exc:
            return self._fallback(invocation, exc)

    def invoke(self, invocation: Invocation, timeout: float | None = None) -> Any:
        """Blocking call; runs on the calling thread unless a *timeout* applies."""
        if timeout is not None:
            return self.invoke_with_timeout(invocation, timeout)
        request = self.processor.apply(invocation)
        logger.debug("dispatching request", request=request.request_line, invocation=repr(invocation.invokable))
        try:
            response = self._transport.invoke(request)
            return self._transform(request, response)
        except Exception as exc:
            return self._fallback(invocation, exc)

    def invoke_with_timeout(self, invocation: Invocation, timeout: float | None) -> Any:
        """Run the asynchronous path on the executor and block for its result."""
        future = self._executor.submit(self.invoke_async(invocation))
        try:
            return block_on(future, timeout, invocation)
        except OperationTimeoutException as exc:
            # a timeout raised by a finished call already went through the fallback
            if not future.cancelled():
                raise
            return self._fallback(invocation, exc)
