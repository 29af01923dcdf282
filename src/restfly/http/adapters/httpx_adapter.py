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
"""httpx-based transport adapter."""

from __future__ import annotations

import asyncio
import threading
from datetime import timedelta
from typing import Any

import httpx
import structlog

from restfly.http.filters import apply_filters
from restfly.http.payloads import CONTENT_TYPE, ContentMetadata, MultipartForm, Payload
from restfly.http.request import HttpRequest, HttpResponse

logger = structlog.get_logger("restfly.http")


class HttpxCommandExecutor:
    """HttpCommandExecutorPort backed by ``httpx.AsyncClient`` and ``httpx.Client``.

    ``submit`` uses an async client per event loop, ``invoke`` the blocking
    client. Pass ``transport``/``async_transport`` (e.g.
    ``httpx.MockTransport``) to replace the network.
    """

    def __init__(
        self,
        timeout: timedelta = timedelta(seconds=30),
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client_options: dict[str, Any] = {
            "timeout": timeout.total_seconds(),
            "headers": headers or {},
            "follow_redirects": follow_redirects,
        }
        self._async_transport = async_transport
        self._async_clients: dict[asyncio.AbstractEventLoop, httpx.AsyncClient] = {}
        self._lock = threading.Lock()
        self._client = httpx.Client(transport=transport, **self._client_options)

    def _async_client(self) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        with self._lock:
            client = self._async_clients.get(loop)
            if client is None:
                self._drop_dead_loop_clients()
                client = httpx.AsyncClient(transport=self._async_transport, **self._client_options)
                self._async_clients[loop] = client
            return client

    async def submit(self, request: HttpRequest) -> HttpResponse:
        request = apply_filters(request)
        logger.debug("sending request", request=request.request_line)
        response = await self._async_client().request(request.method, request.endpoint, **self._to_httpx(request))
        return self._from_httpx(response)

    def invoke(self, request: HttpRequest) -> HttpResponse:
        request = apply_filters(request)
        logger.debug("sending request", request=request.request_line)
        response = self._client.request(request.method, request.endpoint, **self._to_httpx(request))
        return self._from_httpx(response)

    @staticmethod
    def _to_httpx(request: HttpRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        payload = request.payload
        if isinstance(payload, MultipartForm):
            # httpx writes the boundary into Content-Type itself
            kwargs["headers"] = list(request.header_items)
            kwargs["files"] = [
                (
                    part.name,
                    (part.filename, part.payload.read_bytes(), part.payload.content_type),
                )
                for part in payload.parts
            ]
            return kwargs
        kwargs["headers"] = request.all_header_items()
        if payload is not None:
            kwargs["content"] = payload.read_bytes()
        return kwargs

    @staticmethod
    def _from_httpx(response: httpx.Response) -> HttpResponse:
        header_items = tuple(response.headers.multi_items())
        payload = None
        if response.content or response.headers.get(CONTENT_TYPE):
            payload = Payload(
                response.content,
                ContentMetadata().with_headers(header_items),
            )
        logger.debug("received response", status=response.status_code, url=str(response.url))
        return HttpResponse(
            header_items=header_items,
            payload=payload,
            status_code=response.status_code,
            message=response.reason_phrase,
        )

    async def start(self) -> None:
        """No-op -- httpx clients are ready after construction."""

    async def stop(self) -> None:
        """Close the underlying HTTP clients."""
        await self.aclose()

    def _drop_dead_loop_clients(self) -> None:
        # a client bound to a closed loop cannot be awaited any more
        for loop in [loop for loop in self._async_clients if loop.is_closed()]:
            del self._async_clients[loop]
            logger.debug("dropped async client of a closed event loop")

    def _take_async_clients(self) -> dict[asyncio.AbstractEventLoop, httpx.AsyncClient]:
        with self._lock:
            clients, self._async_clients = self._async_clients, {}
        return clients

    async def aclose(self) -> None:
        """Close the blocking client and the async clients of live loops.

        The running loop's client is awaited directly; clients of loops
        running on other threads are closed on their own loop.
        """
        current = asyncio.get_running_loop()
        for loop, client in self._take_async_clients().items():
            if loop is current:
                await client.aclose()
            elif loop.is_running():
                await asyncio.wrap_future(asyncio.run_coroutine_threadsafe(client.aclose(), loop))
        self._client.close()

    def close(self) -> None:
        """Close the blocking client and the async clients of live loops.

        Must not be called from a coroutine; use :meth:`aclose` there.
        """
        for loop, client in self._take_async_clients().items():
            if loop.is_running():
                asyncio.run_coroutine_threadsafe(client.aclose(), loop).result()
            elif not loop.is_closed():
                loop.run_until_complete(client.aclose())
        self._client.close()
