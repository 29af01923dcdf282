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
"""Tests for the httpx transport adapter."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from restfly.http.adapters.httpx_adapter import HttpxCommandExecutor
from restfly.http.filters import StripExpectHeader
from restfly.http.payloads import MultipartForm, Part, new_string_payload
from restfly.http.ports.outbound import HttpCommandExecutorPort
from restfly.http.request import request
from restfly.rest.internal.executor import LoopExecutor


class Recorder:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, req: httpx.Request) -> httpx.Response:
        self.requests.append(req)
        return httpx.Response(200, json={"ok": True}, headers={"X-Server": "mock"})


def make_executor(recorder: Recorder) -> HttpxCommandExecutor:
    return HttpxCommandExecutor(
        transport=httpx.MockTransport(recorder),
        async_transport=httpx.MockTransport(recorder),
    )


class TestHttpxCommandExecutor:
    def test_conforms_to_port(self) -> None:
        assert isinstance(make_executor(Recorder()), HttpCommandExecutorPort)

    def test_invoke_sends_headers_and_body(self) -> None:
        recorder = Recorder()
        executor = make_executor(recorder)
        payload = new_string_payload('{"a":1}').with_metadata(content_type="application/json")
        req = request("POST", "http://localhost/servers", headers={"Accept": "application/json"}).with_payload(
            payload
        )

        resp = executor.invoke(req)

        sent = recorder.requests[0]
        assert sent.method == "POST"
        assert sent.headers["content-type"] == "application/json"
        assert sent.headers["accept"] == "application/json"
        assert sent.content == b'{"a":1}'
        assert resp.status_code == 200
        assert resp.first_header_or_none("x-server") == "mock"
        assert resp.payload is not None
        assert resp.payload.content_type == "application/json"
        executor.close()

    @pytest.mark.asyncio
    async def test_submit_applies_filters(self) -> None:
        recorder = Recorder()
        executor = make_executor(recorder)
        req = request("PUT", "http://localhost/x", headers={"Expect": "100-continue"})

        resp = await executor.submit(req.with_filters([StripExpectHeader()]))

        assert "expect" not in recorder.requests[0].headers
        assert json.loads(resp.read_text()) == {"ok": True}
        await executor.aclose()

    def test_multipart_form(self) -> None:
        recorder = Recorder()
        executor = make_executor(recorder)
        form = MultipartForm(
            parts=(
                Part.create("name", "report"),
                Part.create("file", b"abc", content_type="text/plain", filename="a.txt"),
            )
        )

        executor.invoke(request("POST", "http://localhost/upload").with_payload(form))

        sent = recorder.requests[0]
        assert sent.headers["content-type"].startswith("multipart/form-data; boundary=")
        body = sent.read()
        assert b'name="name"' in body
        assert b'filename="a.txt"' in body
        assert b"abc" in body
        executor.close()


class TestAsyncClientLifecycle:
    def test_clients_of_closed_loops_are_dropped(self) -> None:
        executor = make_executor(Recorder())
        for _ in range(3):
            asyncio.run(executor.submit(request("GET", "http://localhost/ping")))
        assert len(executor._async_clients) == 1

        executor.close()
        assert executor._async_clients == {}

    async def test_aclose_closes_the_running_loop_client(self) -> None:
        executor = make_executor(Recorder())
        await executor.submit(request("GET", "http://localhost/ping"))
        client = executor._async_clients[asyncio.get_running_loop()]

        await executor.aclose()
        assert client.is_closed

    def test_close_closes_clients_of_loops_running_elsewhere(self) -> None:
        loop = LoopExecutor("adapter-test")
        executor = make_executor(Recorder())
        try:
            loop.submit(executor.submit(request("GET", "http://localhost/ping"))).result(5)
            (client,) = executor._async_clients.values()

            executor.close()
            assert client.is_closed
        finally:
            loop.shutdown()
