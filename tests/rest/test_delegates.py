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
"""Tests for proxies, nested APIs and provided objects."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterator
from typing import Annotated, Any

import httpx
import pytest

from restfly.http.adapters.httpx_adapter import HttpxCommandExecutor
from restfly.http.payloads import APPLICATION_JSON
from restfly.kernel.exceptions import NullParameterException
from restfly.rest import (
    ImplicitOptionalConverter,
    NullOnNotFoundOr404,
    PathParam,
    PayloadParam,
    RestContext,
    consumes,
    delegate,
    fallback,
    get,
    path,
    payload,
    produces,
    provides,
    put,
    select_json,
    unwrap,
)
from restfly.rest.invocation import Invocation

ENDPOINT = "http://localhost:8774/v2"


class Credentials:
    def __init__(self) -> None:
        self.user = "demo"


@path("/flavors/{flavor_id}")
@consumes(APPLICATION_JSON)
class FlavorExtraSpecsAsyncApi:
    @get("/os-extra_specs/{key}")
    @unwrap()
    @fallback(NullOnNotFoundOr404)
    async def get_spec(self, key: Annotated[str, PathParam("key")]) -> str | None: ...

    @put("/os-extra_specs/{key}")
    @produces(APPLICATION_JSON)
    @payload('{"{key}":"{value}"}')
    async def set_spec(
        self,
        key: Annotated[str, PathParam("key"), PayloadParam("key")],
        value: Annotated[str, PayloadParam("value")],
    ) -> None: ...


class FlavorExtraSpecsApi:
    def get_spec(self, key: str) -> str | None: ...

    def set_spec(self, key: str, value: str) -> None: ...


@path("/regions/{region}")
@consumes(APPLICATION_JSON)
class ZoneAsyncApi:
    @get("/zones")
    async def list_zones(self) -> list[str]: ...

    @get("/zones")
    async def list_zones_in(self, region: Annotated[str, PathParam("region")]) -> list[str]: ...


@consumes(APPLICATION_JSON)
class FloatingIpAsyncApi:
    @get("/os-floating-ips")
    @select_json("floating_ips")
    async def list_ips(self) -> list[str]: ...


class ComputeAsyncApi:
    @delegate()
    def extra_specs(self, flavor_id: Annotated[str, PathParam("flavor_id")]) -> FlavorExtraSpecsAsyncApi: ...

    @delegate()
    def zones(self, region: Annotated[str, PathParam("region")]) -> ZoneAsyncApi: ...

    @delegate()
    def floating_ips(self) -> FloatingIpAsyncApi | None: ...

    @provides()
    def credentials(self) -> Credentials: ...

    @provides("region-names")
    def regions(self) -> list[str]: ...


class ComputeApi:
    @delegate()
    def extra_specs(self, flavor_id: Annotated[str, PathParam("flavor_id")]) -> FlavorExtraSpecsApi: ...

    @provides()
    def credentials(self) -> Credentials: ...


class NoExtensions(ImplicitOptionalConverter):
    def __call__(self, invocation: Invocation, proxy: Any) -> Any:
        return None


class Nova:
    """A tiny in-memory compute service."""

    def __init__(self) -> None:
        self.specs = {"disk": "10"}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/")
        if "/os-extra_specs/" in request.url.path:
            key = parts[-1]
            if request.method == "PUT":
                self.specs.update(json.loads(request.content))
                return httpx.Response(200)
            if key in self.specs:
                return httpx.Response(200, json={key: self.specs[key]})
            return httpx.Response(404)
        if request.url.path.endswith("/zones"):
            return httpx.Response(200, json=[f"{parts[-2]}-1", f"{parts[-2]}-2"])
        if request.url.path.endswith("/os-floating-ips"):
            return httpx.Response(200, json={"floating_ips": ["10.0.0.1"]})
        return httpx.Response(404)


def build_context(
    nova: Nova,
    api: type,
    async_api: type | None = None,
    converter: ImplicitOptionalConverter | None = None,
) -> RestContext:
    builder = (
        RestContext.builder(api, async_api)
        .endpoint(ENDPOINT)
        .transport(
            HttpxCommandExecutor(
                transport=httpx.MockTransport(nova),
                async_transport=httpx.MockTransport(nova),
            )
        )
        .register_instance(["region-one", "region-two"], name="region-names")
    )
    if converter is not None:
        builder.register_instance(converter, as_type=ImplicitOptionalConverter)
    return builder.build()


@pytest.fixture
def nova() -> Nova:
    return Nova()


@pytest.fixture
async def compute(nova: Nova) -> AsyncIterator[Any]:
    context = build_context(nova, ComputeAsyncApi)
    yield context.api
    await context.aclose()


@pytest.fixture
def sync_compute(nova: Nova) -> Iterator[Any]:
    context = build_context(nova, ComputeApi, ComputeAsyncApi)
    yield context.api
    context.close()


class TestProxies:
    @pytest.mark.asyncio
    async def test_proxy_is_an_instance_of_the_interface(self, compute: Any) -> None:
        assert isinstance(compute, ComputeAsyncApi)
        assert type(compute).__name__ == "ComputeAsyncApiProxy"
        assert "ComputeAsyncApi" in repr(compute)

    def test_proxy_class_is_shared(self, nova: Nova) -> None:
        first = build_context(nova, ComputeAsyncApi)
        second = build_context(nova, ComputeAsyncApi)
        assert type(first.api) is type(second.api)
        assert first.api.__restfly_handler__ is not second.api.__restfly_handler__
        first.close()
        second.close()


class TestDelegates:
    @pytest.mark.asyncio
    async def test_nested_path_merges_caller_tokens(self, compute: Any, nova: Nova) -> None:
        specs = compute.extra_specs("f1")

        assert isinstance(specs, FlavorExtraSpecsAsyncApi)
        assert await specs.get_spec("disk") == "10"
        assert nova.requests[-1].url == httpx.URL(f"{ENDPOINT}/flavors/f1/os-extra_specs/disk")

    @pytest.mark.asyncio
    async def test_nested_fallback(self, compute: Any) -> None:
        assert await compute.extra_specs("f1").get_spec("ram") is None

    @pytest.mark.asyncio
    async def test_nested_payload_template(self, compute: Any, nova: Nova) -> None:
        await compute.extra_specs("f1").set_spec("ram", "512")

        sent = nova.requests[-1]
        assert sent.method == "PUT"
        assert sent.content == b'{"ram":"512"}'
        assert sent.headers["content-type"] == APPLICATION_JSON
        assert nova.specs["ram"] == "512"

    @pytest.mark.asyncio
    async def test_inner_token_wins(self, compute: Any, nova: Nova) -> None:
        zones = compute.zones("region-one")
        assert await zones.list_zones() == ["region-one-1", "region-one-2"]
        assert await zones.list_zones_in("region-two") == ["region-two-1", "region-two-2"]
        assert nova.requests[-1].url.path == "/v2/regions/region-two/zones"

    @pytest.mark.asyncio
    async def test_null_caller_argument(self, compute: Any) -> None:
        with pytest.raises(NullParameterException, match=r"param\{flavor_id\}"):
            await compute.extra_specs(None).get_spec("disk")

    @pytest.mark.asyncio
    async def test_optional_delegate_defaults_to_proxy(self, compute: Any) -> None:
        ips = compute.floating_ips()
        assert ips is not None
        assert await ips.list_ips() == ["10.0.0.1"]

    @pytest.mark.asyncio
    async def test_optional_delegate_converter(self, nova: Nova) -> None:
        context = build_context(nova, ComputeAsyncApi, converter=NoExtensions())
        assert context.api.floating_ips() is None
        await context.aclose()

    def test_sync_delegate_blocks_on_async_counterpart(self, sync_compute: Any, nova: Nova) -> None:
        specs = sync_compute.extra_specs("f2")

        assert isinstance(specs, FlavorExtraSpecsApi)
        assert specs.get_spec("disk") == "10"
        specs.set_spec("swap", "0")
        assert nova.specs["swap"] == "0"
        assert nova.requests[-1].url.path == "/v2/flavors/f2/os-extra_specs/swap"


class TestProvides:
    def test_provides_by_type(self, sync_compute: Any) -> None:
        assert sync_compute.credentials().user == "demo"

    @pytest.mark.asyncio
    async def test_provides_by_name(self, compute: Any) -> None:
        assert compute.regions() == ["region-one", "region-two"]
