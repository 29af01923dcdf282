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
"""Tests for method introspection and invocations."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Annotated

import pytest

from restfly.rest.annotations import Nullable, PathParam, QueryParam, get, path
from restfly.rest.invocation import Invocation, Invokable, interface_methods, is_optional, unwrap_optional


class Server:
    pass


@path("/servers")
class ServerAsyncApi:
    @get("/{id}")
    async def get_server(self, id: Annotated[str, PathParam("id")]) -> Server | None: ...

    @get()
    async def list_servers(
        self,
        marker: Annotated[str, QueryParam("marker"), Nullable()],
        limit: Annotated[int | None, QueryParam("limit")] = None,
        *options: str,
    ) -> list[Server]: ...

    def future_of(self) -> Awaitable[Server]: ...

    def _private(self) -> None: ...


class ExtendedServerAsyncApi(ServerAsyncApi):
    async def get_console(self, id: str) -> str: ...


class TestInvokable:
    def test_parameters_and_markers(self) -> None:
        invokable = Invokable.of(ServerAsyncApi, ServerAsyncApi.list_servers)

        marker, limit, options = invokable.parameters
        assert (marker.index, marker.name, marker.annotation) == (0, "marker", str)
        assert marker.marker(QueryParam) == QueryParam("marker")
        assert marker.nullable
        assert limit.nullable
        assert options.is_variadic
        assert invokable.arity == 3
        assert [p.name for p in invokable.parameters_with(QueryParam)] == ["marker", "limit"]

    def test_path_param_is_not_nullable(self) -> None:
        invokable = Invokable.of(ServerAsyncApi, ServerAsyncApi.get_server)
        assert not invokable.parameters[0].nullable

    def test_return_types(self) -> None:
        get_server = Invokable.of(ServerAsyncApi, ServerAsyncApi.get_server)
        assert get_server.is_async
        assert get_server.returns_optional
        assert get_server.return_type is Server

        future_of = Invokable.of(ServerAsyncApi, ServerAsyncApi.future_of)
        assert future_of.is_async
        assert future_of.return_type is Server

    def test_single_valued_falls_back_to_interface(self) -> None:
        invokable = Invokable.of(ServerAsyncApi, ServerAsyncApi.get_server)
        assert invokable.single_valued("path") == "/{id}"
        assert invokable.single_valued("endpoint") is None
        assert invokable.owner_metadata.path == "/servers"

    def test_cached(self) -> None:
        first = Invokable.of(ServerAsyncApi, ServerAsyncApi.get_server)
        assert Invokable.of(ServerAsyncApi, ServerAsyncApi.get_server) is first
        assert repr(first) == "ServerAsyncApi.get_server"


class TestInterfaceMethods:
    def test_public_methods_including_inherited(self) -> None:
        names = [name for name, _ in interface_methods(ExtendedServerAsyncApi)]
        assert names == ["get_server", "list_servers", "future_of", "get_console"]


class TestInvocation:
    def test_keyword_arguments_and_defaults(self) -> None:
        invokable = Invokable.of(ServerAsyncApi, ServerAsyncApi.list_servers)
        invocation = Invocation.create(invokable, (), {"marker": "m1"})
        assert invocation.args == ("m1", None, ())

    def test_varargs_stay_together(self) -> None:
        invokable = Invokable.of(ServerAsyncApi, ServerAsyncApi.list_servers)
        invocation = Invocation.create(invokable, ("m1", 5, "a", "b"))
        assert invocation.arg(invokable.parameters[2]) == ("a", "b")
        assert str(invocation) == "ServerAsyncApi.list_servers('m1', 5, ('a', 'b'))"

    def test_bad_call_is_rejected(self) -> None:
        invokable = Invokable.of(ServerAsyncApi, ServerAsyncApi.get_server)
        with pytest.raises(TypeError):
            Invocation.create(invokable, ("1", "2"))


class TestOptionalHelpers:
    def test_optional(self) -> None:
        assert is_optional(int | None)
        assert not is_optional(int)
        assert unwrap_optional(int | None) is int
        assert unwrap_optional(int | str | None) == int | str
