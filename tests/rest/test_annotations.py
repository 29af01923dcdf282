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
"""Tests for the declarative annotation vocabulary."""

from __future__ import annotations

import httpx
import pytest

from restfly.rest.annotations import (
    NULL,
    EndpointParam,
    ParamValidators,
    form_params,
    get,
    get_metadata,
    headers,
    http_method,
    marked,
    path,
    provides,
    query_params,
    skip_encoding,
    timeout,
)


@path("/servers")
@headers({"X-Api": "1"})
@timeout(10)
class Base:
    @get("/{id}")
    @query_params({"a": "1"})
    @query_params({"b": "2"})
    async def get_server(self, id: str) -> str: ...

    def plain(self) -> None: ...


class Child(Base):
    pass


class TestMethodMetadata:
    def test_verb_and_path(self) -> None:
        metadata = get_metadata(Base.get_server)
        assert metadata.http_method == "GET"
        assert metadata.path == "/{id}"
        assert metadata.is_http

    def test_custom_verb_is_upper_cased(self) -> None:
        @http_method("propfind", "/dav")
        def dav() -> None: ...

        assert get_metadata(dav).http_method == "PROPFIND"

    def test_stacked_defaults_keep_reading_order(self) -> None:
        assert get_metadata(Base.get_server).query_params == [("a", "1"), ("b", "2")]

    def test_keys_and_values(self) -> None:
        @form_params(keys=["Action", "Force"], values=["Purge", NULL])
        def purge() -> None: ...

        assert get_metadata(purge).form_params == [("Action", "Purge"), ("Force", NULL)]

    def test_keys_and_values_must_match(self) -> None:
        with pytest.raises(ValueError):
            form_params(keys=["a", "b"], values=["1"])

    def test_plain_method_has_no_metadata(self) -> None:
        assert get_metadata(Base.plain) is None
        assert not marked(Base.plain)
        assert marked(Base.get_server)

    def test_provides_name(self) -> None:
        @provides("zones")
        def zones() -> list[str]: ...

        metadata = get_metadata(zones)
        assert metadata.provides
        assert metadata.provides_name == "zones"
        assert not metadata.is_http

    def test_skip_encoding_accumulates(self) -> None:
        @skip_encoding("/")
        @skip_encoding(":")
        def copy() -> None: ...

        assert sorted(get_metadata(copy).skip_encoding) == ["/", ":"]


class TestInterfaceMetadata:
    def test_class_metadata(self) -> None:
        metadata = get_metadata(Base)
        assert metadata.path == "/servers"
        assert metadata.headers == [("X-Api", "1")]
        assert metadata.timeout == 10.0

    def test_not_inherited(self) -> None:
        assert get_metadata(Child) is None


class TestMarkers:
    def test_null_repr(self) -> None:
        assert repr(NULL) == "NULL"

    def test_param_validators_take_varargs(self) -> None:
        assert ParamValidators(str.isdigit, str.islower).validators == (str.isdigit, str.islower)

    def test_endpoint_param_default_parser(self) -> None:
        assert EndpointParam().parser("http://a.example.com/v1") == httpx.URL("http://a.example.com/v1")
