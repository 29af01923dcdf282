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
"""Tests for URI templates and token replacement."""

import httpx

from restfly.http.uris import UriBuilder, delimit, replace_tokens


class TestReplaceTokens:
    def test_replaces_known_tokens(self):
        assert replace_tokens("/flavors/{flavor_id}/{key}", {"flavor_id": "f1", "key": "disk"}) == "/flavors/f1/disk"

    def test_leaves_unknown_tokens(self):
        assert replace_tokens("/servers/{id}", {}) == "/servers/{id}"

    def test_json_text_is_not_a_token(self):
        assert replace_tokens('{"suspend":null}', {"suspend": "x"}) == '{"suspend":null}'


class TestDelimit:
    def test_single_delimiter(self):
        assert delimit("/v2/", "/servers") == "/v2/servers"
        assert delimit("/v2", "servers") == "/v2/servers"
        assert delimit("", "/servers") == "/servers"
        assert delimit("/v2", "") == "/v2"


class TestUriBuilder:
    def test_appends_paths_and_expands_tokens(self):
        url = (
            UriBuilder("http://localhost:8774/v2")
            .append_path("/flavors")
            .append_path("/{flavor_id}/os-extra_specs/{key}")
            .build({"flavor_id": "f1", "key": "disk"})
        )
        assert url == httpx.URL("http://localhost:8774/v2/flavors/f1/os-extra_specs/disk")

    def test_token_values_are_escaped(self):
        url = UriBuilder("http://localhost").append_path("/objects/{name}").build({"name": "a b/c"})
        assert url.raw_path == b"/objects/a%20b%2Fc"

    def test_skip_encoding_keeps_characters(self):
        url = (
            UriBuilder("http://localhost")
            .skip_path_encoding("/")
            .append_path("/objects/{name}")
            .build({"name": "dir/file"})
        )
        assert url.raw_path == b"/objects/dir/file"

    def test_query_accumulates_and_keeps_existing(self):
        url = UriBuilder("http://localhost/list?marker=1").add_query({"limit": ["10"], "flag": [None]}).build()
        assert url.raw_path == b"/list?marker=1&limit=10&flag"

    def test_replace_query(self):
        url = UriBuilder("http://localhost/list?limit=1&marker=a").replace_query("limit", "5").build()
        assert url.params.get("limit") == "5"
        assert url.params.get("marker") == "a"

    def test_replace_path(self):
        url = UriBuilder("http://localhost/a/b?x=1").replace_path("/c").build()
        assert str(url) == "http://localhost/c?x=1"
