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
"""Tests for payload values and form encoding."""

import io
from pathlib import Path

import pytest

from restfly.http.payloads import (
    APPLICATION_FORM_URLENCODED,
    ContentMetadata,
    MultipartForm,
    Part,
    Payload,
    new_payload,
    new_string_payload,
    new_url_encoded_form_payload,
    url_encode_pairs,
)


class TestPayload:
    def test_string_payload_has_length(self):
        payload = new_string_payload("héllo")
        assert payload.content_metadata.content_length == 6
        assert payload.read_bytes() == "héllo".encode()
        assert payload.is_repeatable

    def test_stream_payload_is_single_shot(self):
        stream = io.BytesIO(b"data")
        payload = new_payload(stream)
        assert not payload.is_repeatable
        assert payload.open_stream() is stream
        payload.release()
        assert stream.closed

    def test_file_payload(self, tmp_path: Path):
        path = tmp_path / "body.bin"
        path.write_bytes(b"\x00\x01")
        payload = new_payload(path)
        assert payload.content_metadata.content_length == 2
        assert payload.read_bytes() == b"\x00\x01"

    def test_new_payload_passes_payloads_through(self):
        payload = Payload("x")
        assert new_payload(payload) is payload

    def test_unsupported_value(self):
        with pytest.raises(TypeError, match="unsupported payload type"):
            new_payload(object())

    def test_with_metadata_returns_copy(self):
        payload = new_string_payload("{}")
        typed = payload.with_metadata(content_type="application/json")
        assert typed.content_type == "application/json"
        assert payload.content_type is None


class TestContentMetadata:
    def test_with_headers_reads_content_headers_only(self):
        metadata = ContentMetadata().with_headers(
            [("Content-Type", "text/plain"), ("content-length", "3"), ("Accept", "*/*")]
        )
        assert metadata.content_type == "text/plain"
        assert metadata.content_length == 3
        assert metadata.to_headers() == [("Content-Type", "text/plain"), ("Content-Length", "3")]


class TestFormEncoding:
    def test_none_renders_bare_key(self):
        assert url_encode_pairs([("a", "1"), ("flag", None), ("b", "x y")]) == "a=1&flag&b=x+y"

    def test_url_encoded_form_payload(self):
        payload = new_url_encoded_form_payload({"Action": ["Run"], "Id": ["1", "2"]})
        assert payload.read_text() == "Action=Run&Id=1&Id=2"
        assert payload.content_type == APPLICATION_FORM_URLENCODED


class TestMultipart:
    def test_parts_keep_their_metadata(self):
        part = Part.create("file", b"abc", content_type="text/plain", filename="a.txt")
        form = MultipartForm(parts=(part,))
        assert form.content_type == "multipart/form-data"
        assert form.parts[0].payload.content_type == "text/plain"
        assert form.is_repeatable

    def test_multipart_bytes_come_from_transport(self):
        with pytest.raises(TypeError):
            MultipartForm(parts=()).read_bytes()
