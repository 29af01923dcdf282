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
"""Request and response payloads with their content metadata."""

from __future__ import annotations

import io
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, BinaryIO
from urllib.parse import quote_plus

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"
CONTENT_DISPOSITION = "Content-Disposition"
CONTENT_ENCODING = "Content-Encoding"
CONTENT_LANGUAGE = "Content-Language"
CONTENT_MD5 = "Content-MD5"

CONTENT_HEADERS = frozenset(
    h.lower()
    for h in (
        CONTENT_TYPE,
        CONTENT_LENGTH,
        CONTENT_DISPOSITION,
        CONTENT_ENCODING,
        CONTENT_LANGUAGE,
        CONTENT_MD5,
    )
)

APPLICATION_JSON = "application/json"
APPLICATION_XML = "application/xml"
TEXT_XML = "text/xml"
TEXT_PLAIN = "text/plain"
TEXT_URI_LIST = "text/uri-list"
APPLICATION_FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM_DATA = "multipart/form-data"
APPLICATION_OCTET_STREAM = "application/octet-stream"


@dataclass(frozen=True)
class ContentMetadata:
    """Entity headers describing a payload."""

    content_type: str | None = None
    content_length: int | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    content_language: str | None = None
    content_md5: str | None = None

    def with_headers(self, headers: Iterable[tuple[str, str]]) -> ContentMetadata:
        """Return a copy updated from any content headers in *headers*."""
        changes: dict[str, Any] = {}
        for name, value in headers:
            key = name.lower()
            if key == CONTENT_TYPE.lower():
                changes["content_type"] = value
            elif key == CONTENT_LENGTH.lower():
                changes["content_length"] = int(value)
            elif key == CONTENT_DISPOSITION.lower():
                changes["content_disposition"] = value
            elif key == CONTENT_ENCODING.lower():
                changes["content_encoding"] = value
            elif key == CONTENT_LANGUAGE.lower():
                changes["content_language"] = value
            elif key == CONTENT_MD5.lower():
                changes["content_md5"] = value
        return replace(self, **changes) if changes else self

    def to_headers(self) -> list[tuple[str, str]]:
        headers: list[tuple[str, str]] = []
        if self.content_type is not None:
            headers.append((CONTENT_TYPE, self.content_type))
        if self.content_length is not None:
            headers.append((CONTENT_LENGTH, str(self.content_length)))
        if self.content_disposition is not None:
            headers.append((CONTENT_DISPOSITION, self.content_disposition))
        if self.content_encoding is not None:
            headers.append((CONTENT_ENCODING, self.content_encoding))
        if self.content_language is not None:
            headers.append((CONTENT_LANGUAGE, self.content_language))
        if self.content_md5 is not None:
            headers.append((CONTENT_MD5, self.content_md5))
        return headers


@dataclass(frozen=True)
class Payload:
    """A request or response body.

    ``raw_content`` is ``str``, ``bytes``, a binary stream or a ``Path``.
    Streams are single-shot: reading them consumes the content.
    """

    raw_content: Any
    content_metadata: ContentMetadata = field(default_factory=ContentMetadata)

    @property
    def content_type(self) -> str | None:
        return self.content_metadata.content_type

    @property
    def is_repeatable(self) -> bool:
        return isinstance(self.raw_content, (str, bytes, Path))

    def with_metadata(self, **changes: Any) -> Payload:
        return replace(self, content_metadata=replace(self.content_metadata, **changes))

    def read_bytes(self) -> bytes:
        content = self.raw_content
        if isinstance(content, bytes):
            return content
        if isinstance(content, str):
            return content.encode("utf-8")
        if isinstance(content, Path):
            return content.read_bytes()
        return content.read()

    def read_text(self, encoding: str = "utf-8") -> str:
        if isinstance(self.raw_content, str):
            return self.raw_content
        return self.read_bytes().decode(encoding)

    def open_stream(self) -> BinaryIO:
        content = self.raw_content
        if isinstance(content, (str, bytes, Path)):
            return io.BytesIO(self.read_bytes())
        return content

    def release(self) -> None:
        """Close an underlying stream, if any."""
        close = getattr(self.raw_content, "close", None)
        if close is not None and not isinstance(self.raw_content, (str, bytes, Path)):
            close()


@dataclass(frozen=True)
class Part:
    """One named part of a multipart form."""

    name: str
    payload: Payload
    filename: str | None = None

    @classmethod
    def create(
        cls,
        name: str,
        value: Any,
        *,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> Part:
        payload = new_payload(value)
        if content_type is not None:
            payload = payload.with_metadata(content_type=content_type)
        return cls(name=name, payload=payload, filename=filename)


@dataclass(frozen=True)
class MultipartForm(Payload):
    """A multipart/form-data body. The transport encodes the parts."""

    raw_content: Any = None
    content_metadata: ContentMetadata = field(
        default_factory=lambda: ContentMetadata(content_type=MULTIPART_FORM_DATA)
    )
    parts: tuple[Part, ...] = ()

    @property
    def is_repeatable(self) -> bool:
        return all(p.payload.is_repeatable for p in self.parts)

    def read_bytes(self) -> bytes:
        raise TypeError("multipart forms are encoded by the transport")


def new_string_payload(content: str) -> Payload:
    return Payload(content, ContentMetadata(content_length=len(content.encode("utf-8"))))


def new_byte_array_payload(content: bytes) -> Payload:
    return Payload(content, ContentMetadata(content_length=len(content)))


def new_stream_payload(stream: BinaryIO) -> Payload:
    return Payload(stream)


def new_file_payload(path: Path) -> Payload:
    return Payload(path, ContentMetadata(content_length=path.stat().st_size))


def new_payload(value: Any) -> Payload:
    """Wrap *value* (payload, str, bytes, path or stream) into a Payload."""
    if isinstance(value, Payload):
        return value
    if isinstance(value, str):
        return new_string_payload(value)
    if isinstance(value, (bytes, bytearray)):
        return new_byte_array_payload(bytes(value))
    if isinstance(value, Path):
        return new_file_payload(value)
    if hasattr(value, "read"):
        return new_stream_payload(value)
    raise TypeError(f"unsupported payload type {type(value).__name__}")


def url_encode_pairs(pairs: Iterable[tuple[str, Any]], safe: str = "/") -> str:
    """``key=value`` pairs joined by ``&``; a ``None`` value renders a bare key."""
    rendered = []
    for key, value in pairs:
        if value is None:
            rendered.append(quote_plus(key, safe=safe))
        else:
            rendered.append(f"{quote_plus(key, safe=safe)}={quote_plus(str(value), safe=safe)}")
    return "&".join(rendered)


def new_url_encoded_form_payload(form: Mapping[str, list[Any]]) -> Payload:
    body = url_encode_pairs((k, v) for k, values in form.items() for v in values)
    return Payload(
        body,
        ContentMetadata(
            content_type=APPLICATION_FORM_URLENCODED,
            content_length=len(body.encode("utf-8")),
        ),
    )
