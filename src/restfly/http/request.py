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
"""Immutable HTTP request and response values."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import httpx

from restfly.http.payloads import CONTENT_HEADERS, Payload

if TYPE_CHECKING:
    from restfly.http.filters import HttpRequestFilter

NON_PAYLOAD_METHODS = frozenset({"OPTIONS", "GET", "HEAD", "DELETE", "TRACE", "CONNECT"})


def _as_items(headers: Any) -> tuple[tuple[str, str], ...]:
    if headers is None:
        return ()
    if isinstance(headers, httpx.Headers):
        return tuple(headers.multi_items())
    if hasattr(headers, "items") and not isinstance(headers, (list, tuple)):
        return tuple((str(k), str(v)) for k, v in headers.items())
    return tuple((str(k), str(v)) for k, v in headers)


def filter_out_content_headers(items: Iterable[tuple[str, str]]) -> tuple[tuple[str, str], ...]:
    """Drop entity headers; those travel on the payload's content metadata."""
    return tuple((k, v) for k, v in items if k.lower() not in CONTENT_HEADERS)


@dataclass(frozen=True)
class HttpMessage:
    """Headers and optional payload shared by requests and responses."""

    header_items: tuple[tuple[str, str], ...] = ()
    payload: Payload | None = None

    @property
    def headers(self) -> httpx.Headers:
        """Case-insensitive, multi-valued view of the headers."""
        return httpx.Headers(list(self.header_items))

    def first_header_or_none(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.header_items:
            if key.lower() == lowered:
                return value
        return None

    def header_values(self, name: str) -> list[str]:
        lowered = name.lower()
        return [v for k, v in self.header_items if k.lower() == lowered]

    def all_header_items(self) -> list[tuple[str, str]]:
        """Headers plus the payload's content headers, as sent on the wire."""
        items = list(self.header_items)
        if self.payload is not None:
            items.extend(self.payload.content_metadata.to_headers())
        return items


@dataclass(frozen=True)
class HttpRequest(HttpMessage):
    """An immutable HTTP request.

    Build new variants with :meth:`replace`, :meth:`with_header` and
    friends; the original is never modified.
    """

    method: str = "GET"
    endpoint: httpx.URL = field(default_factory=lambda: httpx.URL("http://localhost"))
    filters: tuple[HttpRequestFilter, ...] = ()

    @property
    def request_line(self) -> str:
        return f"{self.method} {self.endpoint} HTTP/1.1"

    def replace(self, **changes: Any) -> HttpRequest:
        if "headers" in changes:
            changes["header_items"] = _as_items(changes.pop("headers"))
        if "endpoint" in changes and not isinstance(changes["endpoint"], httpx.URL):
            changes["endpoint"] = httpx.URL(str(changes["endpoint"]))
        return replace(self, **changes)

    def with_header(self, name: str, *values: str) -> HttpRequest:
        """Replace every value of *name* with *values*."""
        lowered = name.lower()
        kept = [(k, v) for k, v in self.header_items if k.lower() != lowered]
        kept.extend((name, v) for v in values)
        return replace(self, header_items=tuple(kept))

    def without_header(self, name: str) -> HttpRequest:
        return self.with_header(name)

    def with_payload(self, payload: Payload | str | bytes | None) -> HttpRequest:
        from restfly.http.payloads import new_payload

        if payload is not None and not isinstance(payload, Payload):
            payload = new_payload(payload)
        return replace(self, payload=payload)

    def with_filters(self, filters: Sequence[HttpRequestFilter]) -> HttpRequest:
        return replace(self, filters=tuple(filters))

    def __str__(self) -> str:
        return f"[method={self.method}, endpoint={self.endpoint}, headers={list(self.header_items)}]"


@dataclass(frozen=True)
class HttpResponse(HttpMessage):
    """An HTTP response as handed back by the transport."""

    status_code: int = 200
    message: str = ""

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status_code} {self.message}".rstrip()

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def read_text(self) -> str | None:
        if self.payload is None:
            return None
        return self.payload.read_text(_charset(self.payload.content_type))

    def release(self) -> None:
        if self.payload is not None:
            self.payload.release()

    def __str__(self) -> str:
        return f"[message={self.message}, statusCode={self.status_code}, headers={list(self.header_items)}]"


def _charset(content_type: str | None) -> str:
    if content_type:
        for piece in content_type.split(";")[1:]:
            key, _, value = piece.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
    return "utf-8"


def request(
    method: str,
    endpoint: str | httpx.URL,
    *,
    headers: Any = None,
    payload: Payload | None = None,
) -> HttpRequest:
    """Convenience constructor for a plain request."""
    return HttpRequest(
        header_items=_as_items(headers),
        payload=payload,
        method=method.upper(),
        endpoint=endpoint if isinstance(endpoint, httpx.URL) else httpx.URL(endpoint),
    )
