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
"""Response transformers: turn an HttpResponse into a method's return value.

Each transformer is a callable taking the response. Transformers that need
the request (to resolve a relative ``Location`` header, for example) receive
it through :meth:`ResponseTransformer.set_context` before being called.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from xml.etree import ElementTree

import httpx
from pydantic import TypeAdapter

from restfly.http.payloads import TEXT_URI_LIST
from restfly.http.request import HttpRequest, HttpResponse
from restfly.kernel.exceptions import IllegalStateException


class ResponseTransformer:
    """Base class for transformers that want the invocation context."""

    request: HttpRequest | None = None

    def set_context(self, request: HttpRequest | None) -> ResponseTransformer:
        self.request = request
        return self

    def __call__(self, response: HttpResponse) -> Any:
        raise NotImplementedError


def _check_2xx(response: HttpResponse) -> None:
    if not response.is_success:
        raise IllegalStateException(f"incorrect code for this operation: {response}")


class ReleasePayloadAndReturn(ResponseTransformer):
    """For methods returning ``None``."""

    def __call__(self, response: HttpResponse) -> None:
        response.release()
        return None


class ReturnTrueIf2xx(ResponseTransformer):
    def __call__(self, response: HttpResponse) -> bool:
        response.release()
        _check_2xx(response)
        return True


class ReturnStringIf2xx(ResponseTransformer):
    def __call__(self, response: HttpResponse) -> str | None:
        if not response.is_success:
            response.release()
            return None
        return response.read_text()


class ReturnInputStream(ResponseTransformer):
    def __call__(self, response: HttpResponse) -> Any:
        if response.payload is None:
            return None
        return response.payload.open_stream()


class IdentityFunction(ResponseTransformer):
    def __call__(self, response: HttpResponse) -> HttpResponse:
        return response


class ParseURIFromListOrLocationHeaderIf20x(ResponseTransformer):
    """Created-resource URL from a ``text/uri-list`` body or the ``Location`` header."""

    def __call__(self, response: HttpResponse) -> httpx.URL | None:
        if response.status_code > 206:
            raise IllegalStateException(f"unexpected response: {response}")
        content_type = response.payload.content_type if response.payload is not None else None
        if content_type and content_type.startswith(TEXT_URI_LIST):
            text = response.read_text() or ""
            for line in text.splitlines():
                if line.strip():
                    return httpx.URL(line.strip())
            return None
        location = response.first_header_or_none("Location")
        response.release()
        if location is None:
            return None
        url = httpx.URL(location)
        if not url.is_absolute_url and self.request is not None:
            return self.request.endpoint.join(url)
        return url


class ParseJson(ResponseTransformer):
    """Parse the body as JSON and validate it into *return_type*."""

    def __init__(self, return_type: Any = Any) -> None:
        self.return_type = return_type
        self._adapter: TypeAdapter[Any] | None = None if return_type is Any else TypeAdapter(return_type)

    def __call__(self, response: HttpResponse) -> Any:
        text = response.read_text()
        if not text:
            return None
        return self.convert(self.extract(json.loads(text)))

    def extract(self, document: Any) -> Any:
        return document

    def convert(self, value: Any) -> Any:
        if value is None or self._adapter is None:
            return value
        return self._adapter.validate_python(value)


class ParseFirstJsonValueNamed(ParseJson):
    """Select the first field named one of *names*, searching depth first."""

    def __init__(self, return_type: Any, *names: str) -> None:
        super().__init__(return_type)
        self.names = names

    def extract(self, document: Any) -> Any:
        found, value = self._find(document)
        return value if found else None

    def _find(self, node: Any) -> tuple[bool, Any]:
        if isinstance(node, dict):
            for key, value in node.items():
                if key in self.names:
                    return True, value
                found, nested = self._find(value)
                if found:
                    return True, nested
        elif isinstance(node, list):
            for item in node:
                found, nested = self._find(item)
                if found:
                    return True, nested
        return False, None


class UnwrapOnlyJsonValue(ParseJson):
    """``{"server": {...}}`` -> ``{...}``; the document must have a single field."""

    def extract(self, document: Any) -> Any:
        if not isinstance(document, dict) or len(document) != 1:
            raise IllegalStateException(f"expected an object with a single field, not {document!r}")
        return next(iter(document.values()))


class OnlyElementOrNull(ResponseTransformer):
    """Wraps a transformer producing a collection, returning its only element."""

    def __init__(self, delegate: Callable[[HttpResponse], Any]) -> None:
        self.delegate = delegate

    def set_context(self, request: HttpRequest | None) -> ResponseTransformer:
        super().set_context(request)
        if isinstance(self.delegate, ResponseTransformer):
            self.delegate.set_context(request)
        return self

    def __call__(self, response: HttpResponse) -> Any:
        values = self.delegate(response)
        if values is None:
            return None
        values = list(values)
        if not values:
            return None
        if len(values) > 1:
            raise IllegalStateException(f"expected one element but found {len(values)}")
        return values[0]


def element_to_python(element: ElementTree.Element) -> Any:
    """Text for leaf elements; a dict of children otherwise, repeated tags become lists."""
    children = list(element)
    if not children:
        return element.text.strip() if element.text else None
    result: dict[str, Any] = dict(element.attrib)
    for child in children:
        tag = child.tag.rsplit("}", 1)[-1]
        value = element_to_python(child)
        if tag in result:
            if not isinstance(result[tag], list):
                result[tag] = [result[tag]]
            result[tag].append(value)
        else:
            result[tag] = value
    return result


class ParseXml(ParseJson):
    """Parse the body as XML.

    With a *handler* (an object exposing ``parse(root_element)``) the handler
    builds the result; otherwise the document is converted with
    :func:`element_to_python` and validated into *return_type*.
    """

    def __init__(self, return_type: Any = Any, handler: Any = None) -> None:
        super().__init__(return_type)
        self.handler = handler

    def __call__(self, response: HttpResponse) -> Any:
        if response.payload is None:
            return None
        root = ElementTree.fromstring(response.payload.read_bytes())
        if self.handler is not None:
            return self.handler.parse(root)
        return self.convert(element_to_python(root))
