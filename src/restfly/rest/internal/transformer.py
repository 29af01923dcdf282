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
"""Chooses the response transformer of each interface method."""

from __future__ import annotations

import io
import typing
from collections.abc import Callable
from typing import Any, BinaryIO, get_origin

import httpx
import structlog

from restfly.container import Container
from restfly.http.functions import (
    IdentityFunction,
    OnlyElementOrNull,
    ParseFirstJsonValueNamed,
    ParseJson,
    ParseURIFromListOrLocationHeaderIf20x,
    ParseXml,
    ReleasePayloadAndReturn,
    ResponseTransformer,
    ReturnInputStream,
    ReturnStringIf2xx,
    ReturnTrueIf2xx,
    UnwrapOnlyJsonValue,
)
from restfly.http.request import HttpResponse
from restfly.kernel.exceptions import MissingResponseParserException
from restfly.rest.internal.cache import LoadingCache
from restfly.rest.internal.generated_request import GeneratedHttpRequest
from restfly.rest.invocation import Invokable

logger = structlog.get_logger("restfly.rest")

Transformer = Callable[[HttpResponse], Any]

_STREAM_TYPES = (BinaryIO, typing.IO, io.IOBase, io.BufferedIOBase, io.RawIOBase)


def _is_stream(return_type: Any) -> bool:
    origin = get_origin(return_type) or return_type
    if origin in _STREAM_TYPES:
        return True
    return isinstance(origin, type) and issubclass(origin, io.IOBase)


def _accepts(invokable: Invokable, fragment: str) -> bool:
    accept = invokable.metadata.consumes or invokable.owner_metadata.consumes or ()
    return any(fragment in media_type.lower() for media_type in accept)


class TransformerForRequest:
    """Resolves and instantiates the transformer for a generated request.

    The choice is made once per method; a fresh transformer is created per
    request so that :meth:`ResponseTransformer.set_context` is request-scoped.
    """

    def __init__(self, container: Container) -> None:
        self._container = container
        self._factories: LoadingCache[Invokable, Callable[[], Transformer]] = LoadingCache(self.select_factory)

    def __call__(self, request: GeneratedHttpRequest) -> Transformer:
        invokable = request.invocation.invokable
        transformer = self._factories.get(invokable)()
        if isinstance(transformer, ResponseTransformer):
            transformer.set_context(request)
        mapper = invokable.metadata.transform
        if mapper is None:
            return transformer
        if isinstance(mapper, type):
            mapper = self._container.get_instance(mapper)
        return lambda response: mapper(transformer(response))

    def _instance(self, parser: Any) -> Transformer:
        if isinstance(parser, type):
            return self._container.get_instance(parser)
        return parser

    def select_factory(self, invokable: Invokable) -> Callable[[], Transformer]:
        metadata = invokable.metadata
        return_type = invokable.return_type
        if metadata.response_parser is not None:
            parser = metadata.response_parser
            return lambda: self._instance(parser)
        if invokable.returns_none:
            return ReleasePayloadAndReturn
        if return_type is bool:
            return ReturnTrueIf2xx
        if _is_stream(return_type):
            return ReturnInputStream
        if return_type is HttpResponse:
            return IdentityFunction
        if _accepts(invokable, "json"):
            parse_type = list[return_type] if metadata.only_element else return_type  # type: ignore[valid-type]
            if metadata.select_json:
                names = metadata.select_json

                def json_factory() -> Transformer:
                    return ParseFirstJsonValueNamed(parse_type, *names)
            elif metadata.unwrap:

                def json_factory() -> Transformer:
                    return UnwrapOnlyJsonValue(parse_type)
            else:

                def json_factory() -> Transformer:
                    return ParseJson(parse_type)

            if metadata.only_element:
                return lambda: OnlyElementOrNull(json_factory())
            return json_factory
        if metadata.xml_parser is not None or _accepts(invokable, "xml"):
            handler = metadata.xml_parser
            if handler is True:
                handler = None
            return lambda: ParseXml(return_type, self._instance(handler) if handler is not None else None)
        if return_type is str:
            return ReturnStringIf2xx
        if return_type is httpx.URL:
            return ParseURIFromListOrLocationHeaderIf20x
        raise MissingResponseParserException(
            f"no response parser for {invokable} returning {return_type!r}; declare consumes(...) or response_parser(...)",
            code="NO_RESPONSE_PARSER",
        )
