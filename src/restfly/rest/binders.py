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
"""Binders: turn arguments into request payloads."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic_core import to_jsonable_python

from restfly.http.payloads import APPLICATION_JSON, new_string_payload
from restfly.http.request import HttpRequest
from restfly.http.uris import replace_tokens
from restfly.kernel.exceptions import ConfigurationException


def to_json(value: Any) -> str:
    """Compact JSON; models and dataclasses drop ``None`` fields."""
    return json.dumps(
        to_jsonable_python(value, exclude_none=True, by_alias=True),
        separators=(",", ":"),
    )


class Binder(ABC):
    """Binds a single argument to the request."""

    @abstractmethod
    def bind_to_request(self, request: HttpRequest, payload: Any) -> HttpRequest: ...


class MapBinder(Binder):
    """Binds every payload parameter of an invocation at once.

    ``post_params`` preserves declaration order: caller parameters first,
    then the invocation's, then static :func:`payload_params` entries.
    """

    @abstractmethod
    def bind_to_request(self, request: HttpRequest, post_params: Any) -> HttpRequest: ...


def _json_payload(request: HttpRequest, body: str) -> HttpRequest:
    payload = new_string_payload(body).with_metadata(content_type=APPLICATION_JSON)
    return request.with_payload(payload)


class BindToJsonPayload(MapBinder):
    def bind_to_request(self, request: HttpRequest, post_params: Any) -> HttpRequest:
        return _json_payload(request, to_json(post_params))


class BindToJsonPayloadWrappedWith(MapBinder):
    """``{"server": {...}}`` style bodies."""

    def __init__(self, name: str) -> None:
        self.name = name

    def bind_to_request(self, request: HttpRequest, post_params: Any) -> HttpRequest:
        return _json_payload(request, to_json({self.name: post_params}))


class BindToStringPayload(Binder):
    def bind_to_request(self, request: HttpRequest, payload: Any) -> HttpRequest:
        return request.with_payload(new_string_payload(str(payload)))


class BindMapToStringPayload(MapBinder):
    """Expands the method's :func:`payload` template with the payload parameters."""

    def bind_to_request(self, request: HttpRequest, post_params: Any) -> HttpRequest:
        invocation = getattr(request, "invocation", None)
        if invocation is None:
            raise ConfigurationException("BindMapToStringPayload needs a generated request")
        template = invocation.invokable.metadata.payload
        if template is None:
            raise ConfigurationException(f"no payload template declared on {invocation.invokable}")
        values: Mapping[str, Any] = {k: v for k, v in post_params.items() if v is not None}
        return request.with_payload(new_string_payload(replace_tokens(template, values)))
