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
"""Builds HTTP requests from annotated interface invocations."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import replace
from typing import Any

import httpx
import structlog

from restfly.container import Container
from restfly.http.filters import StripExpectHeader
from restfly.http.options import HttpRequestOptions
from restfly.http.payloads import (
    CONTENT_TYPE,
    MultipartForm,
    Part,
    Payload,
    new_byte_array_payload,
    new_string_payload,
    new_url_encoded_form_payload,
)
from restfly.http.request import NON_PAYLOAD_METHODS, HttpRequest, filter_out_content_headers
from restfly.http.uris import UriBuilder, replace_tokens
from restfly.kernel.exceptions import (
    ConfigurationException,
    InvalidArgumentException,
    NoEndpointException,
)
from restfly.rest.annotations import (
    NULL,
    BinderParam,
    EndpointParam,
    FormParam,
    HeaderParam,
    ParamParser,
    PartParam,
    PathParam,
    PayloadParam,
    QueryParam,
    WrapWith,
)
from restfly.rest.binders import BindMapToStringPayload, BindToJsonPayloadWrappedWith, Binder, MapBinder
from restfly.rest.internal.generated_request import GeneratedHttpRequest
from restfly.rest.invocation import Invocation, Parameter
from restfly.rest.validation import InputParamValidator, null_parameter

logger = structlog.get_logger("restfly.rest")

PROVIDER_ENDPOINT = "provider"


class Multimap:
    """Insertion-ordered ``key -> [values]`` with multimap editing helpers."""

    def __init__(self) -> None:
        self._data: dict[str, list[Any]] = {}

    def put(self, key: str, value: Any) -> None:
        self._data.setdefault(key, []).append(value)

    def put_all(self, other: Multimap | Iterable[tuple[str, Any]]) -> None:
        for key, value in other.entries() if isinstance(other, Multimap) else other:
            self.put(key, value)

    def remove_all(self, key: str, ignore_case: bool = False) -> None:
        if not ignore_case:
            self._data.pop(key, None)
            return
        lowered = key.lower()
        for k in [k for k in self._data if k.lower() == lowered]:
            del self._data[k]

    def replace_values(self, key: str, values: Iterable[Any]) -> None:
        self._data[key] = list(values)

    def contains_key(self, key: str) -> bool:
        lowered = key.lower()
        return any(k.lower() == lowered for k in self._data)

    def first(self, key: str) -> Any:
        lowered = key.lower()
        for k, values in self._data.items():
            if k.lower() == lowered and values:
                return values[0]
        return None

    def entries(self) -> Iterator[tuple[str, Any]]:
        for key, values in self._data.items():
            for value in values:
                yield key, value

    def last_values(self) -> dict[str, Any]:
        return {k: v[-1] for k, v in self._data.items() if v}

    def as_dict(self) -> dict[str, list[Any]]:
        return {k: list(v) for k, v in self._data.items()}

    def __bool__(self) -> bool:
        return bool(self._data)


def add_host_if_missing(original: httpx.URL | None, with_host: httpx.URL | None) -> httpx.URL | None:
    """Resolve a host-less *original* against *with_host*."""
    if with_host is None:
        raise InvalidArgumentException("URI with host cannot be None")
    if not with_host.host:
        raise InvalidArgumentException(f"URI with host must have a host: {with_host}")
    if original is None:
        return None
    if original.host:
        return original
    return with_host.join(original)


def _to_url(value: Any) -> httpx.URL | None:
    if value is None or isinstance(value, httpx.URL):
        return value
    return httpx.URL(str(value))


def _is_iterable_value(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, bytearray, dict))


class RestAnnotationProcessor:
    """Turns an :class:`Invocation` into a :class:`GeneratedHttpRequest`.

    A processor bound to a *caller* builds requests for a nested API: the
    caller's endpoint, path, path tokens, form and payload parameters are
    merged with the invocation's, the invocation winning on collision.
    """

    def __init__(
        self,
        container: Container,
        validator: InputParamValidator | None = None,
        *,
        api_version: str = "",
        build_version: str = "",
        strip_expect_header: bool = False,
        caller: Invocation | None = None,
    ) -> None:
        self._container = container
        self._validator = validator or InputParamValidator(container)
        self._api_version = api_version
        self._build_version = build_version
        self._strip_expect_header = strip_expect_header
        self.caller = caller

    def with_caller(self, caller: Invocation) -> RestAnnotationProcessor:
        return RestAnnotationProcessor(
            self._container,
            self._validator,
            api_version=self._api_version,
            build_version=self._build_version,
            strip_expect_header=self._strip_expect_header,
            caller=caller,
        )

    def __call__(self, invocation: Invocation) -> GeneratedHttpRequest:
        return self.apply(invocation)

    def apply(self, invocation: Invocation) -> GeneratedHttpRequest:
        self._validator.validate_or_raise(invocation)
        invokable = invocation.invokable
        caller = self.caller

        prototype = self._find_arg(invocation, HttpRequest)
        if prototype is not None:
            endpoint = prototype.endpoint
            logger.debug("using endpoint from request argument", endpoint=str(endpoint), invocation=repr(invokable))
        elif caller is not None:
            endpoint = self.get_endpoint_for(caller)
            if endpoint is not None:
                logger.debug("using endpoint from caller", endpoint=str(endpoint), caller=repr(caller.invokable))
            else:
                endpoint = self.find_endpoint(invocation)
        else:
            endpoint = self.find_endpoint(invocation)
        if endpoint is None:
            raise NoEndpointException(f"no endpoint found for {invokable}", code="NO_ENDPOINT")

        method = prototype.method if prototype is not None else self._http_method(invocation)
        filters = self._filters(invocation)
        if self._strip_expect_header:
            filters.append(StripExpectHeader())

        tokens = Multimap()
        tokens.put("api-version", self._api_version)
        tokens.put("build-version", self._build_version)
        uri = UriBuilder(endpoint)
        self._override_path_encoding(uri, invocation)
        if caller is not None:
            tokens.put_all(self._add_path_and_get_tokens(caller, uri))
        tokens.put_all(self._add_path_and_get_tokens(invocation, uri))
        token_values = tokens.last_values()

        form = Multimap()
        if caller is not None:
            form.put_all(self._form_params(token_values, caller))
        form.put_all(self._form_params(token_values, invocation))
        query = self._query_params(token_values, invocation)
        headers = self._build_headers(token_values, invocation)
        if prototype is not None:
            headers.put_all(prototype.all_header_items())
        if invokable.single_valued("virtual_host"):
            host = endpoint.host if endpoint.port is None else f"{endpoint.host}:{endpoint.port}"
            headers.replace_values("Host", [host])

        payload: Payload | None = None
        for options in self._find_options(invocation):
            for key, values in options.build_request_headers().items():
                for value in values:
                    headers.put(key, replace_tokens(value, token_values))
            for key, values in options.build_query_parameters().items():
                for value in values:
                    query.put(key, None if value is None else replace_tokens(value, token_values))
            for key, values in options.build_form_parameters().items():
                for value in values:
                    form.put(key, None if value is None else replace_tokens(value, token_values))
            suffix = options.build_path_suffix()
            if suffix is not None:
                uri.append_path(suffix)
            string_payload = options.build_string_payload()
            if string_payload is not None:
                payload = new_string_payload(string_payload)

        if query:
            uri.add_query(query.as_dict())
        request_endpoint = uri.build(token_values)

        if payload is None:
            payload = self._find_payload(invocation)
        parts = self._parts(invocation, token_values)
        if parts:
            if form:
                parts = [Part.create(k, "" if v is None else str(v)) for k, v in form.entries()] + parts
            payload = MultipartForm(parts=tuple(parts))
        elif form:
            payload = new_url_encoded_form_payload(form.as_dict())
        elif headers.contains_key(CONTENT_TYPE) and method not in NON_PAYLOAD_METHODS:
            if payload is None:
                payload = new_byte_array_payload(b"")
            payload = payload.with_metadata(content_type=headers.first(CONTENT_TYPE))

        request = GeneratedHttpRequest(
            header_items=filter_out_content_headers(headers.entries()),
            payload=payload,
            method=method,
            endpoint=request_endpoint,
            filters=tuple(filters),
            invocation=invocation,
            caller=caller,
        )

        map_binder = self._map_binder(invocation)
        if map_binder is not None:
            params: dict[str, Any] = {}
            if caller is not None:
                params.update(self._payload_params(caller))
            params.update(self._payload_params(invocation))
            for key, value in invokable.metadata.payload_params:
                params[key] = None if value is NULL else replace_tokens(str(value), token_values)
            request = map_binder.bind_to_request(request, params)
        else:
            request = self._decorate_request(request)

        if request.payload is not None:
            metadata = request.payload.content_metadata.with_headers(headers.entries())
            request = request.with_payload(replace(request.payload, content_metadata=metadata))

        logger.debug("built request", request=request.request_line, invocation=repr(invokable))
        return request

    # -- endpoints ------------------------------------------------------------

    def _supplied_url(self, name: str) -> httpx.URL | None:
        supplier = self._container.get_existing_supplier(name)
        if supplier is not None:
            return _to_url(supplier())
        if self._container.contains(name):
            return _to_url(self._container.resolve_by_name(name))
        return None

    def _endpoint_in_parameters(self, invocation: Invocation) -> httpx.URL | None:
        params = invocation.invokable.parameters_with(EndpointParam)
        if not params:
            return None
        if len(params) > 1:
            raise ConfigurationException(f"{invocation.invokable} has too many EndpointParam markers")
        param = params[0]
        value = invocation.arg(param)
        if value is None:
            raise InvalidArgumentException(
                f"argument at index {param.index} on {invocation.invokable} was None"
            )
        parser = param.marker(EndpointParam).parser
        if isinstance(parser, type):
            parser = self._container.get_instance(parser)
        endpoint = _to_url(parser(value))
        if endpoint is None:
            raise InvalidArgumentException(
                f"endpoint for [{param.index}] not configured for {invocation.invokable}"
            )
        return endpoint

    def get_endpoint_for(self, invocation: Invocation) -> httpx.URL | None:
        """Endpoint from an endpoint parameter or an ``endpoint`` qualifier, if declared."""
        endpoint = self._endpoint_in_parameters(invocation)
        if endpoint is None:
            qualifier = invocation.invokable.single_valued("endpoint")
            if qualifier is None:
                return None
            endpoint = self._supplied_url(qualifier)
            if endpoint is None:
                raise NoEndpointException(
                    f"no endpoint bound for qualifier {qualifier!r} used by {invocation.invokable}",
                    code="NO_ENDPOINT",
                )
        provider = self._supplied_url(PROVIDER_ENDPOINT)
        if provider is None:
            return endpoint
        return add_host_if_missing(endpoint, provider)

    def find_endpoint(self, invocation: Invocation) -> httpx.URL | None:
        endpoint = self.get_endpoint_for(invocation)
        if endpoint is None:
            endpoint = self._supplied_url(PROVIDER_ENDPOINT)
        return endpoint

    # -- method, path, tokens -------------------------------------------------

    @staticmethod
    def _http_method(invocation: Invocation) -> str:
        method = invocation.invokable.metadata.http_method
        if method is None:
            raise ConfigurationException(f"no http method declared on {invocation.invokable}")
        return method

    @staticmethod
    def _override_path_encoding(uri: UriBuilder, invocation: Invocation) -> None:
        invokable = invocation.invokable
        uri.skip_path_encoding(invokable.owner_metadata.skip_encoding + invokable.metadata.skip_encoding)

    def _add_path_and_get_tokens(self, invocation: Invocation, uri: UriBuilder) -> list[tuple[str, Any]]:
        invokable = invocation.invokable
        if invokable.owner_metadata.path:
            uri.append_path(invokable.owner_metadata.path)
        if invokable.metadata.path:
            uri.append_path(invokable.metadata.path)
        tokens = []
        for param in invokable.parameters_with(PathParam):
            value = self._param_value(invocation, param, param.marker(PathParam).name)
            if value is not None:
                tokens.append((param.marker(PathParam).name, str(value)))
        return tokens

    def _param_value(self, invocation: Invocation, param: Parameter, key: str) -> Any:
        value = invocation.arg(param)
        if value is None:
            if not param.nullable:
                raise null_parameter(key, invocation)
            return None
        parser = param.marker(ParamParser)
        if parser is not None:
            function = parser.parser
            if isinstance(function, type):
                function = self._container.get_instance(function)
            value = function(value)
            if value is None and not param.nullable:
                raise null_parameter(key, invocation)
        return value

    # -- form, query, headers -------------------------------------------------

    @staticmethod
    def _apply_defaults(
        target: Multimap,
        defaults: list[tuple[str, Any]],
        tokens: dict[str, Any],
        bare_keys: bool = True,
    ) -> None:
        # headers have no bare form, so NULL only clears them
        for key, value in defaults:
            if value is NULL:
                target.remove_all(key, ignore_case=not bare_keys)
                if bare_keys:
                    target.put(key, None)
            else:
                target.put(key, replace_tokens(str(value), tokens))

    def _form_params(self, tokens: dict[str, Any], invocation: Invocation) -> Multimap:
        form = Multimap()
        invokable = invocation.invokable
        self._apply_defaults(form, invokable.owner_metadata.form_params, tokens)
        self._apply_defaults(form, invokable.metadata.form_params, tokens)
        for param in invokable.parameters_with(FormParam):
            key = param.marker(FormParam).name
            value = self._param_value(invocation, param, key)
            if value is not None:
                form.put(key, replace_tokens(str(value), tokens))
        return form

    def _query_params(self, tokens: dict[str, Any], invocation: Invocation) -> Multimap:
        query = Multimap()
        invokable = invocation.invokable
        self._apply_defaults(query, invokable.owner_metadata.query_params, tokens)
        self._apply_defaults(query, invokable.metadata.query_params, tokens)
        for param in invokable.parameters_with(QueryParam):
            key = param.marker(QueryParam).name
            value = self._param_value(invocation, param, key)
            if value is None:
                continue
            if _is_iterable_value(value):
                for item in value:
                    query.put(key, str(item))
            else:
                query.put(key, str(value))
        return query

    def _build_headers(self, tokens: dict[str, Any], invocation: Invocation) -> Multimap:
        headers = Multimap()
        invokable = invocation.invokable
        self._apply_defaults(headers, invokable.owner_metadata.headers, tokens, bare_keys=False)
        self._apply_defaults(headers, invokable.metadata.headers, tokens, bare_keys=False)
        for param in invokable.parameters_with(HeaderParam):
            key = param.marker(HeaderParam).name
            value = self._param_value(invocation, param, key)
            if value is not None:
                headers.put(key, replace_tokens(str(value), tokens))
        content_types = invokable.metadata.produces or invokable.owner_metadata.produces
        if content_types:
            headers.replace_values(CONTENT_TYPE, content_types)
        accept = invokable.metadata.consumes or invokable.owner_metadata.consumes
        if accept:
            headers.replace_values("Accept", accept)
        return headers

    # -- payloads ---------------------------------------------------------------

    @staticmethod
    def _find_arg(invocation: Invocation, arg_type: type) -> Any:
        for arg in invocation.args:
            if isinstance(arg, arg_type):
                return arg
        return None

    def _find_payload(self, invocation: Invocation) -> Payload | None:
        for arg in invocation.args:
            if isinstance(arg, Payload):
                return arg
            enclosed = getattr(arg, "payload", None)
            if isinstance(enclosed, Payload):
                return enclosed
        return None

    def _find_options(self, invocation: Invocation) -> list[HttpRequestOptions]:
        found: list[HttpRequestOptions] = []
        for param in invocation.invokable.parameters:
            value = invocation.arg(param)
            candidates = value if param.is_variadic else (value,)
            for candidate in candidates:
                if isinstance(candidate, HttpRequestOptions) and all(candidate is not f for f in found):
                    found.append(candidate)
        return found

    def _parts(self, invocation: Invocation, tokens: dict[str, Any]) -> list[Part]:
        parts = []
        for param in invocation.invokable.parameters_with(PartParam):
            marker = param.marker(PartParam)
            value = invocation.arg(param)
            if value is None:
                if param.nullable:
                    continue
                raise null_parameter(marker.name, invocation)
            if isinstance(value, Part):
                parts.append(value)
                continue
            parts.append(
                Part.create(
                    marker.name,
                    value,
                    content_type=replace_tokens(marker.content_type, tokens) if marker.content_type else None,
                    filename=replace_tokens(marker.filename, tokens) if marker.filename else None,
                )
            )
        return parts

    def _payload_params(self, invocation: Invocation) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for param in invocation.invokable.parameters_with(PayloadParam):
            key = param.marker(PayloadParam).name
            value = self._param_value(invocation, param, key)
            if value is not None:
                params[key] = value
        return params

    # -- binders ----------------------------------------------------------------

    def _instance(self, value: Any) -> Any:
        return self._container.get_instance(value) if isinstance(value, type) else value

    def _map_binder(self, invocation: Invocation) -> MapBinder | None:
        for param in invocation.invokable.parameters:
            value = invocation.arg(param)
            if param.is_variadic:
                binders = [v for v in value if isinstance(v, MapBinder)]
                if len(binders) > 1:
                    raise InvalidArgumentException(
                        f"multiple MapBinder varargs are not supported on {invocation.invokable}"
                    )
                if binders:
                    return binders[0]
            elif isinstance(value, MapBinder):
                return value
        metadata = invocation.invokable.metadata
        if metadata.map_binder is not None:
            return self._instance(metadata.map_binder)
        if metadata.payload is not None:
            return BindMapToStringPayload()
        if metadata.wrap_with is not None:
            return BindToJsonPayloadWrappedWith(metadata.wrap_with)
        return None

    def _decorate_request(self, request: GeneratedHttpRequest) -> GeneratedHttpRequest:
        invocation = request.invocation
        for param in invocation.invokable.parameters:
            binder_marker = param.marker(BinderParam)
            wrap_marker = param.marker(WrapWith)
            if binder_marker is not None:
                binder: Binder = self._instance(binder_marker.binder)
            elif wrap_marker is not None:
                binder = BindToJsonPayloadWrappedWith(wrap_marker.name)
            else:
                continue
            value = invocation.arg(param)
            if param.is_variadic:
                if value:
                    request = binder.bind_to_request(request, list(value))
                continue
            if value is None:
                if param.nullable:
                    continue
                raise null_parameter(param.name, invocation)
            request = binder.bind_to_request(request, value)
        return request

    # -- filters ----------------------------------------------------------------

    def _filters(self, invocation: Invocation) -> list[Any]:
        invokable = invocation.invokable
        filters = [self._instance(f) for f in invokable.owner_metadata.request_filters or ()]
        if invokable.metadata.request_filters is not None:
            if invokable.metadata.override_request_filters:
                filters = []
            filters.extend(self._instance(f) for f in invokable.metadata.request_filters)
        return filters
