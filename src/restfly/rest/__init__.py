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
"""restfly REST engine: annotations, binders, fallbacks and the client context."""

from restfly.rest.annotations import (
    NULL,
    BinderParam,
    EndpointParam,
    FormParam,
    HeaderParam,
    Nullable,
    ParamParser,
    ParamValidators,
    PartParam,
    PathParam,
    PayloadParam,
    QueryParam,
    RestMetadata,
    WrapWith,
    consumes,
    delegate,
    delete,
    endpoint,
    fallback,
    form_params,
    get,
    head,
    headers,
    http_method,
    map_binder,
    only_element,
    options,
    override_request_filters,
    param_validators,
    patch,
    path,
    payload,
    payload_params,
    post,
    produces,
    provides,
    put,
    query_params,
    request_filters,
    response_parser,
    select_json,
    skip_encoding,
    timeout,
    transform,
    unwrap,
    virtual_host,
    wrap_with,
    xml_response_parser,
)
from restfly.rest.binders import (
    Binder,
    BindMapToStringPayload,
    BindToJsonPayload,
    BindToJsonPayloadWrappedWith,
    BindToStringPayload,
    MapBinder,
)
from restfly.rest.context import RestContext, RestContextBuilder
from restfly.rest.fallbacks import (
    EmptyListOnNotFoundOr404,
    EmptyMapOnNotFoundOr404,
    EmptySetOnNotFoundOr404,
    Fallback,
    FalseOnNotFoundOr404,
    FalseOnNotFoundOr422,
    MapHttp4xxCodesToExceptions,
    NullOnNotFoundOr404,
    TrueOnNotFoundOr404,
    VoidOnNotFoundOr404,
)
from restfly.rest.internal.delegates import ImplicitOptionalConverter
from restfly.rest.internal.generated_request import GeneratedHttpRequest
from restfly.rest.invocation import Invocation, Invokable
from restfly.rest.properties import RestProperties
from restfly.rest.validation import RegexValidator, Validator

__all__ = [
    "NULL",
    "BindMapToStringPayload",
    "BindToJsonPayload",
    "BindToJsonPayloadWrappedWith",
    "BindToStringPayload",
    "Binder",
    "BinderParam",
    "EmptyListOnNotFoundOr404",
    "EmptyMapOnNotFoundOr404",
    "EmptySetOnNotFoundOr404",
    "EndpointParam",
    "Fallback",
    "FalseOnNotFoundOr404",
    "FalseOnNotFoundOr422",
    "FormParam",
    "GeneratedHttpRequest",
    "HeaderParam",
    "ImplicitOptionalConverter",
    "Invocation",
    "Invokable",
    "MapBinder",
    "MapHttp4xxCodesToExceptions",
    "NullOnNotFoundOr404",
    "Nullable",
    "ParamParser",
    "ParamValidators",
    "PartParam",
    "PathParam",
    "PayloadParam",
    "QueryParam",
    "RegexValidator",
    "RestContext",
    "RestContextBuilder",
    "RestMetadata",
    "RestProperties",
    "TrueOnNotFoundOr404",
    "Validator",
    "VoidOnNotFoundOr404",
    "WrapWith",
    "consumes",
    "delegate",
    "delete",
    "endpoint",
    "fallback",
    "form_params",
    "get",
    "head",
    "headers",
    "http_method",
    "map_binder",
    "only_element",
    "options",
    "override_request_filters",
    "param_validators",
    "patch",
    "path",
    "payload",
    "payload_params",
    "post",
    "produces",
    "provides",
    "put",
    "query_params",
    "request_filters",
    "response_parser",
    "select_json",
    "skip_encoding",
    "timeout",
    "transform",
    "unwrap",
    "virtual_host",
    "wrap_with",
    "xml_response_parser",
]
