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
"""Declarative annotation vocabulary for REST interfaces.

Method and interface metadata is attached with decorators::

    @path("/servers")
    @consumes(APPLICATION_JSON)
    class ServerAsyncApi:
        @post("/{id}/action")
        @produces(APPLICATION_JSON)
        @payload('{"suspend":null}')
        @fallback(FalseOnNotFoundOr404)
        async def suspend(self, id: Annotated[str, PathParam("id")]) -> bool: ...

Parameter bindings are ``typing.Annotated`` markers. Method metadata
overrides interface metadata for single-valued entries; header, query and
form defaults accumulate, and the :data:`NULL` value removes earlier values
for its key and stores a bare key instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

T = TypeVar("T")

_METADATA_ATTR = "__restfly_rest__"


class _NullSentinel:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NULL"


NULL: Any = _NullSentinel()
"""Default value meaning "remove prior values and send the key without a value"."""


@dataclass
class RestMetadata:
    """Declarative metadata of one interface or one method."""

    http_method: str | None = None
    path: str | None = None
    headers: list[tuple[str, Any]] = field(default_factory=list)
    query_params: list[tuple[str, Any]] = field(default_factory=list)
    form_params: list[tuple[str, Any]] = field(default_factory=list)
    payload_params: list[tuple[str, Any]] = field(default_factory=list)
    produces: tuple[str, ...] | None = None
    consumes: tuple[str, ...] | None = None
    payload: str | None = None
    map_binder: Any = None
    wrap_with: str | None = None
    response_parser: Any = None
    select_json: tuple[str, ...] | None = None
    only_element: bool = False
    unwrap: bool = False
    xml_parser: Any = None
    transform: Any = None
    fallback: Any = None
    endpoint: str | None = None
    request_filters: tuple[Any, ...] | None = None
    override_request_filters: bool = False
    virtual_host: bool = False
    skip_encoding: str = ""
    timeout: float | None = None
    delegate: bool = False
    provides: bool = False
    provides_name: str = ""
    param_validators: tuple[Any, ...] = ()

    @property
    def is_http(self) -> bool:
        return self.http_method is not None


def get_metadata(target: Any) -> RestMetadata | None:
    """Metadata declared directly on *target*; never inherited from a base class."""
    if isinstance(target, type):
        return vars(target).get(_METADATA_ATTR)
    return getattr(target, _METADATA_ATTR, None)


def _metadata(target: Any) -> RestMetadata:
    meta = get_metadata(target)
    if meta is None:
        meta = RestMetadata()
        setattr(target, _METADATA_ATTR, meta)
    return meta


def _pairs(
    mapping: Mapping[str, Any] | None,
    keys: Sequence[str] | None,
    values: Sequence[Any] | None,
) -> list[tuple[str, Any]]:
    if mapping is not None:
        return list(mapping.items())
    keys = [keys] if isinstance(keys, str) else list(keys or ())
    values = [values] if isinstance(values, str) else list(values or ())
    if len(keys) != len(values):
        raise ValueError(f"keys {keys} and values {values} must have the same length")
    return list(zip(keys, values))


def _updater(update: Callable[[RestMetadata], None]) -> Callable[[T], T]:
    def decorator(target: T) -> T:
        update(_metadata(target))
        return target

    return decorator


# ---------------------------------------------------------------------------
# HTTP verb and path
# ---------------------------------------------------------------------------


def http_method(name: str, path_template: str | None = None) -> Callable[[T], T]:
    """Bind a method to an HTTP verb, optionally with a path template."""

    def update(meta: RestMetadata) -> None:
        meta.http_method = name.upper()
        if path_template is not None:
            meta.path = path_template

    return _updater(update)


def _make_verb(name: str) -> Callable[..., Callable[[T], T]]:
    def verb(path_template: str | None = None) -> Callable[[T], T]:
        return http_method(name, path_template)

    verb.__name__ = name.lower()
    verb.__doc__ = f"Bind a method to ``{name}``, optionally with a path template."
    return verb


get = _make_verb("GET")
post = _make_verb("POST")
put = _make_verb("PUT")
delete = _make_verb("DELETE")
head = _make_verb("HEAD")
patch = _make_verb("PATCH")
options = _make_verb("OPTIONS")


def path(template: str) -> Callable[[T], T]:
    """Path template; on an interface it prefixes every method path."""

    def update(meta: RestMetadata) -> None:
        meta.path = template

    return _updater(update)


# ---------------------------------------------------------------------------
# Static headers, query, form and payload parameters
# ---------------------------------------------------------------------------


def headers(
    mapping: Mapping[str, str] | None = None,
    *,
    keys: Sequence[str] | None = None,
    values: Sequence[str] | None = None,
) -> Callable[[T], T]:
    """Static headers; values may reference ``{tokens}``."""
    pairs = _pairs(mapping, keys, values)
    return _updater(lambda meta: meta.headers.__setitem__(slice(0, 0), pairs))


def query_params(
    mapping: Mapping[str, Any] | None = None,
    *,
    keys: Sequence[str] | None = None,
    values: Sequence[Any] | None = None,
) -> Callable[[T], T]:
    """Static query parameters; :data:`NULL` sends a bare key."""
    pairs = _pairs(mapping, keys, values)
    return _updater(lambda meta: meta.query_params.__setitem__(slice(0, 0), pairs))


def form_params(
    mapping: Mapping[str, Any] | None = None,
    *,
    keys: Sequence[str] | None = None,
    values: Sequence[Any] | None = None,
) -> Callable[[T], T]:
    """Static url-encoded form fields; :data:`NULL` sends a bare key."""
    pairs = _pairs(mapping, keys, values)
    return _updater(lambda meta: meta.form_params.__setitem__(slice(0, 0), pairs))


def payload_params(
    mapping: Mapping[str, Any] | None = None,
    *,
    keys: Sequence[str] | None = None,
    values: Sequence[Any] | None = None,
) -> Callable[[T], T]:
    """Static entries added to the map handed to a map binder."""
    pairs = _pairs(mapping, keys, values)
    return _updater(lambda meta: meta.payload_params.__setitem__(slice(0, 0), pairs))


def produces(*media_types: str) -> Callable[[T], T]:
    """``Content-Type`` of the request body."""
    return _updater(lambda meta: setattr(meta, "produces", media_types))


def consumes(*media_types: str) -> Callable[[T], T]:
    """``Accept`` media types; also selects JSON or XML response parsing."""
    return _updater(lambda meta: setattr(meta, "consumes", media_types))


# ---------------------------------------------------------------------------
# Payload binding
# ---------------------------------------------------------------------------


def payload(template: str) -> Callable[[T], T]:
    """Literal body template, expanded with ``{name}`` payload parameters."""
    return _updater(lambda meta: setattr(meta, "payload", template))


def map_binder(binder: Any) -> Callable[[T], T]:
    """Bind all payload parameters at once with a MapBinder class or instance."""
    return _updater(lambda meta: setattr(meta, "map_binder", binder))


def wrap_with(name: str) -> Callable[[T], T]:
    """Send payload parameters as JSON wrapped in ``{name: {...}}``."""
    return _updater(lambda meta: setattr(meta, "wrap_with", name))


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def response_parser(parser: Any) -> Callable[[T], T]:
    """Parse responses with *parser*: a transformer class, instance or function."""
    return _updater(lambda meta: setattr(meta, "response_parser", parser))


def select_json(*names: str) -> Callable[[T], T]:
    """Return the first JSON field named one of *names*."""
    return _updater(lambda meta: setattr(meta, "select_json", names))


def only_element() -> Callable[[T], T]:
    """Collapse a parsed collection to its only element, or ``None`` when empty."""
    return _updater(lambda meta: setattr(meta, "only_element", True))


def unwrap() -> Callable[[T], T]:
    """Return the value of the single top-level JSON field."""
    return _updater(lambda meta: setattr(meta, "unwrap", True))


def xml_response_parser(handler: Any = True) -> Callable[[T], T]:
    """Parse XML responses, with a handler class exposing ``parse(root)`` if given."""
    return _updater(lambda meta: setattr(meta, "xml_parser", handler))


def transform(function: Any) -> Callable[[T], T]:
    """Map the parsed result with *function* (a callable or callable class)."""
    return _updater(lambda meta: setattr(meta, "transform", function))


# ---------------------------------------------------------------------------
# Errors, endpoints, filters, timeouts
# ---------------------------------------------------------------------------


def fallback(fallback_cls: Any) -> Callable[[T], T]:
    """Fallback applied when the call fails; on an interface it is the default."""
    return _updater(lambda meta: setattr(meta, "fallback", fallback_cls))


def endpoint(qualifier: str) -> Callable[[T], T]:
    """Resolve the endpoint from the URL supplier registered under *qualifier*."""
    return _updater(lambda meta: setattr(meta, "endpoint", qualifier))


def request_filters(*filters: Any) -> Callable[[T], T]:
    """Filters the transport applies before sending (signing, auth...)."""
    return _updater(lambda meta: setattr(meta, "request_filters", filters))


def override_request_filters() -> Callable[[T], T]:
    """Method filters replace the interface filters instead of adding to them."""
    return _updater(lambda meta: setattr(meta, "override_request_filters", True))


def virtual_host() -> Callable[[T], T]:
    """Send a ``Host`` header built from the endpoint."""
    return _updater(lambda meta: setattr(meta, "virtual_host", True))


def skip_encoding(chars: Iterable[str]) -> Callable[[T], T]:
    """Characters left unescaped in path parameter values."""
    return _updater(lambda meta: setattr(meta, "skip_encoding", meta.skip_encoding + "".join(chars)))


def timeout(seconds: float) -> Callable[[T], T]:
    """Blocking timeout for synchronous calls of a method or interface."""
    return _updater(lambda meta: setattr(meta, "timeout", float(seconds)))


def delegate() -> Callable[[T], T]:
    """The method returns a nested API proxy scoped to this call's arguments."""
    return _updater(lambda meta: setattr(meta, "delegate", True))


def provides(name: str = "") -> Callable[[T], T]:
    """The method returns an object from the container, optionally by *name*."""

    def update(meta: RestMetadata) -> None:
        meta.provides = True
        meta.provides_name = name

    return _updater(update)


def param_validators(*validators: Any) -> Callable[[T], T]:
    """Validators applied to every argument of the method."""
    return _updater(lambda meta: setattr(meta, "param_validators", validators))


# ---------------------------------------------------------------------------
# Parameter markers, used inside typing.Annotated
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathParam:
    name: str


@dataclass(frozen=True)
class QueryParam:
    name: str


@dataclass(frozen=True)
class HeaderParam:
    name: str


@dataclass(frozen=True)
class FormParam:
    name: str


@dataclass(frozen=True)
class PayloadParam:
    name: str


@dataclass(frozen=True)
class PartParam:
    name: str
    content_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class BinderParam:
    binder: Any


@dataclass(frozen=True)
class WrapWith:
    name: str


@dataclass(frozen=True)
class ParamParser:
    """Converts the argument before binding; a callable or a callable class."""

    parser: Any


@dataclass(frozen=True)
class ParamValidators:
    validators: tuple[Any, ...]

    def __init__(self, *validators: Any) -> None:
        object.__setattr__(self, "validators", validators)


def _to_url(value: Any) -> Any:
    return value if isinstance(value, httpx.URL) else httpx.URL(str(value))


@dataclass(frozen=True)
class EndpointParam:
    """The argument, passed through *parser*, is the endpoint of the request."""

    parser: Any = _to_url


@dataclass(frozen=True)
class Nullable:
    """The argument may be ``None``."""


BINDING_MARKERS = (
    PathParam,
    QueryParam,
    HeaderParam,
    FormParam,
    PayloadParam,
    PartParam,
    BinderParam,
    WrapWith,
    EndpointParam,
)


def marked(func: Callable[..., Any]) -> bool:
    """True when *func* carries any restfly method metadata."""
    return get_metadata(func) is not None
