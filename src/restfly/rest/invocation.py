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
"""Invocations and the cached, reflective view of interface methods."""

from __future__ import annotations

import asyncio
import collections.abc
import concurrent.futures
import inspect
import threading
import types
from dataclasses import dataclass, field
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from restfly.rest.annotations import Nullable, RestMetadata, get_metadata

_AWAITABLE_ORIGINS = (
    collections.abc.Awaitable,
    collections.abc.Coroutine,
    asyncio.Future,
    concurrent.futures.Future,
)


def _strip_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is Annotated:
        base, *markers = get_args(hint)
        return base, tuple(markers)
    return hint, ()


def is_optional(hint: Any) -> bool:
    return get_origin(hint) in (Union, types.UnionType) and type(None) in get_args(hint)


def unwrap_optional(hint: Any) -> Any:
    """``X | None`` -> ``X``; other hints are returned unchanged."""
    if not is_optional(hint):
        return hint
    remaining = [a for a in get_args(hint) if a is not type(None)]
    if len(remaining) == 1:
        return remaining[0]
    return Union[tuple(remaining)]


def _unwrap_awaitable(hint: Any) -> tuple[Any, bool]:
    origin = get_origin(hint) or hint
    if origin in _AWAITABLE_ORIGINS:
        args = get_args(hint)
        return (args[-1] if args else Any), True
    return hint, False


@dataclass(frozen=True)
class Parameter:
    """One declared parameter of an interface method."""

    index: int
    name: str
    annotation: Any
    markers: tuple[Any, ...]
    kind: inspect._ParameterKind
    default: Any = inspect.Parameter.empty

    def marker(self, marker_type: type) -> Any:
        for marker in self.markers:
            if isinstance(marker, marker_type):
                return marker
        return None

    def has(self, marker_type: type) -> bool:
        return self.marker(marker_type) is not None

    @property
    def is_variadic(self) -> bool:
        return self.kind is inspect.Parameter.VAR_POSITIONAL

    @property
    def nullable(self) -> bool:
        """Marked :class:`Nullable`, or declared with a ``None`` default."""
        return self.has(Nullable) or (self.default is None)


class Invokable:
    """An interface method together with its declaring interface.

    Instances are cached process-wide; use :meth:`of`.
    """

    _cache: dict[tuple[type, str], Invokable] = {}
    _lock = threading.Lock()

    def __init__(self, owner: type, func: Any) -> None:
        self.owner = owner
        self.func = func
        self.name: str = func.__name__
        self.metadata: RestMetadata = get_metadata(func) or RestMetadata()
        self.owner_metadata: RestMetadata = get_metadata(owner) or RestMetadata()

        hints = get_type_hints(func, include_extras=True)
        signature = inspect.signature(func)
        params = list(signature.parameters.values())[1:]
        self.parameters: tuple[Parameter, ...] = tuple(
            Parameter(
                index=i,
                name=p.name,
                annotation=_strip_annotated(hints.get(p.name, Any))[0],
                markers=_strip_annotated(hints.get(p.name, Any))[1],
                kind=p.kind,
                default=p.default,
            )
            for i, p in enumerate(params)
        )
        self.signature = signature.replace(parameters=params)

        returns, _ = _strip_annotated(hints.get("return", Any))
        returns, returns_awaitable = _unwrap_awaitable(returns)
        self.is_async: bool = inspect.iscoroutinefunction(func) or returns_awaitable
        self.declared_return_type: Any = returns
        self.returns_optional: bool = is_optional(returns)
        self.return_type: Any = type(None) if returns is None else unwrap_optional(returns)

    @classmethod
    def of(cls, owner: type, func: Any) -> Invokable:
        key = (owner, func.__name__)
        with cls._lock:
            invokable = cls._cache.get(key)
            if invokable is None or invokable.func is not func:
                invokable = cls(owner, func)
                cls._cache[key] = invokable
            return invokable

    def parameters_with(self, marker_type: type) -> list[Parameter]:
        return [p for p in self.parameters if p.has(marker_type)]

    def single_valued(self, attr: str) -> Any:
        """Method value of *attr*, else the interface's."""
        value = getattr(self.metadata, attr)
        if value is None or value is False or value == "":
            return getattr(self.owner_metadata, attr)
        return value

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def returns_none(self) -> bool:
        return self.declared_return_type is None or self.declared_return_type is type(None)

    def __repr__(self) -> str:
        return f"{self.owner.__name__}.{self.name}"


def interface_methods(interface: type) -> list[tuple[str, Any]]:
    """Public functions declared on *interface* and its bases, in definition order."""
    seen: dict[str, Any] = {}
    for klass in reversed(interface.__mro__):
        if klass.__module__ in ("builtins", "typing"):
            continue
        for name, value in vars(klass).items():
            if name.startswith("_"):
                continue
            if inspect.isfunction(value):
                seen[name] = value
    return list(seen.items())


@dataclass(frozen=True)
class Invocation:
    """One call of an interface method: arguments stored in parameter order."""

    interface: type
    invokable: Invokable
    args: tuple[Any, ...] = field(default=())

    @classmethod
    def create(
        cls,
        invokable: Invokable,
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        interface: type | None = None,
    ) -> Invocation:
        bound = invokable.signature.bind(*args, **(kwargs or {}))
        bound.apply_defaults()
        ordered = tuple(bound.arguments[p.name] for p in invokable.parameters)
        return cls(interface or invokable.owner, invokable, ordered)

    def arg(self, parameter: Parameter) -> Any:
        return self.args[parameter.index]

    def __str__(self) -> str:
        rendered = ", ".join(repr(a) for a in self.args)
        return f"{self.interface.__name__}.{self.invokable.name}({rendered})"
