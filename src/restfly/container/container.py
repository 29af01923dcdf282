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
"""Container the REST engine resolves its collaborators from.

Binders, parsers, fallbacks, request filters and validators are referenced
by class in interface annotations. The container constructs them, injecting
constructor parameters by type hint. Endpoint suppliers are registered by
name and looked up through ``endpoint`` qualifiers.
"""

from __future__ import annotations

import difflib
import inspect
import threading
import types
import typing
from collections.abc import Callable, Iterable
from typing import Annotated, Any, TypeVar, Union, cast, get_args, get_origin

from restfly.container.exceptions import (
    AmbiguousBindingException,
    CircularDependencyException,
    NoBindingException,
)
from restfly.container.markers import Qualifier
from restfly.container.registry import Registration, Scope

T = TypeVar("T")

_UNRESOLVED = (NoBindingException, AmbiguousBindingException)


def _close_matches(name: str, candidates: Iterable[str]) -> list[str]:
    if not name:
        return []
    return difflib.get_close_matches(name, list(candidates), n=5, cutoff=0.4)


class Container:
    """Type-keyed and name-keyed bindings with constructor injection.

    - ``register(cls)``: built on first use (``Scope.SINGLETON``) or on
      every use (``Scope.TRANSIENT``)
    - ``register_instance(obj)``: a pre-built object
    - ``register_supplier(fn, name=...)``: called on every lookup of *name*
    - ``bind(base, impl)``: resolve *base* through *impl*; ``@primary``
      breaks ties between several implementations
    - ``get_instance(cls)``: like ``resolve``, but builds unregistered
      concrete classes just in time

    Constructor parameters annotated ``Annotated[T, Qualifier(name)]`` are
    looked up by name, ``Optional[T]`` yields ``None`` when nothing is bound
    and ``list[T]`` collects every implementation bound to ``T``.
    """

    def __init__(self) -> None:
        self._by_type: dict[type, Registration] = {}
        self._by_name: dict[str, Registration] = {}
        self._suppliers: dict[str, Registration] = {}
        self._bindings: dict[type, list[type]] = {}
        self._under_construction: list[type] = []
        self._lock = threading.RLock()

    # -- registration -----------------------------------------------------

    def register(self, cls: type, scope: Scope = Scope.SINGLETON, name: str = "") -> None:
        registration = Registration(impl_type=cls, scope=scope, name=name)
        self._by_type[cls] = registration
        if name:
            self._by_name[name] = registration

    def register_instance(self, instance: Any, *, name: str = "", as_type: type | None = None) -> None:
        """Register *instance* under *name*, under *as_type*, or under its own type."""
        registration = Registration(impl_type=type(instance), instance=instance, name=name)
        if name:
            self._by_name[name] = registration
        if as_type is not None or not name:
            self._by_type[as_type or type(instance)] = registration

    def register_supplier(self, supplier: Callable[[], Any], *, name: str) -> None:
        self._suppliers[name] = Registration(supplier=supplier, scope=Scope.TRANSIENT, name=name)

    def bind(self, interface: type, implementation: type) -> None:
        implementations = self._bindings.setdefault(interface, [])
        if implementation not in implementations:
            implementations.append(implementation)

    # -- lookups that never construct -------------------------------------

    def get_existing_binding(self, cls: type | None = None, name: str = "") -> Registration | None:
        if name:
            return self._by_name.get(name)
        if cls is None:
            return None
        if cls in self._by_type:
            return self._by_type[cls]
        implementations = self._bindings.get(cls, [])
        return self._by_type.get(implementations[0]) if len(implementations) == 1 else None

    def get_existing_supplier(self, name: str) -> Callable[[], Any] | None:
        registration = self._suppliers.get(name)
        return None if registration is None else registration.supplier

    def contains(self, name: str) -> bool:
        return name in self._by_name or name in self._suppliers

    # -- resolution -------------------------------------------------------

    def resolve(self, cls: type[T]) -> T:
        """Return the object bound to *cls*, directly or through ``bind``."""
        registration = self._by_type.get(cls)
        if registration is None:
            registration = self._bound_registration(cls)
        return cast(T, self._provide(registration))

    def resolve_by_name(self, name: str) -> Any:
        """Return the named binding, or the value of the named supplier."""
        registration = self._by_name.get(name) or self._suppliers.get(name)
        if registration is None:
            raise NoBindingException(name=name, suggestions=_close_matches(name, [*self._by_name, *self._suppliers]))
        return self._provide(registration)

    def resolve_all(self, cls: type[T]) -> list[T]:
        return [self._provide(self._registration_for(impl)) for impl in self._bindings.get(cls, [])]

    def get_instance(self, cls: type[T], name: str = "") -> T:
        """Resolve *cls*, building it just in time when it is not registered.

        Just-in-time objects are transient: every call builds a new one.
        Built-in types and protocols are never built this way.
        """
        if name:
            return cast(T, self.resolve_by_name(name))
        if cls in self._by_type or cls in self._bindings:
            return self.resolve(cls)
        if (
            not inspect.isclass(cls)
            or inspect.isabstract(cls)
            or getattr(cls, "_is_protocol", False)
            or cls.__module__ == "builtins"
        ):
            raise NoBindingException(bound_type=cls if isinstance(cls, type) else None)
        return cast(T, self._construct(cls))

    def _bound_registration(self, cls: type) -> Registration:
        implementations = self._bindings.get(cls, [])
        if not implementations:
            raise NoBindingException(
                bound_type=cls,
                suggestions=_close_matches(getattr(cls, "__name__", ""), (c.__name__ for c in self._by_type)),
            )
        if len(implementations) > 1:
            preferred = [impl for impl in implementations if getattr(impl, "__restfly_primary__", False)]
            if not preferred:
                raise AmbiguousBindingException(bound_type=cls, candidates=implementations)
            implementations = preferred
        return self._registration_for(implementations[0])

    def _registration_for(self, impl: type) -> Registration:
        registration = self._by_type.get(impl)
        if registration is None:
            registration = Registration(impl_type=impl, scope=Scope.TRANSIENT)
        return registration

    def _provide(self, registration: Registration) -> Any:
        if registration.supplier is not None:
            return registration.supplier()
        if registration.instance is not None:
            return registration.instance
        impl_type = cast(type, registration.impl_type)
        if registration.scope is Scope.TRANSIENT:
            return self._construct(impl_type)
        with self._lock:
            if registration.instance is None:
                registration.instance = self._construct(impl_type)
            return registration.instance

    # -- construction -----------------------------------------------------

    def _construct(self, cls: type) -> Any:
        # construction runs under the lock so the in-progress list is per build
        with self._lock:
            if cls in self._under_construction:
                raise CircularDependencyException(chain=[*self._under_construction, cls])
            self._under_construction.append(cls)
            try:
                return cls(**self._constructor_arguments(cls))
            finally:
                self._under_construction.pop()

    def _constructor_arguments(self, cls: type) -> dict[str, Any]:
        init = cls.__init__  # type: ignore[misc]
        if init is object.__init__:
            return {}
        hints = typing.get_type_hints(init, include_extras=True)
        parameters = list(inspect.signature(init).parameters.values())[1:]

        arguments: dict[str, Any] = {}
        for param in parameters:
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            optional = param.default is not inspect.Parameter.empty
            hint = hints.get(param.name)
            try:
                if hint is None:
                    raise NoBindingException()
                arguments[param.name] = self._argument_for(hint)
            except _UNRESOLVED:
                if optional:
                    continue
                raise NoBindingException(
                    bound_type=hint if isinstance(hint, type) else None,
                    required_by=f"{cls.__qualname__}.__init__()",
                    parameter=param.name,
                    suggestions=_close_matches(getattr(hint, "__name__", ""), (c.__name__ for c in self._by_type)),
                ) from None
        return arguments

    def _argument_for(self, hint: Any) -> Any:
        origin = get_origin(hint)
        if origin is Annotated:
            base, *extras = get_args(hint)
            qualifier = next((extra for extra in extras if isinstance(extra, Qualifier)), None)
            if qualifier is not None:
                return self.resolve_by_name(qualifier.name)
            return self._argument_for(base)

        if origin is Union or origin is types.UnionType:
            members = [arg for arg in get_args(hint) if arg is not type(None)]
            if len(members) == 1:
                try:
                    return self.resolve(members[0])
                except _UNRESOLVED:
                    return None

        if origin is list and get_args(hint):
            return self.resolve_all(get_args(hint)[0])

        if hint is type or origin is type:
            raise NoBindingException()

        return self.get_instance(hint)
