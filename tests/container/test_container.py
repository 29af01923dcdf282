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
"""Tests for the dependency container used by the REST engine."""

from typing import Annotated, Optional

import pytest

from restfly.container import (
    AmbiguousBindingException,
    CircularDependencyException,
    Container,
    NoBindingException,
    Qualifier,
    Scope,
    primary,
)


class Clock:
    def now(self) -> int:
        return 42


class Signer:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock


class EndpointHolder:
    def __init__(self, url: Annotated[str, Qualifier("provider")]) -> None:
        self.url = url


class OptionalClockUser:
    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock


class Parser:
    pass


class JsonParser(Parser):
    pass


@primary
class XmlParser(Parser):
    pass


class CircularB:
    def __init__(self, a: "CircularA") -> None:
        self.a = a


class CircularA:
    def __init__(self, b: CircularB) -> None:
        self.b = b


class TestContainerBasics:
    def test_register_and_resolve(self):
        container = Container()
        container.register(Clock)
        assert container.resolve(Clock).now() == 42

    def test_constructor_injection(self):
        container = Container()
        container.register(Clock)
        container.register(Signer)
        assert isinstance(container.resolve(Signer).clock, Clock)

    def test_singleton_and_transient_scopes(self):
        container = Container()
        container.register(Clock, scope=Scope.SINGLETON)
        container.register(Signer, scope=Scope.TRANSIENT)
        assert container.resolve(Clock) is container.resolve(Clock)
        assert container.resolve(Signer) is not container.resolve(Signer)

    def test_resolve_unregistered_raises(self):
        with pytest.raises(NoBindingException):
            Container().resolve(Clock)

    def test_optional_dependency_resolves_to_none(self):
        container = Container()
        container.register(OptionalClockUser)
        assert container.resolve(OptionalClockUser).clock is None

    def test_circular_dependency_detected(self):
        container = Container()
        container.register(CircularA)
        container.register(CircularB)
        with pytest.raises(CircularDependencyException) as excinfo:
            container.resolve(CircularA)
        assert excinfo.value.chain == [CircularA, CircularB, CircularA]
        assert excinfo.value.code == "CIRCULAR_DEPENDENCY"


class TestInstancesAndSuppliers:
    def test_register_instance_by_type_and_name(self):
        container = Container()
        clock = Clock()
        container.register_instance(clock, name="clock", as_type=Clock)
        assert container.resolve(Clock) is clock
        assert container.resolve_by_name("clock") is clock
        assert container.get_existing_binding(name="clock") is not None

    def test_named_supplier_is_called_on_every_lookup(self):
        container = Container()
        calls = []
        container.register_supplier(lambda: calls.append(1) or len(calls), name="counter")
        assert container.resolve_by_name("counter") == 1
        assert container.resolve_by_name("counter") == 2
        assert container.get_existing_supplier("counter") is not None
        assert container.contains("counter")

    def test_qualifier_injects_named_supplier(self):
        container = Container()
        container.register_supplier(lambda: "http://localhost", name="provider")
        assert container.get_instance(EndpointHolder).url == "http://localhost"

    def test_missing_name_reports_suggestions(self):
        container = Container()
        container.register_supplier(lambda: "x", name="provider")
        with pytest.raises(NoBindingException) as excinfo:
            container.resolve_by_name("provder")
        assert excinfo.value.suggestions == ["provider"]

    def test_existing_lookups_never_create(self):
        container = Container()
        assert container.get_existing_binding(Clock) is None
        assert container.get_existing_supplier("nothing") is None
        assert not container.contains("nothing")


class TestJustInTime:
    def test_get_instance_creates_unregistered_class(self):
        container = Container()
        container.register(Clock)
        signer = container.get_instance(Signer)
        assert isinstance(signer, Signer)
        assert signer is not container.get_instance(Signer)

    def test_get_instance_prefers_registration(self):
        container = Container()
        clock = Clock()
        container.register_instance(clock)
        assert container.get_instance(Clock) is clock

    def test_bound_interface_uses_primary(self):
        container = Container()
        container.register(JsonParser)
        container.register(XmlParser)
        container.bind(Parser, JsonParser)
        container.bind(Parser, XmlParser)
        assert isinstance(container.get_instance(Parser), XmlParser)
        assert len(container.resolve_all(Parser)) == 2

    def test_ambiguous_binding_without_primary(self):
        class Other(Parser):
            pass

        container = Container()
        container.register(JsonParser)
        container.register(Other)
        container.bind(Parser, JsonParser)
        container.bind(Parser, Other)
        with pytest.raises(AmbiguousBindingException):
            container.resolve(Parser)

    def test_missing_constructor_dependency_names_the_parameter(self):
        class Store:
            def __init__(self, limit: int) -> None:
                self.limit = limit

        with pytest.raises(NoBindingException) as excinfo:
            Container().get_instance(Store)
        assert excinfo.value.parameter == "limit"
        assert "Store.__init__()" in str(excinfo.value)

    def test_just_in_time_dependencies_are_built_too(self):
        signer = Container().get_instance(Signer)
        assert signer.clock.now() == 42

    def test_builtin_types_are_never_built(self):
        with pytest.raises(NoBindingException):
            Container().get_instance(str)
