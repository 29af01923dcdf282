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
"""Argument validation run before a request is built."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from restfly.container import Container
from restfly.kernel.exceptions import NullParameterException, ParamValidationException
from restfly.rest.annotations import BINDING_MARKERS, ParamValidators
from restfly.rest.invocation import Invocation, Parameter


class Validator(ABC):
    """Rejects a value by raising ``ValueError``."""

    @abstractmethod
    def validate(self, value: Any) -> None: ...


class RegexValidator(Validator):
    def __init__(self, pattern: str) -> None:
        self.pattern = re.compile(pattern)

    def validate(self, value: Any) -> None:
        if value is not None and not self.pattern.fullmatch(str(value)):
            raise ValueError(f"{value!r} does not match {self.pattern.pattern}")


def null_parameter(key: str, invocation: Invocation) -> NullParameterException:
    invokable = invocation.invokable
    return NullParameterException(
        f"param{{{key}}} for invocation {invocation.interface.__name__}.{invokable.name}",
        code="NULL_PARAMETER",
        context={"parameter": key, "method": invokable.name},
    )


def _binding_key(parameter: Parameter) -> str:
    for marker in parameter.markers:
        if isinstance(marker, BINDING_MARKERS):
            return getattr(marker, "name", None) or parameter.name
    return parameter.name


class InputParamValidator:
    """Checks nullability and runs declared validators for an invocation."""

    def __init__(self, container: Container | None = None) -> None:
        self._container = container

    def validate_or_raise(self, invocation: Invocation) -> None:
        invokable = invocation.invokable
        method_validators = self._instances(invokable.metadata.param_validators)
        for parameter in invokable.parameters:
            value = invocation.arg(parameter)
            if value is None and not parameter.nullable and any(
                isinstance(m, BINDING_MARKERS) for m in parameter.markers
            ):
                raise null_parameter(_binding_key(parameter), invocation)
            marker = parameter.marker(ParamValidators)
            validators = method_validators + (self._instances(marker.validators) if marker else [])
            for validator in validators:
                self._run(validator, value, parameter, invocation)

    def _instances(self, validators: tuple[Any, ...]) -> list[Any]:
        result = []
        for validator in validators:
            if isinstance(validator, type):
                validator = (
                    self._container.get_instance(validator) if self._container is not None else validator()
                )
            result.append(validator)
        return result

    @staticmethod
    def _run(validator: Any, value: Any, parameter: Parameter, invocation: Invocation) -> None:
        try:
            if isinstance(validator, Validator):
                validator.validate(value)
            elif validator(value) is False:
                raise ValueError(f"{value!r} rejected by {validator!r}")
        except ValueError as exc:
            raise ParamValidationException(
                f"invalid value for {parameter.name} of {invocation.interface.__name__}."
                f"{invocation.invokable.name}: {exc}",
                code="INVALID_PARAMETER",
                context={"parameter": parameter.name},
            ) from exc
