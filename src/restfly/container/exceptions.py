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
"""Errors raised while the container provides a collaborator.

They are configuration errors: a context whose binders, parsers or
endpoints cannot be provided is unusable.
"""

from __future__ import annotations

from restfly.kernel.exceptions import ConfigurationException


def _type_name(tp: object) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)


class ContainerException(ConfigurationException):
    """A collaborator could not be provided."""


class NoBindingException(ContainerException, LookupError):
    """Nothing is bound to the requested type or name."""

    def __init__(
        self,
        *,
        bound_type: type | None = None,
        name: str | None = None,
        required_by: str | None = None,
        parameter: str | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        self.bound_type = bound_type
        self.name = name
        self.required_by = required_by
        self.parameter = parameter
        self.suggestions = suggestions or []

        if bound_type is not None:
            message = f"nothing is bound to {_type_name(bound_type)}"
        elif name:
            message = f"no binding or supplier named {name!r}"
        else:
            message = "no matching binding"
        if required_by:
            message += f" (needed by {required_by}"
            message += f", parameter {parameter})" if parameter else ")"
        if self.suggestions:
            message += f"; close matches: {', '.join(self.suggestions)}"
        super().__init__(
            message,
            code="NO_BINDING",
            context={"name": name, "required_by": required_by, "parameter": parameter},
        )


class AmbiguousBindingException(ContainerException):
    """Several implementations are bound to one base and none is ``@primary``."""

    def __init__(self, *, bound_type: type, candidates: list[type]) -> None:
        self.bound_type = bound_type
        self.candidates = list(candidates)
        names = ", ".join(_type_name(c) for c in self.candidates)
        super().__init__(
            f"{_type_name(bound_type)} is bound to {names}; mark one of them @primary",
            code="AMBIGUOUS_BINDING",
        )


class CircularDependencyException(ContainerException):
    """A constructor depends, directly or not, on its own class.

    ``chain`` lists the classes in construction order, ending with the
    class that was requested a second time.
    """

    def __init__(self, *, chain: list[type]) -> None:
        self.chain = list(chain)
        super().__init__(
            "circular dependency: " + " -> ".join(_type_name(c) for c in self.chain),
            code="CIRCULAR_DEPENDENCY",
        )
