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
"""Fallbacks: substitute values for failed calls.

A fallback receives the failure and either returns the value the method
should return instead, or raises. ``raise exc`` re-raises the failure
unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, TypeVar

from restfly.kernel.exceptions import (
    AuthorizationException,
    HttpResponseException,
    IllegalStateException,
    ResourceNotFoundException,
)

E = TypeVar("E", bound=BaseException)


def causal_chain(exc: BaseException) -> Iterator[BaseException]:
    """*exc* followed by its causes and contexts, each visited once."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def first_of_type(exc: BaseException, exc_type: type[E]) -> E | None:
    for link in causal_chain(exc):
        if isinstance(link, exc_type):
            return link
    return None


def status_code_of(exc: BaseException) -> int | None:
    """Status of the first :class:`HttpResponseException` in the chain."""
    response_exc = first_of_type(exc, HttpResponseException)
    return response_exc.status_code if response_exc is not None else None


def is_not_found(exc: BaseException) -> bool:
    return first_of_type(exc, ResourceNotFoundException) is not None or status_code_of(exc) == 404


class Fallback(ABC):
    @abstractmethod
    def create(self, exc: BaseException) -> Any: ...


class MapHttp4xxCodesToExceptions(Fallback):
    """Default fallback: turns common client errors into typed exceptions."""

    def create(self, exc: BaseException) -> Any:
        response_exc = first_of_type(exc, HttpResponseException)
        if response_exc is not None:
            message = str(response_exc)
            code = response_exc.status_code
            if code in (401, 403):
                raise AuthorizationException(message) from exc
            if code == 404:
                raise ResourceNotFoundException(message) from exc
            if code == 409:
                raise IllegalStateException(message) from exc
        raise exc


class _ValueOnNotFoundOr404(Fallback):
    value: Any = None

    def create(self, exc: BaseException) -> Any:
        if is_not_found(exc):
            return self.fresh_value()
        raise exc

    def fresh_value(self) -> Any:
        return self.value


class FalseOnNotFoundOr404(_ValueOnNotFoundOr404):
    value = False


class TrueOnNotFoundOr404(_ValueOnNotFoundOr404):
    value = True


class NullOnNotFoundOr404(_ValueOnNotFoundOr404):
    value = None


class VoidOnNotFoundOr404(_ValueOnNotFoundOr404):
    value = None


class EmptyListOnNotFoundOr404(_ValueOnNotFoundOr404):
    def fresh_value(self) -> list[Any]:
        return []


class EmptySetOnNotFoundOr404(_ValueOnNotFoundOr404):
    def fresh_value(self) -> set[Any]:
        return set()


class EmptyMapOnNotFoundOr404(_ValueOnNotFoundOr404):
    def fresh_value(self) -> dict[Any, Any]:
        return {}


class FalseOnNotFoundOr422(Fallback):
    def create(self, exc: BaseException) -> Any:
        if first_of_type(exc, ResourceNotFoundException) is not None or status_code_of(exc) in (404, 422):
            return False
        raise exc
