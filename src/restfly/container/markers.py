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
"""Markers that steer resolution: ``@primary`` and ``Qualifier``."""

from __future__ import annotations

from typing import TypeVar

C = TypeVar("C", bound=type)


def primary(cls: C) -> C:
    """Prefer *cls* when several implementations are bound to one base."""
    cls.__restfly_primary__ = True  # type: ignore[attr-defined]
    return cls


class Qualifier:
    """Names the binding or supplier to inject into an ``Annotated`` parameter.

    Usage::

        class ProviderUrl:
            def __init__(self, url: Annotated[httpx.URL, Qualifier("provider")]) -> None:
                ...
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Qualifier({self.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Qualifier):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash((Qualifier, self.name))
