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
"""Binding records kept by the container."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Scope(Enum):
    """How often a class binding is constructed."""

    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass
class Registration:
    """One binding.

    Exactly one of ``impl_type`` (constructed on demand), ``instance``
    (pre-built) or ``supplier`` (called on every lookup) drives resolution.
    """

    impl_type: type | None = None
    scope: Scope = Scope.SINGLETON
    instance: Any = field(default=None, repr=False)
    supplier: Callable[[], Any] | None = field(default=None, repr=False)
    name: str = ""
