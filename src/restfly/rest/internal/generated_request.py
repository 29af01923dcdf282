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
"""Requests built from an invocation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from restfly.http.request import HttpRequest
from restfly.http.uris import UriBuilder
from restfly.rest.invocation import Invocation


@dataclass(frozen=True)
class GeneratedHttpRequest(HttpRequest):
    """An :class:`HttpRequest` that remembers the invocation it came from.

    ``caller`` is the invocation of the delegate method that produced the
    nested API, when there is one.
    """

    invocation: Invocation | None = None
    caller: Invocation | None = None

    def replace_query_param(self, name: str, *values: Any) -> GeneratedHttpRequest:
        endpoint = UriBuilder(self.endpoint).replace_query(name, *values).build()
        return replace(self, endpoint=endpoint)

    def replace_path(self, path: str) -> GeneratedHttpRequest:
        endpoint = UriBuilder(self.endpoint).replace_path(path).build()
        return replace(self, endpoint=endpoint)
