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
"""Outbound port: the HTTP transport the request pipeline dispatches to."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from restfly.http.request import HttpRequest, HttpResponse


@runtime_checkable
class HttpCommandExecutorPort(Protocol):
    """Sends fully built requests.

    Implementations apply ``request.filters`` before sending and return the
    response whatever its status code; status handling belongs to the caller.
    """

    async def submit(self, request: HttpRequest) -> HttpResponse: ...

    def invoke(self, request: HttpRequest) -> HttpResponse: ...

    async def aclose(self) -> None: ...

    def close(self) -> None: ...
