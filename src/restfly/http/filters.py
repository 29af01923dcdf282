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
"""Request filters applied by the transport right before sending."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from restfly.http.request import HttpRequest


@runtime_checkable
class HttpRequestFilter(Protocol):
    """Returns a (possibly) modified request, e.g. signed or authenticated."""

    def filter(self, request: HttpRequest) -> HttpRequest: ...


class StripExpectHeader:
    """Removes the ``Expect`` header, for servers that reject 100-continue."""

    def filter(self, request: HttpRequest) -> HttpRequest:
        return request.without_header("Expect")


def apply_filters(request: HttpRequest) -> HttpRequest:
    for request_filter in request.filters:
        request = request_filter.filter(request)
    return request
