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
"""Request options: caller-supplied headers, query, form, path suffix and body."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class HttpRequestOptions(Protocol):
    """Contributes extra request parts when passed as a method argument."""

    def build_request_headers(self) -> dict[str, list[str]]: ...
    def build_query_parameters(self) -> dict[str, list[str]]: ...
    def build_form_parameters(self) -> dict[str, list[str]]: ...
    def build_path_suffix(self) -> str | None: ...
    def build_string_payload(self) -> str | None: ...


class BaseHttpRequestOptions:
    """Mutable builder-style options; subclasses add domain-specific setters.

    Usage::

        class ListOptions(BaseHttpRequestOptions):
            def limit(self, n: int) -> ListOptions:
                self.query_parameters["limit"] = [str(n)]
                return self

    Values may contain ``{token}`` references to path parameters of the
    method they are passed to.
    """

    def __init__(self) -> None:
        self.headers: dict[str, list[str]] = {}
        self.query_parameters: dict[str, list[str]] = {}
        self.form_parameters: dict[str, list[str]] = {}
        self.path_suffix: str | None = None
        self.payload: str | None = None

    def build_request_headers(self) -> dict[str, list[str]]:
        return self.headers

    def build_query_parameters(self) -> dict[str, list[str]]:
        return self.query_parameters

    def build_form_parameters(self) -> dict[str, list[str]]:
        return self.form_parameters

    def build_path_suffix(self) -> str | None:
        return self.path_suffix

    def build_string_payload(self) -> str | None:
        return self.payload

    def first_query_or_none(self, key: str) -> str | None:
        values = self.query_parameters.get(key)
        return values[0] if values else None

    def first_header_or_none(self, key: str) -> str | None:
        values = self.headers.get(key)
        return values[0] if values else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseHttpRequestOptions):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.headers == other.headers
            and self.query_parameters == other.query_parameters
            and self.form_parameters == other.form_parameters
            and self.path_suffix == other.path_suffix
            and self.payload == other.payload
        )

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return (
            f"[formParameters={self.form_parameters}, headers={self.headers}, "
            f"queryParameters={self.query_parameters}, pathSuffix={self.path_suffix}, "
            f"payload={self.payload}]"
        )
