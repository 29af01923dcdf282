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
"""URI template building and ``{token}`` substitution."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from restfly.http.payloads import url_encode_pairs

_TOKEN_RE = re.compile(r"\{([A-Za-z0-9_.\-]+)\}")

# query values keep these unescaped, e.g. x-amz-copy-source=/bucket/key
_QUERY_SAFE = "/:"


def replace_tokens(template: str, tokens: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` references with ``str(tokens[name])``.

    Unknown tokens are left as they are; ``{"json": ...}`` text never
    matches because quotes are not valid in a token name.
    """

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in tokens and tokens[key] is not None:
            return str(tokens[key])
        return match.group(0)

    return _TOKEN_RE.sub(_replace, template)


def delimit(left: str, right: str, delimiter: str = "/") -> str:
    """Join two path pieces with exactly one *delimiter* between them."""
    if not left:
        return right
    if not right:
        return left
    if left.endswith(delimiter) and right.startswith(delimiter):
        return left + right[1:]
    if not left.endswith(delimiter) and not right.startswith(delimiter):
        return f"{left}{delimiter}{right}"
    return left + right


class UriBuilder:
    """Accumulates a path template and query, then expands tokens into a URL.

    Path token values are percent-encoded, except for characters passed to
    :meth:`skip_path_encoding`.
    """

    def __init__(self, endpoint: str | httpx.URL) -> None:
        url = httpx.URL(str(endpoint))
        self._origin = f"{url.scheme}://{url.netloc.decode('ascii')}" if url.host else ""
        self._path = url.raw_path.decode("ascii").split("?", 1)[0]
        self._query: list[tuple[str, Any]] = list(url.params.multi_items())
        self._skip: set[str] = set()

    @property
    def path(self) -> str:
        return self._path

    def append_path(self, path: str) -> UriBuilder:
        self._path = delimit(self._path, path)
        return self

    def replace_path(self, path: str) -> UriBuilder:
        self._path = path if path.startswith("/") else f"/{path}"
        return self

    def skip_path_encoding(self, chars: Iterable[str]) -> UriBuilder:
        self._skip.update(chars)
        return self

    def add_query(self, params: Mapping[str, list[Any]]) -> UriBuilder:
        """Append *params* to the query; ``None`` values render as bare keys."""
        self._query.extend((k, v) for k, values in params.items() for v in values)
        return self

    def replace_query(self, name: str, *values: Any) -> UriBuilder:
        kept = [(k, v) for k, v in self._query if k != name]
        kept.extend((name, v) for v in values)
        self._query = kept
        return self

    def build(self, tokens: Mapping[str, Any] | None = None) -> httpx.URL:
        tokens = tokens or {}
        safe = "/" + "".join(sorted(self._skip))
        encoded = {k: quote(str(v), safe="".join(sorted(self._skip))) for k, v in tokens.items() if v is not None}
        path = replace_tokens(self._path, encoded)
        path = quote(path, safe=safe + "%{}:@!$&'()*+,;=-._~")
        url = self._origin + (path or "")
        if self._query:
            url += "?" + url_encode_pairs(self._query, safe=_QUERY_SAFE)
        return httpx.URL(url)
