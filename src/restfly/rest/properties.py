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
"""Typed settings of the REST engine, bound from ``restfly.rest``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from restfly.core.config import config_properties


@config_properties(prefix="restfly.rest")
@dataclass
class RestProperties:
    endpoint: str = ""
    api_version: str = ""
    build_version: str = ""
    strip_expect_header: bool = False
    timeouts: dict[str, Any] = field(default_factory=dict)
    http: dict[str, Any] = field(default_factory=dict)

    @property
    def http_timeout(self) -> float:
        return float(self.http.get("timeout", 30))

    @property
    def follow_redirects(self) -> bool:
        return bool(self.http.get("follow-redirects", self.http.get("follow_redirects", True)))
