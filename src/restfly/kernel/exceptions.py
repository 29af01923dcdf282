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
"""Unified exception hierarchy for restfly.

All library exceptions inherit from RestflyException, enabling unified
error handling across the request pipeline.

Categories:
- ConfigurationException: inconsistent interface metadata or wiring (fatal)
- BusinessException: argument and validation errors, mapped 4xx outcomes
- SecurityException: authentication and authorization errors
- InfrastructureException: transport failures, HTTP errors, timeouts
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class RestflyException(Exception):
    """Base exception for all restfly errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "NO_ENDPOINT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(RestflyException):
    """Interface metadata or context wiring is inconsistent."""


class NoEndpointException(ConfigurationException, LookupError):
    """No endpoint could be resolved for an invocation."""


class MissingResponseParserException(ConfigurationException):
    """No response transformer applies to a method's return type."""


class MissingAsyncCounterpartException(ConfigurationException):
    """A synchronous method has no asynchronous counterpart to delegate to."""


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(RestflyException):
    """Argument errors and domain outcomes of a call."""


class ValidationException(BusinessException):
    """Input validation failures, raised before any I/O occurs."""


class NullParameterException(ValidationException):
    """A non-nullable parameter received ``None``."""


class ParamValidationException(ValidationException):
    """A parameter validator rejected an argument."""


class InvalidArgumentException(BusinessException, ValueError):
    """Arguments form an unsupported combination."""


class ResourceNotFoundException(BusinessException):
    """Requested resource does not exist."""


class IllegalStateException(BusinessException):
    """Operation conflicts with the current state of the resource."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(RestflyException):
    """Authentication and authorization errors."""


class AuthorizationException(SecurityException):
    """Credentials were rejected or lack permission for the operation."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(RestflyException):
    """Infrastructure failures: transport, remote service, timeouts."""


class HttpResponseException(InfrastructureException):
    """The remote service answered with an unsuccessful status code.

    Carries the request that was sent and the response that came back so
    fallbacks can inspect the status code.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        request: Any = None,
        response: Any = None,
        content: str | None = None,
    ) -> None:
        self.request = request
        self.response = response
        self.content = content
        if message is None:
            line = request.request_line if request is not None else "request"
            status = response.status_line if response is not None else "no response"
            message = f"command: {line} failed with response: {status}"
            if content:
                message += f"; content: [{content}]"
        super().__init__(
            message,
            code="HTTP_RESPONSE",
            context={"status": self.status_code},
        )

    @property
    def status_code(self) -> int | None:
        return getattr(self.response, "status_code", None)


class OperationTimeoutException(InfrastructureException):
    """Operation exceeded its allowed time limit."""


class InvocationException(InfrastructureException):
    """A blocking call failed with a non-``Exception`` throwable."""
