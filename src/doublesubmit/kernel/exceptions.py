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
"""Unified exception hierarchy for doublesubmit.

All library exceptions inherit from DoubleSubmitException, enabling unified
error handling. Each carries a machine-readable code so that logs can tell
failures apart even though HTTP clients only ever see a generic rejection.

Categories:
- SecurityException: key and token failures
- ConfigurationException: configuration binding failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class DoubleSubmitException(Exception):
    """Base exception for all doublesubmit errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_MISSING").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code if code is not None else self.default_code
        self.context: dict = context if context is not None else {}


class ConfigurationException(DoubleSubmitException):
    """Configuration could not be loaded or bound."""

    default_code = "CONFIG_INVALID"


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(DoubleSubmitException):
    """Signing key and token errors."""


class InvalidKeyError(SecurityException):
    """Signing key material is missing, empty, or the wrong length.

    Raised at construction time only; this is the one security error that
    is surfaced to callers instead of collapsing into a rejection.
    """

    default_code = "CSRF_INVALID_KEY"


class CsrfException(SecurityException):
    """Base class for per-request token validation failures."""


class MalformedTokenError(CsrfException):
    """Token does not split into raw, nonce and signature segments."""

    default_code = "CSRF_MALFORMED"


class SignatureMismatchError(CsrfException):
    """Recomputed MAC does not match the signature embedded in the token."""

    default_code = "CSRF_SIGNATURE"


class MissingTokenError(CsrfException):
    """Cookie or header token is absent on a request that requires it."""

    default_code = "CSRF_MISSING"


class TokenMismatchError(CsrfException):
    """Cookie and header tokens are valid but carry different raw values."""

    default_code = "CSRF_MISMATCH"
