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
"""CSRF protection — double-submit cookie pattern with signed tokens.

:class:`CsrfProtection` ties the signing key, token factory and validator
together and hands out :class:`~doublesubmit.security.gate.RequestGate`
instances for a host framework.

When a user authenticates, issue a token (``generate_token()`` or a
``CsrfTokenFilter``). Protected routes then require the same token in both
the ``csrf-token`` cookie and the ``X-Csrf-Token`` header. Due to the
same-origin policy, a cross-site attacker cannot reproduce the value in a
custom header and receives ``401 Unauthorized``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from doublesubmit.config.properties.csrf import CsrfProperties
from doublesubmit.core.config import Config
from doublesubmit.security.gate import (
    CookieSettings,
    RequestGate,
    ResponseFactory,
    is_safe_method,
    safe_methods_predicate,
)
from doublesubmit.security.keys import (
    DEFAULT_ALGORITHM,
    SigningKey,
    build_signing_key,
    generate_signing_key,
    load_signing_key,
)
from doublesubmit.security.signer import Signer
from doublesubmit.security.tokens import Clock, SystemClock, TokenFactory
from doublesubmit.security.validator import Validator

logger = structlog.get_logger("doublesubmit.security")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CSRF_COOKIE_NAME: str = "csrf-token"
"""Name of the cookie that carries the CSRF token."""

CSRF_HEADER_NAME: str = "X-Csrf-Token"
"""Name of the request header that carries the CSRF token."""


class CsrfProtection:
    """A configured CSRF protection instance.

    Args:
        key: The signing key, fixed for the lifetime of the instance.
        header_name: Your CSRF header name.
        cookie_name: The CSRF cookie name.
        clock: Clock used as the nonce source.
    """

    def __init__(
        self,
        key: SigningKey,
        header_name: str = CSRF_HEADER_NAME,
        cookie_name: str = CSRF_COOKIE_NAME,
        clock: Clock | None = None,
    ) -> None:
        self.header_name = header_name
        self.cookie_name = cookie_name
        self.signer = Signer(key)
        self.factory = TokenFactory(self.signer, clock or SystemClock())
        self.validator = Validator(self.signer)

    # -- construction sugar ---------------------------------------------------

    @classmethod
    def with_generated_key(
        cls,
        header_name: str = CSRF_HEADER_NAME,
        cookie_name: str = CSRF_COOKIE_NAME,
        clock: Clock | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> CsrfProtection:
        """Build an instance around a freshly generated key."""
        return cls(generate_signing_key(algorithm), header_name, cookie_name, clock)

    @classmethod
    def with_key_bytes(
        cls,
        key_bytes: bytes,
        header_name: str = CSRF_HEADER_NAME,
        cookie_name: str = CSRF_COOKIE_NAME,
        clock: Clock | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> CsrfProtection:
        """Build an instance from pre-generated key bytes.

        Raises:
            InvalidKeyError: If *key_bytes* is shorter than the algorithm's key.
        """
        return cls(build_signing_key(key_bytes, algorithm), header_name, cookie_name, clock)

    @classmethod
    def from_properties(cls, props: CsrfProperties, clock: Clock | None = None) -> CsrfProtection:
        """Build an instance from bound :class:`CsrfProperties`."""
        if props.key:
            key = load_signing_key(props.key, props.algorithm)
        else:
            logger.warning("csrf_key_generated", reason="no doublesubmit.csrf.key configured")
            key = generate_signing_key(props.algorithm)
        return cls(key, props.header_name, props.cookie_name, clock)

    @classmethod
    def from_config(cls, config: Config, clock: Clock | None = None) -> CsrfProtection:
        """Build an instance from the ``doublesubmit.csrf`` config section."""
        return cls.from_properties(config.bind(CsrfProperties), clock)

    # -- token operations -----------------------------------------------------

    def generate_token(self) -> str:
        """Issue a new signed token."""
        return self.factory.new_token()

    def sign_token(self, raw: str) -> str:
        """Re-sign a known raw token with a fresh nonce."""
        return self.factory.sign_existing(raw)

    def extract_raw(self, token: str) -> str | None:
        """Return the raw value of a valid token, or ``None``."""
        return self.validator.extract_raw(token)

    def tokens_match(self, token1: str, token2: str) -> bool:
        """``True`` if both tokens are valid and share a raw value."""
        return self.validator.tokens_match(token1, token2)

    # -- gate -----------------------------------------------------------------

    def gate(
        self,
        responses: ResponseFactory,
        cookie: CookieSettings | None = None,
        predicate: Callable[[Any], bool] = is_safe_method,
    ) -> RequestGate:
        """Create a :class:`RequestGate` bound to this instance."""
        return RequestGate(
            factory=self.factory,
            validator=self.validator,
            responses=responses,
            header_name=self.header_name,
            cookie_name=self.cookie_name,
            cookie=cookie,
            predicate=predicate,
        )


def cookie_settings_from(props: CsrfProperties) -> CookieSettings:
    """Translate bound properties into :class:`CookieSettings`."""
    return CookieSettings(
        path=props.cookie_path,
        domain=props.cookie_domain,
        secure=props.cookie_secure,
        httponly=props.cookie_httponly,
        samesite=props.cookie_samesite or None,
        max_age=props.cookie_max_age,
    )


def predicate_from(props: CsrfProperties) -> Callable[[Any], bool]:
    """Safety predicate for the configured method list."""
    return safe_methods_predicate(props.safe_methods)
