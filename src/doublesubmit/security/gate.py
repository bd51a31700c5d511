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
"""RequestGate — routes each request to token embedding or double-submit validation.

The gate only depends on small capability protocols, so any host whose
request exposes ``method``, ``cookies`` and ``headers`` and whose response
offers ``set_cookie()`` can use it. Starlette is wired up in
:mod:`doublesubmit.web.adapters.starlette`.

Policy on safe methods: a cookie that is present but does not verify is
rejected with 401 before the handler runs, the same as on unsafe methods.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import structlog

from doublesubmit.kernel.exceptions import CsrfException, MissingTokenError, TokenMismatchError
from doublesubmit.security.tokens import TokenFactory
from doublesubmit.security.validator import Validator, constant_time_equals
from doublesubmit.web.ports.filter import CallNext

logger = structlog.get_logger("doublesubmit.security")

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
"""HTTP methods that do not require CSRF validation."""


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------
@runtime_checkable
class Classifiable(Protocol):
    """A request that has an HTTP method."""

    method: str


@runtime_checkable
class CookieBearing(Protocol):
    """A request whose cookies can be read by name."""

    cookies: Mapping[str, str]


@runtime_checkable
class HeaderBearing(Protocol):
    """A request whose headers can be read by name."""

    headers: Mapping[str, str]


@runtime_checkable
class CookieSettable(Protocol):
    """A response that can carry a Set-Cookie."""

    def set_cookie(self, key: str, value: str = "", **kwargs: Any) -> None: ...


class ResponseFactory(Protocol):
    """Builds the host's terminal responses."""

    def unauthorized(self) -> Any: ...

    def not_found(self) -> Any: ...


@dataclass(frozen=True)
class CookieSettings:
    """Attributes applied to the CSRF cookie.

    ``httponly`` defaults to ``False`` because client script has to read
    the cookie to copy it into the request header.
    """

    path: str = "/"
    domain: str | None = None
    secure: bool = True
    httponly: bool = False
    samesite: str | None = "lax"
    max_age: int | None = None


def is_safe_method(request: Classifiable) -> bool:
    """Default safety predicate: the method is side-effect free."""
    return request.method.upper() in SAFE_METHODS


def safe_methods_predicate(methods: frozenset[str] | set[str] | list[str]) -> Callable[[Classifiable], bool]:
    """Build a safety predicate from an explicit method list."""
    allowed = frozenset(m.upper() for m in methods)

    def _predicate(request: Classifiable) -> bool:
        return request.method.upper() in allowed

    return _predicate


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------
class RequestGate:
    """Per-request CSRF decision engine.

    Args:
        factory: Issues and re-signs tokens.
        validator: Verifies tokens.
        responses: Builds the 401 / 404 responses for the host.
        header_name: Request header carrying the echoed token.
        cookie_name: Cookie carrying the token.
        cookie: Attributes for the Set-Cookie.
        predicate: Classifies a request as safe (embed) or unsafe (validate).
    """

    def __init__(
        self,
        factory: TokenFactory,
        validator: Validator,
        responses: ResponseFactory,
        header_name: str,
        cookie_name: str,
        cookie: CookieSettings | None = None,
        predicate: Callable[[Any], bool] = is_safe_method,
    ) -> None:
        self._factory = factory
        self._validator = validator
        self._responses = responses
        self.header_name = header_name
        self.cookie_name = cookie_name
        self._cookie = cookie or CookieSettings()
        self._predicate = predicate

    async def filter(self, request: Any, call_next: CallNext) -> Any:
        """Run the request through the gate."""
        if self._predicate(request):
            return await self._validate_or_embed(request, call_next)
        return await self._check(request, call_next)

    async def embed_new(self, response: Any) -> Any:
        """Attach a freshly generated token to *response*."""
        if response is None:
            return self._responses.not_found()
        self._set_cookie(response, self._factory.new_token())
        return response

    def with_new_token(self, call_next: CallNext) -> CallNext:
        """Wrap a handler so that every response it produces carries a new token."""

        async def _issue(request: Any) -> Any:
            return await self.embed_new(await call_next(request))

        return _issue

    # -- paths ---------------------------------------------------------------

    async def _validate_or_embed(self, request: Any, call_next: CallNext) -> Any:
        token = request.cookies.get(self.cookie_name)
        if not token:
            return await self.embed_new(await call_next(request))

        try:
            raw = self._validator.unsign(token)
        except CsrfException as exc:
            self._log_rejection(request, exc.code)
            return self._responses.unauthorized()

        return await self._forward_and_rotate(request, call_next, raw)

    async def _check(self, request: Any, call_next: CallNext) -> Any:
        try:
            raw = self._double_submit_raw(request)
        except CsrfException as exc:
            self._log_rejection(request, exc.code)
            return self._responses.unauthorized()
        return await self._forward_and_rotate(request, call_next, raw)

    def _double_submit_raw(self, request: Any) -> str:
        cookie_token = request.cookies.get(self.cookie_name)
        header_token = request.headers.get(self.header_name)
        if not cookie_token or not header_token:
            raise MissingTokenError("CSRF cookie or header missing")

        cookie_raw = self._validator.unsign(cookie_token)
        header_raw = self._validator.unsign(header_token)
        if not constant_time_equals(cookie_raw, header_raw):
            raise TokenMismatchError("CSRF cookie and header tokens differ")
        return cookie_raw

    async def _forward_and_rotate(self, request: Any, call_next: CallNext, raw: str) -> Any:
        response = await call_next(request)
        if response is None:
            return self._responses.not_found()
        self._set_cookie(response, self._factory.sign_existing(raw))
        return response

    # -- helpers -------------------------------------------------------------

    def _set_cookie(self, response: CookieSettable, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self._cookie.max_age,
            path=self._cookie.path,
            domain=self._cookie.domain,
            secure=self._cookie.secure,
            httponly=self._cookie.httponly,
            samesite=self._cookie.samesite,
        )

    def _log_rejection(self, request: Any, code: str | None) -> None:
        url = getattr(request, "url", None)
        logger.warning(
            "csrf_validation_failed",
            code=code,
            method=request.method,
            path=getattr(url, "path", None),
        )
