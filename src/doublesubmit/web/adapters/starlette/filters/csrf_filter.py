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
"""CsrfFilter — double-submit cookie CSRF protection for Starlette.

* **Safe methods** (GET, HEAD, OPTIONS, TRACE) pass through. A response
  gets a fresh ``csrf-token`` cookie on first visit, or the existing token
  re-signed when the request already carried a valid one. A cookie that
  fails verification is answered with 401.
* **Unsafe methods** (POST, PUT, DELETE, PATCH, ...) must carry the token
  in both the ``csrf-token`` cookie and the ``X-Csrf-Token`` header. Both
  must verify against the server key and share the same raw value, else
  the filter answers 401 without calling the route. On success the cookie
  token is rotated.

Rejections never say which check failed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from starlette.responses import JSONResponse

from doublesubmit.config.properties.csrf import CsrfProperties
from doublesubmit.core.config import Config
from doublesubmit.security.csrf import CsrfProtection, cookie_settings_from, predicate_from
from doublesubmit.security.gate import CookieSettings, is_safe_method
from doublesubmit.web.filters import OncePerRequestFilter
from doublesubmit.web.ports.filter import CallNext


class StarletteResponseFactory:
    """Terminal responses produced by the gate."""

    def unauthorized(self) -> JSONResponse:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    def not_found(self) -> JSONResponse:
        return JSONResponse({"error": "Not Found"}, status_code=404)


class CsrfFilter(OncePerRequestFilter):
    """Double-submit cookie CSRF filter.

    Args:
        protection: Configured protection. A key is generated when omitted.
        cookie: Set-Cookie attributes for the token cookie.
        predicate: Classifies requests as safe. Defaults to the HTTP method check.
        url_patterns: Only filter matching paths (all paths when empty).
        exclude_patterns: Never filter matching paths.
    """

    def __init__(
        self,
        protection: CsrfProtection | None = None,
        *,
        cookie: CookieSettings | None = None,
        predicate: Callable[[Any], bool] = is_safe_method,
        url_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> None:
        self.protection = protection or CsrfProtection.with_generated_key()
        self.url_patterns = list(url_patterns)
        self.exclude_patterns = list(exclude_patterns)
        self._gate = self.protection.gate(StarletteResponseFactory(), cookie, predicate)

    @classmethod
    def from_config(cls, config: Config) -> CsrfFilter:
        """Build a filter from the ``doublesubmit.csrf`` config section."""
        props = config.bind(CsrfProperties)
        return cls(
            CsrfProtection.from_properties(props),
            cookie=cookie_settings_from(props),
            predicate=predicate_from(props),
            exclude_patterns=props.exclude_patterns,
        )

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        return await self._gate.filter(request, call_next)


class CsrfTokenFilter(OncePerRequestFilter):
    """Issues a brand new token on every matching response.

    Meant for login or bootstrap routes that should start a fresh token
    regardless of what the client sent.
    """

    def __init__(
        self,
        protection: CsrfProtection,
        *,
        cookie: CookieSettings | None = None,
        url_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> None:
        self.protection = protection
        self.url_patterns = list(url_patterns)
        self.exclude_patterns = list(exclude_patterns)
        self._gate = protection.gate(StarletteResponseFactory(), cookie)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        return await self._gate.with_new_token(call_next)(request)
