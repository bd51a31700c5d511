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
"""Tests for the CsrfProtection facade and the Starlette CSRF filters."""

from __future__ import annotations

from http.cookies import SimpleCookie
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from starlette.responses import Response

from doublesubmit.core.config import Config
from doublesubmit.kernel.exceptions import InvalidKeyError
from doublesubmit.security.csrf import CSRF_COOKIE_NAME, CSRF_HEADER_NAME, CsrfProtection
from doublesubmit.security.gate import CookieSettings
from doublesubmit.security.tokens import FixedClock
from doublesubmit.web.adapters.starlette.filters.csrf_filter import CsrfFilter, CsrfTokenFilter

KEY_BYTES = bytes(range(20))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_request(
    method: str = "GET",
    path: str = "/api/test",
    cookies: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> SimpleNamespace:
    """Build a lightweight mock request compatible with the filter."""
    return SimpleNamespace(
        method=method,
        url=SimpleNamespace(path=path),
        cookies=cookies or {},
        headers=headers or {},
    )


def _cookie_value(response: Response, name: str = CSRF_COOKIE_NAME) -> str:
    jar: SimpleCookie = SimpleCookie()
    jar.load(response.headers["set-cookie"])
    return jar[name].value


# ---------------------------------------------------------------------------
# CsrfProtection
# ---------------------------------------------------------------------------


class TestCsrfProtection:
    def test_defaults(self) -> None:
        protection = CsrfProtection.with_generated_key()
        assert protection.cookie_name == "csrf-token"
        assert protection.header_name == "X-Csrf-Token"
        assert protection.signer.algorithm == "sha1"

    def test_generate_and_extract(self) -> None:
        protection = CsrfProtection.with_generated_key()
        token = protection.generate_token()
        raw = protection.extract_raw(token)
        assert raw is not None
        assert protection.extract_raw(protection.sign_token(raw)) == raw

    def test_same_key_bytes_share_tokens(self) -> None:
        a = CsrfProtection.with_key_bytes(KEY_BYTES)
        b = CsrfProtection.with_key_bytes(KEY_BYTES + b"ignored tail")
        token = a.generate_token()
        assert b.tokens_match(token, token) is True

    def test_generated_keys_do_not_share_tokens(self) -> None:
        token = CsrfProtection.with_generated_key().generate_token()
        assert CsrfProtection.with_generated_key().extract_raw(token) is None

    def test_short_key_bytes_fail(self) -> None:
        with pytest.raises(InvalidKeyError):
            CsrfProtection.with_key_bytes(b"too short")

    def test_sha256(self) -> None:
        protection = CsrfProtection.with_generated_key(algorithm="sha256")
        assert protection.signer.algorithm == "sha256"
        assert protection.extract_raw(protection.generate_token()) is not None

    def test_from_config_with_hex_key(self) -> None:
        config = Config({"doublesubmit": {"csrf": {"key": KEY_BYTES.hex(), "cookie_name": "xsrf"}}})
        protection = CsrfProtection.from_config(config, clock=FixedClock(5))
        assert protection.cookie_name == "xsrf"
        token = protection.generate_token()
        assert token.split("-")[1] == "5"
        assert CsrfProtection.with_key_bytes(KEY_BYTES).extract_raw(token) is not None

    def test_from_config_without_key_generates_one(self) -> None:
        protection = CsrfProtection.from_config(Config({}))
        assert protection.extract_raw(protection.generate_token()) is not None

    def test_from_config_with_unquoted_numeric_yaml_key_fails(self, tmp_path) -> None:
        config_file = tmp_path / "csrf.yaml"
        config_file.write_text("doublesubmit:\n  csrf:\n    key: 1234567890123456789012345678901234567890\n")
        with pytest.raises(InvalidKeyError):
            CsrfProtection.from_config(Config.from_file(config_file))

    def test_from_config_with_bad_key_fails(self) -> None:
        config = Config({"doublesubmit": {"csrf": {"key": "abcd"}}})
        with pytest.raises(InvalidKeyError):
            CsrfProtection.from_config(config)


# ---------------------------------------------------------------------------
# CsrfFilter
# ---------------------------------------------------------------------------


class TestCsrfFilter:
    """Tests for :class:`CsrfFilter`."""

    @pytest.mark.asyncio
    async def test_csrf_filter_safe_method_sets_cookie(self) -> None:
        """GET request passes through and response has the csrf-token cookie."""
        protection = CsrfProtection.with_key_bytes(KEY_BYTES)
        csrf_filter = CsrfFilter(protection)
        request = _make_request(method="GET")
        response = Response(content="ok", status_code=200)
        call_next = AsyncMock(return_value=response)

        result = await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        assert protection.extract_raw(_cookie_value(result)) is not None
        assert '"' not in result.headers["set-cookie"]
        cookie_header = result.headers["set-cookie"].lower()
        assert "secure" in cookie_header
        assert "samesite=lax" in cookie_header
        assert "httponly" not in cookie_header

    @pytest.mark.asyncio
    async def test_csrf_filter_unsafe_method_missing_cookie(self) -> None:
        """POST without CSRF cookie returns 401."""
        protection = CsrfProtection.with_key_bytes(KEY_BYTES)
        csrf_filter = CsrfFilter(protection)
        request = _make_request(method="POST", headers={CSRF_HEADER_NAME: protection.generate_token()})
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 401
        assert result.body == b'{"error":"Unauthorized"}'
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_csrf_filter_unsafe_method_missing_header(self) -> None:
        """POST with cookie but no header returns 401."""
        protection = CsrfProtection.with_key_bytes(KEY_BYTES)
        csrf_filter = CsrfFilter(protection)
        request = _make_request(method="POST", cookies={CSRF_COOKIE_NAME: protection.generate_token()})
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 401
        assert "set-cookie" not in result.headers
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_csrf_filter_unsafe_method_invalid_token(self) -> None:
        """POST with mismatched cookie/header returns 401 with the same body."""
        protection = CsrfProtection.with_key_bytes(KEY_BYTES)
        csrf_filter = CsrfFilter(protection)
        request = _make_request(
            method="POST",
            cookies={CSRF_COOKIE_NAME: protection.generate_token()},
            headers={CSRF_HEADER_NAME: protection.generate_token()},
        )
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 401
        assert result.body == b'{"error":"Unauthorized"}'
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_csrf_filter_unsafe_method_valid_token(self) -> None:
        """POST with matching cookie/header passes through and rotates the cookie."""
        clock = FixedClock(1)
        protection = CsrfProtection.with_key_bytes(KEY_BYTES, clock=clock)
        csrf_filter = CsrfFilter(protection)
        token = protection.generate_token()
        clock.advance()
        request = _make_request(
            method="POST",
            cookies={CSRF_COOKIE_NAME: token},
            headers={CSRF_HEADER_NAME: token},
        )
        response = Response(content="created", status_code=201)
        call_next = AsyncMock(return_value=response)

        result = await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        rotated = _cookie_value(result)
        assert rotated != token
        assert protection.extract_raw(rotated) == protection.extract_raw(token)

    @pytest.mark.asyncio
    async def test_csrf_filter_safe_method_garbage_cookie(self) -> None:
        """GET with an unverifiable cookie returns 401."""
        csrf_filter = CsrfFilter(CsrfProtection.with_key_bytes(KEY_BYTES))
        request = _make_request(method="GET", cookies={CSRF_COOKIE_NAME: "not-a-token"})
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 401
        call_next.assert_not_awaited()

    def test_csrf_filter_exclude_patterns(self) -> None:
        csrf_filter = CsrfFilter(exclude_patterns=["/health"])
        assert csrf_filter.should_not_filter(_make_request(path="/health")) is True
        assert csrf_filter.should_not_filter(_make_request(path="/api/test")) is False

    def test_csrf_filter_generates_key_when_omitted(self) -> None:
        csrf_filter = CsrfFilter()
        token = csrf_filter.protection.generate_token()
        assert csrf_filter.protection.extract_raw(token) is not None

    @pytest.mark.asyncio
    async def test_csrf_filter_from_config(self) -> None:
        config = Config(
            {
                "doublesubmit": {
                    "csrf": {
                        "key": KEY_BYTES.hex(),
                        "cookie_secure": False,
                        "safe_methods": ["GET"],
                        "exclude_patterns": ["/actuator/*"],
                    }
                }
            }
        )
        csrf_filter = CsrfFilter.from_config(config)

        assert csrf_filter.should_not_filter(_make_request(path="/actuator/health")) is True
        # HEAD is no longer safe, so it needs both tokens
        head = await csrf_filter.do_filter(_make_request(method="HEAD"), AsyncMock())
        assert head.status_code == 401

        result = await csrf_filter.do_filter(_make_request(), AsyncMock(return_value=Response("ok")))
        assert "secure" not in result.headers["set-cookie"].lower()


class TestCsrfTokenFilter:
    @pytest.mark.asyncio
    async def test_issues_fresh_token_even_with_existing_cookie(self) -> None:
        protection = CsrfProtection.with_key_bytes(KEY_BYTES)
        old = protection.generate_token()
        token_filter = CsrfTokenFilter(protection, cookie=CookieSettings(secure=False))
        request = _make_request(method="POST", path="/login", cookies={CSRF_COOKIE_NAME: old})

        result = await token_filter.do_filter(request, AsyncMock(return_value=Response("welcome")))

        issued = _cookie_value(result)
        assert protection.extract_raw(issued) is not None
        assert protection.extract_raw(issued) != protection.extract_raw(old)

    def test_url_patterns(self) -> None:
        token_filter = CsrfTokenFilter(CsrfProtection.with_generated_key(), url_patterns=["/login"])
        assert token_filter.should_not_filter(_make_request(path="/login")) is False
        assert token_filter.should_not_filter(_make_request(path="/other")) is True
