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
"""CSRF protection configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from doublesubmit.core.config import config_properties


@config_properties(prefix="doublesubmit.csrf")
@dataclass
class CsrfProperties:
    """Configuration for CSRF protection (doublesubmit.csrf.*).

    ``key`` is the hex-encoded signing key. Leave it empty to generate a
    fresh key at startup, which invalidates every outstanding token on
    restart and is only suitable for single-process deployments.
    """

    header_name: str = "X-Csrf-Token"
    cookie_name: str = "csrf-token"
    key: str = ""
    algorithm: str = "sha1"
    cookie_path: str = "/"
    cookie_domain: str | None = None
    cookie_secure: bool = True
    cookie_httponly: bool = False
    cookie_samesite: str = "lax"
    cookie_max_age: int | None = None
    safe_methods: list[str] = field(default_factory=lambda: ["GET", "HEAD", "OPTIONS", "TRACE"])
    exclude_patterns: list[str] = field(default_factory=list)
