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
"""Security — signed double-submit cookie CSRF tokens."""

from doublesubmit.security.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    CsrfProtection,
)
from doublesubmit.security.gate import (
    SAFE_METHODS,
    CookieSettings,
    RequestGate,
    is_safe_method,
)
from doublesubmit.security.keys import (
    SigningKey,
    build_signing_key,
    generate_signing_key,
)
from doublesubmit.security.signer import Signer
from doublesubmit.security.tokens import TokenFactory
from doublesubmit.security.validator import Validator

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_HEADER_NAME",
    "SAFE_METHODS",
    "CookieSettings",
    "CsrfProtection",
    "RequestGate",
    "Signer",
    "SigningKey",
    "TokenFactory",
    "Validator",
    "build_signing_key",
    "generate_signing_key",
    "is_safe_method",
]
