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
"""Signer — HMAC signatures over token material."""

from __future__ import annotations

import hashlib
import hmac

from doublesubmit.kernel.exceptions import InvalidKeyError
from doublesubmit.security.keys import SigningKey


class Signer:
    """Produces and verifies HMAC signatures with a fixed key.

    Args:
        key: The signing key. Its algorithm selects the digest.

    Raises:
        InvalidKeyError: If *key* is missing.
    """

    def __init__(self, key: SigningKey | None) -> None:
        if key is None:
            raise InvalidKeyError("A signing key is required")
        if not isinstance(key, SigningKey):
            raise InvalidKeyError(f"Expected SigningKey, got {type(key).__name__}")
        self._key = key
        self._digest = getattr(hashlib, key.algorithm)

    @property
    def algorithm(self) -> str:
        return self._key.algorithm

    def sign(self, material: bytes) -> bytes:
        """Return ``HMAC(key, material)``."""
        return hmac.new(self._key.material, material, self._digest).digest()

    def verify(self, material: bytes, signature: bytes) -> bool:
        """Recompute the MAC for *material* and compare in constant time."""
        return hmac.compare_digest(self.sign(material), signature)
