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
"""TokenFactory — issues signed CSRF tokens.

A token's raw part is random and hex-encoded. The nonce is the current
wall-clock time in milliseconds, so re-signing the same raw value yields a
different wire token on every response (BREACH mitigation) while the raw
value the client echoes back stays stable.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from doublesubmit.security import codec
from doublesubmit.security.entropy import CACHED_RANDOM, SecureRandomSource
from doublesubmit.security.signer import Signer

CSRF_TOKEN_LENGTH: int = 32
"""Number of random bytes in a raw token."""


@runtime_checkable
class Clock(Protocol):
    """Nonce source."""

    def millis(self) -> int: ...


class SystemClock:
    """UTC wall clock in epoch milliseconds."""

    def millis(self) -> int:
        return time.time_ns() // 1_000_000


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, millis: int = 0) -> None:
        self._millis = millis

    def millis(self) -> int:
        return self._millis

    def advance(self, millis: int = 1) -> None:
        self._millis += millis


class TokenFactory:
    """Generates and signs CSRF tokens.

    Args:
        signer: Signer holding the server key.
        clock: Nonce source (default: :class:`SystemClock`).
        source: Random generator for raw material (default: the shared one).
        token_length: Random bytes per raw token.
    """

    def __init__(
        self,
        signer: Signer,
        clock: Clock | None = None,
        source: SecureRandomSource | None = None,
        token_length: int = CSRF_TOKEN_LENGTH,
    ) -> None:
        self._signer = signer
        self._clock = clock or SystemClock()
        self._source = source or CACHED_RANDOM
        self._token_length = token_length

    def generate_raw(self) -> str:
        """Draw fresh random material, hex-encoded."""
        return self._source.token_bytes(self._token_length).hex()

    def sign_existing(self, raw: str) -> str:
        """Sign an already known raw value with the current nonce."""
        nonce = self._clock.millis()
        signature = self._signer.sign(codec.signed_material(raw, nonce))
        return codec.encode(raw, nonce, signature)

    def new_token(self) -> str:
        """Generate and sign a brand new token."""
        return self.sign_existing(self.generate_raw())
