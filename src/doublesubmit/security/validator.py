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
"""Validator — verifies signed tokens and compares their raw values."""

from __future__ import annotations

import hmac
import re

import structlog

from doublesubmit.kernel.exceptions import (
    CsrfException,
    MalformedTokenError,
    SignatureMismatchError,
)
from doublesubmit.security import codec
from doublesubmit.security.signer import Signer

logger = structlog.get_logger("doublesubmit.security")

_HEX_RE = re.compile(r"(?:[0-9a-f]{2})+")


def constant_time_equals(a: str, b: str) -> bool:
    """Timing-safe string equality over the UTF-8 bytes."""
    return hmac.compare_digest(a.encode(), b.encode())


class Validator:
    """Checks tokens against the server key.

    Args:
        signer: Signer holding the same key the tokens were issued with.
    """

    def __init__(self, signer: Signer) -> None:
        self._signer = signer

    def unsign(self, token: str) -> str:
        """Return the raw value of a valid token.

        Raises:
            MalformedTokenError: If the token is not ``raw-nonce-signature``
                or the signature is not lowercase hex.
            SignatureMismatchError: If the signature does not verify.
        """
        decoded = codec.decode(token)
        if decoded is None:
            raise MalformedTokenError("Token does not have three segments")

        if not _HEX_RE.fullmatch(decoded.signature):
            raise MalformedTokenError("Token signature is not valid hex")
        signature = bytes.fromhex(decoded.signature)

        material = codec.signed_material(decoded.raw, decoded.nonce)
        if not self._signer.verify(material, signature):
            raise SignatureMismatchError("Token signature does not match")
        return decoded.raw

    def extract_raw(self, token: str) -> str | None:
        """Return the raw value of *token*, or ``None`` if it is not valid."""
        try:
            return self.unsign(token)
        except CsrfException as exc:
            logger.debug("csrf_token_rejected", code=exc.code)
            return None

    def tokens_match(self, token1: str, token2: str) -> bool:
        """``True`` if both tokens are valid and carry the same raw value."""
        raw1 = self.extract_raw(token1)
        raw2 = self.extract_raw(token2)
        if raw1 is None or raw2 is None:
            return False
        return constant_time_equals(raw1, raw2)
