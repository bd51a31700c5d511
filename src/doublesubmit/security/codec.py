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
"""TokenCodec — the ``raw-nonce-signature`` wire format.

Every segment is restricted to cookie-safe characters (hex digits for the raw
value and signature, decimal digits for the nonce) so the token is sent in
Set-Cookie unquoted and can be echoed into a header byte for byte.
"""

from __future__ import annotations

from typing import NamedTuple

DELIMITER = "-"


class DecodedToken(NamedTuple):
    """The three segments of a signed token, still in wire form."""

    raw: str
    nonce: str
    signature: str


def signed_material(raw: str, nonce: str | int) -> bytes:
    """Bytes covered by the signature: ``raw-nonce`` in UTF-8."""
    return f"{raw}{DELIMITER}{nonce}".encode()


def encode(raw: str, nonce: str | int, signature: bytes) -> str:
    """Join the segments into a signed token.

    Raises:
        ValueError: If *raw* or *nonce* contains the delimiter, which would
            make the token ambiguous to split.
    """
    nonce = str(nonce)
    if DELIMITER in raw or DELIMITER in nonce:
        raise ValueError(f"Token segments must not contain '{DELIMITER}'")
    return DELIMITER.join((raw, nonce, signature.hex()))


def decode(token: str) -> DecodedToken | None:
    """Split a signed token, or return ``None`` if it is not three non-empty segments."""
    parts = token.split(DELIMITER)
    if len(parts) != 3 or not all(parts):
        return None
    return DecodedToken(*parts)
