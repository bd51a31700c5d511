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
"""Signing key provisioning.

A :class:`SigningKey` pairs HMAC key material with the digest it is meant
for. Keys are either generated from the cached secure random source or
built from externally supplied bytes (typically loaded from configuration
after having been generated once).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from doublesubmit.kernel.exceptions import InvalidKeyError
from doublesubmit.security.entropy import CACHED_RANDOM

DEFAULT_ALGORITHM: str = "sha1"
"""HMAC digest used when none is configured."""

KEY_LENGTHS: dict[str, int] = {
    "sha1": 20,
    "sha256": 32,
    "sha512": 64,
}
"""Required key length in bytes for each supported HMAC digest."""


def key_length(algorithm: str) -> int:
    """Return the key length for *algorithm*, raising for unknown digests."""
    try:
        return KEY_LENGTHS[algorithm.lower()]
    except KeyError:
        raise InvalidKeyError(
            f"Unsupported signing algorithm '{algorithm}'",
            context={"supported": sorted(KEY_LENGTHS)},
        ) from None


@dataclass(frozen=True)
class SigningKey:
    """Immutable HMAC key. The material is excluded from ``repr``."""

    algorithm: str
    material: bytes = field(repr=False)

    def __post_init__(self) -> None:
        expected = key_length(self.algorithm)
        if not self.material:
            raise InvalidKeyError("Signing key material is empty")
        if len(self.material) != expected:
            raise InvalidKeyError(
                f"Signing key for {self.algorithm} must be {expected} bytes, got {len(self.material)}",
                context={"algorithm": self.algorithm, "expected": expected},
            )
        object.__setattr__(self, "algorithm", self.algorithm.lower())


def generate_signing_key(algorithm: str = DEFAULT_ALGORITHM) -> SigningKey:
    """Generate a fresh random key sized for *algorithm*."""
    return SigningKey(algorithm, CACHED_RANDOM.token_bytes(key_length(algorithm)))


def build_signing_key(key_bytes: bytes | None, algorithm: str = DEFAULT_ALGORITHM) -> SigningKey:
    """Build a key from externally supplied bytes.

    Input longer than the algorithm's key length is truncated, which
    discards entropy; shorter input is rejected.

    Raises:
        InvalidKeyError: If *key_bytes* is empty or too short.
    """
    expected = key_length(algorithm)
    if not key_bytes:
        raise InvalidKeyError("Signing key material is empty")
    if len(key_bytes) < expected:
        raise InvalidKeyError(
            f"Signing key for {algorithm} needs at least {expected} bytes, got {len(key_bytes)}",
            context={"algorithm": algorithm, "expected": expected},
        )
    return SigningKey(algorithm, bytes(key_bytes[:expected]))


def load_signing_key(hex_key: str, algorithm: str = DEFAULT_ALGORITHM) -> SigningKey:
    """Build a key from its hex representation, as stored in config files.

    YAML reads an unquoted all-digit key as a number, so anything other than
    a string is rejected rather than guessed at.
    """
    if not isinstance(hex_key, str):
        raise InvalidKeyError(
            f"Signing key must be a hex string, got {type(hex_key).__name__}; quote it in the config file"
        )
    try:
        key_bytes = bytes.fromhex(hex_key.strip())
    except ValueError:
        raise InvalidKeyError("Signing key is not valid hex") from None
    return build_signing_key(key_bytes, algorithm)
