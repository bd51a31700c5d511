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
"""Tests for signing key provisioning and the HMAC signer."""

from __future__ import annotations

import hashlib
import hmac

import pytest

from doublesubmit.kernel.exceptions import InvalidKeyError
from doublesubmit.security.keys import (
    KEY_LENGTHS,
    SigningKey,
    build_signing_key,
    generate_signing_key,
    load_signing_key,
)
from doublesubmit.security.signer import Signer

KEY_BYTES = bytes(range(20))


class TestSigningKey:
    def test_material_hidden_from_repr(self) -> None:
        key = SigningKey("sha1", KEY_BYTES)
        assert "material" not in repr(key)
        assert repr(KEY_BYTES) not in repr(key)

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            SigningKey("sha1", b"short")

    def test_empty_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            SigningKey("sha1", b"")

    def test_unknown_algorithm_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            SigningKey("md5", bytes(16))

    def test_algorithm_normalized(self) -> None:
        assert SigningKey("SHA256", bytes(32)).algorithm == "sha256"


class TestGenerateSigningKey:
    @pytest.mark.parametrize("algorithm", sorted(KEY_LENGTHS))
    def test_generates_key_of_algorithm_length(self, algorithm: str) -> None:
        key = generate_signing_key(algorithm)
        assert key.algorithm == algorithm
        assert len(key.material) == KEY_LENGTHS[algorithm]

    def test_generated_keys_differ(self) -> None:
        assert generate_signing_key().material != generate_signing_key().material


class TestBuildSigningKey:
    def test_exact_length(self) -> None:
        assert build_signing_key(KEY_BYTES).material == KEY_BYTES

    def test_longer_input_truncated(self) -> None:
        key = build_signing_key(bytes(range(40)))
        assert key.material == bytes(range(20))

    def test_shorter_input_rejected(self) -> None:
        with pytest.raises(InvalidKeyError) as exc_info:
            build_signing_key(bytes(19))
        assert exc_info.value.code == "CSRF_INVALID_KEY"

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            build_signing_key(b"")

    def test_none_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            build_signing_key(None)

    def test_sha256_needs_32_bytes(self) -> None:
        with pytest.raises(InvalidKeyError):
            build_signing_key(KEY_BYTES, "sha256")
        assert len(build_signing_key(bytes(32), "sha256").material) == 32


class TestLoadSigningKey:
    def test_loads_hex(self) -> None:
        assert load_signing_key(KEY_BYTES.hex()).material == KEY_BYTES

    def test_invalid_hex_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            load_signing_key("zz" * 20)

    def test_non_string_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            load_signing_key(1234567890123456789012345678901234567890)  # type: ignore[arg-type]


class TestSigner:
    def test_none_key_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            Signer(None)

    def test_raw_bytes_rejected(self) -> None:
        with pytest.raises(InvalidKeyError):
            Signer(KEY_BYTES)  # type: ignore[arg-type]

    def test_sign_is_hmac_sha1_by_default(self) -> None:
        signer = Signer(SigningKey("sha1", KEY_BYTES))
        expected = hmac.new(KEY_BYTES, b"raw-1", hashlib.sha1).digest()
        assert signer.sign(b"raw-1") == expected
        assert signer.algorithm == "sha1"

    def test_sign_uses_key_algorithm(self) -> None:
        material = bytes(range(32))
        signer = Signer(SigningKey("sha256", material))
        assert signer.sign(b"x") == hmac.new(material, b"x", hashlib.sha256).digest()

    def test_verify_accepts_own_signature(self) -> None:
        signer = Signer(SigningKey("sha1", KEY_BYTES))
        assert signer.verify(b"material", signer.sign(b"material")) is True

    def test_verify_rejects_other_material(self) -> None:
        signer = Signer(SigningKey("sha1", KEY_BYTES))
        assert signer.verify(b"other", signer.sign(b"material")) is False

    def test_verify_rejects_other_key(self) -> None:
        a = Signer(SigningKey("sha1", KEY_BYTES))
        b = Signer(generate_signing_key())
        assert b.verify(b"material", a.sign(b"material")) is False

    def test_verify_rejects_truncated_signature(self) -> None:
        signer = Signer(SigningKey("sha1", KEY_BYTES))
        assert signer.verify(b"material", signer.sign(b"material")[:-1]) is False
