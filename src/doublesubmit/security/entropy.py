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
"""Process-wide secure random generator for token material."""

from __future__ import annotations

import random
import threading

WARM_UP_BYTES = 20


class SecureRandomSource:
    """A single OS-backed generator shared by every token issuance.

    The generator is created once and never reseeded; draws are serialized
    so that concurrent request handlers can share it.
    """

    def __init__(self) -> None:
        self._random = random.SystemRandom()
        self._lock = threading.Lock()
        self._random.randbytes(WARM_UP_BYTES)

    def token_bytes(self, length: int) -> bytes:
        """Draw *length* random bytes."""
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")
        with self._lock:
            return self._random.randbytes(length)


CACHED_RANDOM = SecureRandomSource()
"""Shared generator, initialized at import time."""
