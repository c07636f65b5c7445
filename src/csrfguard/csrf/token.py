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
"""CSRF token utilities — generation and timing-safe comparison."""

from __future__ import annotations

import secrets

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CSRF_COOKIE_NAME: str = "csrfToken"
"""Default name of the cookie that carries the CSRF token."""

CSRF_HEADER_NAME: str = "X-CSRF-Token"
"""Default name of the request header that echoes the CSRF token."""

CSRF_FORM_FIELD: str = "csrfToken"
"""Default body field that may echo the token instead of the header."""

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})
"""HTTP methods that never require CSRF validation."""

TOKEN_BYTES: int = 32
"""Random bytes per token (256 bits of entropy)."""

DEFAULT_TTL: int = 3600
"""Token lifetime in seconds."""


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------
def generate_csrf_token() -> str:
    """Generate a cryptographically-secure CSRF token.

    Returns:
        32 random bytes rendered as 64 lowercase hex characters.
    """
    return secrets.token_hex(TOKEN_BYTES)


def tokens_match(expected: str, actual: str) -> bool:
    """Compare two tokens in constant time.

    Non-ASCII input never matches; ``compare_digest`` rejects it for ``str``.
    """
    try:
        return secrets.compare_digest(expected, actual)
    except TypeError:
        return False


def is_safe_method(method: str) -> bool:
    return method.upper() in SAFE_METHODS
