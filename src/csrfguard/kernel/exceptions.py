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
"""Exception hierarchy for csrfguard.

Expected CSRF denials are *not* exceptions: :meth:`CsrfGuard.verify` returns
a :class:`~csrfguard.csrf.types.VerificationResult` for those.  Exceptions
are reserved for misuse and infrastructure failures.

Categories:
- SecurityException: caller misuse of the protection protocol
- InfrastructureException: token store / network failures
- ConfigurationException: invalid settings detected at startup
"""

from __future__ import annotations

from typing import Any


class CsrfGuardException(Exception):
    """Base exception for all csrfguard errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. ``"CSRF_STORE_001"``).
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict[str, Any] = context if context is not None else {}


class SecurityException(CsrfGuardException):
    """Errors in how the CSRF protocol is being driven."""


class MissingSessionException(SecurityException):
    """A token was requested for a request that carries no session."""


class InfrastructureException(CsrfGuardException):
    """Infrastructure failures: token store, cache, network."""


class StoreUnavailableException(InfrastructureException):
    """The session-to-token store could not be reached."""


class ConfigurationException(CsrfGuardException):
    """Configuration could not be loaded or validated."""
