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
"""CsrfGuard — issue and verify session-bound double-submit tokens.

A token is issued per session, stored server-side through a
:class:`~csrfguard.csrf.ports.outbound.TokenStore`, and sent to the client in
a script-readable cookie.  On state-changing requests the client echoes the
token in a header (or body field).  A request is allowed only when

* the cookie token and the echoed token are equal, and
* the cookie token is the one most recently issued to the session and has
  not outlived its TTL.

Tokens stay valid for their whole TTL and may be reused across requests.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from csrfguard.csrf.ports.outbound import TokenStore
from csrfguard.csrf.token import DEFAULT_TTL, generate_csrf_token, is_safe_method, tokens_match
from csrfguard.csrf.types import CsrfCookie, CsrfRequest, DenyReason, TokenRecord, VerificationResult
from csrfguard.kernel.exceptions import MissingSessionException, StoreUnavailableException

logger = structlog.get_logger("csrfguard.csrf")


class CsrfGuard:
    """Issues anti-CSRF tokens and verifies them on unsafe requests.

    Args:
        store: Session → token mapping.
        ttl: Token lifetime in seconds.
        cookie: Transport cookie attributes.  ``cookie.max_age`` follows
            *ttl* when the cookie is built by the guard.
        secure: ``Secure`` flag for the default cookie.  Ignored when
            *cookie* is given.
        clock: Returns the current time in epoch seconds.
        token_factory: Produces new token strings.
    """

    def __init__(
        self,
        store: TokenStore,
        *,
        ttl: int = DEFAULT_TTL,
        cookie: CsrfCookie | None = None,
        secure: bool = False,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] = generate_csrf_token,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._store = store
        self._ttl = ttl
        self._cookie = cookie if cookie is not None else CsrfCookie(max_age=ttl, secure=secure)
        self._clock = clock
        self._token_factory = token_factory

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def cookie(self) -> CsrfCookie:
        return self._cookie

    @property
    def store(self) -> TokenStore:
        return self._store

    async def issue(self, session_id: str) -> str:
        """Generate a fresh token and bind it to *session_id*.

        Any token previously issued to the session stops being valid.  When
        two issues race for the same session the last write wins.

        Raises:
            MissingSessionException: *session_id* is empty.
            StoreUnavailableException: The token store rejected the write.
        """
        if not session_id:
            raise MissingSessionException("A session is required to issue a CSRF token")

        token = self._token_factory()
        now = self._clock()
        record = TokenRecord(token=token, issued_at=now, expires_at=now + self._ttl)
        await self._store.replace(session_id, record, self._ttl)
        logger.debug("csrf_token_issued", session_id=session_id, expires_at=record.expires_at)
        return token

    async def current(self, session_id: str) -> str | None:
        """Return the session's live token, or ``None`` if missing or expired.

        Raises:
            StoreUnavailableException: The token store could not be read.
        """
        if not session_id:
            return None
        record = await self._store.get(session_id)
        if record is None or record.is_expired(self._clock()):
            return None
        return record.token

    async def verify(self, request: CsrfRequest) -> VerificationResult:
        """Decide whether *request* may proceed.

        Safe methods are always allowed.  Denials are returned, not raised.
        """
        if is_safe_method(request.method):
            return VerificationResult.allow()

        cookie_token = request.cookie_token
        submitted_token = request.submitted_token

        if not cookie_token:
            return VerificationResult.deny(DenyReason.NO_TOKEN_ISSUED)
        if not submitted_token:
            return VerificationResult.deny(DenyReason.TOKEN_NOT_SUBMITTED)
        if not tokens_match(cookie_token, submitted_token):
            return VerificationResult.deny(DenyReason.TOKEN_MISMATCH)

        if not request.session_id:
            return VerificationResult.deny(DenyReason.NO_TOKEN_ISSUED)

        try:
            record = await self._store.get(request.session_id)
        except StoreUnavailableException:
            return VerificationResult.deny(DenyReason.STORE_UNAVAILABLE)

        if record is None:
            return VerificationResult.deny(DenyReason.NO_TOKEN_ISSUED)
        if record.is_expired(self._clock()):
            return VerificationResult.deny(DenyReason.TOKEN_EXPIRED)
        if not tokens_match(record.token, cookie_token):
            return VerificationResult.deny(DenyReason.TOKEN_MISMATCH)

        return VerificationResult.allow()

    async def revoke(self, session_id: str) -> None:
        """Forget the session's token, e.g. on logout."""
        await self._store.delete(session_id)
