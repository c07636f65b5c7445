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
"""CsrfFilter — the protected-route hook for session-bound double-submit tokens.

* **Safe methods** (GET, HEAD, OPTIONS) pass through.  When a session is
  known and the client's CSRF cookie is absent or no longer the session's
  live token, a token is issued and the ``csrfToken`` cookie is set on the
  response.
* **Unsafe methods** are handed to :meth:`CsrfGuard.verify` with the cookie
  token and the token echoed in the ``X-CSRF-Token`` header (or the
  ``csrfToken`` field of a form or JSON body).  Any denial becomes the same
  generic HTTP 403 so that clients cannot tell the failure modes apart.

Denials are logged as ``csrf_rejected``; an unreachable token store is
logged separately as ``csrf_store_unavailable``.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs

import structlog
from starlette.responses import JSONResponse

from csrfguard.csrf.guard import CsrfGuard
from csrfguard.csrf.token import CSRF_FORM_FIELD, CSRF_HEADER_NAME, is_safe_method, tokens_match
from csrfguard.csrf.types import CsrfRequest, DenyCategory, VerificationResult
from csrfguard.kernel.exceptions import StoreUnavailableException
from csrfguard.web.adapters.starlette.filter_chain import BUFFERED_BODY_STATE
from csrfguard.web.adapters.starlette.filters.session_filter import SESSION_ID_STATE, SESSION_NEW_STATE
from csrfguard.web.filters import OncePerRequestFilter
from csrfguard.web.ports.filter import CallNext

logger = structlog.get_logger("csrfguard.web.csrf")

CSRF_TOKEN_STATE = "csrf_token"

DENIED_MESSAGE = "invalid or missing CSRF token"

_MAX_BODY_SCAN = 1 << 20


class CsrfFilter(OncePerRequestFilter):
    """Double-submit cookie CSRF filter bound to the request's session.

    Ordering: runs after the session filter so ``request.state.session_id``
    is available.
    """

    __csrfguard_order__ = -50

    def __init__(
        self,
        guard: CsrfGuard,
        *,
        header_name: str = CSRF_HEADER_NAME,
        form_field: str = CSRF_FORM_FIELD,
        issue_on_safe_methods: bool = True,
        issuance_path: str | None = None,
        bearer_bypass: bool = False,
        exclude_patterns: list[str] | None = None,
    ) -> None:
        self._guard = guard
        self._header_name = header_name
        self._form_field = form_field
        self._issue_on_safe_methods = issue_on_safe_methods
        self._issuance_path = issuance_path
        self._bearer_bypass = bearer_bypass
        self.exclude_patterns = list(exclude_patterns or [])

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        cookie_token: str | None = request.cookies.get(self._guard.cookie.name)
        session_id = _session_id(request)

        if is_safe_method(request.method):
            return await self._pass_safe(request, call_next, cookie_token, session_id)

        if self._bearer_bypass:
            auth_header: str | None = request.headers.get("authorization")
            if auth_header and auth_header.startswith("Bearer "):
                return await call_next(request)

        submitted = request.headers.get(self._header_name) or await self._body_token(request)
        result = await self._guard.verify(
            CsrfRequest(
                method=request.method,
                session_id=session_id,
                cookie_token=cookie_token,
                submitted_token=submitted,
            )
        )
        if not result.allowed:
            self._log_denial(request, result, session_id)
            return JSONResponse({"error": DENIED_MESSAGE}, status_code=403)

        return await call_next(request)

    async def _pass_safe(
        self,
        request: Any,
        call_next: CallNext,
        cookie_token: str | None,
        session_id: str | None,
    ) -> Any:
        issued: str | None = None
        if self._issue_on_safe_methods and session_id and request.url.path != self._issuance_path:
            try:
                if await self._needs_token(request, cookie_token, session_id):
                    issued = await self._guard.issue(session_id)
            except StoreUnavailableException as exc:
                logger.error(
                    "csrf_store_unavailable",
                    operation="issue",
                    path=request.url.path,
                    error=str(exc),
                )

        _set_state(request, CSRF_TOKEN_STATE, issued or cookie_token)
        response = await call_next(request)
        if issued is not None:
            self._guard.cookie.set_on(response, issued)
        return response

    async def _needs_token(self, request: Any, cookie_token: str | None, session_id: str) -> bool:
        """True when the client holds no cookie the guard would accept for *session_id*."""
        if not cookie_token:
            return True
        if getattr(request.state, SESSION_NEW_STATE, False):
            return True
        live = await self._guard.current(session_id)
        return live is None or not tokens_match(live, cookie_token)

    async def _body_token(self, request: Any) -> str | None:
        """Extract the echoed token from a form or JSON body, buffering the body.

        Bodies larger than ``_MAX_BODY_SCAN`` are not scanned; the request is
        then rejected for lacking a token.
        """
        content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type not in ("application/x-www-form-urlencoded", "application/json"):
            return None
        length = request.headers.get("content-length")
        if length is not None and length.isdigit() and int(length) > _MAX_BODY_SCAN:
            return None

        chunks: list[bytes] = []
        size = 0
        async for chunk in request.stream():
            size += len(chunk)
            if size > _MAX_BODY_SCAN:
                return None
            chunks.append(chunk)
        body = b"".join(chunks)
        setattr(request.state, BUFFERED_BODY_STATE, body)
        if not body:
            return None

        if content_type == "application/json":
            try:
                payload = json.loads(body)
            except (json.JSONDecodeError, UnicodeDecodeError):
                return None
            value = payload.get(self._form_field) if isinstance(payload, dict) else None
            return value if isinstance(value, str) else None

        values = parse_qs(body.decode("latin-1")).get(self._form_field)
        return values[0] if values else None

    def _log_denial(self, request: Any, result: VerificationResult, session_id: str | None) -> None:
        if result.category is DenyCategory.STORE_UNAVAILABLE:
            logger.error(
                "csrf_store_unavailable",
                operation="verify",
                method=request.method,
                path=request.url.path,
            )
            return
        logger.warning(
            "csrf_rejected",
            method=request.method,
            path=request.url.path,
            reason=result.reason.value if result.reason else None,
            category=result.category.value if result.category else None,
            session_id=session_id,
        )


def _session_id(request: Any) -> str | None:
    state = getattr(request, "state", None)
    return getattr(state, SESSION_ID_STATE, None) if state is not None else None


def _set_state(request: Any, name: str, value: Any) -> None:
    state = getattr(request, "state", None)
    if state is not None:
        setattr(state, name, value)
