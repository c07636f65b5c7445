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
"""CSRF token issuance endpoint."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from csrfguard.csrf.guard import CsrfGuard
from csrfguard.kernel.exceptions import MissingSessionException, StoreUnavailableException
from csrfguard.web.adapters.starlette.filters.session_filter import SESSION_ID_STATE

logger = structlog.get_logger("csrfguard.web.csrf")


def make_csrf_token_endpoint(guard: CsrfGuard) -> Callable[[Request], Awaitable[Response]]:
    """Build a handler that issues a token for the caller's session.

    Responds with ``{"csrfToken": "<hex>"}`` and sets the CSRF cookie.
    """

    async def csrf_token_endpoint(request: Request) -> Response:
        session_id = getattr(request.state, SESSION_ID_STATE, None)
        try:
            token = await guard.issue(session_id or "")
        except MissingSessionException:
            return JSONResponse({"error": "session required"}, status_code=400)
        except StoreUnavailableException as exc:
            logger.error("csrf_store_unavailable", operation="issue", path=request.url.path, error=str(exc))
            return JSONResponse({"error": "CSRF token store unavailable"}, status_code=503)

        response = JSONResponse({"csrfToken": token}, headers={"Cache-Control": "no-store"})
        guard.cookie.set_on(response, token)
        return response

    return csrf_token_endpoint
