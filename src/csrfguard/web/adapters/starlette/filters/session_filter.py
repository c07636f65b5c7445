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
"""SessionIdFilter — assigns each client an opaque session id cookie.

Stands in for the hosting application's session layer: it only hands out
and reads back an identifier so that CSRF tokens can be bound to it.
No session data is stored.
"""

from __future__ import annotations

import re
import uuid
from typing import Any

from csrfguard.web.filters import OncePerRequestFilter
from csrfguard.web.ordering import HIGHEST_PRECEDENCE, order
from csrfguard.web.ports.filter import CallNext

SESSION_ID_STATE = "session_id"
SESSION_NEW_STATE = "session_is_new"

_SESSION_ID_RE = re.compile(r"^[0-9a-f]{32}$")


@order(HIGHEST_PRECEDENCE + 150)
class SessionIdFilter(OncePerRequestFilter):
    """Reads or creates the session id and exposes it as ``request.state.session_id``.

    ``request.state.session_is_new`` is true when the id was created for this request.
    """

    def __init__(
        self,
        cookie_name: str = "CSRFGUARD_SESSION",
        *,
        secure: bool = False,
        max_age: int | None = None,
    ) -> None:
        self._cookie_name = cookie_name
        self._secure = secure
        self._max_age = max_age

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session_id = request.cookies.get(self._cookie_name)
        is_new = not session_id or not _SESSION_ID_RE.match(session_id)
        if is_new:
            session_id = uuid.uuid4().hex
        setattr(request.state, SESSION_ID_STATE, session_id)
        setattr(request.state, SESSION_NEW_STATE, is_new)

        response = await call_next(request)

        if is_new:
            response.set_cookie(
                key=self._cookie_name,
                value=session_id,
                max_age=self._max_age,
                httponly=True,
                secure=self._secure,
                samesite="lax",
            )
        return response
