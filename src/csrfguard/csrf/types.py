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
"""Value types exchanged by :class:`~csrfguard.csrf.guard.CsrfGuard`."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from csrfguard.csrf.token import CSRF_COOKIE_NAME, DEFAULT_TTL


class DenyCategory(enum.Enum):
    """Coarse failure taxonomy surfaced to callers and logs."""

    TOKEN_MISSING = "TokenMissing"
    TOKEN_MISMATCH = "TokenMismatch"
    STORE_UNAVAILABLE = "StoreUnavailable"


class DenyReason(enum.Enum):
    """Why a state-changing request was rejected."""

    NO_TOKEN_ISSUED = "no token issued"
    TOKEN_NOT_SUBMITTED = "token not submitted"
    TOKEN_MISMATCH = "token mismatch"
    TOKEN_EXPIRED = "token expired"
    STORE_UNAVAILABLE = "store unavailable"

    @property
    def category(self) -> DenyCategory:
        return _CATEGORIES[self]


_CATEGORIES: dict[DenyReason, DenyCategory] = {
    DenyReason.NO_TOKEN_ISSUED: DenyCategory.TOKEN_MISSING,
    DenyReason.TOKEN_NOT_SUBMITTED: DenyCategory.TOKEN_MISSING,
    DenyReason.TOKEN_EXPIRED: DenyCategory.TOKEN_MISSING,
    DenyReason.TOKEN_MISMATCH: DenyCategory.TOKEN_MISMATCH,
    DenyReason.STORE_UNAVAILABLE: DenyCategory.STORE_UNAVAILABLE,
}


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of :meth:`CsrfGuard.verify`.

    ``reason`` is ``None`` exactly when the request is allowed.
    """

    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> VerificationResult:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> VerificationResult:
        return cls(allowed=False, reason=reason)

    @property
    def category(self) -> DenyCategory | None:
        return self.reason.category if self.reason is not None else None

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class CsrfRequest:
    """The parts of an HTTP request that CSRF verification looks at."""

    method: str
    session_id: str | None = None
    cookie_token: str | None = None
    submitted_token: str | None = None


@dataclass(frozen=True)
class TokenRecord:
    """The token currently bound to a session."""

    token: str
    issued_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {"token": self.token, "issued_at": self.issued_at, "expires_at": self.expires_at}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenRecord:
        return cls(
            token=str(data["token"]),
            issued_at=float(data["issued_at"]),
            expires_at=float(data["expires_at"]),
        )


@dataclass(frozen=True)
class CsrfCookie:
    """Attributes of the cookie that transports the token to the client.

    ``httponly`` stays ``False``: client script must read the cookie to echo
    it back in the header.
    """

    name: str = CSRF_COOKIE_NAME
    max_age: int = DEFAULT_TTL
    secure: bool = False
    samesite: str = "strict"
    path: str = "/"
    httponly: bool = False

    def set_on(self, response: Any, token: str) -> None:
        """Set the cookie carrying *token* on a Starlette-style *response*."""
        response.set_cookie(
            key=self.name,
            value=token,
            max_age=self.max_age,
            path=self.path,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )
