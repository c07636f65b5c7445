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
"""Redis-backed token store."""

from __future__ import annotations

import json
from typing import Any

import structlog
from redis.exceptions import RedisError

from csrfguard.csrf.types import TokenRecord
from csrfguard.kernel.exceptions import StoreUnavailableException

logger = structlog.get_logger("csrfguard.csrf.redis")

_KEY_PREFIX = "csrfguard:token:"


class RedisTokenStore:
    """Token store backed by ``redis.asyncio``.

    Records are JSON-serialized and written with a single ``SET ... EX``,
    so a replace is atomic and expiry is enforced by Redis itself.
    Keys are prefixed with ``csrfguard:token:`` for namespace isolation.
    """

    def __init__(self, client: Any, key_prefix: str = _KEY_PREFIX) -> None:
        self._client = client
        self._key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    async def get(self, session_id: str) -> TokenRecord | None:
        try:
            raw = await self._client.get(self._key(session_id))
        except (RedisError, OSError) as exc:
            raise StoreUnavailableException(
                "Token store lookup failed",
                code="CSRF_STORE_READ",
                context={"error": str(exc)},
            ) from exc
        if raw is None:
            return None
        try:
            return TokenRecord.from_dict(json.loads(raw))
        except (json.JSONDecodeError, TypeError, KeyError, ValueError):
            logger.warning("csrf_token_record_corrupt", session_id=session_id)
            return None

    async def replace(self, session_id: str, record: TokenRecord, ttl: int) -> None:
        raw = json.dumps(record.to_dict())
        try:
            await self._client.set(self._key(session_id), raw.encode(), ex=ttl)
        except (RedisError, OSError) as exc:
            raise StoreUnavailableException(
                "Token store write failed",
                code="CSRF_STORE_WRITE",
                context={"error": str(exc)},
            ) from exc

    async def delete(self, session_id: str) -> None:
        try:
            await self._client.delete(self._key(session_id))
        except (RedisError, OSError) as exc:
            raise StoreUnavailableException(
                "Token store delete failed",
                code="CSRF_STORE_DELETE",
                context={"error": str(exc)},
            ) from exc
