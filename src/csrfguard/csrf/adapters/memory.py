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
"""In-memory token store with TTL-based expiry."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from csrfguard.csrf.types import TokenRecord


class InMemoryTokenStore:
    """In-memory token store guarded by an ``asyncio.Lock``.

    Suitable for development, testing, and single-process applications.
    Entries are evicted once ``clock()`` passes their deadline: on ``get()``
    for that session, and by a sweep of the whole table that ``replace()``
    runs at most once every *sweep_interval* seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0) -> None:
        self._store: dict[str, tuple[TokenRecord, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    async def get(self, session_id: str) -> TokenRecord | None:
        """Return the session's record, or ``None`` if missing or evicted."""
        async with self._lock:
            entry = self._store.get(session_id)
            if entry is None:
                return None

            record, evict_at = entry
            if self._clock() >= evict_at:
                del self._store[session_id]
                return None
            return record

    async def replace(self, session_id: str, record: TokenRecord, ttl: int) -> None:
        """Bind *record* to the session, dropping any previous token."""
        async with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            self._store[session_id] = (record, now + ttl)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._store.pop(session_id, None)

    def _sweep(self, now: float) -> None:
        expired = [sid for sid, (_, evict_at) in self._store.items() if now >= evict_at]
        for sid in expired:
            del self._store[sid]
        self._next_sweep = now + self._sweep_interval

    def __len__(self) -> int:
        return len(self._store)
