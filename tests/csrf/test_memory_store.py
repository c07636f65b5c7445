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
"""Tests for InMemoryTokenStore."""

from __future__ import annotations

import asyncio

import pytest

from csrfguard.csrf.adapters.memory import InMemoryTokenStore
from csrfguard.csrf.ports.outbound import TokenStore
from csrfguard.csrf.types import TokenRecord


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _record(token: str) -> TokenRecord:
    return TokenRecord(token=token, issued_at=100.0, expires_at=160.0)


class TestInMemoryTokenStore:
    def test_implements_token_store(self) -> None:
        assert isinstance(InMemoryTokenStore(), TokenStore)

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        assert await InMemoryTokenStore().get("nope") is None

    @pytest.mark.asyncio
    async def test_replace_then_get(self) -> None:
        store = InMemoryTokenStore()
        await store.replace("s1", _record("t1"), ttl=60)
        assert await store.get("s1") == _record("t1")

    @pytest.mark.asyncio
    async def test_replace_overwrites(self) -> None:
        store = InMemoryTokenStore()
        await store.replace("s1", _record("t1"), ttl=60)
        await store.replace("s1", _record("t2"), ttl=60)
        record = await store.get("s1")
        assert record is not None
        assert record.token == "t2"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_entry_evicted_after_ttl(self) -> None:
        clock = _Clock()
        store = InMemoryTokenStore(clock=clock)
        await store.replace("s1", _record("t1"), ttl=60)

        clock.now += 59
        assert await store.get("s1") is not None

        clock.now += 1
        assert await store.get("s1") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        store = InMemoryTokenStore()
        await store.replace("s1", _record("t1"), ttl=60)
        await store.delete("s1")
        await store.delete("s1")
        assert await store.get("s1") is None

    @pytest.mark.asyncio
    async def test_concurrent_replace_keeps_one_whole_record(self) -> None:
        store = InMemoryTokenStore()
        records = [_record(f"t{i}") for i in range(50)]
        await asyncio.gather(*(store.replace("s1", r, ttl=60) for r in records))
        assert await store.get("s1") in records

    @pytest.mark.asyncio
    async def test_replace_sweeps_expired_sessions(self) -> None:
        clock = _Clock()
        store = InMemoryTokenStore(clock=clock, sweep_interval=30)
        for i in range(3):
            await store.replace(f"s{i}", _record(f"t{i}"), ttl=60)
        assert len(store) == 3

        clock.now += 61
        await store.replace("fresh", _record("t-fresh"), ttl=60)

        assert len(store) == 1
        assert await store.get("fresh") is not None

    @pytest.mark.asyncio
    async def test_sweep_keeps_live_sessions(self) -> None:
        clock = _Clock()
        store = InMemoryTokenStore(clock=clock, sweep_interval=10)
        await store.replace("old", _record("t-old"), ttl=20)
        clock.now += 15
        await store.replace("young", _record("t-young"), ttl=20)

        clock.now += 10
        await store.replace("new", _record("t-new"), ttl=20)

        assert len(store) == 2
        assert await store.get("young") is not None
