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
"""Tests for building the guard and store from configuration."""

from __future__ import annotations

import pytest

from csrfguard.core.config import Config
from csrfguard.csrf.adapters.memory import InMemoryTokenStore
from csrfguard.csrf.adapters.redis import RedisTokenStore
from csrfguard.csrf.auto_configuration import build_csrf_cookie, build_csrf_guard, build_token_store


class TestBuildTokenStore:
    def test_memory_by_default(self) -> None:
        assert isinstance(build_token_store(Config({})), InMemoryTokenStore)

    def test_redis_when_configured(self) -> None:
        config = Config({"csrfguard": {"csrf": {"store": "redis", "redis-url": "redis://cache:6379/1"}}})
        assert isinstance(build_token_store(config), RedisTokenStore)


class TestBuildCsrfCookie:
    def test_development_is_not_secure(self) -> None:
        cookie = build_csrf_cookie(Config({"csrfguard": {"environment": "development"}}))
        assert cookie.secure is False
        assert cookie.name == "csrfToken"
        assert cookie.samesite == "strict"
        assert cookie.max_age == 3600
        assert cookie.httponly is False

    def test_production_is_secure(self) -> None:
        cookie = build_csrf_cookie(Config({"csrfguard": {"environment": "production"}}))
        assert cookie.secure is True

    def test_environment_variable_selects_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSRFGUARD_ENVIRONMENT", "production")
        assert build_csrf_cookie(Config({})).secure is True

    def test_explicit_secure_wins(self) -> None:
        config = Config({"csrfguard": {"environment": "production", "csrf": {"secure": False}}})
        assert build_csrf_cookie(config).secure is False


class TestBuildCsrfGuard:
    def test_guard_uses_configured_ttl_and_cookie(self) -> None:
        config = Config({"csrfguard": {"csrf": {"ttl": 120, "cookie-name": "xsrf"}}})
        guard = build_csrf_guard(config)
        assert guard.ttl == 120
        assert guard.cookie.name == "xsrf"
        assert guard.cookie.max_age == 120

    def test_guard_accepts_explicit_store(self) -> None:
        store = InMemoryTokenStore()
        assert build_csrf_guard(Config({}), store=store).store is store

    def test_secure_flag_fixed_at_construction(self, monkeypatch: pytest.MonkeyPatch) -> None:
        guard = build_csrf_guard(Config({}))
        monkeypatch.setenv("CSRFGUARD_ENVIRONMENT", "production")
        assert guard.cookie.secure is False
