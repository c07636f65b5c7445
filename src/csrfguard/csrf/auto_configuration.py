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
"""Build the token store and guard from configuration."""

from __future__ import annotations

from csrfguard.config.properties import CsrfProperties
from csrfguard.core.config import Config
from csrfguard.csrf.guard import CsrfGuard
from csrfguard.csrf.ports.outbound import TokenStore
from csrfguard.csrf.types import CsrfCookie


def build_token_store(config: Config, properties: CsrfProperties | None = None) -> TokenStore:
    """Select the token store named by ``csrfguard.csrf.store``."""
    props = properties if properties is not None else config.bind(CsrfProperties)

    if props.store == "redis":
        import redis.asyncio as aioredis

        from csrfguard.csrf.adapters.redis import RedisTokenStore

        client = aioredis.from_url(props.redis_url)  # type: ignore[no-untyped-call,unused-ignore]
        return RedisTokenStore(client=client)

    from csrfguard.csrf.adapters.memory import InMemoryTokenStore

    return InMemoryTokenStore()


def build_csrf_cookie(config: Config, properties: CsrfProperties | None = None) -> CsrfCookie:
    """Cookie attributes with ``Secure`` resolved once, from the environment setting."""
    props = properties if properties is not None else config.bind(CsrfProperties)
    environment = str(config.get("csrfguard.environment", "development"))
    return CsrfCookie(
        name=props.cookie_name,
        max_age=props.ttl,
        secure=props.resolve_secure(environment),
        samesite=props.same_site,
        path=props.cookie_path,
    )


def build_csrf_guard(config: Config, store: TokenStore | None = None) -> CsrfGuard:
    props = config.bind(CsrfProperties)
    return CsrfGuard(
        store if store is not None else build_token_store(config, props),
        ttl=props.ttl,
        cookie=build_csrf_cookie(config, props),
    )
