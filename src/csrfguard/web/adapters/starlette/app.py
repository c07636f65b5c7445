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
"""Starlette application factory with CSRF protection wired in."""

from __future__ import annotations

import os
from collections.abc import Sequence

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute, Route

from csrfguard.config.properties import CsrfProperties, SessionProperties
from csrfguard.core.config import Config
from csrfguard.csrf.auto_configuration import build_csrf_guard
from csrfguard.csrf.guard import CsrfGuard
from csrfguard.logging.structlog_adapter import StructlogAdapter
from csrfguard.web.adapters.starlette.endpoints import make_csrf_token_endpoint
from csrfguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfguard.web.adapters.starlette.filters import CsrfFilter, RequestLoggingFilter, SessionIdFilter
from csrfguard.web.ordering import get_order
from csrfguard.web.ports.filter import WebFilter

CONFIG_DIR_ENV = "CSRFGUARD_CONFIG_DIR"
PROFILES_ENV = "CSRFGUARD_PROFILES_ACTIVE"


def create_app(
    config: Config | None = None,
    *,
    guard: CsrfGuard | None = None,
    routes: Sequence[BaseRoute] = (),
    extra_filters: Sequence[WebFilter] = (),
    configure_logging: bool = True,
    debug: bool = False,
) -> Starlette:
    """Create a Starlette application protected by :class:`CsrfFilter`.

    Includes:
    - WebFilter chain (session id, request logging, CSRF, + *extra_filters*)
    - The token issuance endpoint at ``csrfguard.csrf.endpoint-path``
    - Caller-supplied *routes*

    The guard is exposed as ``app.state.csrf_guard``.
    """
    config = config if config is not None else Config({})
    if configure_logging:
        StructlogAdapter().configure(config)

    props = config.bind(CsrfProperties)
    session_props = config.bind(SessionProperties)
    environment = str(config.get("csrfguard.environment", "development"))
    guard = guard if guard is not None else build_csrf_guard(config)

    filters: list[WebFilter] = [
        SessionIdFilter(
            session_props.cookie_name,
            secure=props.resolve_secure(environment),
            max_age=session_props.max_age,
        ),
        RequestLoggingFilter(),
        CsrfFilter(
            guard,
            header_name=props.header_name,
            form_field=props.form_field,
            issue_on_safe_methods=props.issue_on_safe_methods,
            issuance_path=props.endpoint_path,
            bearer_bypass=props.bearer_bypass,
            exclude_patterns=props.exclude_patterns,
        ),
        *extra_filters,
    ]
    filters.sort(key=lambda f: get_order(type(f)))

    app_routes: list[BaseRoute] = [
        Route(props.endpoint_path, make_csrf_token_endpoint(guard), methods=["GET"]),
        *routes,
    ]

    app = Starlette(
        debug=debug,
        routes=app_routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=filters)],
    )
    app.state.csrf_guard = guard
    return app


def create_app_from_environment() -> Starlette:
    """ASGI factory: load config from ``$CSRFGUARD_CONFIG_DIR`` (default: cwd).

    Active profiles come from the comma-separated ``$CSRFGUARD_PROFILES_ACTIVE``.
    """
    base_dir = os.environ.get(CONFIG_DIR_ENV, ".")
    profiles = [p.strip() for p in os.environ.get(PROFILES_ENV, "").split(",") if p.strip()]
    return create_app(Config.from_sources(base_dir, active_profiles=profiles))
