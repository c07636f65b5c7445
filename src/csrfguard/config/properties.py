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
"""CSRF and session configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from csrfguard.core.config import config_properties


def _kebab(name: str) -> str:
    return name.replace("_", "-")


@config_properties(prefix="csrfguard.csrf")
class CsrfProperties(BaseModel):
    """Configuration for the CSRF guard (csrfguard.csrf.*).

    ``secure`` left unset means "derive from the environment": the cookie is
    marked ``Secure`` only when ``csrfguard.environment`` is ``production``.
    """

    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True, frozen=True)

    cookie_name: str = "csrfToken"
    header_name: str = "X-CSRF-Token"
    form_field: str = "csrfToken"
    ttl: int = Field(default=3600, ge=1)
    secure: bool | None = None
    same_site: Literal["strict", "lax", "none"] = "strict"
    cookie_path: str = "/"
    issue_on_safe_methods: bool = True
    endpoint_path: str = "/csrf-token"
    exclude_patterns: list[str] = Field(default_factory=list)
    bearer_bypass: bool = False
    store: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"

    @field_validator("exclude_patterns", mode="before")
    @classmethod
    def _split_patterns(cls, value: object) -> object:
        if isinstance(value, str):
            return [p.strip() for p in value.split(",") if p.strip()]
        return value

    def resolve_secure(self, environment: str) -> bool:
        """Return the effective ``Secure`` cookie flag for *environment*."""
        if self.secure is not None:
            return self.secure
        return environment.strip().lower() == "production"


@config_properties(prefix="csrfguard.session")
class SessionProperties(BaseModel):
    """Session-id cookie issued by the session collaborator filter (csrfguard.session.*)."""

    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True, frozen=True)

    cookie_name: str = "CSRFGUARD_SESSION"
    max_age: int | None = None
