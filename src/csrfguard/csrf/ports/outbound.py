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
"""Token store protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from csrfguard.csrf.types import TokenRecord


@runtime_checkable
class TokenStore(Protocol):
    """Session → current token mapping with atomic replace semantics.

    Implementations raise :class:`~csrfguard.kernel.exceptions.StoreUnavailableException`
    when the backend cannot be reached.  ``get`` must be a single,
    non-retrying read.
    """

    async def get(self, session_id: str) -> TokenRecord | None: ...

    async def replace(self, session_id: str, record: TokenRecord, ttl: int) -> None: ...

    async def delete(self, session_id: str) -> None: ...
