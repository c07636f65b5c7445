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
"""csrfguard CSRF — session-bound double-submit token protection.

Import concrete store types from the adapter package::

    from csrfguard.csrf.adapters.memory import InMemoryTokenStore
    from csrfguard.csrf.adapters.redis import RedisTokenStore
"""

from csrfguard.csrf.guard import CsrfGuard
from csrfguard.csrf.ports.outbound import TokenStore
from csrfguard.csrf.token import SAFE_METHODS, generate_csrf_token, tokens_match
from csrfguard.csrf.types import (
    CsrfCookie,
    CsrfRequest,
    DenyCategory,
    DenyReason,
    TokenRecord,
    VerificationResult,
)

__all__ = [
    "SAFE_METHODS",
    "CsrfCookie",
    "CsrfGuard",
    "CsrfRequest",
    "DenyCategory",
    "DenyReason",
    "TokenRecord",
    "TokenStore",
    "VerificationResult",
    "generate_csrf_token",
    "tokens_match",
]
