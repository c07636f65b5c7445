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
"""Tests for CsrfFilter against lightweight mock requests."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from starlette.responses import Response

from csrfguard.csrf.adapters.memory import InMemoryTokenStore
from csrfguard.csrf.guard import CsrfGuard
from csrfguard.csrf.types import TokenRecord
from csrfguard.kernel.exceptions import StoreUnavailableException
from csrfguard.web.adapters.starlette.filters.csrf_filter import CsrfFilter


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_request(
    method: str = "GET",
    path: str = "/api/test",
    cookies: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    session_id: str | None = "sess-1",
) -> SimpleNamespace:
    """Build a lightweight mock request compatible with the filter."""
    return SimpleNamespace(
        method=method,
        url=SimpleNamespace(path=path),
        cookies=cookies or {},
        headers=headers or {},
        state=SimpleNamespace(session_id=session_id),
    )


def _with_body(request: SimpleNamespace, chunks: list[bytes], content_type: str) -> SimpleNamespace:
    """Attach a chunked body (no Content-Length) to a mock request."""

    async def stream():
        for chunk in chunks:
            yield chunk

    request.headers = {**request.headers, "content-type": content_type}
    request.stream = stream
    return request


class _DownStore:
    async def get(self, session_id: str) -> TokenRecord | None:
        raise StoreUnavailableException("down")

    async def replace(self, session_id: str, record: TokenRecord, ttl: int) -> None:
        raise StoreUnavailableException("down")

    async def delete(self, session_id: str) -> None:
        raise StoreUnavailableException("down")


@pytest.fixture
def guard() -> CsrfGuard:
    return CsrfGuard(InMemoryTokenStore())


# ---------------------------------------------------------------------------
# Safe methods
# ---------------------------------------------------------------------------


class TestCsrfFilterSafeMethods:
    @pytest.mark.asyncio
    async def test_get_issues_cookie_when_absent(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="GET")
        response = Response(content="ok", status_code=200)
        call_next = AsyncMock(return_value=response)

        result = await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        cookie_header = result.headers.get("set-cookie", "").lower()
        assert cookie_header.startswith("csrftoken=")
        assert "samesite=strict" in cookie_header
        assert "max-age=3600" in cookie_header
        assert "httponly" not in cookie_header

        record = await guard.store.get("sess-1")
        assert record is not None
        assert request.state.csrf_token == record.token

    @pytest.mark.asyncio
    async def test_get_keeps_live_cookie(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="GET", cookies={"csrfToken": token})
        call_next = AsyncMock(return_value=Response("ok"))

        result = await csrf_filter.do_filter(request, call_next)

        assert "set-cookie" not in result.headers
        assert request.state.csrf_token == token
        assert await guard.current("sess-1") == token

    @pytest.mark.asyncio
    async def test_get_reissues_when_session_has_no_record(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="GET", cookies={"csrfToken": "a" * 64})

        result = await csrf_filter.do_filter(request, AsyncMock(return_value=Response("ok")))

        live = await guard.current("sess-1")
        assert live is not None
        assert live != "a" * 64
        assert result.headers["set-cookie"].startswith(f"csrfToken={live}")
        assert request.state.csrf_token == live

    @pytest.mark.asyncio
    async def test_get_reissues_when_cookie_is_not_live_token(self, guard: CsrfGuard) -> None:
        old = await guard.issue("sess-1")
        new = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="GET", cookies={"csrfToken": old})

        result = await csrf_filter.do_filter(request, AsyncMock(return_value=Response("ok")))

        live = await guard.current("sess-1")
        assert live not in (old, new)
        assert "set-cookie" in result.headers

    @pytest.mark.asyncio
    async def test_get_reissues_for_new_session(self, guard: CsrfGuard) -> None:
        await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="GET", cookies={"csrfToken": "leftover"})
        request.state.session_is_new = True

        result = await csrf_filter.do_filter(request, AsyncMock(return_value=Response("ok")))

        assert "set-cookie" in result.headers
        assert request.state.csrf_token == await guard.current("sess-1")

    @pytest.mark.asyncio
    async def test_get_without_session_does_not_issue(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="GET", session_id=None)
        result = await csrf_filter.do_filter(request, AsyncMock(return_value=Response("ok")))
        assert "set-cookie" not in result.headers

    @pytest.mark.asyncio
    async def test_issue_on_safe_methods_disabled(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard, issue_on_safe_methods=False)
        result = await csrf_filter.do_filter(_make_request(), AsyncMock(return_value=Response("ok")))
        assert "set-cookie" not in result.headers

    @pytest.mark.asyncio
    async def test_issuance_path_is_left_to_endpoint(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard, issuance_path="/csrf-token")
        request = _make_request(path="/csrf-token")
        result = await csrf_filter.do_filter(request, AsyncMock(return_value=Response("ok")))
        assert "set-cookie" not in result.headers

    @pytest.mark.asyncio
    async def test_store_down_with_cookie_still_serves_safe_request(self) -> None:
        csrf_filter = CsrfFilter(CsrfGuard(_DownStore()))
        request = _make_request(cookies={"csrfToken": "t"})
        response = Response("ok")
        result = await csrf_filter.do_filter(request, AsyncMock(return_value=response))
        assert result is response
        assert request.state.csrf_token == "t"

    @pytest.mark.asyncio
    async def test_store_down_still_serves_safe_request(self) -> None:
        csrf_filter = CsrfFilter(CsrfGuard(_DownStore()))
        response = Response("ok")
        result = await csrf_filter.do_filter(_make_request(), AsyncMock(return_value=response))
        assert result is response
        assert "set-cookie" not in result.headers


# ---------------------------------------------------------------------------
# Unsafe methods
# ---------------------------------------------------------------------------


class TestCsrfFilterUnsafeMethods:
    @pytest.mark.asyncio
    async def test_missing_cookie_returns_403(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="POST", headers={"X-CSRF-Token": "some-token"})
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 403
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_header_returns_403(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="POST", cookies={"csrfToken": token})
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 403
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mismatch_returns_403(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(
            method="DELETE",
            cookies={"csrfToken": token},
            headers={"X-CSRF-Token": "f" * 64},
        )
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 403
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_token_passes_through(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(
            method="POST",
            cookies={"csrfToken": token},
            headers={"X-CSRF-Token": token},
        )
        response = Response(content="created", status_code=201)
        call_next = AsyncMock(return_value=response)

        result = await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        assert "set-cookie" not in result.headers

    @pytest.mark.asyncio
    async def test_denial_body_does_not_reveal_reason(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        missing = await csrf_filter.do_filter(_make_request(method="POST"), AsyncMock())
        mismatch = await csrf_filter.do_filter(
            _make_request(method="POST", cookies={"csrfToken": token}, headers={"X-CSRF-Token": "x"}),
            AsyncMock(),
        )
        assert missing.body == mismatch.body

    @pytest.mark.asyncio
    async def test_store_unavailable_returns_403(self) -> None:
        csrf_filter = CsrfFilter(CsrfGuard(_DownStore()))
        request = _make_request(method="POST", cookies={"csrfToken": "t"}, headers={"X-CSRF-Token": "t"})
        result = await csrf_filter.do_filter(request, AsyncMock())
        assert result.status_code == 403

    @pytest.mark.asyncio
    async def test_custom_header_name(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard, header_name="X-XSRF-TOKEN")
        request = _make_request(method="PUT", cookies={"csrfToken": token}, headers={"X-XSRF-TOKEN": token})
        call_next = AsyncMock(return_value=Response("ok"))
        result = await csrf_filter.do_filter(request, call_next)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_chunked_form_token_accepted_and_buffered(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        request = _with_body(
            _make_request(method="POST", cookies={"csrfToken": token}),
            [b"item=book&", f"csrfToken={token}".encode()],
            "application/x-www-form-urlencoded",
        )
        call_next = AsyncMock(return_value=Response("ok"))

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 200
        assert request.state.buffered_body == f"item=book&csrfToken={token}".encode()

    @pytest.mark.asyncio
    async def test_oversized_chunked_body_not_scanned(self, guard: CsrfGuard) -> None:
        token = await guard.issue("sess-1")
        csrf_filter = CsrfFilter(guard)
        chunk = b"x" * (1 << 16)
        chunks = [f"csrfToken={token}&pad=".encode()] + [chunk] * 20
        request = _with_body(
            _make_request(method="POST", cookies={"csrfToken": token}),
            chunks,
            "application/x-www-form-urlencoded",
        )
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 403
        call_next.assert_not_awaited()
        assert not hasattr(request.state, "buffered_body")

    @pytest.mark.asyncio
    async def test_bearer_bypass_when_enabled(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard, bearer_bypass=True)
        request = _make_request(method="POST", headers={"authorization": "Bearer abc.def.ghi"})
        call_next = AsyncMock(return_value=Response("ok"))
        result = await csrf_filter.do_filter(request, call_next)
        call_next.assert_awaited_once_with(request)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_bearer_not_bypassed_by_default(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard)
        request = _make_request(method="POST", headers={"authorization": "Bearer abc.def.ghi"})
        result = await csrf_filter.do_filter(request, AsyncMock())
        assert result.status_code == 403


class TestCsrfFilterPatterns:
    def test_excluded_paths_are_skipped(self, guard: CsrfGuard) -> None:
        csrf_filter = CsrfFilter(guard, exclude_patterns=["/webhooks/*"])
        assert csrf_filter.should_not_filter(_make_request(path="/webhooks/stripe")) is True
        assert csrf_filter.should_not_filter(_make_request(path="/api/orders")) is False
