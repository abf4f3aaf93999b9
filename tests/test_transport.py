"""Tests for notekeeper.transport."""

from __future__ import annotations

import httpx
import pytest

from notekeeper.errors import (
    NotFoundError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from notekeeper.transport import Transport

BASE = "http://api.test"


def _transport() -> Transport:
    return Transport(BASE, timeout=2.0)


class TestHeaders:
    @pytest.mark.asyncio
    async def test_bearer_sent_when_attached(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/notes", method="GET", json=[])
        async with _transport() as transport:
            transport.attach("tok.en.sig")
            assert await transport.call("GET", "/notes") == []

        request = httpx_mock.get_requests()[0]
        assert request.headers["Authorization"] == "Bearer tok.en.sig"

    @pytest.mark.asyncio
    async def test_no_header_after_detach(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/notes", method="GET", json=[])
        async with _transport() as transport:
            transport.attach("tok.en.sig")
            transport.detach()
            assert not transport.authorized
            await transport.call("GET", "/notes")

        assert "Authorization" not in httpx_mock.get_requests()[0].headers

    @pytest.mark.asyncio
    async def test_unauthenticated_call_omits_header(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/public-notes", method="GET", json=[])
        async with _transport() as transport:
            transport.attach("tok.en.sig")
            await transport.call("GET", "/public-notes", authenticated=False)

        assert "Authorization" not in httpx_mock.get_requests()[0].headers


class TestStatusMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error",
        [
            (401, UnauthorizedError),
            (403, NotFoundError),
            (404, NotFoundError),
            (400, ValidationError),
            (422, ValidationError),
            (500, TransportError),
            (503, TransportError),
            (409, TransportError),
        ],
    )
    async def test_status_maps_to_error(self, httpx_mock, status, error):
        httpx_mock.add_response(
            url=f"{BASE}/notes/1", method="PUT", status_code=status, json={"detail": "nope"}
        )
        async with _transport() as transport:
            with pytest.raises(error) as info:
                await transport.call("PUT", "/notes/1", json={"title": "t", "content": "c"})
        assert info.value.status_code == status
        assert "nope" in info.value.message

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/notes/1", method="DELETE", status_code=204)
        async with _transport() as transport:
            assert await transport.call("DELETE", "/notes/1") is None

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/notes", method="GET", text="<html>oops</html>")
        async with _transport() as transport:
            with pytest.raises(TransportError, match="non-JSON"):
                await transport.call("GET", "/notes")

    @pytest.mark.asyncio
    async def test_network_failure_is_transport_error(self, httpx_mock):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))
        async with _transport() as transport:
            with pytest.raises(TransportError, match="connection refused"):
                await transport.call("GET", "/notes")

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, httpx_mock):
        httpx_mock.add_exception(httpx.ReadTimeout("slow"))
        async with _transport() as transport:
            with pytest.raises(TransportError, match="timed out"):
                await transport.call("GET", "/notes")


class TestRejectionListeners:
    @pytest.mark.asyncio
    async def test_listener_runs_before_caller_sees_error(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/notes", method="GET", status_code=401)
        events: list[str] = []

        async with _transport() as transport:
            transport.add_rejection_listener(lambda: events.append("listener"))
            try:
                await transport.call("GET", "/notes")
            except UnauthorizedError:
                events.append("caller")

        assert events == ["listener", "caller"]

    @pytest.mark.asyncio
    async def test_async_listener_is_awaited(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/auth/me", method="GET", status_code=401)
        seen: list[bool] = []

        async def listener() -> None:
            seen.append(True)

        async with _transport() as transport:
            transport.add_rejection_listener(listener)
            with pytest.raises(UnauthorizedError):
                await transport.call("GET", "/auth/me")

        assert seen == [True]

    @pytest.mark.asyncio
    async def test_listener_not_called_for_other_failures(self, httpx_mock):
        httpx_mock.add_response(url=f"{BASE}/notes", method="GET", status_code=404)
        seen: list[bool] = []

        async with _transport() as transport:
            transport.add_rejection_listener(lambda: seen.append(True))
            with pytest.raises(NotFoundError):
                await transport.call("GET", "/notes")

        assert seen == []
