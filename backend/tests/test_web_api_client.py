"""
Backend REST client: JSON contract, error mapping and token refresh.

The backend is replaced by `httpx.MockTransport`; no network access happens.
"""
from __future__ import annotations

import httpx
import pytest

from api_client import LoginResult, RadarAPIClient  # type: ignore
from config import APIConfig  # type: ignore
from identity_access.errors import BackendError, extract_message  # type: ignore
from identity_access.session import AuthSession  # type: ignore
from identity_access.stores import SessionStore  # type: ignore
from utils.radar_fixtures import ScriptedBackend, reply  # type: ignore


pytestmark = pytest.mark.anyio("asyncio")


def _client(backend) -> RadarAPIClient:
    return RadarAPIClient(APIConfig(base_url="https://backend.test/"), transport=httpx.MockTransport(backend))


def _session(store: SessionStore, *, token="access-1", refresh="refresh-1") -> AuthSession:
    rec = store.create(token=token, role="organizer", user={"email": "org@radar.example"}, refresh_token=refresh)
    session = AuthSession.bound_to(store)
    session.hydrate(rec)
    return session


def test_extract_message_order_and_fallback():
    assert extract_message({"detail": "d", "error": "e"}, "fb") == "e"
    assert extract_message({"Message": "M", "message": "m"}, "fb") == "M"
    assert extract_message({"error": "  "}, "fb") == "fb"
    assert extract_message("plain text", "fb") == "fb"
    assert extract_message({"error": "e", "Message": "M"}, "fb", ("Message", "error")) == "M"


async def test_login_parses_response():
    backend = ScriptedBackend(
        {"/login/": reply(200, {"access": "a", "refresh": "r", "user_id": 7, "email": "x@y.z", "role": "organizer", "extra": 1})}
    )
    result = await _client(backend).login(email="x@y.z", password="pw")

    assert isinstance(result, LoginResult)
    assert (result.access, result.refresh, result.user_id, result.role) == ("a", "r", 7, "organizer")
    assert backend.calls == [("/login/", {"email": "x@y.z", "password": "pw"}, None)]


async def test_login_without_access_token_is_an_error():
    backend = ScriptedBackend({"/login/": reply(200, {"refresh": "r"})})
    with pytest.raises(BackendError) as excinfo:
        await _client(backend).login(email="x@y.z", password="pw")
    assert excinfo.value.code == "invalid_login_response"


async def test_rejection_carries_status_and_body():
    backend = ScriptedBackend({"/forgot-pin/": reply(404, {"error": "User not found"})})
    with pytest.raises(BackendError) as excinfo:
        await _client(backend).forgot_pin(email="nobody@radar.example")
    assert excinfo.value.status_code == 404
    assert excinfo.value.user_message("fallback") == "User not found"


async def test_non_json_error_body_uses_fallback():
    backend = ScriptedBackend({"/forgot-pin/": lambda request: httpx.Response(502, text="<html>Bad gateway</html>")})
    with pytest.raises(BackendError) as excinfo:
        await _client(backend).forgot_pin(email="x@y.z")
    assert excinfo.value.user_message("Failed to send PIN reset link") == "Failed to send PIN reset link"


async def test_transport_failure_has_no_status():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BackendError) as excinfo:
        await _client(boom).forgot_pin(email="x@y.z")
    assert excinfo.value.status_code is None
    assert excinfo.value.code == "backend_unreachable"


async def test_change_pin_payload_includes_otp_only_when_given():
    backend = ScriptedBackend({"/change-pin/": reply(200, {"Message": "ok"})})
    client = _client(backend)
    await client.change_pin(email="e@x.y", pin="1111", confirm_pin="1111", otp="998877")
    await client.change_pin(email="e@x.y", pin="1111", confirm_pin="1111")

    assert backend.calls[0][1] == {"Email": "e@x.y", "Pin": "1111", "ConfirmPin": "1111", "otp": "998877"}
    assert backend.calls[1][1] == {"Email": "e@x.y", "Pin": "1111", "ConfirmPin": "1111"}


async def test_session_set_pin_sends_bearer_token():
    backend = ScriptedBackend({"/pin/": reply(201, {"Message": "created"})})
    session = _session(SessionStore())

    await _client(backend).for_session(session).set_pin(email="org@radar.example", pin="4821")

    assert backend.calls == [("/pin/", {"Email": "org@radar.example", "pin": "4821"}, "Bearer access-1")]


async def test_session_call_refreshes_once_on_401():
    attempts = {"pin": 0}

    def pin(request: httpx.Request) -> httpx.Response:
        attempts["pin"] += 1
        if request.headers["authorization"] == "Bearer access-1":
            return httpx.Response(401, json={"detail": "expired"})
        return httpx.Response(201, json={})

    backend = ScriptedBackend({"/pin/": pin, "/token/refresh/": reply(200, {"access": "access-2"})})
    store = SessionStore()
    session = _session(store)
    refreshed = []

    await _client(backend).for_session(session, on_token_refreshed=refreshed.append).set_pin(email="e", pin="1234")

    assert backend.paths() == ["/pin/", "/token/refresh/", "/pin/"]
    assert backend.calls[1][1] == {"refresh": "refresh-1"}
    assert session.token == "access-2"
    assert refreshed == ["access-2"]
    assert attempts["pin"] == 2


async def test_401_without_refresh_token_propagates():
    backend = ScriptedBackend({"/pin/": reply(401, {"detail": "expired"})})
    session = _session(SessionStore(), refresh=None)

    with pytest.raises(BackendError) as excinfo:
        await _client(backend).for_session(session).set_pin(email="e", pin="1234")
    assert excinfo.value.status_code == 401
    assert backend.paths() == ["/pin/"]


async def test_rejected_refresh_token_logs_out():
    backend = ScriptedBackend(
        {
            "/pin/": reply(401, {"detail": "expired"}),
            "/token/refresh/": reply(401, {"code": "token_not_valid", "detail": "Token is invalid or expired"}),
        }
    )
    store = SessionStore()
    session = _session(store)
    sid = session.session_id

    with pytest.raises(BackendError):
        await _client(backend).for_session(session).set_pin(email="e", pin="1234")

    assert session.token is None
    assert store.get(sid) is None


async def test_forgot_pin_via_session_is_unauthenticated():
    backend = ScriptedBackend({"/forgot-pin/": reply(200, {"Message": "sent"})})
    session = _session(SessionStore())

    await _client(backend).for_session(session).forgot_pin(email="org@radar.example")

    assert backend.calls == [("/forgot-pin/", {"Email": "org@radar.example"}, None)]
