from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from aiohttp import test_utils, web

from pyadtsync.config import AdtConfig
from pyadtsync.device import HttpDeviceClient
from pyadtsync.exceptions import AdtApiError, AdtAuthenticationError, AdtError, AdtTransportError
from pyadtsync.models import ArmingState, FaultStatus, TargetState


@dataclass
class FakePortal:
    password: str = "secret"
    logins: int = 0
    valid_cookie: str | None = None
    status_http_error: int | None = None
    status_payload: dict[str, Any] | None = None
    changes: list[dict[str, Any]] = field(default_factory=list)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/session/login", self._login)
        app.router.add_get("/api/alarm/status", self._status)
        app.router.add_post("/api/alarm/state", self._change)
        return app

    async def _login(self, request: web.Request) -> web.Response:
        body = await request.json()
        if body.get("password") != self.password:
            return web.json_response({"success": False, "message": "Invalid credentials"})
        self.logins += 1
        self.valid_cookie = f"session-{self.logins}"
        resp = web.json_response({"success": True})
        resp.set_cookie("SESSIONID", self.valid_cookie)
        return resp

    def _authorized(self, request: web.Request) -> bool:
        return self.valid_cookie is not None and request.cookies.get("SESSIONID") == self.valid_cookie

    async def _status(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401)
        if self.status_http_error is not None:
            return web.Response(status=self.status_http_error, text="maintenance")
        if self.status_payload is not None:
            return web.json_response(self.status_payload)
        return web.json_response(
            {
                "alarm": {
                    "armingState": 4,
                    "targetState": 1,
                    "faultStatus": 1,
                    "batteryLevel": 55,
                    "lowBatteryStatus": 0,
                }
            }
        )

    async def _change(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401)
        self.changes.append(await request.json())
        return web.json_response({"success": True})


def _config(server: test_utils.TestServer, password: str = "secret") -> AdtConfig:
    return AdtConfig(
        username="user",
        password=password,
        domain="portal.example.com",
        base_url=str(server.make_url("/")),
    )


@pytest.mark.asyncio
async def test_login_and_fetch_status() -> None:
    portal = FakePortal()
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server)) as client:
        await client.login()
        status = await client.get_current_status()

    assert portal.logins == 1
    assert status.arming_state is ArmingState.TRIGGERED
    assert status.target_state is TargetState.ARMED_AWAY
    assert status.fault_status is FaultStatus.FAULT
    assert status.battery_level == 55


@pytest.mark.asyncio
async def test_expired_session_logs_in_again_once() -> None:
    portal = FakePortal()
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server)) as client:
        await client.login()
        portal.valid_cookie = "rotated-by-server"

        status = await client.get_current_status()

    assert portal.logins == 2
    assert status.battery_level == 55


@pytest.mark.asyncio
async def test_status_without_login_logs_in_first() -> None:
    portal = FakePortal()
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server)) as client:
        await client.get_current_status()

        assert client.session is not None
        assert client.session.cookies == {"SESSIONID": "session-1"}


@pytest.mark.asyncio
async def test_bad_credentials_raise_authentication_error() -> None:
    portal = FakePortal()
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server, password="wrong")) as client:
        with pytest.raises(AdtAuthenticationError, match="Invalid credentials"):
            await client.login()


@pytest.mark.asyncio
async def test_server_error_raises_transport_error() -> None:
    portal = FakePortal(status_http_error=503)
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server)) as client:
        await client.login()
        with pytest.raises(AdtTransportError) as excinfo:
            await client.get_current_status()

    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_status_without_arming_state_raises_api_error() -> None:
    portal = FakePortal(status_payload={"alarm": {"targetState": 1, "batteryLevel": 80}})
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server)) as client:
        with pytest.raises(AdtApiError, match="no usable arming state") as excinfo:
            await client.get_current_status()

    assert excinfo.value.endpoint == "/api/alarm/status"


@pytest.mark.asyncio
async def test_change_state_posts_target() -> None:
    portal = FakePortal()
    async with test_utils.TestServer(portal.app()) as server, HttpDeviceClient(_config(server)) as client:
        await client.change_state(TargetState.ARMED_STAY)

    assert portal.changes == [{"targetState": 3}]


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    config = AdtConfig(username="user", password="secret", domain="portal.example.com")
    client = HttpDeviceClient(config)

    with pytest.raises(AdtError, match="not initialized"):
        await client.login()
