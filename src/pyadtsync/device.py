"""Device client interface and the JSON-over-HTTP portal client."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from http.cookies import SimpleCookie
from typing import Any, Protocol, TypeVar

import aiohttp
from pydantic import ValidationError

from pyadtsync._redact import redact_for_log
from pyadtsync.config import AdtConfig
from pyadtsync.exceptions import (
    AdtApiError,
    AdtAuthenticationError,
    AdtError,
    AdtSessionExpiredError,
    AdtTransportError,
)
from pyadtsync.models.status import ArmingState, StatusSnapshot, TargetState
from pyadtsync.session import Session

_logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "pyadtsync"


class DeviceClient(Protocol):
    """Structural interface the engine drives.

    Any object with these coroutines can back a
    :class:`~pyadtsync.engine.StateSyncEngine`; tests pass small fakes.
    """

    async def login(self) -> None:
        ...

    async def get_current_status(self) -> StatusSnapshot:
        ...

    async def change_state(self, target: TargetState) -> None:
        ...


def _parse_cookies(headers: Any) -> dict[str, str]:
    """Extract ``Set-Cookie`` values from response headers."""
    cookies: dict[str, str] = {}
    for raw in headers.getall("Set-Cookie", []):
        cookie: SimpleCookie = SimpleCookie()
        cookie.load(raw)
        for key, morsel in cookie.items():
            cookies[key] = morsel.value
    return cookies


class HttpDeviceClient:
    """Async JSON client for the security portal.

    Usage::

        async with HttpDeviceClient(config) as client:
            await client.login()
            status = await client.get_current_status()

    Session cookies are tracked by hand and replayed as a ``Cookie``
    header so that they survive portals addressed by IP.
    """

    def __init__(
        self,
        config: AdtConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> HttpDeviceClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(cookie_jar=aiohttp.DummyCookieJar())
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None
        self._session = None

    @property
    def session(self) -> Session | None:
        return self._session

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self) -> None:
        """Authenticate against the portal and store the session cookies."""
        endpoint = self._config.login_path
        payload = {
            "username": self._config.username,
            "password": self._config.password,
            "domain": self._config.domain,
        }
        _logger.debug("Logging in payload=%s", redact_for_log(payload))
        try:
            status, body, cookies = await self._send("POST", endpoint, payload, cookie_header="")
        except AdtSessionExpiredError as exc:
            raise AdtAuthenticationError(
                f"Login rejected: HTTP {exc.code}",
                code=exc.code,
                endpoint=endpoint,
            ) from exc

        if isinstance(body, dict) and body.get("success") is False:
            raise AdtAuthenticationError(
                f"Login failed: {body.get('message', 'unknown reason')}",
                code=str(body.get("code", "")),
                endpoint=endpoint,
            )
        if not cookies:
            raise AdtAuthenticationError("Login response set no session cookie", endpoint=endpoint)

        ttl = self._config.session_ttl if self._config.session_ttl > 0 else float("inf")
        self._session = Session(username=self._config.username, cookies=cookies, ttl=ttl)
        _logger.debug("Logged in status=%s session=%s", status, redact_for_log(self._session))

    async def ensure_session(self) -> Session:
        """Return an active session, re-authenticating if expired."""
        if self._session is not None and not self._session.is_expired:
            return self._session
        await self.login()
        assert self._session is not None  # noqa: S101
        return self._session

    def invalidate_session(self) -> None:
        """Force session invalidation (next call will re-authenticate)."""
        self._session = None

    # ------------------------------------------------------------------
    # Device operations
    # ------------------------------------------------------------------

    async def get_current_status(self) -> StatusSnapshot:
        """Fetch the alarm status."""

        async def _call() -> StatusSnapshot:
            session = await self.ensure_session()
            _, body, _ = await self._send("GET", self._config.status_path, None, cookie_header=session.cookie_header)
            if not isinstance(body, dict):
                raise AdtApiError("Status response is not an object", endpoint=self._config.status_path)
            try:
                snapshot = StatusSnapshot.model_validate(body)
            except ValidationError as exc:
                raise AdtApiError(
                    f"Unexpected status payload: {exc.error_count()} error(s)",
                    endpoint=self._config.status_path,
                ) from exc
            if snapshot.arming_state == ArmingState.UNKNOWN or snapshot.target_state == TargetState.UNKNOWN:
                _logger.debug("Status payload without arming state: %s", redact_for_log(body))
                raise AdtApiError(
                    "Status payload has no usable arming state",
                    endpoint=self._config.status_path,
                )
            return snapshot

        return await self._call_with_reauth(_call)

    async def change_state(self, target: TargetState) -> None:
        """Ask the panel to move to *target*.  Does not wait for the panel."""

        async def _call() -> None:
            session = await self.ensure_session()
            _, body, _ = await self._send(
                "POST",
                self._config.change_state_path,
                {"targetState": int(target)},
                cookie_header=session.cookie_header,
            )
            if isinstance(body, dict) and body.get("success") is False:
                raise AdtApiError(
                    f"State change refused: {body.get('message', '')}",
                    code=str(body.get("code", "")),
                    endpoint=self._config.change_state_path,
                )

        await self._call_with_reauth(_call)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_http(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise AdtError("Client not initialized. Use 'async with HttpDeviceClient(...) as client:'")
        return self._http_session

    async def _call_with_reauth(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run a portal call, retrying once on session expiry."""
        try:
            return await fn()
        except AdtSessionExpiredError:
            _logger.debug("Session expired; logging in again")
            self.invalidate_session()
            await self.ensure_session()
            return await fn()

    async def _send(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None,
        *,
        cookie_header: str,
    ) -> tuple[int, Any, dict[str, str]]:
        """Send one request and return ``(status, decoded_json, cookies)``."""
        http = self._require_http()
        url = f"{self._config.endpoint_base}{endpoint}"
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if cookie_header:
            headers["cookie"] = cookie_header

        _logger.debug("%s %s", method, url)

        try:
            async with http.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            ) as resp:
                cookies = _parse_cookies(resp.headers)
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise AdtTransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc
        except TimeoutError as exc:
            raise AdtTransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc

        if status in (401, 403):
            raise AdtSessionExpiredError(
                f"HTTP {status} from {endpoint}",
                code=str(status),
                endpoint=endpoint,
            )
        if not 200 <= status < 300:
            raise AdtTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if not text.strip():
            return status, None, cookies
        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AdtTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc
        _logger.debug("Response from %s: %s", endpoint, redact_for_log(body))
        return status, body, cookies
