"""Client configuration for pyadtsync."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pyadtsync.exceptions import AdtConfigError

#: Default status cache time-to-live, in seconds.
DEFAULT_CACHE_TTL: float = 5.0

#: Default HTTP session lifetime, in seconds.
DEFAULT_SESSION_TTL: float = 30 * 60


def _env_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise AdtConfigError(f"Expected a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class AdtConfig:
    """Engine and client configuration.

    Parameters
    ----------
    username : str
        Security portal account username.
    password : str
        Security portal account password.
    domain : str
        Portal host name (e.g. ``"portal.example.com"``).  Used to build
        the base URL unless ``base_url`` is given.
    name : str
        Accessory display name.
    cache_ttl : float
        Status cache time-to-live in **seconds**.  Each time a cached
        snapshot expires the engine polls the device again, so this is
        also the polling interval.
    max_wait : float or None
        Maximum seconds a reader waits for a first status.  ``None``
        waits indefinitely.
    session_ttl : float
        HTTP session lifetime in seconds.  After this interval the HTTP
        client logs in again before the next call.  ``0`` disables
        expiry (re-login then only happens on 401/403).
    base_url : str or None
        Explicit portal base URL; overrides ``https://{domain}``.
    login_path, status_path, change_state_path : str
        JSON endpoint paths used by :class:`~pyadtsync.device.HttpDeviceClient`.
    request_timeout : float
        Per-request HTTP timeout in seconds.

    Raises
    ------
    AdtConfigError
        If a required credential is missing or a duration is invalid.
    """

    username: str
    password: str
    domain: str
    name: str = "ADT"
    cache_ttl: float = DEFAULT_CACHE_TTL
    max_wait: float | None = None
    session_ttl: float = DEFAULT_SESSION_TTL
    base_url: str | None = None
    login_path: str = "/api/session/login"
    status_path: str = "/api/alarm/status"
    change_state_path: str = "/api/alarm/state"
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        missing = [
            field_name
            for field_name in ("username", "password", "domain")
            if not isinstance(getattr(self, field_name), str) or not getattr(self, field_name).strip()
        ]
        if missing:
            raise AdtConfigError(f"Missing parameter(s): {', '.join(missing)}. Please check configuration.")
        if self.cache_ttl <= 0:
            raise AdtConfigError(f"cache_ttl must be positive seconds, got {self.cache_ttl!r}")
        if self.max_wait is not None and self.max_wait <= 0:
            raise AdtConfigError(f"max_wait must be positive seconds or None, got {self.max_wait!r}")
        if self.session_ttl < 0:
            raise AdtConfigError(f"session_ttl must not be negative, got {self.session_ttl!r}")

    @property
    def endpoint_base(self) -> str:
        """Base URL the HTTP client sends requests to."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"https://{self.domain.strip().rstrip('/')}"

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], **overrides: Any) -> AdtConfig:
        """Create configuration from a plugin-style config mapping.

        Accepts the keys ``username``, ``password``, ``domain``, ``name``
        and ``cacheTTL`` (seconds), as found in accessory config files.
        Snake-case field names are accepted as well.
        """
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            if field.name in mapping:
                kwargs[field.name] = mapping[field.name]
        if "cacheTTL" in mapping and mapping["cacheTTL"]:
            kwargs["cache_ttl"] = float(mapping["cacheTTL"])
        for required in ("username", "password", "domain"):
            kwargs.setdefault(required, "")
        kwargs.update(overrides)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> AdtConfig:
        """Create configuration from environment variables.

        Reads ``ADT_USERNAME``, ``ADT_PASSWORD``, ``ADT_DOMAIN`` and the
        optional ``ADT_*`` variables below.  Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ADT_USERNAME": "username",
            "ADT_PASSWORD": "password",
            "ADT_DOMAIN": "domain",
            "ADT_NAME": "name",
            "ADT_BASE_URL": "base_url",
        }
        config_kwargs: dict[str, Any] = {"username": "", "password": "", "domain": ""}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_SECONDS_MAP = {
            "ADT_CACHE_TTL": "cache_ttl",
            "ADT_MAX_WAIT": "max_wait",
            "ADT_SESSION_TTL": "session_ttl",
        }
        for env_key, field_name in _ENV_SECONDS_MAP.items():
            if field_name in overrides:
                continue
            seconds = _env_float(env.get(env_key))
            if seconds is not None:
                config_kwargs[field_name] = seconds

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
