"""Session state for authenticated portal calls."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

from pyadtsync.config import DEFAULT_SESSION_TTL


class Session(BaseModel):
    """Immutable session state after a successful login.

    Parameters
    ----------
    username : str
        The account the session belongs to.
    cookies : dict
        Session cookies issued by the portal, replayed on every call.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session
        was created.  Defaults to *now* if not provided.
    ttl : float
        Time-to-live in seconds.  After this period the session is
        considered expired and the client logs in again.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    username: str
    cookies: dict[str, str] = Field(default_factory=dict)
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float = DEFAULT_SESSION_TTL

    @property
    def cookie_header(self) -> str:
        return "; ".join(f"{k}={v}" for k, v in self.cookies.items())

    @property
    def is_expired(self) -> bool:
        """Whether the session has exceeded its TTL."""
        return (time.monotonic() - self.created_at) >= self.ttl

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self.created_at
