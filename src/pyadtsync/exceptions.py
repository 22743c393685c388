"""Custom exception hierarchy for pyadtsync."""

from __future__ import annotations


class AdtError(Exception):
    """Base exception for all pyadtsync errors."""


class AdtConfigError(AdtError):
    """Invalid or missing configuration."""


class AdtTransportError(AdtError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AdtApiError(AdtError):
    """The portal answered, but rejected the request."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class AdtAuthenticationError(AdtApiError):
    """Login failed or session expired."""


class AdtSessionExpiredError(AdtAuthenticationError):
    """Session cookie rejected by the portal.

    Raised when a post-login call answers with HTTP 401/403.  The HTTP
    client catches this internally to log in again once.
    """


class AdtFetchError(AdtError):
    """Status retrieval failed during init or a scheduled refresh."""


class AdtPolicyRejection(AdtError):
    """Target state refused because the system is not ready to arm."""

    def __init__(self, message: str = "System is not ready", *, target: int | None = None) -> None:
        self.target = target
        super().__init__(message)


class AdtTimeoutError(AdtError):
    """No status arrived within the configured maximum wait."""
