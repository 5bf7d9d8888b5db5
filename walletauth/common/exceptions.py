"""
Custom exceptions for the wallet authentication system.
"""

from __future__ import annotations

HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVER_ERROR = 500


class WalletAuthError(Exception):
    """Base exception for device, network and encoding failures."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class UserDeclined(WalletAuthError):
    """The wallet operator rejected the request."""


class InsecureContext(WalletAuthError):
    """The environment does not meet the wallet's transport-security requirement."""


class DeviceUnavailable(WalletAuthError):
    """Any other failure reaching or using the signing device."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class DeviceBusy(DeviceUnavailable):
    """Another device interaction is already in flight for this session."""


class NetworkError(WalletAuthError):
    """Transport failure talking to a remote service."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class ServerRejected(WalletAuthError):
    """A remote service answered with a non-success status or a bad payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        retryable = status_code is not None and (
            status_code == HTTP_TOO_MANY_REQUESTS or status_code >= HTTP_SERVER_ERROR
        )
        super().__init__(message, retryable=retryable)
        self.status_code = status_code


class MalformedEncoding(WalletAuthError, ValueError):
    """Text is not a valid encoding of a byte sequence."""


class NotConnected(WalletAuthError):
    """The operation needs a connected wallet."""


class NotAuthenticated(WalletAuthError):
    """The operation needs completed authentication."""
