"""
Wallet session handling: authorization and signing through the external device.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from walletauth.client.domain.entities import (
    AppIdentity,
    AuthorizationHandle,
    Identity,
    Signature,
)
from walletauth.common.crypto import SIGNATURE_LENGTH
from walletauth.common.exceptions import (
    DeviceBusy,
    DeviceUnavailable,
    InsecureContext,
    NotConnected,
    UserDeclined,
    WalletAuthError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from walletauth.common.interfaces import SigningDevice

logger = logging.getLogger(__name__)

T = TypeVar("T")


def translate_device_error(error: Exception) -> WalletAuthError:
    """Map an arbitrary device failure onto the error taxonomy."""
    if isinstance(error, WalletAuthError):
        return error
    message = str(error) or type(error).__name__
    lowered = message.lower()
    if "declined" in lowered:
        return UserDeclined(message)
    if "secure context" in lowered:
        return InsecureContext(message)
    return DeviceUnavailable(message)


class WalletSession:
    """Owns the authorization handle for one connected wallet."""

    def __init__(
        self,
        device: SigningDevice,
        app_identity: AppIdentity,
        cluster: str,
    ):
        self.device = device
        self.app_identity = app_identity
        self.cluster = cluster

        # Session state; _state_lock guards _handle and _pending_revocation
        self._handle: AuthorizationHandle | None = None
        self._pending_revocation: str | None = None
        self._state_lock = threading.Lock()
        self._device_lock = threading.Lock()

    @property
    def identity(self) -> Identity | None:
        handle = self._handle
        return handle.identity if handle else None

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        # The device channel does not support interleaved requests
        if not self._device_lock.acquire(blocking=False):
            msg = "Another wallet request is already in progress"
            raise DeviceBusy(msg)
        try:
            yield
        finally:
            self._release_device()

    def _release_device(self) -> None:
        # A disconnect that arrived mid-request left its token for us to revoke
        while True:
            with self._state_lock:
                token = self._pending_revocation
                self._pending_revocation = None
                if token is None:
                    self._device_lock.release()
                    return
            self._revoke(token)

    def _revoke(self, auth_token: str) -> None:
        try:
            self._call_device(self.device.deauthorize, auth_token)
        except WalletAuthError as e:
            logger.warning("Wallet deauthorization failed: %s", e)

    @staticmethod
    def _call_device(func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except Exception as e:
            raise translate_device_error(e) from e

    def connect(self) -> Identity:
        """Authorize with the wallet and select its first account."""
        logger.info("Requesting wallet authorization on %s...", self.cluster)
        with self._exclusive():
            result = self._call_device(
                self.device.authorize, self.app_identity, self.cluster
            )
        if not result.accounts:
            msg = "Wallet authorized but reported no accounts"
            raise DeviceUnavailable(msg)

        try:
            identity = Identity(bytes(result.accounts[0].address))
        except ValueError as err:
            raise DeviceUnavailable(str(err)) from err

        with self._state_lock:
            self._handle = AuthorizationHandle(result.auth_token, identity)
        logger.info("Wallet connected: %s", identity.short_address)
        return identity

    def disconnect(self) -> None:
        """End the local session and revoke the authorization (best effort).

        While another wallet request is in flight, revocation is deferred until
        that request releases the device, using the freshest token it saw.
        """
        with self._state_lock:
            handle = self._handle
            self._handle = None
            if handle is None:
                return
            if not self._device_lock.acquire(blocking=False):
                self._pending_revocation = handle.auth_token
                logger.info("Wallet busy, deauthorization deferred")
                logger.info("Wallet disconnected: %s", handle.identity.short_address)
                return
        try:
            self._revoke(handle.auth_token)
        finally:
            self._device_lock.release()
        logger.info("Wallet disconnected: %s", handle.identity.short_address)

    def sign_bytes(self, message: bytes) -> Signature:
        """Reauthorize, then have the wallet sign message with the connected key."""
        handle = self._handle
        if handle is None:
            msg = "Wallet is not connected"
            raise NotConnected(msg)

        with self._exclusive():
            result = self._call_device(
                self.device.reauthorize, handle.auth_token, self.app_identity
            )
            refreshed = AuthorizationHandle(result.auth_token, handle.identity)
            with self._state_lock:
                if self._handle is not handle:
                    # Disconnected while reauthorizing: revoke the new token instead
                    if self._pending_revocation is not None:
                        self._pending_revocation = result.auth_token
                    msg = "Wallet disconnected during signing"
                    raise NotConnected(msg)
                self._handle = refreshed
            if result.auth_token != handle.auth_token:
                logger.debug("Authorization token refreshed")

            signatures = self._call_device(
                self.device.sign_messages, [refreshed.identity.public_key], [message]
            )

        if not signatures:
            msg = "Wallet returned no signature"
            raise DeviceUnavailable(msg)
        raw = bytes(signatures[0])
        if len(raw) != SIGNATURE_LENGTH:
            msg = f"Wallet returned a {len(raw)}-byte signature"
            raise DeviceUnavailable(msg)
        return Signature(raw)
