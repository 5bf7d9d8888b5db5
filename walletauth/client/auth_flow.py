"""
Challenge-response handshake state machine.

    idle -> fetching_nonce -> signing -> verifying -> authenticated
                  |              |           |
                  +--------------+-----------+--> error

``authenticated`` and ``error`` stay put until ``reset()``; ``start()`` from
``error`` begins a fresh attempt. Each step runs once per ``start()``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable

from walletauth.client.domain.entities import AuthSnapshot, AuthState
from walletauth.common.exceptions import NotConnected, UserDeclined, WalletAuthError

if TYPE_CHECKING:
    from walletauth.client.domain.entities import Identity
    from walletauth.client.wallet_session import WalletSession
    from walletauth.common.interfaces import IChallengeService
    from walletauth.common.models import Credentials

logger = logging.getLogger(__name__)

StateListener = Callable[[AuthSnapshot], None]


class AuthFlow:
    """Drives one wallet through nonce, signing and verification."""

    def __init__(self, session: WalletSession, challenge_service: IChallengeService):
        self.session = session
        self.challenge_service = challenge_service
        self._lock = threading.Lock()
        self._snapshot = AuthSnapshot()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> AuthState:
        return self._snapshot.state

    @property
    def credentials(self) -> Credentials | None:
        return self._snapshot.credentials

    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with every new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: AuthSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Auth state listener failed")

    def _transition(self, **changes: Any) -> AuthSnapshot:
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)
            snapshot = self._snapshot
        logger.debug("Auth state -> %s", snapshot.state.value)
        self._notify(snapshot)
        return snapshot

    def _fail(self, message: str, failure: WalletAuthError | None) -> AuthSnapshot:
        logger.error("Authentication failed: %s", message)
        return self._transition(state=AuthState.ERROR, error=message, failure=failure)

    def start(self) -> AuthSnapshot:
        """Run the handshake once. A no-op while one is already in progress."""
        identity = self.session.identity
        if identity is None:
            msg = "Connect a wallet before authenticating"
            raise NotConnected(msg)

        with self._lock:
            current = self._snapshot
            if current.state not in (AuthState.IDLE, AuthState.ERROR):
                logger.debug("Ignoring start while %s", current.state.value)
                return current
            # Fresh attempt: nothing from a prior nonce survives
            self._snapshot = AuthSnapshot(
                state=AuthState.FETCHING_NONCE, identity=identity
            )
            snapshot = self._snapshot
        self._notify(snapshot)

        try:
            return self._run(identity)
        except Exception as e:
            self._fail(f"Unexpected authentication failure: {e}", None)
            raise

    def _run(self, identity: Identity) -> AuthSnapshot:
        try:
            challenge = self.challenge_service.request_nonce(identity)
        except WalletAuthError as e:
            return self._fail(f"Failed to get nonce: {e}", e)
        self._transition(state=AuthState.SIGNING, challenge=challenge)

        # The signed payload always comes from the challenge of this attempt
        try:
            signature = self.session.sign_bytes(challenge.message.encode("utf-8"))
        except UserDeclined as e:
            return self._fail("Signing rejected by wallet.", e)
        except WalletAuthError as e:
            return self._fail(f"Failed to sign message: {e}", e)
        self._transition(state=AuthState.VERIFYING, signature=signature)

        try:
            credentials = self.challenge_service.verify(
                identity, signature, challenge.nonce
            )
        except WalletAuthError as e:
            return self._fail(f"Verification failed: {e}", e)

        # Credentials are only kept while the wallet that signed is still connected
        with self._lock:
            connected = self.session.identity == identity
            if connected:
                self._snapshot = replace(
                    self._snapshot, state=AuthState.AUTHENTICATED, credentials=credentials
                )
                snapshot = self._snapshot
        if not connected:
            msg = "Wallet disconnected during authentication"
            return self._fail(msg, NotConnected(msg))

        logger.info("Authenticated %s", identity.short_address)
        self._notify(snapshot)
        return snapshot

    def reset(self) -> bool:
        """Return to idle, dropping credentials, challenge and signature."""
        with self._lock:
            if self._snapshot.state.in_flight:
                logger.warning(
                    "Cannot reset while %s", self._snapshot.state.value
                )
                return False
            self._snapshot = AuthSnapshot()
            snapshot = self._snapshot
        self._notify(snapshot)
        return True
