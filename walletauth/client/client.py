"""
Wallet authentication client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from walletauth.client.activity import ActivityReader
from walletauth.client.auth_flow import AuthFlow
from walletauth.client.challenge_client import ChallengeClient
from walletauth.client.domain.entities import AppIdentity
from walletauth.client.messages import sign_message, verify_message_signature
from walletauth.client.wallet_session import WalletSession
from walletauth.common.config import Config
from walletauth.common.exceptions import NotConnected
from walletauth.common.logging_utils import setup_logger

if TYPE_CHECKING:
    from walletauth.client.domain.entities import (
        AuthSnapshot,
        AuthState,
        Identity,
        VerificationResult,
    )
    from walletauth.common.interfaces import (
        IActivityReader,
        IChallengeService,
        SigningDevice,
    )
    from walletauth.common.models import Credentials, SignatureInfo

logger = logging.getLogger(__name__)


class WalletAuthClient:
    """Connects a wallet, authenticates it with the server, signs and verifies."""

    def __init__(
        self,
        device: SigningDevice,
        api_base_url: str | None = None,
        rpc_url: str | None = None,
        request_timeout: float | None = None,
        cluster: str | None = None,
        app_identity: AppIdentity | None = None,
        log_level: int | None = None,
        on_state_change: Callable[[AuthSnapshot], None] | None = None,
        challenge_service: IChallengeService | None = None,
        activity_reader: IActivityReader | None = None,
    ):
        self.config = Config()

        self.api_base_url = (api_base_url or self.config.API_BASE_URL).rstrip("/")
        self.rpc_url = rpc_url or self.config.RPC_URL
        self.request_timeout = (
            request_timeout
            if request_timeout is not None
            else self.config.REQUEST_TIMEOUT
        )
        self.cluster = cluster or self.config.CLUSTER
        self.app_identity = app_identity or AppIdentity(
            name=self.config.APP_NAME,
            uri=self.config.APP_URI,
            icon=self.config.APP_ICON,
        )

        # Setup logging
        setup_logger(log_level if log_level is not None else self.config.LOG_LEVEL)

        self.session = WalletSession(device, self.app_identity, self.cluster)
        self.challenge_service = challenge_service or ChallengeClient(
            self.api_base_url,
            timeout=self.request_timeout,
            nonce_path=self.config.NONCE_PATH,
            verify_path=self.config.VERIFY_PATH,
        )
        self.flow = AuthFlow(self.session, self.challenge_service)
        self.activity: IActivityReader = activity_reader or ActivityReader(
            self.rpc_url, timeout=self.request_timeout
        )

        if on_state_change:
            self.flow.subscribe(on_state_change)

    @property
    def identity(self) -> Identity | None:
        return self.session.identity

    @property
    def state(self) -> AuthState:
        return self.flow.state

    @property
    def credentials(self) -> Credentials | None:
        return self.flow.credentials

    def snapshot(self) -> AuthSnapshot:
        return self.flow.snapshot()

    def is_authenticated(self) -> bool:
        return self.flow.snapshot().is_authenticated

    def _require_identity(self) -> Identity:
        identity = self.session.identity
        if identity is None:
            msg = "Wallet is not connected"
            raise NotConnected(msg)
        return identity

    def connect(self) -> Identity:
        """Authorize this app with the wallet."""
        return self.session.connect()

    def disconnect(self) -> None:
        """End the wallet session and drop any credentials."""
        self.session.disconnect()
        self.flow.reset()

    def authenticate(self) -> AuthSnapshot:
        """Run the nonce/sign/verify handshake."""
        return self.flow.start()

    def reset(self) -> bool:
        return self.flow.reset()

    def sign_message(self, message: str) -> str:
        """Sign free-form text with the wallet; returns base58 signature."""
        return sign_message(self.session, message)

    def verify_message_signature(
        self, message: str, signature_text: str
    ) -> VerificationResult:
        """Verify a base58 signature against the connected wallet, offline."""
        return verify_message_signature(
            self._require_identity(), message, signature_text
        )

    def get_balance(self) -> int:
        return self.activity.get_balance(self._require_identity())

    def get_recent_activity(self, limit: int | None = None) -> list[SignatureInfo]:
        return self.activity.get_recent_signatures(
            self._require_identity(),
            limit if limit is not None else self.config.RECENT_SIGNATURES_LIMIT,
        )
