from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from walletauth.client.domain.entities import (
    AppIdentity,
    AuthorizationResult,
    Identity,
    Signature,
    WalletAccount,
)
from walletauth.client.wallet_session import WalletSession
from walletauth.common.crypto import DetachedVerifier
from walletauth.common.exceptions import ServerRejected
from walletauth.common.models import Challenge, Credentials

APP_IDENTITY = AppIdentity(name="Test App", uri="https://example.test", icon="favicon.ico")


def raw_public_key(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        serialization.Encoding.Raw,
        serialization.PublicFormat.Raw,
    )


class MockResponse:
    def __init__(self, status_code, json_data):
        self.status_code = status_code
        self._json = json_data

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class FakeWalletDevice:
    """In-memory wallet holding an Ed25519 key."""

    def __init__(self, private_key: Ed25519PrivateKey | None = None):
        self.private_key = private_key or Ed25519PrivateKey.generate()
        self.calls: list[str] = []
        self.authorize_error: Exception | None = None
        self.reauthorize_error: Exception | None = None
        self.sign_error: Exception | None = None
        self.deauthorize_error: Exception | None = None
        self.revoked_tokens: list[str] = []
        self.accounts: list[WalletAccount] | None = None
        self.signature_override: list[bytes] | None = None
        self.reauthorize_entered = threading.Event()
        self.reauthorize_gate: threading.Event | None = None
        self.sign_entered = threading.Event()
        self.sign_gate: threading.Event | None = None
        self.signed_payloads: list[bytes] = []
        self._token_counter = 0

    @property
    def public_key(self) -> bytes:
        return raw_public_key(self.private_key)

    def _result(self) -> AuthorizationResult:
        self._token_counter += 1
        accounts = self.accounts
        if accounts is None:
            accounts = [WalletAccount(address=self.public_key)]
        return AuthorizationResult(
            auth_token=f"token-{self._token_counter}", accounts=accounts
        )

    def authorize(self, identity: AppIdentity, cluster: str) -> AuthorizationResult:
        self.calls.append("authorize")
        if self.authorize_error:
            raise self.authorize_error
        return self._result()

    def reauthorize(self, auth_token: str, identity: AppIdentity) -> AuthorizationResult:
        self.calls.append("reauthorize")
        self.reauthorize_entered.set()
        if self.reauthorize_gate is not None:
            self.reauthorize_gate.wait(timeout=5)
        if self.reauthorize_error:
            raise self.reauthorize_error
        return self._result()

    def sign_messages(self, addresses: list[bytes], payloads: list[bytes]) -> list[bytes]:
        self.calls.append("sign_messages")
        self.sign_entered.set()
        if self.sign_gate is not None:
            self.sign_gate.wait(timeout=5)
        if self.sign_error:
            raise self.sign_error
        self.signed_payloads.extend(payloads)
        if self.signature_override is not None:
            return self.signature_override
        return [self.private_key.sign(payload) for payload in payloads]

    def deauthorize(self, auth_token: str) -> None:
        self.calls.append("deauthorize")
        self.revoked_tokens.append(auth_token)
        if self.deauthorize_error:
            raise self.deauthorize_error


class FakeChallengeService:
    """Authentication service double that really checks signatures per nonce."""

    def __init__(self):
        self.issued: dict[str, str] = {}
        self.nonce_calls = 0
        self.verify_calls = 0
        self.nonce_error: Exception | None = None
        self.verify_error: Exception | None = None
        self.next_nonces: list[str] = []
        self.credentials = Credentials(access_token="AT1", refresh_token="RT1")

    def request_nonce(self, identity: Identity) -> Challenge:
        self.nonce_calls += 1
        if self.nonce_error:
            raise self.nonce_error
        nonce = self.next_nonces.pop(0) if self.next_nonces else f"n{self.nonce_calls}"
        message = f"Sign in: nonce {nonce}"
        self.issued[nonce] = message
        return Challenge(
            message=message,
            nonce=nonce,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=300),
        )

    def verify(self, identity: Identity, signature: Signature, nonce: str) -> Credentials:
        self.verify_calls += 1
        if self.verify_error:
            raise self.verify_error
        message = self.issued.pop(nonce, None)
        if message is None or not DetachedVerifier.verify(
            message.encode(), signature.raw, identity.public_key
        ):
            msg = "Verify request failed: 401"
            raise ServerRejected(msg, 401)
        return self.credentials


@pytest.fixture
def device() -> FakeWalletDevice:
    return FakeWalletDevice()


@pytest.fixture
def session(device: FakeWalletDevice) -> WalletSession:
    return WalletSession(device, APP_IDENTITY, "devnet")


@pytest.fixture
def connected_session(session: WalletSession) -> WalletSession:
    session.connect()
    return session


@pytest.fixture
def challenge_service() -> FakeChallengeService:
    return FakeChallengeService()
