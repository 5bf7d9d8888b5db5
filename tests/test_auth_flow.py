import threading
from datetime import datetime, timedelta, timezone

import pytest

from conftest import FakeChallengeService, FakeWalletDevice
from walletauth.client.auth_flow import AuthFlow
from walletauth.client.domain.entities import AuthSnapshot, AuthState, Identity, Signature
from walletauth.client.wallet_session import WalletSession
from walletauth.common.exceptions import (
    NetworkError,
    NotConnected,
    ServerRejected,
    UserDeclined,
)
from walletauth.common.models import Challenge, Credentials


@pytest.fixture
def flow(connected_session: WalletSession, challenge_service: FakeChallengeService) -> AuthFlow:
    return AuthFlow(connected_session, challenge_service)


class ScriptedService:
    """Returns a fixed challenge and credentials, recording verify arguments."""

    def __init__(self, challenge: Challenge, credentials: Credentials):
        self.challenge = challenge
        self.credentials = credentials
        self.verified: list[tuple[Identity, Signature, str]] = []

    def request_nonce(self, identity: Identity) -> Challenge:
        return self.challenge

    def verify(self, identity: Identity, signature: Signature, nonce: str) -> Credentials:
        self.verified.append((identity, signature, nonce))
        return self.credentials


def test_happy_path(connected_session: WalletSession, device: FakeWalletDevice) -> None:
    challenge = Challenge(
        message="Sign in: nonce abc123",
        nonce="abc123",
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=300),
    )
    service = ScriptedService(
        challenge, Credentials(access_token="AT1", refresh_token="RT1")
    )
    flow = AuthFlow(connected_session, service)

    snapshot = flow.start()

    assert snapshot.state is AuthState.AUTHENTICATED
    assert snapshot.credentials is not None
    assert snapshot.credentials.access_token == "AT1"
    assert snapshot.credentials.refresh_token == "RT1"
    assert snapshot.challenge == challenge
    assert device.signed_payloads == [b"Sign in: nonce abc123"]
    (_, signature, nonce), = service.verified
    assert nonce == "abc123"
    assert signature == snapshot.signature
    assert flow.credentials is snapshot.credentials


def test_state_sequence_is_observable(flow: AuthFlow) -> None:
    seen: list[AuthState] = []
    flow.subscribe(lambda snapshot: seen.append(snapshot.state))

    flow.start()

    assert seen == [
        AuthState.FETCHING_NONCE,
        AuthState.SIGNING,
        AuthState.VERIFYING,
        AuthState.AUTHENTICATED,
    ]


def test_unsubscribe(flow: AuthFlow) -> None:
    seen: list[AuthSnapshot] = []
    unsubscribe = flow.subscribe(seen.append)
    unsubscribe()
    flow.start()
    assert seen == []


def test_failing_listener_does_not_break_flow(flow: AuthFlow) -> None:
    def broken(snapshot: AuthSnapshot) -> None:
        raise RuntimeError("render failed")

    flow.subscribe(broken)
    assert flow.start().state is AuthState.AUTHENTICATED


def test_nonce_failure_then_retry(
    flow: AuthFlow, challenge_service: FakeChallengeService, device: FakeWalletDevice
) -> None:
    challenge_service.nonce_error = NetworkError("Nonce request failed: connection refused")

    snapshot = flow.start()

    assert snapshot.state is AuthState.ERROR
    assert snapshot.challenge is None
    assert snapshot.error is not None
    assert snapshot.error.startswith("Failed to get nonce:")
    assert snapshot.can_retry
    assert "sign_messages" not in device.calls

    challenge_service.nonce_error = None
    seen: list[AuthSnapshot] = []
    flow.subscribe(seen.append)

    snapshot = flow.start()

    assert seen[0].state is AuthState.FETCHING_NONCE
    assert seen[0].error is None
    assert snapshot.state is AuthState.AUTHENTICATED
    assert snapshot.error is None


def test_decline_at_signing(
    flow: AuthFlow, challenge_service: FakeChallengeService, device: FakeWalletDevice
) -> None:
    device.sign_error = RuntimeError("User declined the signing request")

    snapshot = flow.start()

    assert snapshot.state is AuthState.ERROR
    assert "rejected" in (snapshot.error or "")
    assert isinstance(snapshot.failure, UserDeclined)
    assert challenge_service.nonce_calls == 1
    assert challenge_service.verify_calls == 0


def test_device_failure_at_signing(flow: AuthFlow, device: FakeWalletDevice) -> None:
    device.sign_error = RuntimeError("bridge closed")
    snapshot = flow.start()
    assert snapshot.error == "Failed to sign message: bridge closed"


def test_verify_failure(flow: AuthFlow, challenge_service: FakeChallengeService) -> None:
    challenge_service.verify_error = ServerRejected("Verify request failed: 401", 401)

    snapshot = flow.start()

    assert snapshot.state is AuthState.ERROR
    assert snapshot.error == "Verification failed: Verify request failed: 401"
    assert snapshot.credentials is None


def test_retry_signs_the_new_challenge(
    flow: AuthFlow, challenge_service: FakeChallengeService, device: FakeWalletDevice
) -> None:
    challenge_service.next_nonces = ["first", "second"]
    challenge_service.verify_error = NetworkError("timeout")
    first = flow.start()
    challenge_service.verify_error = None

    second = flow.start()

    assert second.state is AuthState.AUTHENTICATED
    assert device.signed_payloads == [b"Sign in: nonce first", b"Sign in: nonce second"]
    assert first.signature != second.signature


def test_signature_bound_to_its_nonce(
    connected_session: WalletSession, challenge_service: FakeChallengeService
) -> None:
    first = challenge_service.request_nonce(connected_session.identity)
    second = challenge_service.request_nonce(connected_session.identity)
    signature = connected_session.sign_bytes(first.message.encode())

    with pytest.raises(ServerRejected):
        challenge_service.verify(connected_session.identity, signature, second.nonce)
    assert challenge_service.verify(connected_session.identity, signature, first.nonce)


def test_start_requires_connection(
    session: WalletSession, challenge_service: FakeChallengeService
) -> None:
    flow = AuthFlow(session, challenge_service)
    with pytest.raises(NotConnected):
        flow.start()
    assert flow.state is AuthState.IDLE
    assert challenge_service.nonce_calls == 0


def test_start_when_authenticated_is_noop(
    flow: AuthFlow, challenge_service: FakeChallengeService
) -> None:
    first = flow.start()
    second = flow.start()
    assert second is first
    assert challenge_service.nonce_calls == 1


def test_single_flight(
    flow: AuthFlow, challenge_service: FakeChallengeService, device: FakeWalletDevice
) -> None:
    device.sign_gate = threading.Event()
    worker = threading.Thread(target=flow.start)
    worker.start()
    try:
        assert device.sign_entered.wait(timeout=5)
        snapshot = flow.start()
        assert snapshot.state is AuthState.SIGNING
    finally:
        device.sign_gate.set()
        worker.join(timeout=5)

    assert flow.state is AuthState.AUTHENTICATED
    assert challenge_service.nonce_calls == 1
    assert challenge_service.verify_calls == 1
    assert device.calls.count("sign_messages") == 1


def test_reset_from_authenticated(flow: AuthFlow) -> None:
    flow.start()
    assert flow.reset()
    snapshot = flow.snapshot()
    assert snapshot == AuthSnapshot()
    assert snapshot.credentials is None
    assert snapshot.challenge is None
    assert snapshot.signature is None


def test_reset_ignored_while_in_flight(flow: AuthFlow, device: FakeWalletDevice) -> None:
    device.sign_gate = threading.Event()
    worker = threading.Thread(target=flow.start)
    worker.start()
    try:
        assert device.sign_entered.wait(timeout=5)
        assert not flow.reset()
    finally:
        device.sign_gate.set()
        worker.join(timeout=5)
    assert flow.state is AuthState.AUTHENTICATED


def test_unexpected_error_lands_in_error_state(
    flow: AuthFlow, challenge_service: FakeChallengeService
) -> None:
    challenge_service.nonce_error = KeyError("bug")

    with pytest.raises(KeyError):
        flow.start()

    assert flow.state is AuthState.ERROR
    challenge_service.nonce_error = None
    assert flow.start().state is AuthState.AUTHENTICATED


def test_credentials_dropped_when_wallet_disconnects_before_verify_returns(
    connected_session: WalletSession, challenge_service: FakeChallengeService
) -> None:
    verify = challenge_service.verify

    def verify_then_disconnect(identity, signature, nonce):
        credentials = verify(identity, signature, nonce)
        connected_session.disconnect()
        return credentials

    challenge_service.verify = verify_then_disconnect  # type: ignore[method-assign]
    flow = AuthFlow(connected_session, challenge_service)

    snapshot = flow.start()
    assert snapshot.state is AuthState.ERROR
    assert snapshot.credentials is None
    assert isinstance(snapshot.failure, NotConnected)
    assert snapshot.error == "Wallet disconnected during authentication"
