"""Domain layer: Core authentication entities and rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from walletauth.common.codec import SignatureCodec
from walletauth.common.crypto import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH
from walletauth.common.exceptions import InsecureContext

if TYPE_CHECKING:
    from walletauth.common.exceptions import WalletAuthError
    from walletauth.common.models import Challenge, Credentials


@dataclass(frozen=True)
class Identity:
    """Domain entity representing a connected wallet's public key."""

    public_key: bytes

    def __post_init__(self) -> None:
        if len(self.public_key) != PUBLIC_KEY_LENGTH:
            msg = f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(self.public_key)}"
            raise ValueError(msg)

    @classmethod
    def from_address(cls, address: str) -> Identity:
        return cls(SignatureCodec.decode(address.strip()))

    @property
    def address(self) -> str:
        return SignatureCodec.encode(self.public_key)

    @property
    def short_address(self) -> str:
        address = self.address
        return f"{address[:4]}...{address[-4:]}"


@dataclass(frozen=True)
class Signature:
    """Domain entity representing a detached Ed25519 signature."""

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != SIGNATURE_LENGTH:
            msg = f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(self.raw)}"
            raise ValueError(msg)

    @classmethod
    def from_text(cls, text: str) -> Signature:
        return cls(SignatureCodec.decode(text))

    @property
    def text(self) -> str:
        return SignatureCodec.encode(self.raw)


@dataclass(frozen=True)
class AppIdentity:
    """Descriptor of this application shown by the wallet on authorize."""

    name: str
    uri: str
    icon: str


@dataclass(frozen=True)
class WalletAccount:
    address: bytes


@dataclass(frozen=True)
class AuthorizationResult:
    """What the signing device returns from authorize/reauthorize."""

    auth_token: str
    accounts: list[WalletAccount] = field(default_factory=list)


@dataclass(frozen=True)
class AuthorizationHandle:
    """Capability to request signatures from the device for one identity."""

    auth_token: str
    identity: Identity


class AuthState(str, Enum):
    IDLE = "idle"
    FETCHING_NONCE = "fetching_nonce"
    SIGNING = "signing"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"
    ERROR = "error"

    @property
    def in_flight(self) -> bool:
        return self in (AuthState.FETCHING_NONCE, AuthState.SIGNING, AuthState.VERIFYING)


class VerificationResult(str, Enum):
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class AuthSnapshot:
    """Immutable view of the handshake state machine."""

    state: AuthState = AuthState.IDLE
    identity: Identity | None = None
    challenge: Challenge | None = None
    signature: Signature | None = None
    credentials: Credentials | None = None
    error: str | None = None
    failure: WalletAuthError | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def can_retry(self) -> bool:
        return self.state is AuthState.ERROR and not isinstance(
            self.failure, InsecureContext
        )
