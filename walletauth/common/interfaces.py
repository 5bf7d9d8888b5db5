"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from walletauth.client.domain.entities import (
        AppIdentity,
        AuthorizationResult,
        Identity,
        Signature,
    )
    from walletauth.common.models import Challenge, Credentials, SignatureInfo


class SigningDevice(Protocol):
    """Protocol for the external wallet that holds the private key.

    Implementations raise any exception on failure; the message text is used
    to tell a declined request from other device failures.
    """

    def authorize(self, identity: AppIdentity, cluster: str) -> AuthorizationResult: ...

    def reauthorize(
        self, auth_token: str, identity: AppIdentity
    ) -> AuthorizationResult: ...

    def sign_messages(
        self, addresses: list[bytes], payloads: list[bytes]
    ) -> list[bytes]: ...

    def deauthorize(self, auth_token: str) -> None: ...


class IChallengeService(Protocol):
    """Protocol for the remote authentication service."""

    def request_nonce(self, identity: Identity) -> Challenge: ...

    def verify(
        self, identity: Identity, signature: Signature, nonce: str
    ) -> Credentials: ...


class IActivityReader(Protocol):
    """Protocol for the read-only funds/activity layer."""

    def get_balance(self, identity: Identity) -> int: ...

    def get_recent_signatures(
        self, identity: Identity, limit: int = ...
    ) -> list[SignatureInfo]: ...
