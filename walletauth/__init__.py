# Wallet challenge-response authentication

from walletauth.client.client import WalletAuthClient
from walletauth.client.domain.entities import (
    AuthSnapshot,
    AuthState,
    Identity,
    Signature,
    VerificationResult,
)
from walletauth.common.decorators import requires_authentication, retry_on_transient

__all__ = [
    "AuthSnapshot",
    "AuthState",
    "Identity",
    "Signature",
    "VerificationResult",
    "WalletAuthClient",
    "requires_authentication",
    "retry_on_transient",
]
