"""
Free-form message signing and offline signature verification.

These reuse the wallet session and the verifier but never touch the
handshake state machine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from walletauth.client.domain.entities import VerificationResult
from walletauth.common.codec import SignatureCodec
from walletauth.common.crypto import DetachedVerifier
from walletauth.common.exceptions import MalformedEncoding

if TYPE_CHECKING:
    from walletauth.client.domain.entities import Identity
    from walletauth.client.wallet_session import WalletSession

logger = logging.getLogger(__name__)


def sign_message(session: WalletSession, message: str) -> str:
    """Have the wallet sign the UTF-8 bytes of message; returns base58 text."""
    if not message.strip():
        msg = "Message to sign must not be blank"
        raise ValueError(msg)
    signature = session.sign_bytes(message.encode("utf-8"))
    return signature.text


def verify_message_signature(
    identity: Identity, message: str, signature_text: str
) -> VerificationResult:
    """Check a base58 signature over message against identity, offline.

    Undecodable signature text is simply an invalid signature.
    """
    signature_text = signature_text.strip()
    if not message.strip() or not signature_text:
        return VerificationResult.INVALID

    try:
        signature = SignatureCodec.decode(signature_text)
    except MalformedEncoding as e:
        logger.debug("Signature text did not decode: %s", e)
        return VerificationResult.INVALID

    if DetachedVerifier.verify(message.encode("utf-8"), signature, identity.public_key):
        return VerificationResult.VALID
    return VerificationResult.INVALID
