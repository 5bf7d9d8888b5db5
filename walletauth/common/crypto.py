"""Common cryptographic utilities.
"""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


class DetachedVerifier:
    """Offline Ed25519 detached signature verification."""

    @staticmethod
    def verify(message: bytes, signature: bytes, public_key: bytes) -> bool:
        """Return True iff signature is valid for message under public_key.

        Inputs of the wrong length or a key that is not a curve point are
        reported as a failed verification, never as an exception.
        """
        if len(signature) != SIGNATURE_LENGTH or len(public_key) != PUBLIC_KEY_LENGTH:
            return False
        try:
            Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
        except (InvalidSignature, ValueError):
            return False
        return True
