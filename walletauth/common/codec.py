"""Text encoding of public keys and signatures.
"""

import base58

from walletauth.common.exceptions import MalformedEncoding


class SignatureCodec:
    """Converts raw key and signature bytes to and from base58 text."""

    @staticmethod
    def encode(data: bytes) -> str:
        """Encode raw bytes as base58 text."""
        return base58.b58encode(data).decode("ascii")

    @staticmethod
    def decode(text: str) -> bytes:
        """Decode base58 text, raising MalformedEncoding on bad input."""
        try:
            return base58.b58decode(text)
        except ValueError as err:
            msg = f"Invalid base58 text: {err}"
            raise MalformedEncoding(msg) from err
